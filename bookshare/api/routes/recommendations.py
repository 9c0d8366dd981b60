"""Recommendation routes."""

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import SQLAlchemyError

from bookshare.api.dependencies import get_recommendation_service
from bookshare.api.schemas import (
    BooksResponse,
    CategoriesResponse,
    CategoryBooksItem,
    CategoryGroups,
    CategoryItem,
    ItemCountResponse,
    RecommendationGroups,
    RecommendationsResponse,
    RecommendationStats,
)
from bookshare.ports.catalog import CatalogError
from bookshare.services.recommendations import (
    CategoryBooks,
    CategoryCount,
    RecommendationService,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/recommendations", tags=["Recommendations"])


def _require_user_id(user_id: str | None) -> str:
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="User ID is required",
        )
    return user_id


def _failure(message: str, exc: Exception) -> HTTPException:
    logger.exception("%s: %s", message, exc)
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=message)


def _counts(entries: list[CategoryCount]) -> list[ItemCountResponse]:
    return [ItemCountResponse(item=e.item, count=e.count) for e in entries]


def _groups(entries: list[CategoryBooks]) -> list[CategoryBooksItem]:
    return [CategoryBooksItem(category=e.category, books=e.books) for e in entries]


@router.get("", response_model=RecommendationsResponse)
async def get_recommendations(
    userId: str | None = None,
    service: RecommendationService = Depends(get_recommendation_service),
) -> RecommendationsResponse:
    """Books per top genre, author, language and decade, with ranking stats."""
    user_id = _require_user_id(userId)
    try:
        recs = await service.get_recommendations(user_id)
    except (SQLAlchemyError, CatalogError) as exc:
        raise _failure("Failed to fetch recommendations", exc) from exc

    return RecommendationsResponse(
        recommendations=RecommendationGroups(
            by_genre=_groups(recs.by_genre),
            by_author=_groups(recs.by_author),
            by_language=_groups(recs.by_language),
            by_decade=_groups(recs.by_decade),
        ),
        stats=RecommendationStats(
            genres=_counts(recs.profile.genres),
            authors=_counts(recs.profile.authors),
            languages=_counts(recs.profile.languages),
            decades=_counts(recs.profile.decades),
        ),
    )


@router.get("/categories", response_model=CategoriesResponse)
async def get_categories(
    userId: str | None = None,
    service: RecommendationService = Depends(get_recommendation_service),
) -> CategoriesResponse:
    """Top three genres, authors and languages among the user's high-rated books."""
    user_id = _require_user_id(userId)
    try:
        profile = await service.get_categories(user_id)
    except (SQLAlchemyError, CatalogError) as exc:
        raise _failure("Failed to fetch recommendation categories", exc) from exc

    def items(entries: list[CategoryCount]) -> list[CategoryItem]:
        return [CategoryItem(category=e.item) for e in entries]

    return CategoriesResponse(
        categories=CategoryGroups(
            by_genre=items(profile.genres),
            by_author=items(profile.authors),
            by_language=items(profile.languages),
        )
    )


@router.get("/books", response_model=BooksResponse)
async def get_category_books(
    userId: str | None = None,
    type: str | None = None,
    category: str | None = None,
    service: RecommendationService = Depends(get_recommendation_service),
) -> BooksResponse:
    """Unreviewed books for one genre, author or language."""
    try:
        books = await service.get_books_for_category(userId, type, category)
    except (SQLAlchemyError, CatalogError) as exc:
        raise _failure("Failed to fetch books", exc) from exc
    return BooksResponse(books=books)


@router.get("/filtered", response_model=BooksResponse)
async def get_filtered_books(
    userId: str | None = None,
    genre: str | None = None,
    author: str | None = None,
    language: str | None = None,
    service: RecommendationService = Depends(get_recommendation_service),
) -> BooksResponse:
    """Unreviewed books matching any combination of genre, author and language."""
    user_id = _require_user_id(userId)
    try:
        books = await service.get_filtered_books(user_id, genre, author, language)
    except (SQLAlchemyError, CatalogError) as exc:
        raise _failure("Failed to fetch filtered books", exc) from exc
    return BooksResponse(books=books)
