"""Catalog lookup, ratings and review routes."""

import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, status

from bookshare.api.dependencies import get_catalog, get_rating_service, get_review_service
from bookshare.api.middleware.auth import get_current_user
from bookshare.api.schemas import RatingResponse, ReviewCreateRequest, ReviewResponse
from bookshare.domain.models import User
from bookshare.ports.catalog import (
    DEFAULT_SEARCH_LIMIT,
    BookNotFoundError,
    CatalogPort,
    CatalogUnavailableError,
    CatalogUpstreamError,
    SearchQuery,
)
from bookshare.services.ratings import RatingService
from bookshare.services.reviews import ReviewService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/books", tags=["Books"])


def _upstream_failure(exc: CatalogUpstreamError) -> HTTPException:
    return HTTPException(status_code=exc.status_code, detail=f"API error: {exc.status_code}")


@router.get("")
async def search_books(
    search: str = "",
    searchType: str | None = None,
    limit: int = DEFAULT_SEARCH_LIMIT,
    sinceId: str = "",
    catalog: CatalogPort = Depends(get_catalog),
) -> dict[str, Any]:
    """Search the catalog by title, author or ISBN."""
    query = SearchQuery(search=search, search_type=searchType, limit=limit, since_id=sinceId)
    try:
        return await catalog.search_books(query)
    except CatalogUpstreamError as exc:
        raise _upstream_failure(exc) from exc
    except CatalogUnavailableError as exc:
        logger.error("Error fetching books: %s", exc)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch books",
        ) from exc


@router.get("/{book_id}")
async def get_book(
    book_id: str,
    catalog: CatalogPort = Depends(get_catalog),
) -> dict[str, Any]:
    """Get the catalog record for one book."""
    try:
        return await catalog.get_book_by_id(book_id)
    except BookNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Book not found") from exc
    except CatalogUpstreamError as exc:
        raise _upstream_failure(exc) from exc
    except CatalogUnavailableError as exc:
        logger.error("Error fetching book details: %s", exc)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch book details",
        ) from exc


@router.get("/{book_id}/ratings", response_model=RatingResponse)
async def get_ratings(
    book_id: str,
    ratings: RatingService = Depends(get_rating_service),
) -> RatingResponse:
    rating = await ratings.get_book_ratings(book_id)
    return RatingResponse(average=rating.average, total=rating.total)


@router.get("/{book_id}/reviews", response_model=list[ReviewResponse])
async def list_reviews(
    book_id: str,
    reviews: ReviewService = Depends(get_review_service),
) -> list[ReviewResponse]:
    return [ReviewResponse.model_validate(r) for r in await reviews.get_reviews_for_book(book_id)]


@router.post(
    "/{book_id}/reviews",
    response_model=ReviewResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_review(
    book_id: str,
    data: ReviewCreateRequest,
    user: User = Depends(get_current_user),
    reviews: ReviewService = Depends(get_review_service),
) -> ReviewResponse:
    """Rate (1-10) and comment on a book."""
    review = await reviews.create_review(book_id, user, data.rating, data.comment)
    return ReviewResponse.model_validate(review)
