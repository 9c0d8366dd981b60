"""Rule-based recommendations derived from a user's highly rated reviews."""

import asyncio
import logging
import math
from collections import Counter
from dataclasses import dataclass, field

from fastapi import HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from bookshare.domain.identifiers import pad_book_id
from bookshare.domain.models import Review
from bookshare.ports.catalog import (
    BookDetail,
    CatalogPort,
    SimilarBooksFilter,
)
from bookshare.services.books import resolve_books
from bookshare.services.ratings import RatingService

logger = logging.getLogger(__name__)

CATEGORY_TYPES = ("genre", "author", "language")
CATEGORY_BOOKS_LIMIT = 10
FILTERED_BOOKS_LIMIT = 12


@dataclass
class CategoryCount:
    item: str
    count: int


@dataclass
class CategoryBooks:
    category: str
    books: list[BookDetail] = field(default_factory=list)


@dataclass
class PreferenceProfile:
    """Ranked categories per dimension, each capped at the category limit."""

    genres: list[CategoryCount] = field(default_factory=list)
    authors: list[CategoryCount] = field(default_factory=list)
    languages: list[CategoryCount] = field(default_factory=list)
    decades: list[CategoryCount] = field(default_factory=list)


@dataclass
class Recommendations:
    by_genre: list[CategoryBooks]
    by_author: list[CategoryBooks]
    by_language: list[CategoryBooks]
    by_decade: list[CategoryBooks]
    profile: PreferenceProfile


def rank_categories(values: list[str], limit: int) -> list[CategoryCount]:
    """Count values and rank by frequency; ties keep first-seen order."""
    counts = Counter(value for value in values if value)
    return [CategoryCount(item, count) for item, count in counts.most_common(limit)]


def decade_of(book: BookDetail) -> str | None:
    try:
        year = int(book.get("publicationYear"))
    except (TypeError, ValueError):
        return None
    return f"{year // 10 * 10}s"


class RecommendationService:
    """Derives preferred categories and fetches unseen books for them."""

    def __init__(
        self,
        session: AsyncSession,
        catalog: CatalogPort,
        high_rating_threshold: int = 7,
        category_limit: int = 3,
    ) -> None:
        self._session = session
        self._catalog = catalog
        self._ratings = RatingService(session)
        self._threshold = high_rating_threshold
        self._category_limit = category_limit

    # ── Signals ────────────────────────────────────

    async def reviewed_book_ids(self, user_id: str) -> set[str]:
        result = await self._session.execute(
            select(Review.book_id).where(Review.user_id == user_id)
        )
        return {pad_book_id(book_id) for book_id in result.scalars()}

    async def _high_rated_book_ids(self, user_id: str) -> list[str]:
        result = await self._session.execute(
            select(Review.book_id)
            .where(Review.user_id == user_id, Review.rating >= self._threshold)
            .order_by(Review.created_at)
        )
        return list(dict.fromkeys(pad_book_id(book_id) for book_id in result.scalars()))

    async def build_profile(self, user_id: str) -> PreferenceProfile:
        resolved = await resolve_books(self._catalog, await self._high_rated_book_ids(user_id))
        books = [book for book in resolved.values() if not book.get("unavailable")]
        logger.info("Preference profile for %s built from %d books", user_id, len(books))
        limit = self._category_limit

        def values(key: str) -> list[str]:
            return [book[key] for book in books if isinstance(book.get(key), str)]

        return PreferenceProfile(
            genres=rank_categories(values("genre"), limit),
            authors=rank_categories(values("author"), limit),
            languages=rank_categories(values("language"), limit),
            decades=rank_categories([d for d in map(decade_of, books) if d], limit),
        )

    # ── Entry points ───────────────────────────────

    async def get_categories(self, user_id: str) -> PreferenceProfile:
        """Top genres, authors and languages among the user's high-rated books."""
        return await self.build_profile(user_id)

    async def _unseen_books(
        self, filters: SimilarBooksFilter, exclude: set[str]
    ) -> list[BookDetail]:
        candidates = await self._catalog.fetch_similar_books(filters)
        unseen = [book for book in candidates if book["id"] not in exclude]
        return await self._ratings.attach_ratings(unseen)

    async def get_books_for_category(
        self, user_id: str | None, category_type: str | None, category: str | None
    ) -> list[BookDetail]:
        if not user_id or not category_type or not category:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Missing required parameters",
            )
        if category_type not in CATEGORY_TYPES:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Invalid category type",
            )

        exclude = await self.reviewed_book_ids(user_id)
        filters = SimilarBooksFilter(limit=CATEGORY_BOOKS_LIMIT, **{category_type: category})
        return await self._unseen_books(filters, exclude)

    async def get_filtered_books(
        self,
        user_id: str,
        genre: str | None = None,
        author: str | None = None,
        language: str | None = None,
        limit: int = FILTERED_BOOKS_LIMIT,
    ) -> list[BookDetail]:
        """Ad hoc browse combining any of genre, author and language."""
        exclude = await self.reviewed_book_ids(user_id)
        filters = SimilarBooksFilter(
            genre=genre or None,
            author=author or None,
            language=language or None,
            limit=limit,
        )
        return await self._unseen_books(filters, exclude)

    async def get_recommendations(self, user_id: str) -> Recommendations:
        """Full recommendation set: books per top category plus the ranking stats."""
        exclude = await self.reviewed_book_ids(user_id)
        profile = await self.build_profile(user_id)

        def filters_for(dimension: str, entry: CategoryCount) -> SimilarBooksFilter:
            fetch_limit = math.ceil(entry.count * 4)
            if dimension == "decade":
                return SimilarBooksFilter(decade=int(entry.item.rstrip("s")), limit=fetch_limit)
            return SimilarBooksFilter(limit=fetch_limit, **{dimension: entry.item})

        dimensions = {
            "genre": profile.genres,
            "author": profile.authors,
            "language": profile.languages,
            "decade": profile.decades,
        }
        jobs = [(dim, entry) for dim, entries in dimensions.items() for entry in entries]
        fetched = await asyncio.gather(
            *(self._catalog.fetch_similar_books(filters_for(dim, entry)) for dim, entry in jobs)
        )

        grouped: dict[str, list[CategoryBooks]] = {dim: [] for dim in dimensions}
        for (dim, entry), candidates in zip(jobs, fetched):
            unseen = [book for book in candidates if book["id"] not in exclude]
            unseen = unseen[: math.ceil(entry.count * 2)]
            if not unseen:
                continue
            books = await self._ratings.attach_ratings(unseen)
            grouped[dim].append(CategoryBooks(category=entry.item, books=books))

        return Recommendations(
            by_genre=grouped["genre"],
            by_author=grouped["author"],
            by_language=grouped["language"],
            by_decade=grouped["decade"],
            profile=profile,
        )
