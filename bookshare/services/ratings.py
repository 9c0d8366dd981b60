"""Rating aggregation over stored reviews."""

from collections.abc import Iterable
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from bookshare.domain.identifiers import pad_book_id
from bookshare.domain.models import Review
from bookshare.ports.catalog import BookDetail


def round_rating(value: float) -> float:
    """Round to one decimal place, halves away from zero."""
    return float(Decimal(str(value)).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


@dataclass(frozen=True)
class BookRating:
    """Average and count; ``average`` is None when there are no reviews."""

    average: float | None
    total: int

    @classmethod
    def empty(cls) -> "BookRating":
        return cls(average=None, total=0)


class RatingService:
    """Computes average rating and review count per book."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_book_ratings(self, book_id: str) -> BookRating:
        ratings = await self.get_ratings_for([book_id])
        return ratings.get(pad_book_id(book_id), BookRating.empty())

    async def get_ratings_for(self, book_ids: Iterable[str]) -> dict[str, BookRating]:
        """Aggregate many books in one grouped query."""
        padded = {pad_book_id(book_id) for book_id in book_ids}
        if not padded:
            return {}

        result = await self._session.execute(
            select(
                Review.book_id,
                func.avg(Review.rating).label("avg_rating"),
                func.count(Review.id).label("total"),
            )
            .where(Review.book_id.in_(padded))
            .group_by(Review.book_id)
        )
        return {
            row.book_id: BookRating(
                average=round_rating(row.avg_rating),
                total=row.total,
            )
            for row in result
        }

    async def attach_ratings(self, books: list[BookDetail]) -> list[BookDetail]:
        """Return copies of ``books`` with ``averageRating`` and ``totalReviews``."""
        ratings = await self.get_ratings_for(book["id"] for book in books)
        attached = []
        for book in books:
            rating = ratings.get(book["id"], BookRating.empty())
            attached.append(
                {**book, "averageRating": rating.average, "totalReviews": rating.total}
            )
        return attached
