"""Review submission and retrieval."""

from fastapi import HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from bookshare.domain.identifiers import pad_book_id
from bookshare.domain.models import Review, User


class ReviewService:
    """Handles review creation and listing."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create_review(
        self, book_id: str, user: User, rating: int, comment: str
    ) -> Review:
        """
        Submit a review for a book.

        The book ID is stored in padded form and the author's display name and
        photo are copied onto the review. Raises 409 if the user already
        reviewed this book.
        """
        padded = pad_book_id(book_id)
        existing = await self._session.execute(
            select(Review.id).where(Review.book_id == padded, Review.user_id == user.uid)
        )
        if existing.scalar_one_or_none():
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="You have already reviewed this book",
            )

        review = Review(
            book_id=padded,
            user_id=user.uid,
            rating=rating,
            comment=comment,
            user_display_name=user.display_name,
            user_photo_url=user.photo_url,
        )
        self._session.add(review)
        await self._session.flush()
        return review

    async def get_reviews_for_book(self, book_id: str) -> list[Review]:
        result = await self._session.execute(
            select(Review)
            .where(Review.book_id == pad_book_id(book_id))
            .order_by(Review.created_at.desc())
        )
        return list(result.scalars().all())

    async def get_reviews_by_user(self, user_id: str) -> list[Review]:
        result = await self._session.execute(
            select(Review)
            .where(Review.user_id == user_id)
            .order_by(Review.created_at.desc())
        )
        return list(result.scalars().all())
