"""User profile mirror: lazy creation, profile updates and account deletion."""

import logging
from dataclasses import dataclass
from typing import Any

from fastapi import HTTPException, status
from sqlalchemy import delete, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from bookshare.domain.models import (
    BookDesire,
    BookFavorite,
    BookOwnership,
    Review,
    User,
    UserContact,
)
from bookshare.services.ratings import round_rating

logger = logging.getLogger(__name__)

SEARCH_RESULTS_LIMIT = 20


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


@dataclass
class UserStats:
    books_count: int
    reviews_count: int
    average_rating: float | None


class UserService:
    """Reads and maintains the app-level user documents."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def ensure_user(self, claims: dict[str, Any]) -> User:
        """Return the user for verified token claims, creating it on first sign-in."""
        uid = claims.get("uid") or claims.get("sub")
        user = await self._session.get(User, uid)
        if user:
            return user

        user = User(
            uid=uid,
            email=claims.get("email"),
            display_name=claims.get("name"),
            photo_url=claims.get("picture"),
            phone_number=claims.get("phone_number"),
        )
        self._session.add(user)
        await self._session.flush()
        logger.info("Created user document for %s", uid)
        return user

    async def get_user(self, uid: str) -> User:
        user = await self._session.get(User, uid)
        if not user:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="User not found",
            )
        return user

    async def get_stats(self, uid: str) -> UserStats:
        books = await self._session.scalar(
            select(func.count(BookOwnership.id)).where(BookOwnership.user_id == uid)
        )
        row = (
            await self._session.execute(
                select(
                    func.count(Review.id).label("total"),
                    func.avg(Review.rating).label("avg_rating"),
                ).where(Review.user_id == uid)
            )
        ).one()
        return UserStats(
            books_count=books or 0,
            reviews_count=row.total or 0,
            average_rating=round_rating(row.avg_rating) if row.avg_rating else None,
        )

    async def update_profile(self, user: User, changes: dict[str, Any]) -> User:
        """Apply profile changes; a new photo is copied onto the user's reviews."""
        photo_changed = "photo_url" in changes and changes["photo_url"] != user.photo_url
        for key, value in changes.items():
            setattr(user, key, value)

        if photo_changed:
            await self._session.execute(
                update(Review)
                .where(Review.user_id == user.uid)
                .values(user_photo_url=user.photo_url)
            )
        await self._session.flush()
        return user

    async def delete_account(self, user: User) -> None:
        """Delete the user document and everything it owns."""
        uid = user.uid
        for model in (Review, BookOwnership, BookDesire, BookFavorite):
            await self._session.execute(delete(model).where(model.user_id == uid))
        await self._session.execute(
            delete(UserContact).where(
                or_(UserContact.user_id == uid, UserContact.contact_id == uid)
            )
        )
        await self._session.delete(user)
        await self._session.flush()
        logger.info("Deleted account %s", uid)

    async def search(self, query: str, exclude_uid: str) -> list[User]:
        """Case-insensitive prefix search over email, display name and phone."""
        prefix = f"{_escape_like(query.strip().lower())}%"
        result = await self._session.execute(
            select(User)
            .where(
                User.uid != exclude_uid,
                or_(
                    func.lower(User.email).like(prefix, escape="\\"),
                    func.lower(User.display_name).like(prefix, escape="\\"),
                    User.phone_number.like(prefix, escape="\\"),
                ),
            )
            .order_by(User.display_name)
            .limit(SEARCH_RESULTS_LIMIT)
        )
        return list(result.scalars().all())
