"""Per-user book markers: owned copies, wishlist and favorites."""

import logging
from enum import Enum

from fastapi import HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from bookshare.domain.identifiers import pad_book_id
from bookshare.domain.models import BookDesire, BookFavorite, BookOwnership
from bookshare.ports.catalog import BookDetail, CatalogPort
from bookshare.services.books import resolve_books

logger = logging.getLogger(__name__)

FOR_EXCHANGE = "forExchange"

Marker = BookOwnership | BookDesire | BookFavorite


class LibraryKind(str, Enum):
    OWNED = "owned"
    DESIRED = "desired"
    FAVORITES = "favorites"


MODELS: dict[LibraryKind, type[Marker]] = {
    LibraryKind.OWNED: BookOwnership,
    LibraryKind.DESIRED: BookDesire,
    LibraryKind.FAVORITES: BookFavorite,
}


class LibraryService:
    """Toggles and lists a user's book markers."""

    def __init__(self, session: AsyncSession, catalog: CatalogPort) -> None:
        self._session = session
        self._catalog = catalog

    async def _find(self, kind: LibraryKind, user_id: str, book_id: str) -> Marker | None:
        model = MODELS[kind]
        result = await self._session.execute(
            select(model).where(model.user_id == user_id, model.book_id == book_id)
        )
        return result.scalar_one_or_none()

    async def is_marked(self, kind: LibraryKind, user_id: str, book_id: str) -> bool:
        return await self._find(kind, user_id, pad_book_id(book_id)) is not None

    async def toggle(self, kind: LibraryKind, user_id: str, book_id: str) -> bool:
        """Create the marker if absent, delete it if present. Returns the new state."""
        padded = pad_book_id(book_id)
        existing = await self._find(kind, user_id, padded)
        if existing:
            await self._session.delete(existing)
            await self._session.flush()
            return False

        self._session.add(MODELS[kind](user_id=user_id, book_id=padded))
        await self._session.flush()
        return True

    async def set_exchange_status(
        self, user_id: str, book_id: str, new_status: str | None
    ) -> BookOwnership:
        if new_status not in (None, FOR_EXCHANGE):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Invalid ownership status",
            )
        ownership = await self._find(LibraryKind.OWNED, user_id, pad_book_id(book_id))
        if not ownership:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="You do not own this book",
            )
        ownership.status = new_status
        await self._session.flush()
        return ownership

    async def list_entries(
        self, kind: LibraryKind, user_id: str, only_status: str | None = None
    ) -> list[tuple[Marker, BookDetail]]:
        """List markers newest first, each paired with resolved book details."""
        model = MODELS[kind]
        query = select(model).where(model.user_id == user_id)
        if only_status and kind is LibraryKind.OWNED:
            query = query.where(BookOwnership.status == only_status)
        result = await self._session.execute(query.order_by(model.created_at.desc()))
        entries = list(result.scalars().all())

        details = await resolve_books(self._catalog, [entry.book_id for entry in entries])
        return [(entry, details[entry.book_id]) for entry in entries]
