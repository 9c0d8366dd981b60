"""Batch book-detail resolution with per-item placeholders."""

import asyncio
import logging

from bookshare.domain.identifiers import pad_book_id
from bookshare.ports.catalog import BookDetail, CatalogError, CatalogPort

logger = logging.getLogger(__name__)

UNAVAILABLE_TITLE = "Book unavailable"


def unavailable_book(book_id: str) -> BookDetail:
    return {"id": book_id, "title": UNAVAILABLE_TITLE, "author": None, "unavailable": True}


async def resolve_books(catalog: CatalogPort, book_ids: list[str]) -> dict[str, BookDetail]:
    """
    Look up many books at once.

    A book the catalog cannot return is replaced by a placeholder so one bad
    record never fails a whole listing.
    """
    padded = list(dict.fromkeys(pad_book_id(book_id) for book_id in book_ids))
    results = await asyncio.gather(
        *(catalog.get_book_by_id(book_id) for book_id in padded),
        return_exceptions=True,
    )

    resolved: dict[str, BookDetail] = {}
    for book_id, result in zip(padded, results):
        if isinstance(result, CatalogError):
            logger.warning("Book %s unavailable: %s", book_id, result)
            resolved[book_id] = unavailable_book(book_id)
        elif isinstance(result, BaseException):
            raise result
        else:
            resolved[book_id] = {**result, "id": book_id}
    return resolved
