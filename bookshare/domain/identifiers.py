"""Canonical book identifiers.

Every persisted reference to a catalog record (reviews, ownership, desires,
favorites, exchange book lists) uses the zero-padded 14 character form, so
lookups and joins can rely on plain string equality.
"""

BOOK_ID_WIDTH = 14


def pad_book_id(book_id: str | int) -> str:
    """Zero-extend a catalog ID to the canonical fixed-width key."""
    return str(book_id).strip().zfill(BOOK_ID_WIDTH)
