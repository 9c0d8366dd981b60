"""Exchange lifecycle: statuses, transitions and book references."""

from enum import Enum
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

from bookshare.domain.identifiers import pad_book_id

MAX_BOOKS_PER_SIDE = 5


class ExchangeStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    DECLINED = "declined"


class ExchangeRole(str, Enum):
    INCOMING = "incoming"
    OUTGOING = "outgoing"
    HISTORY = "history"


class ExchangeAction(str, Enum):
    ACCEPT = "accept"
    DECLINE = "decline"
    CANCEL = "cancel"


# action -> (resulting status, party allowed to perform it)
TRANSITIONS: dict[ExchangeAction, tuple[ExchangeStatus, str]] = {
    ExchangeAction.ACCEPT: (ExchangeStatus.COMPLETED, "recipient"),
    ExchangeAction.DECLINE: (ExchangeStatus.DECLINED, "recipient"),
    ExchangeAction.CANCEL: (ExchangeStatus.DECLINED, "proposer"),
}

TERMINAL_STATUSES = frozenset({ExchangeStatus.COMPLETED, ExchangeStatus.DECLINED})


# ── Book references ────────────────────────────────


class ResolvedBook(BaseModel):
    """A book reference carrying the catalog details captured at proposal time."""

    model_config = ConfigDict(extra="ignore")

    kind: Literal["resolved"] = "resolved"
    book_id: str
    title: str
    author: str | None = None
    cover_url: str | None = None
    isbn: str | None = None


class UnresolvedBook(BaseModel):
    """A bare book ID whose details must be looked up when read."""

    kind: Literal["unresolved"] = "unresolved"
    book_id: str


BookRef = Annotated[Union[ResolvedBook, UnresolvedBook], Field(discriminator="kind")]

_book_refs = TypeAdapter(list[BookRef])


def _legacy_ref(raw: Any) -> dict[str, Any]:
    """Bring an untagged stored reference into the tagged shape."""
    if isinstance(raw, (str, int)):
        return {"kind": "unresolved", "book_id": pad_book_id(raw)}

    if not isinstance(raw, dict):
        raise ValueError(f"Unsupported book reference: {raw!r}")

    book_id = raw.get("book_id") or raw.get("bookId") or raw.get("id")
    if not book_id:
        raise ValueError(f"Book reference without an ID: {raw!r}")

    if raw.get("title"):
        return {
            "kind": "resolved",
            "book_id": pad_book_id(book_id),
            "title": raw["title"],
            "author": raw.get("author"),
            "cover_url": raw.get("cover_url") or raw.get("coverUrl"),
            "isbn": raw.get("isbn"),
        }
    return {"kind": "unresolved", "book_id": pad_book_id(book_id)}


def parse_book_refs(raw: list[Any] | None) -> list[ResolvedBook | UnresolvedBook]:
    """Decode a stored book list, accepting legacy untagged entries."""
    if not raw:
        return []
    items = [
        item if isinstance(item, dict) and "kind" in item else _legacy_ref(item)
        for item in raw
    ]
    return _book_refs.validate_python(items)


def dump_book_refs(refs: list[ResolvedBook | UnresolvedBook]) -> list[dict[str, Any]]:
    return _book_refs.dump_python(refs, mode="json")
