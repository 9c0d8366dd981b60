"""Catalog port: abstract interface for the external bibliographic API."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any

BookDetail = dict[str, Any]

DEFAULT_SEARCH_LIMIT = 10
DEFAULT_SIMILAR_LIMIT = 20
AUTHOR_OVERFETCH_LIMIT = 50


class SearchType(str, Enum):
    TITLE = "title"
    AUTHOR = "author"
    ISBN = "isbn"


# upstream query parameter per search type; anything else falls back to "search"
SEARCH_PARAMS: dict[str, str] = {
    SearchType.TITLE.value: "title",
    SearchType.AUTHOR.value: "author",
    SearchType.ISBN.value: "isbnIssn",
}


class CatalogError(Exception):
    """Base class for catalog failures."""


class BookNotFoundError(CatalogError):
    def __init__(self, book_id: str) -> None:
        super().__init__(f"Book {book_id} not found")
        self.book_id = book_id


class CatalogUpstreamError(CatalogError):
    """The catalog answered with a non-success HTTP status."""

    def __init__(self, status_code: int) -> None:
        super().__init__(f"API error: {status_code}")
        self.status_code = status_code


class CatalogUnavailableError(CatalogError):
    """The catalog could not be reached at all."""


@dataclass
class SearchQuery:
    search: str = ""
    search_type: str | None = None
    limit: int = DEFAULT_SEARCH_LIMIT
    since_id: str = ""


@dataclass
class SimilarBooksFilter:
    genre: str | None = None
    author: str | None = None
    language: str | None = None
    decade: int | None = None
    limit: int | None = None


class CatalogPort(ABC):
    """Abstraction over the bibliographic catalog."""

    @abstractmethod
    async def get_book_by_id(self, book_id: str) -> BookDetail:
        """Return the first record for the (padded) ID or raise BookNotFoundError."""
        ...

    @abstractmethod
    async def search_books(self, query: SearchQuery) -> dict[str, Any]:
        """Return the upstream page ``{"bibs": [...], "nextPage": ...}``."""
        ...

    @abstractmethod
    async def fetch_similar_books(self, filters: SimilarBooksFilter) -> list[BookDetail]:
        """Return candidate books for a category; never raises."""
        ...
