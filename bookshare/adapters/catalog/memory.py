import logging
from typing import Any

from bookshare.domain.authors import author_matches
from bookshare.domain.identifiers import pad_book_id
from bookshare.ports.catalog import (
    DEFAULT_SIMILAR_LIMIT,
    SEARCH_PARAMS,
    BookDetail,
    BookNotFoundError,
    CatalogPort,
    SearchQuery,
    SimilarBooksFilter,
)

logger = logging.getLogger(__name__)

_SEARCH_FIELDS = {"title": "title", "author": "author", "isbnIssn": "isbn"}


class InMemoryCatalogAdapter(CatalogPort):
    """
    Catalog backed by a list of bib records held in memory.

    Used for local development without network access and in tests.
    Records are matched on their padded ID; search is a case-insensitive
    substring match on the field selected by the search type.
    """

    def __init__(self, bibs: list[BookDetail] | None = None) -> None:
        self._bibs: list[BookDetail] = list(bibs or [])

    def add(self, *bibs: BookDetail) -> None:
        self._bibs.extend(bibs)

    async def get_book_by_id(self, book_id: str) -> BookDetail:
        padded = pad_book_id(book_id)
        for bib in self._bibs:
            if pad_book_id(bib.get("id", "")) == padded:
                return bib
        raise BookNotFoundError(padded)

    async def search_books(self, query: SearchQuery) -> dict[str, Any]:
        results = self._bibs
        if query.search:
            field = _SEARCH_FIELDS.get(SEARCH_PARAMS.get(query.search_type, ""))
            needle = query.search.lower()
            results = [
                bib
                for bib in results
                if any(
                    needle in str(bib.get(key) or "").lower()
                    for key in ([field] if field else _SEARCH_FIELDS.values())
                )
            ]
        if query.since_id:
            since = pad_book_id(query.since_id)
            results = [b for b in results if pad_book_id(b.get("id", "")) > since]
        logger.debug("MemoryCatalog: search %r -> %d hits", query.search, len(results))
        return {"bibs": results[: query.limit]}

    async def fetch_similar_books(self, filters: SimilarBooksFilter) -> list[BookDetail]:
        results = self._bibs
        if filters.genre:
            results = [b for b in results if b.get("genre") == filters.genre]
        if filters.language:
            results = [b for b in results if b.get("language") == filters.language]
        if filters.decade is not None:
            results = [
                b
                for b in results
                if isinstance(b.get("publicationYear"), int)
                and filters.decade <= b["publicationYear"] <= filters.decade + 9
            ]
        if filters.author:
            results = [b for b in results if author_matches(b.get("author"), filters.author)]

        limit = filters.limit or DEFAULT_SIMILAR_LIMIT
        return [{**b, "id": pad_book_id(b.get("id", ""))} for b in results[:limit]]
