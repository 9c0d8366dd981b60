"""Catalog adapter for the National Library (data.bn.org.pl) bibliographic API."""

import asyncio
import logging
from typing import Any

import httpx

from bookshare.domain.authors import author_matches
from bookshare.domain.identifiers import pad_book_id
from bookshare.ports.catalog import (
    AUTHOR_OVERFETCH_LIMIT,
    DEFAULT_SIMILAR_LIMIT,
    SEARCH_PARAMS,
    BookDetail,
    BookNotFoundError,
    CatalogError,
    CatalogPort,
    CatalogUnavailableError,
    CatalogUpstreamError,
    SearchQuery,
    SimilarBooksFilter,
)

logger = logging.getLogger(__name__)

BOOK_FORM_OF_WORK = "Książki"


class BNCatalogAdapter(CatalogPort):
    """Query the BN bibs endpoints over HTTP."""

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        retries: int = 2,
        backoff: float = 0.5,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._retries = retries
        self._backoff = backoff
        self._transport = transport

    @property
    def networks_url(self) -> str:
        return f"{self._base_url}/networks/bibs.json"

    @property
    def institutions_url(self) -> str:
        return f"{self._base_url}/institutions/bibs.json"

    async def _get(self, url: str, params: dict[str, Any]) -> dict[str, Any]:
        """GET a bibs endpoint, retrying transport failures with backoff."""
        async with httpx.AsyncClient(
            timeout=self._timeout,
            follow_redirects=True,
            transport=self._transport,
        ) as client:
            for attempt in range(self._retries + 1):
                try:
                    resp = await client.get(url, params=params)
                    break
                except httpx.TransportError as exc:
                    if attempt < self._retries:
                        wait = self._backoff * (2**attempt)
                        logger.warning(
                            "Catalog request failed (%s), retrying in %.1fs", exc, wait
                        )
                        await asyncio.sleep(wait)
                        continue
                    logger.error("Catalog unreachable after %d attempts: %s", attempt + 1, exc)
                    raise CatalogUnavailableError(str(exc)) from exc

        if not resp.is_success:
            logger.warning("Catalog responded %d for %s", resp.status_code, url)
            raise CatalogUpstreamError(resp.status_code)

        try:
            data = resp.json()
        except ValueError as exc:
            raise CatalogUnavailableError("Malformed catalog response") from exc
        return data if isinstance(data, dict) else {}

    async def get_book_by_id(self, book_id: str) -> BookDetail:
        padded = pad_book_id(book_id)
        data = await self._get(self.networks_url, {"id": padded})
        bibs = data.get("bibs")
        if not isinstance(bibs, list) or not bibs:
            raise BookNotFoundError(padded)
        return bibs[0]

    async def search_books(self, query: SearchQuery) -> dict[str, Any]:
        params: dict[str, Any] = {"limit": query.limit}
        if query.search:
            params[SEARCH_PARAMS.get(query.search_type, "search")] = query.search
        if query.since_id:
            params["sinceId"] = query.since_id
        return await self._get(self.institutions_url, params)

    async def fetch_similar_books(self, filters: SimilarBooksFilter) -> list[BookDetail]:
        author = (filters.author or "").strip()
        limit = filters.limit or DEFAULT_SIMILAR_LIMIT

        params: dict[str, Any] = {"formOfWork": BOOK_FORM_OF_WORK}
        if filters.genre:
            params["genre"] = filters.genre
        if filters.language:
            params["language"] = filters.language
        if filters.decade is not None:
            params["yearFrom"] = filters.decade
            params["yearTo"] = filters.decade + 9
        if author:
            # upstream author filter is unreliable for multi-author fields:
            # narrow by the first name token, then filter locally
            params["author"] = author.split()[0]
            params["limit"] = max(AUTHOR_OVERFETCH_LIMIT, limit)
        else:
            params["limit"] = limit

        try:
            data = await self._get(self.networks_url, params)
        except CatalogError as exc:
            logger.warning("Similar-books lookup failed for %s: %s", filters, exc)
            return []

        books = data.get("bibs") or []
        if author:
            books = [b for b in books if author_matches(b.get("author"), author)][:limit]

        return [{**book, "id": pad_book_id(book.get("id", ""))} for book in books]
