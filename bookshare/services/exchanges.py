"""Book-exchange negotiation between two contacts."""

import logging
from dataclasses import dataclass, field
from datetime import datetime

from fastapi import HTTPException, status
from sqlalchemy import or_, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from bookshare.domain.exchange import (
    MAX_BOOKS_PER_SIDE,
    TERMINAL_STATUSES,
    TRANSITIONS,
    ExchangeAction,
    ExchangeRole,
    ExchangeStatus,
    ResolvedBook,
    UnresolvedBook,
    dump_book_refs,
)
from bookshare.domain.identifiers import pad_book_id
from bookshare.domain.models import BookExchange, BookOwnership, User
from bookshare.ports.catalog import BookDetail, CatalogPort
from bookshare.services.books import resolve_books
from bookshare.services.contacts import ContactService
from bookshare.services.library import FOR_EXCHANGE

logger = logging.getLogger(__name__)


@dataclass
class TransferFailure:
    book_id: str
    from_user_id: str
    to_user_id: str
    reason: str


@dataclass
class AcceptResult:
    """Outcome of an accepted exchange; transfers may have partially failed."""

    exchange: BookExchange
    failed_transfers: list[TransferFailure] = field(default_factory=list)

    @property
    def outcome(self) -> str:
        return "accepted_with_transfer_errors" if self.failed_transfers else "accepted"


@dataclass
class ExchangeView:
    exchange: BookExchange
    user_books: list[BookDetail]
    contact_books: list[BookDetail]
    user: User | None = None
    contact: User | None = None


def _ref_detail(ref: ResolvedBook) -> BookDetail:
    return {
        "id": ref.book_id,
        "title": ref.title,
        "author": ref.author,
        "coverUrl": ref.cover_url,
        "isbn": ref.isbn,
    }


class ExchangeService:
    """Proposes exchanges and drives them through pending → completed | declined."""

    def __init__(self, session: AsyncSession, catalog: CatalogPort) -> None:
        self._session = session
        self._catalog = catalog

    # ── Proposal ───────────────────────────────────

    async def _require_exchangeable(self, owner_id: str, book_ids: list[str]) -> None:
        result = await self._session.execute(
            select(BookOwnership.book_id).where(
                BookOwnership.user_id == owner_id,
                BookOwnership.book_id.in_(book_ids),
                BookOwnership.status == FOR_EXCHANGE,
            )
        )
        available = set(result.scalars())
        missing = [book_id for book_id in book_ids if book_id not in available]
        if missing:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Books not available for exchange: {', '.join(missing)}",
            )

    async def _build_refs(self, book_ids: list[str]) -> list[ResolvedBook | UnresolvedBook]:
        details = await resolve_books(self._catalog, book_ids)
        refs: list[ResolvedBook | UnresolvedBook] = []
        for book_id in book_ids:
            book = details[book_id]
            if book.get("unavailable"):
                refs.append(UnresolvedBook(book_id=book_id))
            else:
                refs.append(
                    ResolvedBook(
                        book_id=book_id,
                        title=book.get("title") or "",
                        author=book.get("author"),
                        cover_url=book.get("coverUrl"),
                        isbn=book.get("isbnIssn") or book.get("isbn"),
                    )
                )
        return refs

    async def _has_identical_pending(
        self, proposer_id: str, recipient_id: str, user_books: list[str], contact_books: list[str]
    ) -> bool:
        result = await self._session.execute(
            select(BookExchange).where(
                BookExchange.user_id == proposer_id,
                BookExchange.contact_id == recipient_id,
                BookExchange.status == ExchangeStatus.PENDING,
            )
        )
        wanted = (set(user_books), set(contact_books))
        for exchange in result.scalars():
            existing = (
                {ref.book_id for ref in exchange.user_book_refs},
                {ref.book_id for ref in exchange.contact_book_refs},
            )
            if existing == wanted:
                return True
        return False

    async def propose(
        self,
        proposer: User,
        recipient_id: str,
        proposer_book_ids: list[str],
        recipient_book_ids: list[str],
    ) -> BookExchange:
        """
        Create a pending exchange offer.

        Both parties must be accepted contacts, each side offers one to five
        books, and every offered book must be owned by its side and marked
        for exchange. An identical pending offer to the same user is refused.
        """
        if recipient_id == proposer.uid:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="You cannot exchange books with yourself",
            )

        user_books = list(dict.fromkeys(pad_book_id(b) for b in proposer_book_ids))
        contact_books = list(dict.fromkeys(pad_book_id(b) for b in recipient_book_ids))
        for side in (user_books, contact_books):
            if not 1 <= len(side) <= MAX_BOOKS_PER_SIDE:
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail=f"Each side must offer between 1 and {MAX_BOOKS_PER_SIDE} books",
                )

        if not await self._session.get(User, recipient_id):
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="User not found",
            )
        if not await ContactService(self._session).are_contacts(proposer.uid, recipient_id):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="You can only exchange books with your contacts",
            )

        await self._require_exchangeable(proposer.uid, user_books)
        await self._require_exchangeable(recipient_id, contact_books)

        if await self._has_identical_pending(proposer.uid, recipient_id, user_books, contact_books):
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="An identical exchange offer is already pending",
            )

        exchange = BookExchange(
            user_id=proposer.uid,
            contact_id=recipient_id,
            status=ExchangeStatus.PENDING,
            user_books=dump_book_refs(await self._build_refs(user_books)),
            contact_books=dump_book_refs(await self._build_refs(contact_books)),
        )
        self._session.add(exchange)
        await self._session.flush()
        logger.info(
            "Exchange %s proposed: %s -> %s (%d for %d books)",
            exchange.id, proposer.uid, recipient_id, len(user_books), len(contact_books),
        )
        return exchange

    # ── Transitions ────────────────────────────────

    async def get(self, exchange_id: str) -> BookExchange:
        exchange = await self._session.get(BookExchange, exchange_id)
        if not exchange:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Exchange not found",
            )
        return exchange

    async def _transition(
        self, exchange_id: str, action: ExchangeAction, acting_user_id: str
    ) -> BookExchange:
        """Authorize ``action`` and move a pending exchange to its terminal status."""
        exchange = await self.get(exchange_id)
        new_status, party = TRANSITIONS[action]

        allowed = exchange.contact_id if party == "recipient" else exchange.user_id
        if acting_user_id != allowed:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Only the {party} can {action.value} this exchange",
            )
        if exchange.status in TERMINAL_STATUSES:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=f"Exchange is already {exchange.status.value}",
            )

        # conditional write: a concurrent transition that got here first wins
        result = await self._session.execute(
            update(BookExchange)
            .where(
                BookExchange.id == exchange.id,
                BookExchange.status == ExchangeStatus.PENDING,
            )
            .values(
                status=new_status,
                status_date=datetime.utcnow(),
                resolved_by=acting_user_id,
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Exchange is no longer pending",
            )
        await self._session.refresh(exchange)
        logger.info("Exchange %s %s by %s", exchange.id, new_status.value, acting_user_id)
        return exchange

    async def _transfer(
        self, exchange: BookExchange, book_id: str, from_user_id: str, to_user_id: str
    ) -> TransferFailure | None:
        """Move one ownership record inside its own savepoint."""
        try:
            async with self._session.begin_nested():
                result = await self._session.execute(
                    select(BookOwnership).where(
                        BookOwnership.user_id == from_user_id,
                        BookOwnership.book_id == book_id,
                    )
                )
                ownership = result.scalar_one_or_none()
                if ownership is None:
                    logger.warning(
                        "Exchange %s: no ownership record for book %s of %s",
                        exchange.id, book_id, from_user_id,
                    )
                    return TransferFailure(book_id, from_user_id, to_user_id, "Ownership record not found")

                ownership.user_id = to_user_id
                ownership.status = None
                ownership.exchange_id = exchange.id
        except SQLAlchemyError as exc:
            logger.warning("Exchange %s: transfer of book %s failed: %s", exchange.id, book_id, exc)
            return TransferFailure(book_id, from_user_id, to_user_id, "Ownership transfer failed")
        return None

    async def accept(self, exchange_id: str, acting_user_id: str) -> AcceptResult:
        """
        Accept an incoming exchange and swap ownership of the offered books.

        The status change and every transfer share one transaction. Each
        transfer is isolated in a savepoint, so a failed transfer is rolled
        back alone and reported while the acceptance itself stands.
        """
        exchange = await self._transition(exchange_id, ExchangeAction.ACCEPT, acting_user_id)

        failures: list[TransferFailure] = []
        moves = [(ref.book_id, exchange.user_id, exchange.contact_id) for ref in exchange.user_book_refs]
        moves += [(ref.book_id, exchange.contact_id, exchange.user_id) for ref in exchange.contact_book_refs]
        for book_id, from_user_id, to_user_id in moves:
            failure = await self._transfer(exchange, book_id, from_user_id, to_user_id)
            if failure:
                failures.append(failure)

        if failures:
            logger.warning(
                "Exchange %s accepted with %d failed transfer(s)", exchange.id, len(failures)
            )
        return AcceptResult(exchange=exchange, failed_transfers=failures)

    async def decline(self, exchange_id: str, acting_user_id: str) -> BookExchange:
        return await self._transition(exchange_id, ExchangeAction.DECLINE, acting_user_id)

    async def cancel(self, exchange_id: str, acting_user_id: str) -> BookExchange:
        return await self._transition(exchange_id, ExchangeAction.CANCEL, acting_user_id)

    # ── Listing ────────────────────────────────────

    async def list_exchanges(self, user_id: str, role: ExchangeRole) -> list[ExchangeView]:
        if role is ExchangeRole.INCOMING:
            where = [BookExchange.contact_id == user_id, BookExchange.status == ExchangeStatus.PENDING]
        elif role is ExchangeRole.OUTGOING:
            where = [BookExchange.user_id == user_id, BookExchange.status == ExchangeStatus.PENDING]
        else:
            where = [
                or_(BookExchange.user_id == user_id, BookExchange.contact_id == user_id),
                BookExchange.status.in_(list(TERMINAL_STATUSES)),
            ]
        result = await self._session.execute(
            select(BookExchange).where(*where).order_by(BookExchange.created_at.desc())
        )
        exchanges = list(result.scalars().all())
        if role is ExchangeRole.HISTORY:
            exchanges.sort(key=lambda ex: ex.sort_date, reverse=True)

        return await self._views(exchanges)

    async def view(self, exchange: BookExchange) -> ExchangeView:
        (view,) = await self._views([exchange])
        return view

    async def _views(self, exchanges: list[BookExchange]) -> list[ExchangeView]:
        """Attach book details and party profiles, resolving bare IDs in one batch."""
        unresolved = [
            ref.book_id
            for exchange in exchanges
            for ref in exchange.user_book_refs + exchange.contact_book_refs
            if isinstance(ref, UnresolvedBook)
        ]
        lookup = await resolve_books(self._catalog, unresolved) if unresolved else {}

        uids = {ex.user_id for ex in exchanges} | {ex.contact_id for ex in exchanges}
        users: dict[str, User] = {}
        if uids:
            result = await self._session.execute(select(User).where(User.uid.in_(uids)))
            users = {user.uid: user for user in result.scalars()}

        def details(refs: list[ResolvedBook | UnresolvedBook]) -> list[BookDetail]:
            return [
                _ref_detail(ref) if isinstance(ref, ResolvedBook) else lookup[ref.book_id]
                for ref in refs
            ]

        return [
            ExchangeView(
                exchange=exchange,
                user_books=details(exchange.user_book_refs),
                contact_books=details(exchange.contact_book_refs),
                user=users.get(exchange.user_id),
                contact=users.get(exchange.contact_id),
            )
            for exchange in exchanges
        ]
