"""Pending-action counts computed on demand."""

from dataclasses import dataclass

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from bookshare.domain.exchange import ExchangeStatus
from bookshare.domain.models import BookExchange, UserContact


@dataclass
class NotificationCounts:
    pending_invites: int
    pending_exchanges: int


class NotificationService:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def counts(self, uid: str) -> NotificationCounts:
        invites = await self._session.scalar(
            select(func.count(UserContact.id)).where(
                UserContact.contact_id == uid, UserContact.status == "pending"
            )
        )
        exchanges = await self._session.scalar(
            select(func.count(BookExchange.id)).where(
                BookExchange.contact_id == uid,
                BookExchange.status == ExchangeStatus.PENDING,
            )
        )
        return NotificationCounts(pending_invites=invites or 0, pending_exchanges=exchanges or 0)
