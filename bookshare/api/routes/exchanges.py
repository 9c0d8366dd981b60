"""Book exchange routes."""

from fastapi import APIRouter, Depends, HTTPException, status

from bookshare.api.dependencies import get_exchange_service
from bookshare.api.middleware.auth import get_current_user
from bookshare.api.schemas import (
    AcceptExchangeResponse,
    ExchangeCreateRequest,
    ExchangeListResponse,
    ExchangeResponse,
    TransferFailureResponse,
)
from bookshare.domain.exchange import ExchangeRole
from bookshare.domain.models import BookExchange, User
from bookshare.services.exchanges import ExchangeService, ExchangeView

router = APIRouter(prefix="/api/exchanges", tags=["Exchanges"])


def _exchange(view: ExchangeView) -> ExchangeResponse:
    ex = view.exchange
    return ExchangeResponse(
        id=ex.id,
        user_id=ex.user_id,
        contact_id=ex.contact_id,
        status=ex.status.value,
        resolved_by=ex.resolved_by,
        created_at=ex.created_at,
        status_date=ex.status_date,
        user_books=view.user_books,
        contact_books=view.contact_books,
        user_name=view.user.display_name if view.user else None,
        user_photo_url=view.user.photo_url if view.user else None,
        contact_name=view.contact.display_name if view.contact else None,
        contact_photo_url=view.contact.photo_url if view.contact else None,
    )


async def _single(service: ExchangeService, exchange: BookExchange) -> ExchangeResponse:
    return _exchange(await service.view(exchange))


@router.get("", response_model=ExchangeListResponse)
async def list_exchanges(
    role: str = ExchangeRole.INCOMING.value,
    user: User = Depends(get_current_user),
    exchanges: ExchangeService = Depends(get_exchange_service),
) -> ExchangeListResponse:
    """Incoming or outgoing pending offers, or the caller's finished exchanges."""
    try:
        exchange_role = ExchangeRole(role)
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid exchange role",
        ) from exc
    views = await exchanges.list_exchanges(user.uid, exchange_role)
    return ExchangeListResponse(exchanges=[_exchange(v) for v in views])


@router.post("", response_model=ExchangeResponse, status_code=status.HTTP_201_CREATED)
async def propose_exchange(
    data: ExchangeCreateRequest,
    user: User = Depends(get_current_user),
    exchanges: ExchangeService = Depends(get_exchange_service),
) -> ExchangeResponse:
    exchange = await exchanges.propose(user, data.contact_id, data.user_books, data.contact_books)
    return await _single(exchanges, exchange)


@router.post("/{exchange_id}/accept", response_model=AcceptExchangeResponse)
async def accept_exchange(
    exchange_id: str,
    user: User = Depends(get_current_user),
    exchanges: ExchangeService = Depends(get_exchange_service),
) -> AcceptExchangeResponse:
    """Accept an incoming offer and swap ownership of the books."""
    result = await exchanges.accept(exchange_id, user.uid)
    return AcceptExchangeResponse(
        exchange=await _single(exchanges, result.exchange),
        outcome=result.outcome,
        failed_transfers=[
            TransferFailureResponse(
                book_id=f.book_id,
                from_user_id=f.from_user_id,
                to_user_id=f.to_user_id,
                reason=f.reason,
            )
            for f in result.failed_transfers
        ],
    )


@router.post("/{exchange_id}/decline", response_model=ExchangeResponse)
async def decline_exchange(
    exchange_id: str,
    user: User = Depends(get_current_user),
    exchanges: ExchangeService = Depends(get_exchange_service),
) -> ExchangeResponse:
    return await _single(exchanges, await exchanges.decline(exchange_id, user.uid))


@router.post("/{exchange_id}/cancel", response_model=ExchangeResponse)
async def cancel_exchange(
    exchange_id: str,
    user: User = Depends(get_current_user),
    exchanges: ExchangeService = Depends(get_exchange_service),
) -> ExchangeResponse:
    """Withdraw an outgoing offer."""
    return await _single(exchanges, await exchanges.cancel(exchange_id, user.uid))
