from fastapi import APIRouter, Depends

from bookshare.api.dependencies import get_notification_service
from bookshare.api.middleware.auth import get_current_user
from bookshare.api.schemas import NotificationsResponse
from bookshare.domain.models import User
from bookshare.services.notifications import NotificationService

router = APIRouter(prefix="/api/notifications", tags=["Notifications"])


@router.get("", response_model=NotificationsResponse)
async def get_notifications(
    user: User = Depends(get_current_user),
    notifications: NotificationService = Depends(get_notification_service),
) -> NotificationsResponse:
    """Pending contact invites and incoming exchange offers for the caller."""
    counts = await notifications.counts(user.uid)
    return NotificationsResponse(
        pending_invites=counts.pending_invites,
        pending_exchanges=counts.pending_exchanges,
    )
