"""Contact invitation routes."""

from fastapi import APIRouter, Depends, status

from bookshare.api.dependencies import get_contact_service
from bookshare.api.middleware.auth import get_current_user
from bookshare.api.schemas import ContactInviteRequest, ContactResponse, UserSummary
from bookshare.domain.models import User, UserContact
from bookshare.services.contacts import ContactService

router = APIRouter(prefix="/api/contacts", tags=["Contacts"])


def _contact(edge: UserContact, other: User | None = None) -> ContactResponse:
    return ContactResponse(
        id=edge.id,
        user_id=edge.user_id,
        contact_id=edge.contact_id,
        status=edge.status,
        created_at=edge.created_at,
        user=UserSummary.model_validate(other) if other else None,
    )


@router.get("", response_model=list[ContactResponse])
async def list_contacts(
    user: User = Depends(get_current_user),
    contacts: ContactService = Depends(get_contact_service),
) -> list[ContactResponse]:
    """Accepted contacts regardless of who sent the invite."""
    return [_contact(edge, other) for edge, other in await contacts.list_contacts(user.uid)]


@router.get("/invites", response_model=list[ContactResponse])
async def list_invites(
    user: User = Depends(get_current_user),
    contacts: ContactService = Depends(get_contact_service),
) -> list[ContactResponse]:
    return [_contact(edge, sender) for edge, sender in await contacts.pending_invites(user.uid)]


@router.post("", response_model=ContactResponse, status_code=status.HTTP_201_CREATED)
async def invite(
    data: ContactInviteRequest,
    user: User = Depends(get_current_user),
    contacts: ContactService = Depends(get_contact_service),
) -> ContactResponse:
    return _contact(await contacts.invite(user, data.email))


@router.post("/{contact_id}/accept", response_model=ContactResponse)
async def accept_invite(
    contact_id: str,
    user: User = Depends(get_current_user),
    contacts: ContactService = Depends(get_contact_service),
) -> ContactResponse:
    return _contact(await contacts.accept(user, contact_id))


@router.delete("/{contact_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_contact(
    contact_id: str,
    user: User = Depends(get_current_user),
    contacts: ContactService = Depends(get_contact_service),
) -> None:
    await contacts.remove(user, contact_id)
