"""Contact invitations and the symmetric contact set."""

from fastapi import HTTPException, status
from sqlalchemy import and_, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from bookshare.domain.models import User, UserContact


class ContactService:
    """Manages directed contact edges between users."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def _edge_between(self, a: str, b: str) -> UserContact | None:
        result = await self._session.execute(
            select(UserContact).where(
                or_(
                    and_(UserContact.user_id == a, UserContact.contact_id == b),
                    and_(UserContact.user_id == b, UserContact.contact_id == a),
                )
            )
        )
        return result.scalars().first()

    async def invite(self, user: User, email: str) -> UserContact:
        """Send a contact invite to the user registered under ``email``."""
        result = await self._session.execute(
            select(User).where(func.lower(User.email) == email.strip().lower())
        )
        target = result.scalar_one_or_none()
        if not target:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="User not found",
            )
        if target.uid == user.uid:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="You cannot invite yourself",
            )
        if await self._edge_between(user.uid, target.uid):
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Contact already exists or invite is pending",
            )

        contact = UserContact(user_id=user.uid, contact_id=target.uid, status="pending")
        self._session.add(contact)
        await self._session.flush()
        return contact

    async def _get(self, contact_id: str) -> UserContact:
        contact = await self._session.get(UserContact, contact_id)
        if not contact:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Invite not found",
            )
        return contact

    async def accept(self, user: User, contact_id: str) -> UserContact:
        """Accept a pending invite; only the invited user may do so."""
        contact = await self._get(contact_id)
        if contact.contact_id != user.uid:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Only the invited user can accept this invite",
            )
        if contact.status != "pending":
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Invite is no longer pending",
            )
        contact.status = "accepted"
        await self._session.flush()
        return contact

    async def remove(self, user: User, contact_id: str) -> None:
        """Decline an invite or drop a contact; either party may do so."""
        contact = await self._get(contact_id)
        if user.uid not in (contact.user_id, contact.contact_id):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Not a party to this contact",
            )
        await self._session.delete(contact)
        await self._session.flush()

    async def list_contacts(self, uid: str) -> list[tuple[UserContact, User]]:
        """Accepted contacts, enumerated over both edge directions."""
        result = await self._session.execute(
            select(UserContact).where(
                UserContact.status == "accepted",
                or_(UserContact.user_id == uid, UserContact.contact_id == uid),
            )
        )
        contacts = []
        for edge in result.scalars():
            other_uid = edge.contact_id if edge.user_id == uid else edge.user_id
            other = await self._session.get(User, other_uid)
            if other:
                contacts.append((edge, other))
        return contacts

    async def pending_invites(self, uid: str) -> list[tuple[UserContact, User]]:
        result = await self._session.execute(
            select(UserContact)
            .where(UserContact.contact_id == uid, UserContact.status == "pending")
            .order_by(UserContact.created_at.desc())
        )
        invites = []
        for edge in result.scalars():
            sender = await self._session.get(User, edge.user_id)
            if sender:
                invites.append((edge, sender))
        return invites

    async def are_contacts(self, a: str, b: str) -> bool:
        edge = await self._edge_between(a, b)
        return edge is not None and edge.status == "accepted"
