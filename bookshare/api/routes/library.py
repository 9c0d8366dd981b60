"""Owned, desired and favorite book toggles for the current user."""

from fastapi import APIRouter, Depends

from bookshare.api.dependencies import get_library_service
from bookshare.api.middleware.auth import get_current_user
from bookshare.api.schemas import (
    LibraryToggleResponse,
    OwnershipResponse,
    OwnershipStatusRequest,
)
from bookshare.domain.identifiers import pad_book_id
from bookshare.domain.models import User
from bookshare.services.library import LibraryKind, LibraryService

router = APIRouter(prefix="/api/library", tags=["Library"])


@router.put("/owned/{book_id}/status", response_model=OwnershipResponse)
async def set_ownership_status(
    book_id: str,
    data: OwnershipStatusRequest,
    user: User = Depends(get_current_user),
    library: LibraryService = Depends(get_library_service),
) -> OwnershipResponse:
    """Mark an owned copy as available for exchange, or take it back."""
    ownership = await library.set_exchange_status(user.uid, book_id, data.status)
    return OwnershipResponse.model_validate(ownership)


@router.get("/{kind}/{book_id}", response_model=LibraryToggleResponse)
async def get_marker(
    kind: LibraryKind,
    book_id: str,
    user: User = Depends(get_current_user),
    library: LibraryService = Depends(get_library_service),
) -> LibraryToggleResponse:
    active = await library.is_marked(kind, user.uid, book_id)
    return LibraryToggleResponse(book_id=pad_book_id(book_id), active=active)


@router.post("/{kind}/{book_id}", response_model=LibraryToggleResponse)
async def toggle_marker(
    kind: LibraryKind,
    book_id: str,
    user: User = Depends(get_current_user),
    library: LibraryService = Depends(get_library_service),
) -> LibraryToggleResponse:
    """Add the book to the list if absent, remove it if present."""
    active = await library.toggle(kind, user.uid, book_id)
    return LibraryToggleResponse(book_id=pad_book_id(book_id), active=active)
