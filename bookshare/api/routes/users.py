"""User profile routes."""

from fastapi import APIRouter, Depends, Query, status

from bookshare.api.dependencies import (
    get_library_service,
    get_review_service,
    get_user_service,
)
from bookshare.api.middleware.auth import get_current_user
from bookshare.api.schemas import (
    LibraryEntryResponse,
    ProfileUpdateRequest,
    ReviewResponse,
    UserProfileResponse,
    UserSummary,
)
from bookshare.domain.models import User
from bookshare.services.library import LibraryKind, LibraryService
from bookshare.services.reviews import ReviewService
from bookshare.services.users import UserService

router = APIRouter(prefix="/api/users", tags=["Users"])


async def _profile(user: User, users: UserService) -> UserProfileResponse:
    stats = await users.get_stats(user.uid)
    return UserProfileResponse(
        uid=user.uid,
        email=user.email,
        display_name=user.display_name,
        photo_url=user.photo_url,
        phone_number=user.phone_number,
        bio=user.bio,
        created_at=user.created_at,
        books_count=stats.books_count,
        reviews_count=stats.reviews_count,
        average_rating=stats.average_rating,
    )


@router.get("", response_model=list[UserSummary])
async def search_users(
    query: str = "",
    user: User = Depends(get_current_user),
    users: UserService = Depends(get_user_service),
) -> list[UserSummary]:
    """Find people by email, display name or phone number prefix."""
    if not query.strip():
        return []
    return [UserSummary.model_validate(u) for u in await users.search(query, user.uid)]


@router.get("/me", response_model=UserProfileResponse)
async def get_me(
    user: User = Depends(get_current_user),
    users: UserService = Depends(get_user_service),
) -> UserProfileResponse:
    return await _profile(user, users)


@router.patch("/me", response_model=UserProfileResponse)
async def update_me(
    data: ProfileUpdateRequest,
    user: User = Depends(get_current_user),
    users: UserService = Depends(get_user_service),
) -> UserProfileResponse:
    await users.update_profile(user, data.model_dump(exclude_unset=True))
    return await _profile(user, users)


@router.delete("/me", status_code=status.HTTP_204_NO_CONTENT)
async def delete_me(
    user: User = Depends(get_current_user),
    users: UserService = Depends(get_user_service),
) -> None:
    """Delete the account and everything it owns."""
    await users.delete_account(user)


@router.get("/{uid}", response_model=UserProfileResponse)
async def get_user(
    uid: str,
    _user: User = Depends(get_current_user),
    users: UserService = Depends(get_user_service),
) -> UserProfileResponse:
    return await _profile(await users.get_user(uid), users)


@router.get("/{uid}/reviews", response_model=list[ReviewResponse])
async def get_user_reviews(
    uid: str,
    _user: User = Depends(get_current_user),
    reviews: ReviewService = Depends(get_review_service),
) -> list[ReviewResponse]:
    return [ReviewResponse.model_validate(r) for r in await reviews.get_reviews_by_user(uid)]


@router.get("/{uid}/library/{kind}", response_model=list[LibraryEntryResponse])
async def get_user_library(
    uid: str,
    kind: LibraryKind,
    ownership_status: str | None = Query(default=None, alias="status"),
    _user: User = Depends(get_current_user),
    library: LibraryService = Depends(get_library_service),
) -> list[LibraryEntryResponse]:
    """A user's owned, desired or favorite books with catalog details."""
    entries = await library.list_entries(kind, uid, only_status=ownership_status)
    return [
        LibraryEntryResponse(
            id=entry.id,
            book_id=entry.book_id,
            status=getattr(entry, "status", None),
            created_at=entry.created_at,
            book=book,
        )
        for entry, book in entries
    ]
