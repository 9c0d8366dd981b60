"""Request and response schemas; wire names are camelCase."""

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# ── Users ──────────────────────────────────────────


class UserSummary(CamelModel):
    uid: str
    email: str | None = None
    display_name: str | None = None
    photo_url: str | None = Field(default=None, alias="photoURL")


class UserProfileResponse(UserSummary):
    phone_number: str | None = None
    bio: str | None = None
    created_at: datetime | None = None
    books_count: int = 0
    reviews_count: int = 0
    average_rating: float | None = None


class ProfileUpdateRequest(CamelModel):
    display_name: str | None = Field(default=None, max_length=255)
    bio: str | None = Field(default=None, max_length=2000)
    phone_number: str | None = Field(default=None, max_length=50)
    photo_url: str | None = Field(default=None, alias="photoURL", max_length=1000)


# ── Reviews ────────────────────────────────────────


class ReviewCreateRequest(CamelModel):
    rating: int = Field(..., ge=1, le=10)
    comment: str = Field(default="", max_length=5000)


class ReviewResponse(CamelModel):
    id: str
    book_id: str
    user_id: str
    rating: int
    comment: str
    user_display_name: str | None = None
    user_photo_url: str | None = Field(default=None, alias="userPhotoURL")
    created_at: datetime | None = None


class RatingResponse(BaseModel):
    average: float | None
    total: int


# ── Library ────────────────────────────────────────


class LibraryToggleResponse(CamelModel):
    book_id: str
    active: bool


class OwnershipStatusRequest(BaseModel):
    status: Literal["forExchange"] | None = None


class OwnershipResponse(CamelModel):
    id: str
    user_id: str
    book_id: str
    status: str | None = None
    exchange_id: str | None = None


class LibraryEntryResponse(CamelModel):
    id: str
    book_id: str
    status: str | None = None
    created_at: datetime | None = None
    book: dict[str, Any]


# ── Contacts ───────────────────────────────────────


class ContactInviteRequest(BaseModel):
    email: str = Field(..., min_length=3, max_length=255)


class ContactResponse(CamelModel):
    id: str
    user_id: str
    contact_id: str
    status: str
    created_at: datetime | None = None
    user: UserSummary | None = None


# ── Exchanges ──────────────────────────────────────


class ExchangeCreateRequest(CamelModel):
    contact_id: str
    user_books: list[str]
    contact_books: list[str]


class ExchangeResponse(CamelModel):
    id: str
    user_id: str
    contact_id: str
    status: str
    resolved_by: str | None = None
    created_at: datetime | None = None
    status_date: datetime | None = None
    user_books: list[dict[str, Any]] = Field(default_factory=list)
    contact_books: list[dict[str, Any]] = Field(default_factory=list)
    user_name: str | None = None
    user_photo_url: str | None = Field(default=None, alias="userPhotoURL")
    contact_name: str | None = None
    contact_photo_url: str | None = Field(default=None, alias="contactPhotoURL")


class TransferFailureResponse(CamelModel):
    book_id: str
    from_user_id: str
    to_user_id: str
    reason: str


class AcceptExchangeResponse(CamelModel):
    exchange: ExchangeResponse
    outcome: Literal["accepted", "accepted_with_transfer_errors"]
    failed_transfers: list[TransferFailureResponse] = Field(default_factory=list)


class ExchangeListResponse(BaseModel):
    exchanges: list[ExchangeResponse]


# ── Notifications ──────────────────────────────────


class NotificationsResponse(CamelModel):
    pending_invites: int
    pending_exchanges: int


# ── Recommendations ────────────────────────────────


class CategoryItem(BaseModel):
    category: str


class CategoryGroups(CamelModel):
    by_genre: list[CategoryItem] = Field(default_factory=list)
    by_author: list[CategoryItem] = Field(default_factory=list)
    by_language: list[CategoryItem] = Field(default_factory=list)


class CategoriesResponse(BaseModel):
    categories: CategoryGroups


class BooksResponse(BaseModel):
    books: list[dict[str, Any]]


class CategoryBooksItem(BaseModel):
    category: str
    books: list[dict[str, Any]]


class ItemCountResponse(BaseModel):
    item: str
    count: int


class RecommendationGroups(CamelModel):
    by_genre: list[CategoryBooksItem] = Field(default_factory=list)
    by_author: list[CategoryBooksItem] = Field(default_factory=list)
    by_language: list[CategoryBooksItem] = Field(default_factory=list)
    by_decade: list[CategoryBooksItem] = Field(default_factory=list)


class RecommendationStats(BaseModel):
    genres: list[ItemCountResponse] = Field(default_factory=list)
    authors: list[ItemCountResponse] = Field(default_factory=list)
    languages: list[ItemCountResponse] = Field(default_factory=list)
    decades: list[ItemCountResponse] = Field(default_factory=list)


class RecommendationsResponse(BaseModel):
    recommendations: RecommendationGroups
    stats: RecommendationStats
