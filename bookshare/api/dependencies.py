"""Dependency providers wiring services to the request session."""

from functools import lru_cache

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from bookshare.adapters.catalog.bn import BNCatalogAdapter
from bookshare.adapters.catalog.memory import InMemoryCatalogAdapter
from bookshare.config import CatalogProvider, settings
from bookshare.database import get_session
from bookshare.ports.catalog import CatalogPort
from bookshare.services.contacts import ContactService
from bookshare.services.exchanges import ExchangeService
from bookshare.services.library import LibraryService
from bookshare.services.notifications import NotificationService
from bookshare.services.ratings import RatingService
from bookshare.services.recommendations import RecommendationService
from bookshare.services.reviews import ReviewService
from bookshare.services.users import UserService


@lru_cache
def get_catalog() -> CatalogPort:
    """Build the configured catalog adapter once per process."""
    if settings.catalog_provider is CatalogProvider.MEMORY:
        return InMemoryCatalogAdapter()
    return BNCatalogAdapter(
        base_url=settings.catalog_base_url,
        timeout=settings.catalog_timeout,
        retries=settings.catalog_retries,
        backoff=settings.catalog_retry_backoff,
    )


def get_user_service(session: AsyncSession = Depends(get_session)) -> UserService:
    return UserService(session)


def get_review_service(session: AsyncSession = Depends(get_session)) -> ReviewService:
    return ReviewService(session)


def get_rating_service(session: AsyncSession = Depends(get_session)) -> RatingService:
    return RatingService(session)


def get_contact_service(session: AsyncSession = Depends(get_session)) -> ContactService:
    return ContactService(session)


def get_notification_service(
    session: AsyncSession = Depends(get_session),
) -> NotificationService:
    return NotificationService(session)


def get_library_service(
    session: AsyncSession = Depends(get_session),
    catalog: CatalogPort = Depends(get_catalog),
) -> LibraryService:
    return LibraryService(session, catalog)


def get_exchange_service(
    session: AsyncSession = Depends(get_session),
    catalog: CatalogPort = Depends(get_catalog),
) -> ExchangeService:
    return ExchangeService(session, catalog)


def get_recommendation_service(
    session: AsyncSession = Depends(get_session),
    catalog: CatalogPort = Depends(get_catalog),
) -> RecommendationService:
    return RecommendationService(
        session,
        catalog,
        high_rating_threshold=settings.high_rating_threshold,
        category_limit=settings.top_categories_limit,
    )
