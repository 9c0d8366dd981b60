"""SQLAlchemy ORM models, one table per document collection."""

import uuid
from datetime import datetime

from sqlalchemy import (
    JSON,
    Column,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase

from bookshare.domain.exchange import (
    ExchangeStatus,
    ResolvedBook,
    UnresolvedBook,
    parse_book_refs,
)


def _new_id() -> str:
    return uuid.uuid4().hex


class Base(DeclarativeBase):
    pass


class User(Base):
    """App-level mirror of an identity-provider account."""

    __tablename__ = "users"

    uid = Column(String(128), primary_key=True)
    email = Column(String(255), unique=True, nullable=True, index=True)
    display_name = Column(String(255), nullable=True)
    photo_url = Column(String(1000), nullable=True)
    phone_number = Column(String(50), nullable=True)
    bio = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)


class Review(Base):
    __tablename__ = "reviews"
    __table_args__ = (UniqueConstraint("user_id", "book_id", name="uq_review_user_book"),)

    id = Column(String(32), primary_key=True, default=_new_id)
    book_id = Column(String(14), nullable=False, index=True)
    user_id = Column(String(128), ForeignKey("users.uid", ondelete="CASCADE"), nullable=False, index=True)
    rating = Column(Integer, nullable=False)
    comment = Column(Text, nullable=False, default="")
    user_display_name = Column(String(255), nullable=True)
    user_photo_url = Column(String(1000), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)


class BookOwnership(Base):
    __tablename__ = "book_ownership"
    __table_args__ = (UniqueConstraint("user_id", "book_id", name="uq_ownership_user_book"),)

    id = Column(String(32), primary_key=True, default=_new_id)
    user_id = Column(String(128), ForeignKey("users.uid", ondelete="CASCADE"), nullable=False, index=True)
    book_id = Column(String(14), nullable=False, index=True)
    status = Column(String(20), nullable=True)  # None | "forExchange"
    exchange_id = Column(String(32), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)


class BookDesire(Base):
    __tablename__ = "book_desires"
    __table_args__ = (UniqueConstraint("user_id", "book_id", name="uq_desire_user_book"),)

    id = Column(String(32), primary_key=True, default=_new_id)
    user_id = Column(String(128), ForeignKey("users.uid", ondelete="CASCADE"), nullable=False, index=True)
    book_id = Column(String(14), nullable=False, index=True)
    created_at = Column(DateTime, default=datetime.utcnow)


class BookFavorite(Base):
    __tablename__ = "book_favorites"
    __table_args__ = (UniqueConstraint("user_id", "book_id", name="uq_favorite_user_book"),)

    id = Column(String(32), primary_key=True, default=_new_id)
    user_id = Column(String(128), ForeignKey("users.uid", ondelete="CASCADE"), nullable=False, index=True)
    book_id = Column(String(14), nullable=False, index=True)
    created_at = Column(DateTime, default=datetime.utcnow)


class UserContact(Base):
    """Directed contact edge; an accepted edge is symmetric in meaning."""

    __tablename__ = "user_contacts"

    id = Column(String(32), primary_key=True, default=_new_id)
    user_id = Column(String(128), ForeignKey("users.uid", ondelete="CASCADE"), nullable=False, index=True)
    contact_id = Column(String(128), ForeignKey("users.uid", ondelete="CASCADE"), nullable=False, index=True)
    status = Column(
        Enum("pending", "accepted", name="contact_status_enum"),
        nullable=False,
        default="pending",
    )
    created_at = Column(DateTime, default=datetime.utcnow)


class BookExchange(Base):
    __tablename__ = "book_exchanges"

    id = Column(String(32), primary_key=True, default=_new_id)
    user_id = Column(String(128), nullable=False, index=True)
    contact_id = Column(String(128), nullable=False, index=True)
    status = Column(
        Enum(
            ExchangeStatus,
            name="exchange_status_enum",
            values_callable=lambda enum: [member.value for member in enum],
        ),
        nullable=False,
        default=ExchangeStatus.PENDING,
    )
    user_books = Column(JSON, nullable=False, default=list)
    contact_books = Column(JSON, nullable=False, default=list)
    resolved_by = Column(String(128), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    status_date = Column(DateTime, nullable=True)

    @property
    def user_book_refs(self) -> list[ResolvedBook | UnresolvedBook]:
        return parse_book_refs(self.user_books)

    @property
    def contact_book_refs(self) -> list[ResolvedBook | UnresolvedBook]:
        return parse_book_refs(self.contact_books)

    @property
    def sort_date(self) -> datetime:
        return self.status_date or self.created_at
