"""Initial schema.

Revision ID: 001
Revises:
Create Date: 2026-10-18 00:00:00.000000
"""

import sqlalchemy as sa

from alembic import op

revision = "001"
down_revision = None
branch_labels = None
depends_on = None


def _user_fk(name: str = "user_id") -> sa.Column:
    return sa.Column(
        name,
        sa.String(128),
        sa.ForeignKey("users.uid", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )


def upgrade() -> None:
    # Users (mirror of identity-provider accounts)
    op.create_table(
        "users",
        sa.Column("uid", sa.String(128), primary_key=True),
        sa.Column("email", sa.String(255), unique=True, nullable=True, index=True),
        sa.Column("display_name", sa.String(255), nullable=True),
        sa.Column("photo_url", sa.String(1000), nullable=True),
        sa.Column("phone_number", sa.String(50), nullable=True),
        sa.Column("bio", sa.Text, nullable=True),
        sa.Column("created_at", sa.DateTime, server_default=sa.func.now()),
    )

    # Reviews
    op.create_table(
        "reviews",
        sa.Column("id", sa.String(32), primary_key=True),
        sa.Column("book_id", sa.String(14), nullable=False, index=True),
        _user_fk(),
        sa.Column("rating", sa.Integer, nullable=False),
        sa.Column("comment", sa.Text, nullable=False, server_default=""),
        sa.Column("user_display_name", sa.String(255), nullable=True),
        sa.Column("user_photo_url", sa.String(1000), nullable=True),
        sa.Column("created_at", sa.DateTime, server_default=sa.func.now()),
        sa.UniqueConstraint("user_id", "book_id", name="uq_review_user_book"),
    )

    # Owned copies, optionally offered for exchange
    op.create_table(
        "book_ownership",
        sa.Column("id", sa.String(32), primary_key=True),
        _user_fk(),
        sa.Column("book_id", sa.String(14), nullable=False, index=True),
        sa.Column("status", sa.String(20), nullable=True),
        sa.Column("exchange_id", sa.String(32), nullable=True),
        sa.Column("created_at", sa.DateTime, server_default=sa.func.now()),
        sa.UniqueConstraint("user_id", "book_id", name="uq_ownership_user_book"),
    )

    # Wishlist and favorites
    for table, constraint in (
        ("book_desires", "uq_desire_user_book"),
        ("book_favorites", "uq_favorite_user_book"),
    ):
        op.create_table(
            table,
            sa.Column("id", sa.String(32), primary_key=True),
            _user_fk(),
            sa.Column("book_id", sa.String(14), nullable=False, index=True),
            sa.Column("created_at", sa.DateTime, server_default=sa.func.now()),
            sa.UniqueConstraint("user_id", "book_id", name=constraint),
        )

    # Contact edges
    contact_status = sa.Enum("pending", "accepted", name="contact_status_enum")
    op.create_table(
        "user_contacts",
        sa.Column("id", sa.String(32), primary_key=True),
        _user_fk(),
        _user_fk("contact_id"),
        sa.Column("status", contact_status, nullable=False, server_default="pending"),
        sa.Column("created_at", sa.DateTime, server_default=sa.func.now()),
    )

    # Exchanges
    exchange_status = sa.Enum(
        "pending", "completed", "declined", name="exchange_status_enum"
    )
    op.create_table(
        "book_exchanges",
        sa.Column("id", sa.String(32), primary_key=True),
        sa.Column("user_id", sa.String(128), nullable=False, index=True),
        sa.Column("contact_id", sa.String(128), nullable=False, index=True),
        sa.Column("status", exchange_status, nullable=False, server_default="pending"),
        sa.Column("user_books", sa.JSON, nullable=False),
        sa.Column("contact_books", sa.JSON, nullable=False),
        sa.Column("resolved_by", sa.String(128), nullable=True),
        sa.Column("created_at", sa.DateTime, server_default=sa.func.now()),
        sa.Column("status_date", sa.DateTime, nullable=True),
    )
    op.create_index(
        "ix_exchanges_contact_status", "book_exchanges", ["contact_id", "status"]
    )


def downgrade() -> None:
    op.drop_index("ix_exchanges_contact_status", table_name="book_exchanges")
    op.drop_table("book_exchanges")
    op.drop_table("user_contacts")
    op.drop_table("book_favorites")
    op.drop_table("book_desires")
    op.drop_table("book_ownership")
    op.drop_table("reviews")
    op.drop_table("users")
    if op.get_bind().dialect.name == "postgresql":
        op.execute("DROP TYPE IF EXISTS exchange_status_enum")
        op.execute("DROP TYPE IF EXISTS contact_status_enum")
