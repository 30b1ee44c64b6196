"""
SQLAlchemy ORM models for persistent storage.

Models mirror the dataclass models but add database persistence.
"""

from datetime import UTC, datetime
from typing import Any

from sqlalchemy import (
    JSON,
    DateTime,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def _utcnow() -> datetime:
    return datetime.now(UTC)


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


class CollectionEntryDB(Base):
    """
    A card tracked by a user, either owned or wishlisted.

    At most one row exists per (user, card); changing status updates the row.
    """

    __tablename__ = "collection_entries"
    __table_args__ = (UniqueConstraint("user_id", "card_id", name="uq_user_card"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(255), index=True)
    card_id: Mapped[str] = mapped_column(String(64), index=True)
    status: Mapped[str] = mapped_column(String(16), index=True)

    # Card fields copied at add time for display without a catalog call
    card_data: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict)

    notes: Mapped[str] = mapped_column(Text, default="")
    condition: Mapped[str] = mapped_column(String(32), default="mint")
    tags: Mapped[list[str]] = mapped_column(JSON, default=list)

    added_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, onupdate=_utcnow
    )

    def __repr__(self) -> str:
        return (
            f"<CollectionEntryDB(user_id={self.user_id}, card_id={self.card_id}, "
            f"status={self.status})>"
        )
