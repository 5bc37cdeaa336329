"""SQLAlchemy model for persisted cache entries."""

from datetime import datetime

from sqlalchemy import DateTime, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all database models."""


class CacheEntryModel(Base):
    """One consolidated document keyed by canonical query hash.

    `updated_at` is stored as naive UTC; SQLite has no timezone support.
    """

    __tablename__ = "cache"

    query_hash: Mapped[str] = mapped_column(String(64), primary_key=True)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
