"""SQLAlchemy declarative base and shared mixins."""
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import String, DateTime, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    """Base class for all ORM models."""
    pass


class UploadedAtMixin:
    """Adds a server-assigned uploaded_at column.

    The Python-side default keeps sub-second precision on backends whose
    CURRENT_TIMESTAMP is second-resolution (SQLite).
    """
    uploaded_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), index=True
    )


class OwnerMixin:
    """Adds the owner columns stamped from the caller identity at creation."""
    user_id: Mapped[Optional[str]] = mapped_column(String(255), nullable=True, index=True)
    user_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
