from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, DateTime
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from finance_tracker.core.datetime_utils import utcnow_naive


class Base(DeclarativeBase):
    pass


class TimestampMixin:
    # UTC, timezone-naive (see core.datetime_utils)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), default=utcnow_naive, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=False), default=utcnow_naive, onupdate=utcnow_naive, nullable=False
    )


class SoftDeleteMixin:
    # Soft delete flag; rows are never removed.
    active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False, index=True)
