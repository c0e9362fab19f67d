from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from finance_tracker.core.datetime_utils import utcnow_naive
from finance_tracker.models.base import Base


class Currency(Base):
    __tablename__ = "currencies"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)

    # ISO 4217, e.g. 'PLN', 'USD'
    code: Mapped[str] = mapped_column(String(3), unique=True)
    description: Mapped[str] = mapped_column(String(100))

    active: Mapped[bool] = mapped_column(Boolean, default=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), default=utcnow_naive)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), default=utcnow_naive)
