from __future__ import annotations

from sqlalchemy import ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from finance_tracker.models.base import Base, SoftDeleteMixin, TimestampMixin


class Account(TimestampMixin, SoftDeleteMixin, Base):
    __tablename__ = "accounts"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[str] = mapped_column(String(36), index=True)

    # Not unique: "Cash" in USD and "Cash" in EUR may coexist.
    name: Mapped[str] = mapped_column(String(100))
    currency_id: Mapped[int] = mapped_column(Integer, ForeignKey("currencies.id"), index=True)
    tag: Mapped[str | None] = mapped_column(String(10), nullable=True)

    # No balance column: it is always computed from active transactions.
