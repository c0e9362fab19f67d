from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from finance_tracker.models.base import Base, SoftDeleteMixin, TimestampMixin


class Transaction(TimestampMixin, SoftDeleteMixin, Base):
    __tablename__ = "transactions"
    __table_args__ = (
        # Always positive; income/expense comes from the category type.
        CheckConstraint("amount > 0", name="check_amount_positive"),
        CheckConstraint("amount <= 9999999999.99", name="check_amount_range"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[str] = mapped_column(String(36), index=True)

    transaction_date: Mapped[datetime] = mapped_column(DateTime(timezone=False), index=True)

    account_id: Mapped[int] = mapped_column(Integer, ForeignKey("accounts.id"), index=True)
    category_id: Mapped[int] = mapped_column(Integer, ForeignKey("categories.id"), index=True)

    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2))
    currency_id: Mapped[int] = mapped_column(Integer, ForeignKey("currencies.id"))

    comment: Mapped[str | None] = mapped_column(Text, nullable=True)
