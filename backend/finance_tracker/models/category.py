from __future__ import annotations

from sqlalchemy import CheckConstraint, Index, Integer, String, func, true
from sqlalchemy.orm import Mapped, mapped_column

from finance_tracker.models.base import Base, SoftDeleteMixin, TimestampMixin

CATEGORY_TYPE_INCOME = "income"
CATEGORY_TYPE_EXPENSE = "expense"
CATEGORY_TYPES = (CATEGORY_TYPE_INCOME, CATEGORY_TYPE_EXPENSE)

ROOT_PARENT_ID = 0


class Category(TimestampMixin, SoftDeleteMixin, Base):
    __tablename__ = "categories"
    __table_args__ = (
        CheckConstraint("parent_id >= 0", name="check_parent_id_non_negative"),
        CheckConstraint("category_type IN ('income', 'expense')", name="check_category_type"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[str] = mapped_column(String(36), index=True)

    name: Mapped[str] = mapped_column(String(100))

    # 'income' | 'expense'
    category_type: Mapped[str] = mapped_column(String(10), default=CATEGORY_TYPE_EXPENSE, index=True)

    # 0 = root category, >0 = id of a root category. No FK since 0 is not a row.
    parent_id: Mapped[int] = mapped_column(Integer, default=ROOT_PARENT_ID, index=True)

    tag: Mapped[str | None] = mapped_column(String(10), nullable=True)


# Final arbiter for concurrent creates/renames. SQL Server rejects expressions in an
# index key, so there the plain column is indexed and its case-insensitive default
# collation does the folding.
Index(
    "uq_categories_user_parent_name_active",
    Category.user_id,
    Category.parent_id,
    func.lower(Category.name),
    unique=True,
    postgresql_where=Category.active == true(),
    sqlite_where=Category.active == true(),
).ddl_if(dialect=("postgresql", "sqlite"))

Index(
    "uq_categories_user_parent_name_active_ci",
    Category.user_id,
    Category.parent_id,
    Category.name,
    unique=True,
    mssql_where=Category.active == true(),
).ddl_if(dialect="mssql")
