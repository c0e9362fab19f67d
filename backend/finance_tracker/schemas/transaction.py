from __future__ import annotations

import enum
from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, Field


class TransactionSort(str, enum.Enum):
    DATE_ASC = "transaction_date:asc"
    DATE_DESC = "transaction_date:desc"
    AMOUNT_ASC = "amount:asc"
    AMOUNT_DESC = "amount:desc"

    @property
    def field(self) -> str:
        return self.value.split(":", 1)[0]

    @property
    def descending(self) -> bool:
        return self.value.endswith(":desc")

    @classmethod
    def parse(cls, value: str | TransactionSort | None) -> TransactionSort:
        """Unknown or missing values fall back to newest first."""
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            return cls.DATE_DESC


class CreateTransactionCommand(BaseModel):
    transaction_date: datetime
    account_id: int
    category_id: int
    amount: Decimal
    currency_id: int
    comment: str | None = None


class UpdateTransactionCommand(BaseModel):
    transaction_date: datetime | None = None
    account_id: int | None = None
    category_id: int | None = None
    amount: Decimal | None = None
    currency_id: int | None = None
    # When provided as null or an empty string, the comment is cleared.
    comment: str | None = None


class GetTransactionsQuery(BaseModel):
    date_from: date | None = None
    date_to: date | None = None
    account_id: int | None = None
    category_id: int | None = None
    search: str | None = None
    sort: str | None = None
    page: int | None = None
    limit: int | None = None
    include_inactive: bool = False


class TransactionDTO(BaseModel):
    id: int
    user_id: str
    transaction_date: datetime
    account_id: int
    account_name: str
    category_id: int
    category_name: str
    category_type: str
    amount: Decimal
    currency_id: int
    currency_code: str
    comment: str | None
    active: bool
    created_at: datetime
    updated_at: datetime


class PaginationDTO(BaseModel):
    page: int
    limit: int
    total_items: int
    total_pages: int


class TransactionListDTO(BaseModel):
    data: list[TransactionDTO] = Field(default_factory=list)
    pagination: PaginationDTO
