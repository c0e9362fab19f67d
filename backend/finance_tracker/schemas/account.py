from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field


class CreateAccountCommand(BaseModel):
    name: str = Field(min_length=1)
    currency_id: int = Field(gt=0)
    tag: str | None = None


class UpdateAccountCommand(BaseModel):
    name: str | None = Field(default=None, min_length=1)
    currency_id: int | None = Field(default=None, gt=0)
    tag: str | None = None


class AccountDTO(BaseModel):
    id: int
    user_id: str
    name: str
    currency_id: int
    currency_code: str
    currency_description: str
    tag: str | None
    balance: Decimal
    active: bool
    created_at: datetime
    updated_at: datetime
