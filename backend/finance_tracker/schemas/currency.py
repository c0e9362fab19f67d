from __future__ import annotations

from pydantic import BaseModel


class CurrencyDTO(BaseModel):
    id: int
    code: str
    description: str
    active: bool
