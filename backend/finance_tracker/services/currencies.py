from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session, sessionmaker

from finance_tracker.db.constraints import storage_errors
from finance_tracker.models import Currency
from finance_tracker.schemas.currency import CurrencyDTO


class CurrencyService:
    """Read-only access to the currency reference table."""

    def __init__(self, session_factory: sessionmaker[Session]) -> None:
        self._session_factory = session_factory

    def list_active(self) -> list[CurrencyDTO]:
        with storage_errors("fetch currencies"), self._session_factory() as db:
            rows = db.scalars(
                select(Currency).where(Currency.active == True).order_by(Currency.code.asc())  # noqa: E712
            ).all()

        return [CurrencyDTO(id=r.id, code=r.code, description=r.description, active=r.active) for r in rows]
