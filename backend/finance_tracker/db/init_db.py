from __future__ import annotations

import logging

from sqlalchemy import Engine, select
from sqlalchemy.orm import Session

from finance_tracker.models import Base, Currency

logger = logging.getLogger(__name__)

DEFAULT_CURRENCIES: list[tuple[str, str]] = [
    ("PLN", "Polish Zloty"),
    ("EUR", "Euro"),
    ("USD", "US Dollar"),
    ("GBP", "British Pound"),
    ("CHF", "Swiss Franc"),
    ("CZK", "Czech Koruna"),
]


def ensure_schema(engine: Engine) -> None:
    Base.metadata.create_all(engine)


def ensure_seed_data(db: Session) -> None:
    # Safe to run on every startup.
    existing = set(db.scalars(select(Currency.code)).all())
    missing = [(code, description) for code, description in DEFAULT_CURRENCIES if code not in existing]
    if not missing:
        return

    db.add_all([Currency(code=code, description=description, active=True) for code, description in missing])
    db.commit()
    logger.info("Seeded %d currencies", len(missing))
