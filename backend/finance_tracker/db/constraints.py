"""Translation of storage failures into domain errors."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator
from contextlib import contextmanager

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from finance_tracker.core.errors import ServiceError, StorageError

logger = logging.getLogger(__name__)

UNIQUE_VIOLATION = "23505"
FOREIGN_KEY_VIOLATION = "23503"


def constraint_violation(exc: IntegrityError) -> str | None:
    """Return the SQLSTATE of a unique/FK violation, or None for anything else."""

    orig = exc.orig
    sqlstate = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    if sqlstate in (UNIQUE_VIOLATION, FOREIGN_KEY_VIOLATION):
        return sqlstate

    # SQLite and ODBC drivers only report it in the message.
    message = str(orig).lower()
    if "unique" in message or "duplicate key" in message:
        return UNIQUE_VIOLATION
    if "foreign key" in message:
        return FOREIGN_KEY_VIOLATION
    return None


@contextmanager
def storage_errors(
    action: str,
    *,
    on_unique: Callable[[], ServiceError] | None = None,
    on_foreign_key: Callable[[], ServiceError] | None = None,
) -> Iterator[None]:
    try:
        yield
    except IntegrityError as exc:
        violation = constraint_violation(exc)
        if violation == UNIQUE_VIOLATION and on_unique is not None:
            raise on_unique() from exc
        if violation == FOREIGN_KEY_VIOLATION and on_foreign_key is not None:
            raise on_foreign_key() from exc
        logger.exception("Constraint violation while trying to %s", action)
        raise StorageError(f"Failed to {action}") from exc
    except SQLAlchemyError as exc:
        logger.exception("Storage failure while trying to %s", action)
        raise StorageError(f"Failed to {action}") from exc
