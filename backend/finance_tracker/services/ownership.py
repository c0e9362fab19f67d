"""Ownership lookups shared by the services.

Each lookup opens its own session so a batch of them can run side by side.
"""

from __future__ import annotations

from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from typing import TypeVar

from sqlalchemy import select
from sqlalchemy.orm import Session, sessionmaker

from finance_tracker.core.errors import AccountNotFound, CategoryNotFound, CurrencyNotFound, ServiceError
from finance_tracker.db.constraints import storage_errors
from finance_tracker.models import Account, Category, Currency

T = TypeVar("T")


def currency_is_active(session_factory: sessionmaker[Session], currency_id: int) -> bool:
    with storage_errors("validate currency"), session_factory() as db:
        found = db.scalar(select(Currency.id).where(Currency.id == currency_id, Currency.active == True))  # noqa: E712
    return found is not None


def account_is_owned(session_factory: sessionmaker[Session], account_id: int, user_id: str) -> bool:
    with storage_errors("validate account ownership"), session_factory() as db:
        found = db.scalar(
            select(Account.id).where(
                Account.id == account_id,
                Account.user_id == user_id,
                Account.active == True,  # noqa: E712
            )
        )
    return found is not None


def category_is_owned(session_factory: sessionmaker[Session], category_id: int, user_id: str) -> bool:
    with storage_errors("validate category ownership"), session_factory() as db:
        found = db.scalar(
            select(Category.id).where(
                Category.id == category_id,
                Category.user_id == user_id,
                Category.active == True,  # noqa: E712
            )
        )
    return found is not None


def lock_active_category(db: Session, category_id: int, user_id: str) -> bool:
    """Re-check the category inside a writing transaction.

    Holds a shared row lock until commit, so a concurrent category delete (which
    takes `FOR UPDATE` on the same row) waits and then counts this write.
    """

    found = db.scalar(
        select(Category.id)
        .where(
            Category.id == category_id,
            Category.user_id == user_id,
            Category.active == True,  # noqa: E712
        )
        .with_for_update(read=True)
    )
    return found is not None


def run_concurrently(checks: list[Callable[[], T]]) -> list[T]:
    """Run independent lookups side by side and wait for all of them.

    Results come back in the order the checks were given. If any check raised,
    the first failure (in that order) is re-raised once the whole batch is done.
    """

    if not checks:
        return []
    if len(checks) == 1:
        return [checks[0]()]

    with ThreadPoolExecutor(max_workers=len(checks), thread_name_prefix="ownership") as pool:
        futures = [pool.submit(check) for check in checks]
    # Leaving the with-block joined every future.
    return [future.result() for future in futures]


def verify_references(
    session_factory: sessionmaker[Session],
    user_id: str,
    *,
    account_id: int | None = None,
    category_id: int | None = None,
    currency_id: int | None = None,
) -> None:
    """Check every given reference concurrently; raise the first failing reason.

    Failures are reported in a fixed order: account, category, currency.
    """

    pending: list[tuple[Callable[[], bool], Callable[[], ServiceError]]] = []
    if account_id is not None:
        pending.append((lambda: account_is_owned(session_factory, account_id, user_id), AccountNotFound))
    if category_id is not None:
        pending.append((lambda: category_is_owned(session_factory, category_id, user_id), CategoryNotFound))
    if currency_id is not None:
        pending.append((lambda: currency_is_active(session_factory, currency_id), CurrencyNotFound))

    results = run_concurrently([check for check, _ in pending])
    for ok, (_, error) in zip(results, pending):
        if not ok:
            raise error()
