from __future__ import annotations

import logging
from decimal import Decimal

from sqlalchemy import Select, case, func, select, update
from sqlalchemy.orm import Session, sessionmaker

from finance_tracker.core.datetime_utils import as_utc, utcnow_naive
from finance_tracker.core.errors import Conflict, CurrencyNotFound, NotFound
from finance_tracker.core.sanitize import CENT, normalize_tag, validate_name, validate_numeric_id
from finance_tracker.db.constraints import storage_errors
from finance_tracker.models import Account, Category, Currency, Transaction
from finance_tracker.models.category import CATEGORY_TYPE_INCOME
from finance_tracker.schemas.account import AccountDTO, CreateAccountCommand, UpdateAccountCommand
from finance_tracker.services.ownership import currency_is_active

logger = logging.getLogger(__name__)

ZERO = Decimal("0.00")


def _account_conflict() -> Conflict:
    return Conflict("Account conflicts with an existing record")


def _money(value: object) -> Decimal:
    if value is None:
        return ZERO
    return Decimal(str(value)).quantize(CENT)


def _account_with_currency(user_id: str) -> Select:
    return (
        select(Account, Currency.code, Currency.description)
        .join(Currency, Currency.id == Account.currency_id)
        .where(Account.user_id == user_id)
    )


def compute_balances(db: Session, user_id: str, account_ids: list[int]) -> dict[int, Decimal]:
    """Signed sum of active transactions per account: income adds, expense subtracts."""

    if not account_ids:
        return {}

    signed_amount = case(
        (Category.category_type == CATEGORY_TYPE_INCOME, Transaction.amount),
        else_=-Transaction.amount,
    )
    rows = db.execute(
        select(Transaction.account_id, func.sum(signed_amount))
        .join(Category, Category.id == Transaction.category_id)
        .where(
            Transaction.user_id == user_id,
            Transaction.active == True,  # noqa: E712
            Transaction.account_id.in_(account_ids),
        )
        .group_by(Transaction.account_id)
    ).all()
    return {int(account_id): _money(total) for account_id, total in rows}


def _to_dto(row: Account, currency_code: str | None, currency_description: str | None, balance: Decimal) -> AccountDTO:
    return AccountDTO(
        id=row.id,
        user_id=row.user_id,
        name=row.name,
        currency_id=row.currency_id,
        currency_code=currency_code or "",
        currency_description=currency_description or "",
        tag=row.tag,
        balance=balance,
        active=row.active,
        created_at=as_utc(row.created_at),
        updated_at=as_utc(row.updated_at),
    )


class AccountService:
    def __init__(self, session_factory: sessionmaker[Session]) -> None:
        self._session_factory = session_factory

    def create(self, command: CreateAccountCommand, user_id: str) -> AccountDTO:
        name = validate_name(command.name, label="account")
        tag = normalize_tag(command.tag)
        validate_numeric_id(command.currency_id, "currency_id")

        if not currency_is_active(self._session_factory, command.currency_id):
            raise CurrencyNotFound()

        with storage_errors(
            "create account", on_unique=_account_conflict, on_foreign_key=CurrencyNotFound
        ), self._session_factory() as db:
            row = Account(user_id=user_id, name=name, currency_id=command.currency_id, tag=tag, active=True)
            db.add(row)
            db.commit()

            currency = db.get(Currency, row.currency_id)

        logger.info("Created account %s for user %s", row.id, user_id)
        # A new account has no transactions yet.
        return _to_dto(
            row,
            currency.code if currency else None,
            currency.description if currency else None,
            ZERO,
        )

    def get_by_id(self, account_id: int, user_id: str) -> AccountDTO | None:
        """Single account, active or not, with its balance recomputed."""

        validate_numeric_id(account_id, "account_id")
        with storage_errors("retrieve account"), self._session_factory() as db:
            return self._read(db, account_id, user_id)

    def list_by_user(self, user_id: str, include_inactive: bool = False) -> list[AccountDTO]:
        stmt = _account_with_currency(user_id)
        if not include_inactive:
            stmt = stmt.where(Account.active == True)  # noqa: E712

        with storage_errors("fetch accounts"), self._session_factory() as db:
            rows = db.execute(stmt.order_by(Account.name.asc(), Account.id.asc())).all()
            balances = compute_balances(db, user_id, [row.id for row, _, _ in rows])

        return [_to_dto(row, code, description, balances.get(row.id, ZERO)) for row, code, description in rows]

    def update(self, account_id: int, command: UpdateAccountCommand, user_id: str) -> AccountDTO:
        validate_numeric_id(account_id, "account_id")

        fields = command.model_fields_set
        changes: dict[str, object] = {}
        if "name" in fields and command.name is not None:
            changes["name"] = validate_name(command.name, label="account")
        if "currency_id" in fields and command.currency_id is not None:
            changes["currency_id"] = validate_numeric_id(command.currency_id, "currency_id")
        if "tag" in fields:
            changes["tag"] = normalize_tag(command.tag)

        with storage_errors(
            "update account", on_unique=_account_conflict, on_foreign_key=CurrencyNotFound
        ), self._session_factory() as db:
            row = db.scalar(
                select(Account).where(
                    Account.id == account_id,
                    Account.user_id == user_id,
                    Account.active == True,  # noqa: E712
                )
            )
            if row is None:
                raise NotFound("Account not found or access denied")

            new_currency_id = changes.get("currency_id")
            if new_currency_id is not None and new_currency_id != row.currency_id:
                if not currency_is_active(self._session_factory, new_currency_id):
                    raise CurrencyNotFound()

            for key, value in changes.items():
                setattr(row, key, value)
            db.commit()

            logger.info("Updated account %s (%s)", account_id, ", ".join(sorted(changes)) or "no changes")
            result = self._read(db, account_id, user_id)

        if result is None:
            raise NotFound("Account not found or access denied")
        return result

    def delete(self, account_id: int, user_id: str) -> None:
        """Soft delete the account together with its active transactions."""

        validate_numeric_id(account_id, "account_id")

        with storage_errors("delete account"), self._session_factory.begin() as db:
            row = db.scalar(
                select(Account)
                .where(
                    Account.id == account_id,
                    Account.user_id == user_id,
                    Account.active == True,  # noqa: E712
                )
                .with_for_update()
            )
            if row is None:
                raise NotFound("Account not found or access denied")

            now = utcnow_naive()
            result = db.execute(
                update(Transaction)
                .where(
                    Transaction.account_id == account_id,
                    Transaction.user_id == user_id,
                    Transaction.active == True,  # noqa: E712
                )
                .values(active=False, updated_at=now)
            )
            row.active = False
            row.updated_at = now

        logger.info("Deleted account %s and %s transaction(s)", account_id, result.rowcount)

    def _read(self, db: Session, account_id: int, user_id: str) -> AccountDTO | None:
        found = db.execute(_account_with_currency(user_id).where(Account.id == account_id)).first()
        if found is None:
            return None

        row, code, description = found
        balance = compute_balances(db, user_id, [row.id]).get(row.id, ZERO)
        return _to_dto(row, code, description, balance)
