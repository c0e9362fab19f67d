"""Transaction use cases.

Every write validates its input first, then checks that the referenced account,
category and currency belong to the user and are active (concurrently), and only
then touches the ``transactions`` table. Reads re-join account, category and
currency so renamed references never show stale names.
"""

from __future__ import annotations

import logging
import math

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import Select, func, select
from sqlalchemy.orm import Session, sessionmaker

from finance_tracker.core.datetime_utils import as_utc, end_of_day, start_of_day, utcnow_naive
from finance_tracker.core.errors import (
    CategoryNotFound,
    DuplicateTransaction,
    InvalidDateRange,
    NotFound,
    StaleReference,
    StorageError,
    ValidationError,
)
from finance_tracker.core.sanitize import (
    sanitize_string,
    validate_amount,
    validate_numeric_id,
    validate_transaction_date,
)
from finance_tracker.db.constraints import storage_errors
from finance_tracker.models import Account, Category, Currency, Transaction
from finance_tracker.schemas.transaction import (
    CreateTransactionCommand,
    GetTransactionsQuery,
    PaginationDTO,
    TransactionDTO,
    TransactionListDTO,
    TransactionSort,
    UpdateTransactionCommand,
)
from finance_tracker.services.ownership import lock_active_category, verify_references

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 50
MAX_PAGE_SIZE = 100
MAX_PAGE = 10000
MIN_SEARCH_LENGTH = 2
MAX_SEARCH_LENGTH = 100

_SORT_COLUMNS = {
    "transaction_date": Transaction.transaction_date,
    "amount": Transaction.amount,
}


def _enriched() -> Select:
    # Outer joins: a missing reference degrades to placeholder names instead of hiding the row.
    return (
        select(Transaction, Account.name, Category.name, Category.category_type, Currency.code)
        .outerjoin(Account, Account.id == Transaction.account_id)
        .outerjoin(Category, Category.id == Transaction.category_id)
        .outerjoin(Currency, Currency.id == Transaction.currency_id)
    )


def _to_dto(
    row: Transaction,
    account_name: str | None,
    category_name: str | None,
    category_type: str | None,
    currency_code: str | None,
) -> TransactionDTO:
    if not row.id or not row.user_id:
        raise StorageError("Invalid transaction data: missing required fields")

    return TransactionDTO(
        id=row.id,
        user_id=row.user_id,
        transaction_date=as_utc(row.transaction_date),
        account_id=row.account_id,
        account_name=account_name or "Unknown Account",
        category_id=row.category_id,
        category_name=category_name or "Unknown Category",
        category_type=category_type or "Unknown",
        amount=row.amount,
        currency_id=row.currency_id,
        currency_code=currency_code or "Unknown",
        comment=row.comment,
        active=row.active,
        created_at=as_utc(row.created_at),
        updated_at=as_utc(row.updated_at),
    )


def paginate(page: int | None, limit: int | None) -> tuple[int, int]:
    """Clamp page to >= 1 and limit to [1, 100]; missing values get defaults."""

    page = max(1, page or 1)
    limit = min(MAX_PAGE_SIZE, max(1, limit or DEFAULT_PAGE_SIZE))
    return page, limit


class TransactionService:
    def __init__(self, session_factory: sessionmaker[Session]) -> None:
        self._session_factory = session_factory

    def create(self, command: CreateTransactionCommand, user_id: str) -> TransactionDTO:
        validate_numeric_id(command.account_id, "account_id")
        validate_numeric_id(command.category_id, "category_id")
        validate_numeric_id(command.currency_id, "currency_id")
        amount = validate_amount(command.amount)
        transaction_date = validate_transaction_date(command.transaction_date)
        comment = sanitize_string(command.comment)

        verify_references(
            self._session_factory,
            user_id,
            account_id=command.account_id,
            category_id=command.category_id,
            currency_id=command.currency_id,
        )

        with storage_errors(
            "create transaction", on_unique=DuplicateTransaction, on_foreign_key=StaleReference
        ), self._session_factory() as db:
            if not lock_active_category(db, command.category_id, user_id):
                raise CategoryNotFound()
            row = Transaction(
                user_id=user_id,
                transaction_date=transaction_date,
                account_id=command.account_id,
                category_id=command.category_id,
                amount=amount,
                currency_id=command.currency_id,
                comment=comment,
                active=True,
            )
            db.add(row)
            db.commit()

            created = self._read(db, row.id, user_id)

        if created is None:
            raise StorageError("Transaction created but failed to retrieve details")
        logger.info("Created transaction %s for user %s", created.id, user_id)
        return created

    def update(self, transaction_id: int, command: UpdateTransactionCommand, user_id: str) -> TransactionDTO:
        validate_numeric_id(transaction_id, "transaction_id")

        fields = command.model_fields_set
        changes: dict[str, object] = {}
        references: dict[str, int] = {}

        for field in ("account_id", "category_id", "currency_id"):
            value = getattr(command, field)
            if field in fields and value is not None:
                references[field] = validate_numeric_id(value, field)
        if "amount" in fields and command.amount is not None:
            changes["amount"] = validate_amount(command.amount)
        if "transaction_date" in fields and command.transaction_date is not None:
            changes["transaction_date"] = validate_transaction_date(command.transaction_date)
        if "comment" in fields:
            changes["comment"] = sanitize_string(command.comment)

        with storage_errors("verify transaction ownership"), self._session_factory() as db:
            if self._get_active(db, transaction_id, user_id) is None:
                raise NotFound("Transaction not found or access denied")

        if references:
            verify_references(self._session_factory, user_id, **references)
        changes.update(references)

        with storage_errors(
            "update transaction", on_unique=DuplicateTransaction, on_foreign_key=StaleReference
        ), self._session_factory() as db:
            row = self._get_active(db, transaction_id, user_id)
            if row is None:
                raise NotFound("Transaction not found or access denied")
            if "category_id" in references and not lock_active_category(db, references["category_id"], user_id):
                raise CategoryNotFound()
            for key, value in changes.items():
                setattr(row, key, value)
            # Bumped even when nothing else changed.
            row.updated_at = utcnow_naive()
            db.commit()

            updated = self._read(db, transaction_id, user_id)

        if updated is None:
            raise StorageError("Transaction updated but failed to retrieve details")
        logger.info("Updated transaction %s (%s)", transaction_id, ", ".join(sorted(changes)) or "no changes")
        return updated

    def get_by_id(self, transaction_id: int, user_id: str) -> TransactionDTO | None:
        """Only active transactions are visible here."""

        validate_numeric_id(transaction_id, "transaction_id")
        with storage_errors("fetch transaction"), self._session_factory() as db:
            return self._read(db, transaction_id, user_id, active_only=True)

    def list(self, query: GetTransactionsQuery, user_id: str) -> TransactionListDTO:
        page, limit = paginate(query.page, query.limit)
        if page > MAX_PAGE:
            raise ValidationError(f"Page number too high. Maximum allowed page is {MAX_PAGE}")

        date_from = start_of_day(query.date_from) if query.date_from else None
        date_to = end_of_day(query.date_to) if query.date_to else None
        if date_from is not None and date_to is not None and date_from > date_to:
            raise InvalidDateRange("Invalid date range: date_from cannot be later than date_to")

        # Most selective filters first.
        filters = [Transaction.user_id == user_id]
        if not query.include_inactive:
            filters.append(Transaction.active == True)  # noqa: E712
        if query.account_id:
            filters.append(Transaction.account_id == validate_numeric_id(query.account_id, "account_id"))
        if query.category_id:
            filters.append(Transaction.category_id == validate_numeric_id(query.category_id, "category_id"))
        if date_from is not None:
            filters.append(Transaction.transaction_date >= date_from)
        if date_to is not None:
            filters.append(Transaction.transaction_date <= date_to)
        if query.search:
            if len(query.search) > MAX_SEARCH_LENGTH:
                raise ValidationError(f"Search term cannot exceed {MAX_SEARCH_LENGTH} characters")
            search = sanitize_string(query.search)
            if search and len(search) >= MIN_SEARCH_LENGTH:
                filters.append(Transaction.comment.ilike(f"%{search}%"))

        sort = TransactionSort.parse(query.sort)
        column = _SORT_COLUMNS[sort.field]
        ordering = [column.desc() if sort.descending else column.asc(), Transaction.id.asc()]

        with storage_errors("fetch transactions"), self._session_factory() as db:
            total_items = int(db.scalar(select(func.count(Transaction.id)).where(*filters)) or 0)
            rows = db.execute(
                _enriched().where(*filters).order_by(*ordering).offset((page - 1) * limit).limit(limit)
            ).all()

        data: list[TransactionDTO] = []
        for index, (row, account_name, category_name, category_type, currency_code) in enumerate(rows):
            try:
                data.append(_to_dto(row, account_name, category_name, category_type, currency_code))
            except (PydanticValidationError, StorageError) as exc:
                raise StorageError(f"Failed to map transaction at index {index}") from exc

        return TransactionListDTO(
            data=data,
            pagination=PaginationDTO(
                page=page,
                limit=limit,
                total_items=total_items,
                total_pages=math.ceil(total_items / limit),
            ),
        )

    def delete(self, transaction_id: int, user_id: str) -> None:
        validate_numeric_id(transaction_id, "transaction_id")

        with storage_errors("delete transaction"), self._session_factory() as db:
            row = self._get_active(db, transaction_id, user_id)
            if row is None:
                raise NotFound("Transaction not found or access denied")
            row.active = False
            row.updated_at = utcnow_naive()
            db.commit()

        logger.info("Deleted transaction %s", transaction_id)

    @staticmethod
    def _get_active(db: Session, transaction_id: int, user_id: str) -> Transaction | None:
        return db.scalar(
            select(Transaction).where(
                Transaction.id == transaction_id,
                Transaction.user_id == user_id,
                Transaction.active == True,  # noqa: E712
            )
        )

    @staticmethod
    def _read(db: Session, transaction_id: int, user_id: str, active_only: bool = False) -> TransactionDTO | None:
        stmt = _enriched().where(Transaction.id == transaction_id, Transaction.user_id == user_id)
        if active_only:
            stmt = stmt.where(Transaction.active == True)  # noqa: E712

        found = db.execute(stmt).first()
        if found is None:
            return None
        return _to_dto(*found)

