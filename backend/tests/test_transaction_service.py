"""
Tests for transaction writes, reads and listing
"""
from datetime import date, timedelta
from decimal import Decimal

import pytest

from finance_tracker.core.datetime_utils import utcnow_naive
from finance_tracker.core.errors import (
    AccountNotFound,
    CategoryNotFound,
    CurrencyNotFound,
    InvalidDateRange,
    NotFound,
    ValidationError,
)
from finance_tracker.models import Transaction
from finance_tracker.schemas.account import CreateAccountCommand
from finance_tracker.schemas.category import CreateCategoryCommand
from finance_tracker.schemas.transaction import (
    CreateTransactionCommand,
    GetTransactionsQuery,
    TransactionSort,
    UpdateTransactionCommand,
)
from finance_tracker.services.transactions import _to_dto


def _command(account, category, currency_id, **overrides):
    values = dict(
        transaction_date=utcnow_naive() - timedelta(days=1),
        account_id=account.id,
        category_id=category.id,
        amount=Decimal("25.00"),
        currency_id=currency_id,
        comment="Weekly groceries",
    )
    values.update(overrides)
    return CreateTransactionCommand(**values)


def test_create_returns_enriched_row(transaction_service, checking, food, currency_ids, user_id):
    tx = transaction_service.create(_command(checking, food, currency_ids["USD"]), user_id)

    assert tx.account_name == "Checking"
    assert tx.category_name == "Food"
    assert tx.category_type == "expense"
    assert tx.currency_code == "USD"
    assert tx.amount == Decimal("25.00")
    assert tx.comment == "Weekly groceries"
    assert tx.active is True
    assert tx.transaction_date.tzinfo is not None


def test_create_sanitizes_comment(transaction_service, checking, food, currency_ids, user_id):
    tx = transaction_service.create(
        _command(checking, food, currency_ids["USD"], comment="  <script>x</script>  "), user_id
    )
    assert tx.comment == "scriptx/script"

    blank = transaction_service.create(_command(checking, food, currency_ids["USD"], comment=""), user_id)
    assert blank.comment is None


def test_create_rejects_date_far_in_future(transaction_service, checking, food, currency_ids, user_id):
    future = utcnow_naive() + timedelta(days=400)
    with pytest.raises(ValidationError):
        transaction_service.create(_command(checking, food, currency_ids["USD"], transaction_date=future), user_id)


@pytest.mark.parametrize("amount", ["0", "-1.00", "1.001", "10000000000"])
def test_create_rejects_bad_amount(transaction_service, checking, food, currency_ids, user_id, amount):
    with pytest.raises(ValidationError):
        transaction_service.create(_command(checking, food, currency_ids["USD"], amount=Decimal(amount)), user_id)


def test_create_rejects_foreign_account(transaction_service, account_service, food, currency_ids, user_id, other_user_id):
    theirs = account_service.create(CreateAccountCommand(name="Theirs", currency_id=currency_ids["USD"]), other_user_id)
    with pytest.raises(AccountNotFound):
        transaction_service.create(_command(theirs, food, currency_ids["USD"]), user_id)


def test_create_rejects_inactive_category(transaction_service, category_service, checking, currency_ids, user_id):
    old = category_service.create(CreateCategoryCommand(name="Old"), user_id)
    category_service.delete(old.id, user_id)
    with pytest.raises(CategoryNotFound):
        transaction_service.create(_command(checking, old, currency_ids["USD"]), user_id)


def test_create_rejects_unknown_currency(transaction_service, checking, food, user_id):
    with pytest.raises(CurrencyNotFound):
        transaction_service.create(_command(checking, food, 999), user_id)


def test_reference_errors_reported_account_first(transaction_service, checking, food, user_id, other_user_id):
    # Every reference is wrong for this user; the account is reported.
    with pytest.raises(AccountNotFound):
        transaction_service.create(_command(checking, food, 999), other_user_id)


def test_get_by_id_hides_other_users_and_deleted(transaction_service, food, make_transaction, user_id, other_user_id):
    tx = make_transaction(food)
    assert transaction_service.get_by_id(tx.id, user_id).id == tx.id
    assert transaction_service.get_by_id(tx.id, other_user_id) is None

    transaction_service.delete(tx.id, user_id)
    assert transaction_service.get_by_id(tx.id, user_id) is None


def test_update_partial(transaction_service, food, salary, make_transaction, user_id):
    tx = make_transaction(food, amount="10.00", comment="lunch")

    updated = transaction_service.update(tx.id, UpdateTransactionCommand(amount=Decimal("12.5")), user_id)
    assert updated.amount == Decimal("12.50")
    assert updated.comment == "lunch"
    assert updated.updated_at >= tx.updated_at

    moved = transaction_service.update(tx.id, UpdateTransactionCommand(category_id=salary.id), user_id)
    assert moved.category_name == "Salary"
    assert moved.category_type == "income"

    cleared = transaction_service.update(tx.id, UpdateTransactionCommand(comment=None), user_id)
    assert cleared.comment is None


def test_update_empty_payload_bumps_timestamp(transaction_service, food, make_transaction, user_id):
    tx = make_transaction(food)
    updated = transaction_service.update(tx.id, UpdateTransactionCommand(), user_id)
    assert updated.amount == tx.amount
    assert updated.updated_at >= tx.updated_at


def test_update_validates_new_references(transaction_service, food, make_transaction, user_id):
    tx = make_transaction(food)
    with pytest.raises(CategoryNotFound):
        transaction_service.update(tx.id, UpdateTransactionCommand(category_id=4242), user_id)
    with pytest.raises(ValidationError):
        transaction_service.update(tx.id, UpdateTransactionCommand(amount=Decimal("-3")), user_id)


def test_update_requires_owned_active_row(transaction_service, food, make_transaction, user_id, other_user_id):
    tx = make_transaction(food)
    with pytest.raises(NotFound):
        transaction_service.update(tx.id, UpdateTransactionCommand(comment="x"), other_user_id)

    transaction_service.delete(tx.id, user_id)
    with pytest.raises(NotFound):
        transaction_service.update(tx.id, UpdateTransactionCommand(comment="x"), user_id)
    with pytest.raises(NotFound):
        transaction_service.delete(tx.id, user_id)


def test_list_rejects_inverted_date_range(transaction_service, user_id):
    query = GetTransactionsQuery(date_from=date(2024, 1, 1), date_to=date(2023, 12, 31))
    with pytest.raises(InvalidDateRange):
        transaction_service.list(query, user_id)


def test_list_rejects_huge_page_and_long_search(transaction_service, user_id):
    with pytest.raises(ValidationError):
        transaction_service.list(GetTransactionsQuery(page=10001), user_id)
    with pytest.raises(ValidationError):
        transaction_service.list(GetTransactionsQuery(search="x" * 101), user_id)


def test_list_pagination(transaction_service, food, make_transaction, user_id):
    for day in range(1, 6):
        make_transaction(food, days_ago=day)

    result = transaction_service.list(GetTransactionsQuery(page=2, limit=2), user_id)
    assert result.pagination.model_dump() == {"page": 2, "limit": 2, "total_items": 5, "total_pages": 3}
    assert len(result.data) == 2

    beyond = transaction_service.list(GetTransactionsQuery(page=9, limit=2), user_id)
    assert beyond.data == []
    assert beyond.pagination.total_items == 5


def test_list_clamps_limit_and_page(transaction_service, food, make_transaction, user_id):
    make_transaction(food)
    result = transaction_service.list(GetTransactionsQuery(page=0, limit=500), user_id)
    assert result.pagination.page == 1
    assert result.pagination.limit == 100

    defaults = transaction_service.list(GetTransactionsQuery(), user_id)
    assert defaults.pagination.limit == 50


def test_list_empty(transaction_service, user_id):
    result = transaction_service.list(GetTransactionsQuery(), user_id)
    assert result.data == []
    assert result.pagination.total_pages == 0


def test_list_sorting(transaction_service, food, make_transaction, user_id):
    oldest = make_transaction(food, amount="30.00", days_ago=3)
    middle = make_transaction(food, amount="10.00", days_ago=2)
    newest = make_transaction(food, amount="20.00", days_ago=1)

    def ids(sort):
        return [t.id for t in transaction_service.list(GetTransactionsQuery(sort=sort), user_id).data]

    assert ids(None) == [newest.id, middle.id, oldest.id]
    assert ids("transaction_date:asc") == [oldest.id, middle.id, newest.id]
    assert ids("amount:asc") == [middle.id, newest.id, oldest.id]
    assert ids("amount:desc") == [oldest.id, newest.id, middle.id]
    assert ids("comment; DROP TABLE transactions") == [newest.id, middle.id, oldest.id]


def test_sort_parse_fallback():
    assert TransactionSort.parse("amount:asc") is TransactionSort.AMOUNT_ASC
    assert TransactionSort.parse("bogus") is TransactionSort.DATE_DESC
    assert TransactionSort.parse(None) is TransactionSort.DATE_DESC


def test_list_filters(transaction_service, account_service, food, salary, make_transaction, currency_ids, user_id):
    savings = account_service.create(CreateAccountCommand(name="Savings", currency_id=currency_ids["USD"]), user_id)
    lunch = make_transaction(food, comment="Lunch at Bistro", days_ago=2)
    pay = make_transaction(salary, comment="Monthly pay", account=savings, days_ago=10)

    by_account = transaction_service.list(GetTransactionsQuery(account_id=savings.id), user_id)
    assert [t.id for t in by_account.data] == [pay.id]

    by_category = transaction_service.list(GetTransactionsQuery(category_id=food.id), user_id)
    assert [t.id for t in by_category.data] == [lunch.id]

    searched = transaction_service.list(GetTransactionsQuery(search="bistro"), user_id)
    assert [t.id for t in searched.data] == [lunch.id]

    # One-character terms are ignored.
    short = transaction_service.list(GetTransactionsQuery(search="z"), user_id)
    assert short.pagination.total_items == 2

    start = (utcnow_naive() - timedelta(days=5)).date()
    recent = transaction_service.list(GetTransactionsQuery(date_from=start), user_id)
    assert [t.id for t in recent.data] == [lunch.id]

    pay_day = (utcnow_naive() - timedelta(days=10)).date()
    same_day = transaction_service.list(GetTransactionsQuery(date_from=pay_day, date_to=pay_day), user_id)
    assert [t.id for t in same_day.data] == [pay.id]


def test_list_include_inactive(transaction_service, food, make_transaction, user_id, other_user_id):
    tx = make_transaction(food)
    transaction_service.delete(tx.id, user_id)

    assert transaction_service.list(GetTransactionsQuery(), user_id).data == []
    [deleted] = transaction_service.list(GetTransactionsQuery(include_inactive=True), user_id).data
    assert deleted.active is False
    assert transaction_service.list(GetTransactionsQuery(include_inactive=True), other_user_id).data == []


def test_create_rechecks_category_inside_write(
    transaction_service, category_service, checking, currency_ids, user_id, monkeypatch
):
    old = category_service.create(CreateCategoryCommand(name="Old"), user_id)
    # The category is deleted after the ownership batch passed.
    monkeypatch.setattr("finance_tracker.services.transactions.verify_references", lambda *args, **kwargs: None)
    category_service.delete(old.id, user_id)

    with pytest.raises(CategoryNotFound):
        transaction_service.create(_command(checking, old, currency_ids["USD"]), user_id)
    assert transaction_service.list(GetTransactionsQuery(include_inactive=True), user_id).data == []


def test_update_rechecks_new_category_inside_write(
    transaction_service, category_service, food, make_transaction, user_id, monkeypatch
):
    tx = make_transaction(food, comment="kept")
    old = category_service.create(CreateCategoryCommand(name="Old"), user_id)
    monkeypatch.setattr("finance_tracker.services.transactions.verify_references", lambda *args, **kwargs: None)
    category_service.delete(old.id, user_id)

    with pytest.raises(CategoryNotFound):
        transaction_service.update(tx.id, UpdateTransactionCommand(category_id=old.id), user_id)
    assert transaction_service.get_by_id(tx.id, user_id).category_id == food.id

    edited = transaction_service.update(tx.id, UpdateTransactionCommand(comment="edited"), user_id)
    assert edited.comment == "edited"


def test_missing_joins_fall_back_to_placeholders(user_id):
    now = utcnow_naive()
    row = Transaction(
        id=7,
        user_id=user_id,
        transaction_date=now,
        account_id=1,
        category_id=2,
        amount=Decimal("5.00"),
        currency_id=3,
        comment=None,
        active=True,
        created_at=now,
        updated_at=now,
    )

    dto = _to_dto(row, None, None, None, None)
    assert dto.account_name == "Unknown Account"
    assert dto.category_name == "Unknown Category"
    assert dto.category_type == "Unknown"
    assert dto.currency_code == "Unknown"
