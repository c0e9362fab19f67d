"""
Pytest fixtures for testing
"""
from datetime import timedelta

import pytest
from sqlalchemy.orm import Session, sessionmaker

from finance_tracker.core.datetime_utils import utcnow_naive
from finance_tracker.db.init_db import ensure_schema, ensure_seed_data
from finance_tracker.db.session import create_db_engine, create_session_factory
from finance_tracker.models import Currency
from finance_tracker.schemas.account import CreateAccountCommand
from finance_tracker.schemas.category import CreateCategoryCommand
from finance_tracker.schemas.transaction import CreateTransactionCommand
from finance_tracker.services import AccountService, CategoryService, CurrencyService, TransactionService


@pytest.fixture
def db_engine(tmp_path):
    """File-backed SQLite engine; worker threads need their own connections."""
    engine = create_db_engine(f"sqlite:///{tmp_path / 'finance.db'}")
    ensure_schema(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(db_engine) -> sessionmaker[Session]:
    factory = create_session_factory(db_engine)
    with factory() as db:
        ensure_seed_data(db)
    return factory


@pytest.fixture
def user_id():
    return "2f6c1a52-8d0e-4b8e-9a51-6f0b3b6f7c11"


@pytest.fixture
def other_user_id():
    return "9b1e0d7e-3c55-4a0b-8f77-2d4c6f1a0e22"


@pytest.fixture
def currency_ids(session_factory):
    """ISO code -> id for the seeded currencies"""
    with session_factory() as db:
        return {c.code: c.id for c in db.query(Currency).all()}


@pytest.fixture
def currency_service(session_factory):
    return CurrencyService(session_factory)


@pytest.fixture
def account_service(session_factory):
    return AccountService(session_factory)


@pytest.fixture
def category_service(session_factory):
    return CategoryService(session_factory)


@pytest.fixture
def transaction_service(session_factory):
    return TransactionService(session_factory)


@pytest.fixture
def checking(account_service, currency_ids, user_id):
    return account_service.create(CreateAccountCommand(name="Checking", currency_id=currency_ids["USD"]), user_id)


@pytest.fixture
def salary(category_service, user_id):
    return category_service.create(CreateCategoryCommand(name="Salary", category_type="income"), user_id)


@pytest.fixture
def food(category_service, user_id):
    return category_service.create(CreateCategoryCommand(name="Food", category_type="expense"), user_id)


@pytest.fixture
def make_transaction(transaction_service, checking, currency_ids, user_id):
    """Factory for transactions against the Checking account"""

    def _make(category, amount="10.00", days_ago=1, comment=None, account=None):
        command = CreateTransactionCommand(
            transaction_date=utcnow_naive() - timedelta(days=days_ago),
            account_id=(account or checking).id,
            category_id=category.id,
            amount=amount,
            currency_id=currency_ids["USD"],
            comment=comment,
        )
        return transaction_service.create(command, user_id)

    return _make
