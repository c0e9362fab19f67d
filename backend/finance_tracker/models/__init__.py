from finance_tracker.models.account import Account
from finance_tracker.models.base import Base
from finance_tracker.models.category import Category
from finance_tracker.models.currency import Currency
from finance_tracker.models.transaction import Transaction

__all__ = ["Account", "Base", "Category", "Currency", "Transaction"]
