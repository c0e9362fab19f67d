from finance_tracker.services.accounts import AccountService
from finance_tracker.services.categories import CategoryService
from finance_tracker.services.currencies import CurrencyService
from finance_tracker.services.transactions import TransactionService

__all__ = ["AccountService", "CategoryService", "CurrencyService", "TransactionService"]
