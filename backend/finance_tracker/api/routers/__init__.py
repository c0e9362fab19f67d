from fastapi import APIRouter

from finance_tracker.api.routers import accounts, categories, currencies, transactions

api_router = APIRouter()
api_router.include_router(currencies.router)
api_router.include_router(accounts.router)
api_router.include_router(categories.router)
api_router.include_router(transactions.router)
