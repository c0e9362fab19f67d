from __future__ import annotations

import logging

from fastapi import Depends, HTTPException, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError
from sqlalchemy.orm import Session, sessionmaker

from finance_tracker.core.config import Settings
from finance_tracker.core.security import decode_access_token
from finance_tracker.services import AccountService, CategoryService, CurrencyService, TransactionService

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_session_factory(request: Request) -> sessionmaker[Session]:
    return request.app.state.session_factory


def get_current_user_id(
    request: Request,
    cred: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    settings: Settings = Depends(get_settings),
) -> str:
    token: str | None = None
    if cred and cred.credentials:
        token = cred.credentials
    else:
        token = request.cookies.get(settings.auth_cookie_name)

    if not token:
        raise HTTPException(status_code=401, detail="Not authenticated")

    try:
        return decode_access_token(token, settings)
    except (JWTError, ValueError):
        logger.info("Rejected invalid access token")
        raise HTTPException(status_code=401, detail="Invalid token")


def get_currency_service(session_factory: sessionmaker[Session] = Depends(get_session_factory)) -> CurrencyService:
    return CurrencyService(session_factory)


def get_account_service(session_factory: sessionmaker[Session] = Depends(get_session_factory)) -> AccountService:
    return AccountService(session_factory)


def get_category_service(session_factory: sessionmaker[Session] = Depends(get_session_factory)) -> CategoryService:
    return CategoryService(session_factory)


def get_transaction_service(
    session_factory: sessionmaker[Session] = Depends(get_session_factory),
) -> TransactionService:
    return TransactionService(session_factory)
