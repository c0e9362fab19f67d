from __future__ import annotations

from jose import jwt

from finance_tracker.core.config import Settings


def decode_access_token(token: str, settings: Settings) -> str:
    payload = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    sub = payload.get("sub")
    if not sub:
        raise ValueError("Missing sub")
    return str(sub)
