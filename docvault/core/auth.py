import uuid
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from docvault.core.config import get_settings
from docvault.core.security import verify_token
from docvault.domains.identity.entities import Principal

# Токены выдает внешний сервис идентификации
bearer_scheme = HTTPBearer(auto_error=False)


def _unauthorized(message: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=message,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_principal(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme)
) -> Principal:
    """Принципал из токена, выданного внешним сервисом идентификации"""
    if credentials is None or not credentials.credentials:
        raise _unauthorized("Access denied. No token provided.")

    payload = verify_token(credentials.credentials)
    if payload is None:
        raise _unauthorized("Invalid token.")

    try:
        user_id = uuid.UUID(str(payload.get("sub")))
    except ValueError:
        raise _unauthorized("Invalid token.")

    username = payload.get("username")
    if not username:
        raise _unauthorized("Invalid token.")

    return Principal(
        id=user_id,
        username=username,
        plan=payload.get("plan") or get_settings().default_plan
    )
