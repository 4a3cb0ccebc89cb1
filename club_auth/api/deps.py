"""
Dependency injection for FastAPI endpoints.
Wires the auth service with its stores and provides the current user.
"""
from functools import lru_cache
from typing import Optional
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession
import structlog

from ..core.database import get_db
from ..core.security import CredentialHasher, TokenIssuer, decode_access_token
from ..interfaces.notifier_interface import INotifier
from ..repositories import TokenRepository, UserRepository
from ..schemas.user_schemas import PublicUser
from ..services.auth_service import AuthService
from ..services.notification_service import SmtpNotifier

logger = structlog.get_logger()
security = HTTPBearer(auto_error=False)


@lru_cache()
def get_auth_service() -> AuthService:
    """Process-wide auth service; it holds no per-request state."""
    return AuthService(
        user_repository=UserRepository(),
        token_repository=TokenRepository(),
        hasher=CredentialHasher(),
        token_issuer=TokenIssuer(),
    )


@lru_cache()
def get_notifier() -> INotifier:
    return SmtpNotifier()


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: AsyncSession = Depends(get_db),
    auth_service: AuthService = Depends(get_auth_service)
) -> PublicUser:
    """
    Resolve the bearer token to the signed-in user.

    Raises:
        HTTPException: 401 if the token is missing, invalid, expired, or
            its user no longer exists
    """
    unauthorized = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Unauthorized",
        headers={"WWW-Authenticate": "Bearer"},
    )
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise unauthorized

    payload = decode_access_token(credentials.credentials)
    if payload is None:
        raise unauthorized

    user = await auth_service.get_user_by_id(db, payload["sub"])
    if user is None:
        logger.info("Bearer token for a deleted account", user_id=payload["sub"])
        raise unauthorized

    return user
