"""
FastAPI dependency injection for authentication and like sessions
"""

import logging
from typing import Any, Dict, Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

import app.services.auth_service as auth_module
from app.models.user import User

logger = logging.getLogger(__name__)

# Security scheme for Firebase ID tokens sent as Bearer tokens
security = HTTPBearer()
# optional bearer that doesn't raise when missing
security_optional = HTTPBearer(auto_error=False)


def _credentials_exception(detail: str = "Could not validate credentials") -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_token_claims(
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> Dict[str, Any]:
    """
    Dependency returning the verified Firebase ID token claims

    Raises:
        HTTPException: If the token is missing or invalid
    """
    token = credentials.credentials
    if not token:
        raise _credentials_exception()
    try:
        claims = await auth_module.verify_id_token(token)
    except ValueError as e:
        logger.debug("Token rejected: %s", e)
        raise _credentials_exception()
    if not claims.get("uid"):
        raise _credentials_exception("Invalid Firebase ID token (missing UID).")
    return claims


async def get_current_user(
    claims: Dict[str, Any] = Depends(get_token_claims),
) -> User:
    """
    Dependency to get the current authenticated user with a profile document

    Raises:
        HTTPException: If the token is invalid or the profile does not exist
    """
    user = await auth_module.auth_service.get_current_user(claims)
    if user is None:
        raise _credentials_exception("Authenticated user has no profile.")
    return user


async def get_optional_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security_optional),
) -> Optional[User]:
    """
    Dependency to optionally get current user (doesn't raise error if not authenticated)
    """
    if not credentials or not credentials.credentials:
        return None
    try:
        claims = await auth_module.verify_id_token(credentials.credentials)
    except ValueError:
        return None
    return await auth_module.auth_service.get_current_user(claims)


async def require_admin(current_user: User = Depends(get_current_user)) -> User:
    """Require the current user to be an administrator"""
    if not current_user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Insufficient permissions. Required role: admin",
        )
    return current_user
