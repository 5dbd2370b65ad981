"""
Authentication for WordGuard Gateway

Admin bearer tokens and caller identity for the content filter.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from pydantic import BaseModel

from .config import get_settings

logger = logging.getLogger(__name__)

security = HTTPBearer()


class AuthenticationError(Exception):
    """Authentication error."""

    pass


class AdminPrincipal(BaseModel):
    """Administrator identified by a verified token."""

    username: str


class ApiKeyIdentity(BaseModel):
    """Caller identity attached to a relay request by upstream API key auth."""

    id: str
    name: str = "Unknown"


class AuthManager:
    """Admin token issuing and verification."""

    @staticmethod
    def create_access_token(
        data: dict, expires_delta: Optional[timedelta] = None
    ) -> str:
        """Create a JWT access token."""
        settings = get_settings()
        to_encode = data.copy()
        expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=15))
        to_encode.update({"exp": expire})
        return jwt.encode(to_encode, settings.admin_secret_key, algorithm=settings.admin_algorithm)

    @staticmethod
    def verify_token(token: str) -> dict:
        """Verify and decode a JWT token."""
        settings = get_settings()
        try:
            return jwt.decode(token, settings.admin_secret_key, algorithms=[settings.admin_algorithm])
        except JWTError:
            raise AuthenticationError("Invalid token")


def get_current_admin(
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> AdminPrincipal:
    """Resolve the administrator from a bearer token carrying ``is_admin``."""
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    try:
        payload = AuthManager.verify_token(credentials.credentials)
    except AuthenticationError:
        raise credentials_exception

    username = payload.get("sub")
    if username is None:
        raise credentials_exception
    if not payload.get("is_admin"):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required",
        )

    return AdminPrincipal(username=username)


def get_api_key_identity(request: Request) -> Optional[ApiKeyIdentity]:
    """Caller identity set on ``request.state.api_key`` by API key auth, if any."""
    api_key = getattr(request.state, "api_key", None)
    if api_key is None:
        return None
    if isinstance(api_key, ApiKeyIdentity):
        return api_key
    if isinstance(api_key, dict):
        return ApiKeyIdentity(**api_key)
    return ApiKeyIdentity(id=str(api_key.id), name=getattr(api_key, "name", None) or "Unknown")
