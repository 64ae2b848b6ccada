"""
Authentication Dependency for FastAPI.

- Extracts and validates the HS256 bearer JWT from the Authorization header
- Returns an AuthUser for use in route handlers
- Raises HTTPException 401 if unauthorized, 403 if a permission is missing

Claims:
- sub          → user id (owner of conversations)
- email        → optional, logged only
- permissions  → list of granted permissions (see config/permissions.py)
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, Optional

import jwt
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from tenq.config.permissions import is_valid_permission
from tenq.config.settings import Config
from tenq.domain.exceptions import AccessDeniedError
from tenq.domain.value_objects.user_id import UserId

logger = logging.getLogger(__name__)


@dataclass
class AuthUser:
    user_id: UserId
    email: Optional[str] = None
    permissions: frozenset[str] = field(default_factory=frozenset)

    def has_permission(self, permission: str) -> bool:
        return permission in self.permissions

    def require(self, permission: str) -> None:
        if not self.has_permission(permission):
            raise AccessDeniedError()


security = HTTPBearer(auto_error=False)


async def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> AuthUser:
    """
    Extract and validate user from JWT token.

    Raises:
        HTTPException 401 if token is missing, invalid, expired, or has no subject
    """
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
        )

    try:
        claims = jwt.decode(
            credentials.credentials,
            Config.SERVICE_AUTH_SECRET,
            algorithms=["HS256"],
            audience=Config.SERVICE_AUTH_AUDIENCE,
            issuer=Config.SERVICE_AUTH_ISSUER,
            options={"require": ["exp", "iat", "aud", "iss", "sub"]},
        )
    except jwt.ExpiredSignatureError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token has expired",
        )
    except jwt.InvalidTokenError as e:
        logger.info("Rejected bearer token: %s", e)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token",
        )

    subject = str(claims.get("sub") or "").strip()
    if not subject:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing required claims in token",
        )

    raw_permissions = claims.get("permissions") or []
    if not isinstance(raw_permissions, list):
        raw_permissions = []
    permissions = frozenset(
        p for p in raw_permissions if isinstance(p, str) and is_valid_permission(p)
    )

    # Rate limiting keys on the caller, see dependencies/admission.py
    request.state.user_id = subject
    return AuthUser(
        user_id=UserId(subject),
        email=claims.get("email"),
        permissions=permissions,
    )


def require_permission(permission: str) -> Callable:
    """Dependency factory: the authenticated caller must hold `permission`."""

    async def dependency(current_user: AuthUser = Depends(get_current_user)) -> AuthUser:
        try:
            current_user.require(permission)
        except AccessDeniedError as e:
            logger.info(
                "Permission %s denied for user=%s", permission, current_user.user_id
            )
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e)) from e
        return current_user

    return dependency
