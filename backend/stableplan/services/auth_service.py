"""
Bearer token authentication.

Identity and sessions are managed elsewhere; this module only issues and
verifies HS256 access tokens and resolves the calling user.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from sqlalchemy.orm import Session

from stableplan.config import settings
from stableplan.database import get_db
from stableplan.models.user import User, UserRole

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)


class AuthenticationError(Exception):
    """Raised when a token cannot be verified."""
    pass


def create_access_token(user_id: int, expires_delta: Optional[timedelta] = None) -> str:
    """
    Create an access token whose subject is ``user_id``.

    Args:
        user_id: Database ID of the user
        expires_delta: Lifetime of the token; defaults to the configured lifetime

    Returns:
        str: Encoded JWT
    """
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(minutes=settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES))

    claims = {
        "sub": str(user_id),
        "exp": expire,
        "iat": now,
        "type": "access",
    }
    return jwt.encode(claims, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def verify_token(token: str) -> int:
    """
    Verify an access token and return the user ID it was issued for.

    Raises:
        AuthenticationError: bad signature, expired, wrong type or malformed subject
    """
    try:
        payload = jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    except JWTError as e:
        logger.warning(f"JWT verification failed: {str(e)}")
        raise AuthenticationError(f"Invalid token: {str(e)}")

    if payload.get("type") != "access":
        logger.warning(f"Invalid token type: {payload.get('type')}")
        raise AuthenticationError("Invalid token type")

    subject = payload.get("sub")
    if subject is None:
        raise AuthenticationError("Invalid token: missing subject")

    try:
        return int(subject)
    except ValueError:
        raise AuthenticationError("Invalid token: malformed subject")


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db),
) -> User:
    """
    FastAPI dependency returning the user named by the bearer token.

    Raises:
        HTTPException: 401 without a valid token or when the user no longer exists
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    if credentials is None:
        raise credentials_exception

    try:
        user_id = verify_token(credentials.credentials)
    except AuthenticationError as e:
        logger.warning(f"Authentication failed: {str(e)}")
        raise credentials_exception

    user = db.get(User, user_id)
    if user is None:
        logger.warning(f"Token for unknown user {user_id}")
        raise credentials_exception

    return user


def require_role(*roles: UserRole) -> Callable:
    """
    Dependency factory restricting an endpoint to the given roles.

    Admins always pass.

    Example:
        >>> @router.post("", dependencies=[Depends(require_role(UserRole.TRAINER))])
    """
    async def checker(current_user: User = Depends(get_current_user)) -> User:
        if current_user.is_admin or current_user.role in roles:
            return current_user
        logger.warning(f"User {current_user.id} with role {current_user.role.value} denied")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Insufficient role for this action",
        )

    return checker
