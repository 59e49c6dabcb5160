"""Bearer-token authentication and permission dependencies.

Tokens are issued elsewhere (login and registration live outside this
service); this module verifies them, loads the caller and checks the role's
permissions through the cached role lookup.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, timedelta, timezone

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from sqlalchemy.orm import Session

from fuelwise.config import get_settings
from fuelwise.db.dependencies import get_db
from fuelwise.errors import AccessDeniedError, AuthenticationError
from fuelwise.models.user import User
from fuelwise.services.permissions import get_permissions_for_role

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


def create_access_token(user_id: int, role_id: int, *, expires_delta: timedelta | None = None) -> str:
    """Sign a JWT whose ``sub`` is the user id."""

    settings = get_settings()
    expire = datetime.now(timezone.utc) + (
        expires_delta if expires_delta is not None else timedelta(minutes=settings.access_token_expire_minutes)
    )
    claims = {"sub": str(user_id), "role_id": role_id, "exp": expire}
    return jwt.encode(claims, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> User:
    if credentials is None:
        raise AuthenticationError("Missing bearer token.")

    settings = get_settings()
    try:
        claims = jwt.decode(credentials.credentials, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError as exc:
        raise AuthenticationError("Could not validate credentials.") from exc

    subject = claims.get("sub")
    if subject is None or not str(subject).isdigit():
        raise AuthenticationError("Could not validate credentials.")

    user = db.get(User, int(subject))
    if user is None or not user.is_active:
        raise AuthenticationError("Could not validate credentials.")
    return user


def user_has_permissions(db: Session, user: User, *permission_names: str) -> bool:
    granted = get_permissions_for_role(db, user.role_id)
    return all(name in granted for name in permission_names)


def require_permissions(*permission_names: str) -> Callable[..., User]:
    """Dependency factory: 403 unless the caller's role grants every named permission."""

    def dependency(
        user: User = Depends(get_current_user),
        db: Session = Depends(get_db),
    ) -> User:
        granted = get_permissions_for_role(db, user.role_id)
        missing = [name for name in permission_names if name not in granted]
        if missing:
            logger.warning("auth.permission_denied user_id=%s missing=%s", user.id, ",".join(missing))
            raise AccessDeniedError("You do not have permission to perform this action.")
        return user

    return dependency
