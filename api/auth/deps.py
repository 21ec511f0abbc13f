"""
Authentication dependencies for FastAPI routes - bearer JWT
"""
import logging
from dataclasses import dataclass
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from api.auth.permissions import Role
from api.auth.utils import verify_token

logger = logging.getLogger("api.auth.deps")

# HTTP Bearer security scheme
security = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class CurrentUser:
    """Identity taken from the token claims. Users live in the institution backend."""
    id: str
    name: str
    role: str


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security)
) -> CurrentUser:
    """
    Resolve the bearer token into a CurrentUser.

    Raises HTTPException 401 if the token is missing, invalid or carries an unknown role.
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Session is invalid or has expired",
        headers={"WWW-Authenticate": "Bearer"},
    )

    if not credentials:
        raise credentials_exception

    payload = verify_token(credentials.credentials)
    if payload is None:
        logger.warning("Token verification failed")
        raise credentials_exception

    subject = payload.get("sub")
    role = payload.get("role")
    if not subject or role not in {r.value for r in Role}:
        logger.warning(f"Token rejected: sub={subject!r} role={role!r}")
        raise credentials_exception

    return CurrentUser(id=str(subject), name=payload.get("name") or str(subject), role=role)

