"""
Exam Cell Question Bank - Access Tokens
Users live in the institution backend; the API only trusts signed
sub / name / role claims.
"""
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from jose import ExpiredSignatureError, JWTError, jwt

from config.settings import get_settings

logger = logging.getLogger(__name__)


def create_access_token(data: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    """
    Sign a set of claims.

    Args:
        data: Claims; the API reads 'sub', 'name' and 'role'
        expires_delta: Lifetime, JWT_ACCESS_TOKEN_EXPIRE_MINUTES when omitted

    Returns:
        Encoded JWT
    """
    settings = get_settings()
    issued_at = datetime.now(timezone.utc)
    lifetime = expires_delta or timedelta(minutes=settings.jwt_access_token_expire_minutes)

    claims = {**data, "iat": issued_at, "exp": issued_at + lifetime}
    return jwt.encode(claims, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def issue_user_token(user_id: str, role: str, name: Optional[str] = None, minutes: Optional[int] = None) -> str:
    """Token for one user of the question bank API."""
    lifetime = timedelta(minutes=minutes) if minutes else None
    return create_access_token({"sub": user_id, "name": name or user_id, "role": role}, expires_delta=lifetime)


def verify_token(token: str) -> Optional[Dict[str, Any]]:
    """Decoded claims, or None for an expired, tampered or malformed token."""
    settings = get_settings()
    try:
        return jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
    except ExpiredSignatureError:
        logger.debug("Rejected expired access token")
    except JWTError as e:
        logger.debug(f"Rejected access token: {e}")
    return None
