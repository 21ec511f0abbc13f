"""
Rate limiter configuration for API endpoints.
Shared module to avoid circular imports.
"""
from fastapi import Request
from slowapi import Limiter
from slowapi.util import get_remote_address

from api.auth.utils import verify_token
from config.settings import get_settings


def user_or_address(request: Request) -> str:
    """Limit per authenticated user; fall back to the client address."""
    authorization = request.headers.get("Authorization", "")
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() == "bearer" and token:
        payload = verify_token(token)
        if payload and payload.get("sub"):
            return f"user:{payload['sub']}"
    return get_remote_address(request)


# Rate limiter instance - shared across all routes
limiter = Limiter(key_func=user_or_address, enabled=get_settings().rate_limit_enabled)
