"""
Authentication utilities for the Exam Cell API
"""
from api.auth.utils import (
    create_access_token,
    issue_user_token,
    verify_token,
)
from api.auth.deps import (
    CurrentUser,
    get_current_user,
)
from api.auth.permissions import Role, Permission, has_permission, require_permission

__all__ = [
    "create_access_token",
    "issue_user_token",
    "verify_token",
    "CurrentUser",
    "get_current_user",
    "Role",
    "Permission",
    "has_permission",
    "require_permission",
]
