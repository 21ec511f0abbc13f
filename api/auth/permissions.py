"""
Role-Based Access Control (RBAC) System
Permissions for faculty, exam cell and admin users.
"""
from enum import Enum
from typing import Any, Callable, List, Set
from functools import wraps
from fastapi import HTTPException, status


class Role(str, Enum):
    """User roles"""
    FACULTY = "faculty"
    EXAM_CELL = "exam_cell"
    ADMIN = "admin"


class Permission(str, Enum):
    """System permissions"""
    # Faculty
    BUILD_QUESTION_BANK = "build_question_bank"
    SUBMIT_QUESTION_BANK = "submit_question_bank"
    VIEW_OWN_SUBMISSIONS = "view_own_submissions"

    # Exam cell
    VIEW_ALL_SUBMISSIONS = "view_all_submissions"
    REVIEW_SUBMISSIONS = "review_submissions"
    EXPORT_QUESTION_PAPER = "export_question_paper"


ROLE_PERMISSIONS: dict[Role, Set[Permission]] = {
    Role.FACULTY: {
        Permission.BUILD_QUESTION_BANK,
        Permission.SUBMIT_QUESTION_BANK,
        Permission.VIEW_OWN_SUBMISSIONS,
    },
    Role.EXAM_CELL: {
        Permission.VIEW_OWN_SUBMISSIONS,
        Permission.VIEW_ALL_SUBMISSIONS,
        Permission.REVIEW_SUBMISSIONS,
        Permission.EXPORT_QUESTION_PAPER,
    },
    Role.ADMIN: {
        # All permissions
        *[p for p in Permission],
    },
}


def has_permission(user: Any, permission: Permission) -> bool:
    """
    Check whether a user's role grants a permission.

    Args:
        user: Object with a `role` attribute
        permission: Permission to check

    Returns:
        bool: True if granted
    """
    try:
        role = Role(user.role)
    except ValueError:
        return False
    return permission in ROLE_PERMISSIONS.get(role, set())


def has_any_permission(user: Any, permissions: List[Permission]) -> bool:
    return any(has_permission(user, p) for p in permissions)


def get_user_permissions(user: Any) -> Set[Permission]:
    try:
        role = Role(user.role)
    except ValueError:
        return set()
    return ROLE_PERMISSIONS.get(role, set())


def require_permission(*permissions: Permission):
    """
    Endpoint decorator requiring every listed permission.

    Usage:
        @router.post("/{submission_id}/accept")
        @require_permission(Permission.REVIEW_SUBMISSIONS)
        async def accept(current_user: CurrentUser = Depends(get_current_user)):
            ...
    """
    def decorator(func: Callable):
        @wraps(func)
        async def wrapper(*args, **kwargs):
            current_user = kwargs.get('current_user')
            if current_user is None:
                raise HTTPException(
                    status_code=status.HTTP_401_UNAUTHORIZED,
                    detail="Authentication required"
                )

            for permission in permissions:
                if not has_permission(current_user, permission):
                    raise HTTPException(
                        status_code=status.HTTP_403_FORBIDDEN,
                        detail=f"Not permitted: {permission.value}"
                    )
            return await func(*args, **kwargs)
        return wrapper
    return decorator
