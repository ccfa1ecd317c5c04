"""Roles known to the enrollment engine.

Roles only gate which HTTP endpoints an actor may call (e.g. the teacher
inbox). Course-level decisions never trust the role alone: a teacher must be
assigned to the course and a student must be in its enrolled set.
"""

from enum import Enum


class UserRole(str, Enum):
    """User roles with hierarchical levels."""

    USER = "user"  # Level 0: registered, not enrolled anywhere yet
    STUDENT = "student"  # Level 1
    TEACHER = "teacher"  # Level 2: may be assigned to courses
    ADMIN = "admin"  # Level 3


ROLE_HIERARCHY: dict[UserRole, int] = {
    UserRole.USER: 0,
    UserRole.STUDENT: 1,
    UserRole.TEACHER: 2,
    UserRole.ADMIN: 3,
}


def get_role_level(role: UserRole | str) -> int:
    """Get the permission level for a role (0 for unknown roles)."""
    if isinstance(role, str):
        try:
            role = UserRole(role)
        except ValueError:
            return 0
    return ROLE_HIERARCHY.get(role, 0)


def has_permission(user_role: UserRole | str, required_role: UserRole | str) -> bool:
    """Check if user has at least the required permission level.

    Examples:
        >>> has_permission(UserRole.ADMIN, UserRole.TEACHER)
        True
        >>> has_permission("student", "teacher")
        False
    """
    return get_role_level(user_role) >= get_role_level(required_role)
