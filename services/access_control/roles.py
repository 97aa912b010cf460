# services/access_control/roles.py
import enum
from typing import Iterable, List, Optional


class Role(str, enum.Enum):
    SUPER_ADMIN = "super_admin"
    SCHOOL_ADMIN = "school_admin"
    TEACHER = "teacher"
    STUDENT = "student"
    PARENT = "parent"
    STAFF = "staff"
    LIBRARIAN = "librarian"


# Highest first. Used for display and the landing page, never for authorisation.
ROLE_PRIORITY = (
    Role.SUPER_ADMIN,
    Role.SCHOOL_ADMIN,
    Role.TEACHER,
    Role.LIBRARIAN,
    Role.STAFF,
    Role.PARENT,
    Role.STUDENT,
)

DEFAULT_ROUTES = {
    Role.SUPER_ADMIN: "/super-admin-dashboard",
    Role.SCHOOL_ADMIN: "/school-admin",
    Role.TEACHER: "/teacher",
    Role.STUDENT: "/student",
    Role.PARENT: "/parent",
}

FALLBACK_ROUTE = "/dashboard"


def parse_role(value) -> Optional[Role]:
    if isinstance(value, Role):
        return value
    try:
        return Role(value)
    except ValueError:
        return None


def normalize_roles(roles: Optional[Iterable]) -> List[Role]:
    """Known roles from ``roles`` in their original order; unknown strings are dropped."""
    normalized = []
    for value in roles or ():
        role = parse_role(value)
        if role is not None and role not in normalized:
            normalized.append(role)
    return normalized


def get_primary_role(roles: Optional[Iterable]) -> Optional[Role]:
    held = set(normalize_roles(roles))
    for role in ROLE_PRIORITY:
        if role in held:
            return role
    return None


def get_role_based_route(role) -> str:
    return DEFAULT_ROUTES.get(parse_role(role), FALLBACK_ROUTE)


def get_default_route(roles: Optional[Iterable]) -> str:
    return get_role_based_route(get_primary_role(roles))
