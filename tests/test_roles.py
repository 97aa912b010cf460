import pytest

from services.access_control.roles import (
    Role,
    FALLBACK_ROUTE,
    get_default_route,
    get_primary_role,
    get_role_based_route,
    normalize_roles,
)


@pytest.mark.parametrize(
    "roles, expected",
    [
        (["student", "teacher"], Role.TEACHER),
        (["parent", "school_admin", "super_admin"], Role.SUPER_ADMIN),
        (["student", "parent"], Role.PARENT),
        (["staff", "librarian"], Role.LIBRARIAN),
        (["student"], Role.STUDENT),
    ],
)
def test_primary_role_follows_priority(roles, expected):
    assert get_primary_role(roles) == expected


def test_primary_role_ignores_unknown_strings():
    assert get_primary_role(["janitor", "teacher"]) == Role.TEACHER
    assert get_primary_role(["janitor"]) is None
    assert get_primary_role([]) is None
    assert get_primary_role(None) is None


def test_normalize_roles_drops_unknown_and_duplicates():
    assert normalize_roles(["teacher", "x", "teacher", Role.PARENT]) == [Role.TEACHER, Role.PARENT]


@pytest.mark.parametrize(
    "role, route",
    [
        ("super_admin", "/super-admin-dashboard"),
        ("school_admin", "/school-admin"),
        ("teacher", "/teacher"),
        ("student", "/student"),
        ("parent", "/parent"),
        ("librarian", FALLBACK_ROUTE),
        ("staff", FALLBACK_ROUTE),
        ("nobody", FALLBACK_ROUTE),
        (None, FALLBACK_ROUTE),
    ],
)
def test_role_based_route(role, route):
    assert get_role_based_route(role) == route


def test_default_route_uses_primary_role():
    assert get_default_route(["student", "teacher"]) == "/teacher"
    assert get_default_route(["unknown"]) == "/dashboard"
