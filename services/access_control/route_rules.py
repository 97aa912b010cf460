# services/access_control/route_rules.py
from dataclasses import dataclass, field
from typing import FrozenSet, Iterable, List, Optional

from services.access_control.roles import Role, normalize_roles

LOGIN_ROUTE = "/login"
UNAUTHORIZED_ROUTE = "/unauthorized"
ROOT_ROUTE = "/"


@dataclass(frozen=True)
class RouteAccessRule:
    path: str
    # Empty means any authenticated user
    required_roles: FrozenSet[Role] = field(default_factory=frozenset)
    public: bool = False


def _public(path: str) -> RouteAccessRule:
    return RouteAccessRule(path, public=True)


def _gated(path: str, *roles: Role) -> RouteAccessRule:
    return RouteAccessRule(path, frozenset(roles))


_SA = Role.SUPER_ADMIN
_SCA = Role.SCHOOL_ADMIN
_T = Role.TEACHER
_S = Role.STUDENT
_P = Role.PARENT
_ST = Role.STAFF
_L = Role.LIBRARIAN

ROUTE_ACCESS_RULES = (
    _public(ROOT_ROUTE),
    _public(LOGIN_ROUTE),
    _public("/signup"),
    _public("/reset-password"),
    _public(UNAUTHORIZED_ROUTE),
    _gated("/dashboard"),
    _gated("/settings"),
    _gated("/profile"),
    # platform
    _gated("/super-admin-dashboard", _SA),
    _gated("/school-management", _SA),
    _gated("/users", _SA),
    _gated("/analytics", _SA),
    _gated("/billing", _SA),
    _gated("/modules", _SA),
    _gated("/support", _SA),
    # school administration
    _gated("/school-admin", _SCA),
    _gated("/academic", _SCA),
    _gated("/students", _SCA),
    _gated("/staff", _SCA),
    _gated("/transport", _SCA),
    _gated("/hostel", _SCA),
    _gated("/communication", _SCA),
    _gated("/reports", _SCA),
    # shared school areas
    _gated("/timetable", _SCA, _T, _S, _P),
    _gated("/attendance", _SCA, _T, _S, _P),
    _gated("/fees", _SCA, _S, _P),
    _gated("/library", _SCA, _T, _L),
    _gated("/subjects", _T, _S),
    _gated("/assignments", _T, _S, _P),
    _gated("/examinations", _T, _S, _P),
    _gated("/messaging", _T, _S, _P, _ST, _L),
    # role landing areas
    _gated("/teacher", _T),
    _gated("/classes", _T),
    _gated("/student", _S),
    _gated("/certificates", _S),
    _gated("/parent", _P),
    _gated("/children", _P),
    _gated("/academics", _P),
)

_RULES_BY_PATH = {rule.path: rule for rule in ROUTE_ACCESS_RULES}


def normalize_path(path: str) -> str:
    path = (path or ROOT_ROUTE).split("?", 1)[0].split("#", 1)[0]
    if not path.startswith("/"):
        path = "/" + path
    if len(path) > 1:
        path = path.rstrip("/") or ROOT_ROUTE
    return path


def find_route_rule(path: str) -> Optional[RouteAccessRule]:
    """Exact match first, then the longest rule that is a parent segment of ``path``."""
    path = normalize_path(path)
    rule = _RULES_BY_PATH.get(path)
    if rule is not None:
        return rule
    best = None
    for candidate in ROUTE_ACCESS_RULES:
        if candidate.path == ROOT_ROUTE:
            continue
        if path.startswith(candidate.path + "/"):
            if best is None or len(candidate.path) > len(best.path):
                best = candidate
    return best


def can_access_route(roles: Optional[Iterable], required_roles: Iterable) -> bool:
    required = list(required_roles or ())
    if not required:
        return True
    return bool(set(normalize_roles(roles)) & set(normalize_roles(required)))


def capabilities_for(roles: Optional[Iterable]) -> List[str]:
    """Every non-public path the given role set may open."""
    return sorted(
        rule.path
        for rule in ROUTE_ACCESS_RULES
        if not rule.public and can_access_route(roles, rule.required_roles)
    )
