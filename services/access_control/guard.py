# services/access_control/guard.py
"""
Route guard.

Given what is known about the current session and the path being opened,
decide whether to wait, render, redirect or report the path as unknown.
The rules are applied in this order:

1. while the session is loading nothing is decided;
2. a path with no rule is not found;
3. public paths render, except the root which sends a user with a loaded
   profile to the landing page of their primary role (only when that page
   is a different path, so it happens once);
4. anonymous sessions go to the login page;
5. a gated path waits while a signed-in user's profile is still unfetched;
6. gated paths need at least one matching role, otherwise unauthorized;
7. anything else renders.
"""
import enum
from dataclasses import dataclass, field
from typing import Iterable, List, Optional

from services.access_control.roles import get_default_route
from services.access_control.route_rules import (
    LOGIN_ROUTE,
    ROOT_ROUTE,
    UNAUTHORIZED_ROUTE,
    can_access_route,
    find_route_rule,
    normalize_path,
)


class AccessAction(str, enum.Enum):
    LOADING = "loading"
    RENDER = "render"
    REDIRECT = "redirect"
    NOT_FOUND = "not_found"


@dataclass(frozen=True)
class SessionState:
    is_loading: bool = False
    user_id: Optional[str] = None
    # None means the profile has not been fetched yet
    roles: Optional[List[str]] = field(default=None)


@dataclass(frozen=True)
class AccessDecision:
    action: AccessAction
    target: Optional[str] = None


def evaluate_access(
    session: SessionState,
    path: str,
    required_roles: Optional[Iterable] = None,
) -> AccessDecision:
    if session.is_loading:
        return AccessDecision(AccessAction.LOADING)

    path = normalize_path(path)
    rule = find_route_rule(path)
    if rule is None and required_roles is None:
        return AccessDecision(AccessAction.NOT_FOUND)

    if rule is not None and rule.public and required_roles is None:
        if path == ROOT_ROUTE and session.user_id and session.roles is not None:
            target = get_default_route(session.roles)
            if target != path:
                return AccessDecision(AccessAction.REDIRECT, target)
        return AccessDecision(AccessAction.RENDER)

    if not session.user_id:
        return AccessDecision(AccessAction.REDIRECT, LOGIN_ROUTE)

    required = list(required_roles if required_roles is not None else rule.required_roles)
    if session.roles is None and required:
        return AccessDecision(AccessAction.LOADING)
    if not can_access_route(session.roles, required):
        return AccessDecision(AccessAction.REDIRECT, UNAUTHORIZED_ROUTE)

    return AccessDecision(AccessAction.RENDER)
