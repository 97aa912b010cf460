from services.access_control.guard import AccessAction, AccessDecision, SessionState, evaluate_access
from services.access_control.roles import Role


def _user(*roles):
    return SessionState(user_id="u-1", roles=list(roles))


def test_loading_decides_nothing():
    decision = evaluate_access(SessionState(is_loading=True), "/teacher")
    assert decision == AccessDecision(AccessAction.LOADING)


def test_anonymous_is_sent_to_login():
    assert evaluate_access(SessionState(), "/teacher") == AccessDecision(AccessAction.REDIRECT, "/login")


def test_anonymous_may_open_public_routes():
    assert evaluate_access(SessionState(), "/").action == AccessAction.RENDER
    assert evaluate_access(SessionState(), "/login").action == AccessAction.RENDER


def test_teacher_at_root_is_redirected_once():
    first = evaluate_access(_user("teacher"), "/")
    assert first == AccessDecision(AccessAction.REDIRECT, "/teacher")
    second = evaluate_access(_user("teacher"), first.target)
    assert second == AccessDecision(AccessAction.RENDER)


def test_root_waits_for_profile_before_redirecting():
    session = SessionState(user_id="u-1", roles=None)
    assert evaluate_access(session, "/").action == AccessAction.RENDER


def test_unrecognised_roles_at_root_fall_back_to_dashboard():
    first = evaluate_access(_user("janitor"), "/")
    assert first == AccessDecision(AccessAction.REDIRECT, "/dashboard")
    assert evaluate_access(_user("janitor"), first.target).action == AccessAction.RENDER


def test_empty_or_unknown_roles_on_gated_route_are_unauthorized():
    expected = AccessDecision(AccessAction.REDIRECT, "/unauthorized")
    assert evaluate_access(_user(), "/teacher") == expected
    assert evaluate_access(_user("janitor"), "/teacher") == expected


def test_role_mismatch_is_unauthorized():
    decision = evaluate_access(_user("student"), "/super-admin-dashboard")
    assert decision == AccessDecision(AccessAction.REDIRECT, "/unauthorized")


def test_any_matching_role_renders():
    assert evaluate_access(_user("student", "teacher"), "/classes").action == AccessAction.RENDER


def test_open_route_renders_for_any_signed_in_user():
    assert evaluate_access(_user(), "/settings").action == AccessAction.RENDER


def test_unknown_path_is_not_found():
    assert evaluate_access(_user("teacher"), "/nowhere").action == AccessAction.NOT_FOUND


def test_explicit_required_roles_override_table():
    decision = evaluate_access(_user("teacher"), "/custom-report", required_roles={Role.SCHOOL_ADMIN})
    assert decision == AccessDecision(AccessAction.REDIRECT, "/unauthorized")
    assert evaluate_access(_user("teacher"), "/custom-report", required_roles=[]).action == AccessAction.RENDER


def test_gated_route_waits_for_profile_of_signed_in_user():
    session = SessionState(user_id="u-1", roles=None)
    assert evaluate_access(session, "/teacher") == AccessDecision(AccessAction.LOADING)
    assert evaluate_access(session, "/custom-report", required_roles={Role.SCHOOL_ADMIN}).action == AccessAction.LOADING
    assert evaluate_access(session, "/settings").action == AccessAction.RENDER
