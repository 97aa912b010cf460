import pytest

pytestmark = pytest.mark.anyio


async def test_access_me_reports_primary_role(client, seed):
    school = await seed.school()
    profile = await seed.profile(["parent", "teacher"], school=school)

    r = await client.get("/access/me", headers=seed.headers(profile))
    assert r.status_code == 200
    assert r.json()["primary_role"] == "teacher"
    assert r.json()["default_route"] == "/teacher"


async def test_access_menu_for_student(client, seed):
    profile = await seed.profile(["student"])
    r = await client.get("/access/menu", headers=seed.headers(profile))
    assert r.status_code == 200
    body = r.json()
    assert body["role"] == "student"
    paths = [entry["path"] for entry in body["entries"]]
    assert paths[0] == "/student"
    assert "/super-admin-dashboard" not in paths
    assert {"label": "Assignments", "path": "/assignments", "icon": "FileEdit", "badge": 4} in body["entries"]


async def test_access_check_anonymous_goes_to_login(client):
    r = await client.post("/access/check", json={"path": "/teacher"})
    assert r.status_code == 200
    assert r.json() == {"path": "/teacher", "action": "redirect", "target": "/login"}


async def test_access_check_root_redirects_teacher(client, seed):
    profile = await seed.profile(["teacher"])
    headers = seed.headers(profile)

    first = (await client.post("/access/check", json={"path": "/"}, headers=headers)).json()
    assert first["action"] == "redirect"
    assert first["target"] == "/teacher"

    second = (await client.post("/access/check", json={"path": first["target"]}, headers=headers)).json()
    assert second["action"] == "render"


async def test_access_check_uses_stored_roles(client, seed):
    profile = await seed.profile(["student"])
    r = await client.post("/access/check", json={"path": "/billing"}, headers=seed.headers(profile))
    assert r.json()["target"] == "/unauthorized"


async def test_capabilities(client, seed):
    profile = await seed.profile(["librarian"])
    r = await client.get("/access/capabilities", headers=seed.headers(profile))
    assert r.status_code == 200
    assert r.json()["paths"] == ["/dashboard", "/library", "/messaging", "/profile", "/settings"]
