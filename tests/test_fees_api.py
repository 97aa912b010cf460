"""
Fee structures and their components.
"""
import uuid
from decimal import Decimal

import pytest
from sqlalchemy import func
from sqlalchemy.future import select

from services.finance.models.fees import FeeComponent, FeeStructure

pytestmark = pytest.mark.anyio

COMPONENTS = [
    {"name": "Tuition", "amount": "12000.00", "due_date": "2025-06-10", "recurring": "annually"},
    {"name": "Lab", "amount": "1500.50", "recurring": "quarterly"},
]


@pytest.fixture
async def setup(seed):
    school = await seed.school()
    admin = await seed.profile(["school_admin"], school=school)
    year = await seed.year(school, is_active=True)
    return school, admin, year


def _structure(school, year, **overrides):
    payload = {
        "school_id": school.id,
        "academic_year_id": str(year.id),
        "name": "Grade 1 fees",
        "components": COMPONENTS,
    }
    payload.update(overrides)
    return payload


async def test_create_fee_structure_totals_components(client, seed, setup):
    school, admin, year = setup
    r = await client.post("/fees/structures", headers=seed.headers(admin), json=_structure(school, year))
    assert r.status_code == 201
    body = r.json()
    assert Decimal(body["total_amount"]) == Decimal("13500.50")
    assert [c["name"] for c in body["components"]] == ["Tuition", "Lab"]
    assert body["components"][1]["due_date"] is None
    assert body["created_at"] is not None

    fetched = await client.get(f"/fees/structures/{body['id']}", headers=seed.headers(admin))
    assert fetched.status_code == 200
    assert {c["recurring"] for c in fetched.json()["components"]} == {"annually", "quarterly"}


async def test_structure_without_components_costs_nothing(client, seed, setup):
    school, admin, year = setup
    r = await client.post("/fees/structures", headers=seed.headers(admin),
                          json=_structure(school, year, components=[]))
    assert r.status_code == 201
    assert Decimal(r.json()["total_amount"]) == 0


async def test_invalid_components_are_rejected(client, seed, setup):
    school, admin, year = setup
    headers = seed.headers(admin)
    negative = [{"name": "Refund", "amount": "-5"}]
    r = await client.post("/fees/structures", headers=headers, json=_structure(school, year, components=negative))
    assert r.status_code == 422

    weekly = [{"name": "Bus", "amount": "100", "recurring": "weekly"}]
    r = await client.post("/fees/structures", headers=headers, json=_structure(school, year, components=weekly))
    assert r.status_code == 422


async def test_duplicate_name_in_a_year_conflicts(client, seed, setup):
    school, admin, year = setup
    headers = seed.headers(admin)
    assert (await client.post("/fees/structures", headers=headers, json=_structure(school, year))).status_code == 201
    r = await client.post("/fees/structures", headers=headers, json=_structure(school, year))
    assert r.status_code == 409
    assert r.json()["detail"] == "This record already exists."


async def test_year_of_another_school_is_not_found(client, seed, setup):
    school, admin, _ = setup
    other_year = await seed.year(await seed.school())
    r = await client.post("/fees/structures", headers=seed.headers(admin), json=_structure(school, other_year))
    assert r.status_code == 404


async def test_list_and_search_by_name(client, seed, setup):
    school, admin, year = setup
    headers = seed.headers(admin)
    for name in ("Grade 1 fees", "Grade 2 fees", "Hostel"):
        await client.post("/fees/structures", headers=headers, json=_structure(school, year, name=name))

    listing = await client.get(f"/fees/{school.id}/structures", headers=headers)
    assert sorted(s["name"] for s in listing.json()) == ["Grade 1 fees", "Grade 2 fees", "Hostel"]
    assert all(len(s["components"]) == 2 for s in listing.json())

    found = await client.get(f"/fees/{school.id}/structures", headers=headers, params={"q": "grade"})
    assert sorted(s["name"] for s in found.json()) == ["Grade 1 fees", "Grade 2 fees"]


async def test_update_replaces_components_and_total(client, seed, session_factory, setup):
    school, admin, year = setup
    headers = seed.headers(admin)
    created = (await client.post("/fees/structures", headers=headers, json=_structure(school, year))).json()

    r = await client.put(f"/fees/structures/{created['id']}", headers=headers, json={
        "name": "Grade 1 fees (revised)",
        "components": [{"name": "Tuition", "amount": "11000", "recurring": "monthly"}],
    })
    assert r.status_code == 200
    body = r.json()
    assert body["name"] == "Grade 1 fees (revised)"
    assert Decimal(body["total_amount"]) == Decimal("11000")
    assert [c["name"] for c in body["components"]] == ["Tuition"]

    async with session_factory() as s:
        count = await s.scalar(
            select(func.count()).select_from(FeeComponent)
            .where(FeeComponent.fee_structure_id == uuid.UUID(created["id"]))
        )
    assert count == 1


async def test_update_without_components_keeps_them(client, seed, setup):
    school, admin, year = setup
    headers = seed.headers(admin)
    created = (await client.post("/fees/structures", headers=headers, json=_structure(school, year))).json()

    r = await client.put(f"/fees/structures/{created['id']}", headers=headers, json={"name": "Renamed"})
    assert r.status_code == 200
    assert len(r.json()["components"]) == 2
    assert Decimal(r.json()["total_amount"]) == Decimal("13500.50")


async def test_delete_removes_structure_and_components(client, seed, session_factory, setup):
    school, admin, year = setup
    headers = seed.headers(admin)
    created = (await client.post("/fees/structures", headers=headers, json=_structure(school, year))).json()

    r = await client.delete(f"/fees/structures/{created['id']}", headers=headers)
    assert r.status_code == 200
    assert (await client.get(f"/fees/structures/{created['id']}", headers=headers)).status_code == 404

    async with session_factory() as s:
        assert await s.scalar(select(func.count()).select_from(FeeStructure)) == 0
        assert await s.scalar(select(func.count()).select_from(FeeComponent)) == 0


async def test_students_read_but_cannot_write(client, seed, setup):
    school, admin, year = setup
    created = (await client.post("/fees/structures", headers=seed.headers(admin),
                                 json=_structure(school, year))).json()
    student = await seed.profile(["student"], school=school)
    headers = seed.headers(student)

    assert (await client.get(f"/fees/structures/{created['id']}", headers=headers)).status_code == 200
    assert (await client.post("/fees/structures", headers=headers, json=_structure(school, year))).status_code == 403
    assert (await client.delete(f"/fees/structures/{created['id']}", headers=headers)).status_code == 403


async def test_teachers_have_no_fee_access(client, seed, setup):
    school, _, _ = setup
    teacher = await seed.profile(["teacher"], school=school)
    r = await client.get(f"/fees/{school.id}/structures", headers=seed.headers(teacher))
    assert r.status_code == 403


async def test_other_school_admin_cannot_see_or_change_structure(client, seed, setup):
    school, admin, year = setup
    created = (await client.post("/fees/structures", headers=seed.headers(admin),
                                 json=_structure(school, year))).json()
    outsider = await seed.profile(["school_admin"], school=await seed.school())
    headers = seed.headers(outsider)

    assert (await client.get(f"/fees/structures/{created['id']}", headers=headers)).status_code == 403
    assert (await client.get(f"/fees/{school.id}/structures", headers=headers)).status_code == 403
    r = await client.put(f"/fees/structures/{created['id']}", headers=headers, json={"name": "Taken"})
    assert r.status_code == 403
