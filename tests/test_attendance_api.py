"""
Daily attendance by the class teacher and the Excel export.
"""
import io
from datetime import datetime, timedelta, timezone

import openpyxl
import pytest

from services.attendance_management_system.controllers.attendance_service import (
    XLSX_MEDIA_TYPE,
    build_attendance_workbook,
)
from services.attendance_management_system.models.attendance import Attendance, AttendanceStatus

pytestmark = pytest.mark.anyio


def _today():
    return datetime.now(timezone.utc).date()


@pytest.fixture
async def classroom(seed):
    school = await seed.school()
    teacher = await seed.profile(["teacher"], school=school)
    batch = await seed.batch(await seed.course(await seed.year(school)), class_teacher=teacher)
    students = [await seed.student(school) for _ in range(3)]
    await seed.enrol(batch, *students)
    return {"school": school, "teacher": teacher, "batch": batch, "students": students}


async def test_unlisted_students_are_marked_present(client, seed, classroom):
    s1, s2, s3 = classroom["students"]
    r = await client.post("/attendance/daily", headers=seed.headers(classroom["teacher"]), json={
        "batch_id": str(classroom["batch"].id),
        "date": _today().isoformat(),
        "records": [
            {"student_id": str(s1.id), "status": "A"},
            {"student_id": str(s2.id), "status": "HD", "arrival_time": "10:15", "notes": "doctor"},
        ],
    })
    assert r.status_code == 200
    body = r.json()
    assert (body["present"], body["absent"], body["half_day"], body["leave"]) == (1, 1, 1, 0)
    statuses = {a["student_id"]: a["status"] for a in body["attendances"]}
    assert statuses == {str(s1.id): "A", str(s2.id): "HD", str(s3.id): "P"}


async def test_recording_twice_updates_in_place(client, seed, classroom):
    s1 = classroom["students"][0]
    headers = seed.headers(classroom["teacher"])
    payload = {"batch_id": str(classroom["batch"].id), "date": _today().isoformat()}

    await client.post("/attendance/daily", headers=headers,
                      json={**payload, "records": [{"student_id": str(s1.id), "status": "A"}]})
    r = await client.post("/attendance/daily", headers=headers,
                          json={**payload, "records": [{"student_id": str(s1.id), "status": "L"}]})
    assert (r.json()["present"], r.json()["absent"], r.json()["leave"]) == (2, 0, 1)

    listing = await client.get(f"/attendance/batch/{classroom['batch'].id}",
                               params={"on": payload["date"]}, headers=headers)
    assert len(listing.json()) == 3


async def test_only_the_class_teacher_records(client, seed, classroom):
    other = await seed.profile(["teacher"], school=classroom["school"])
    r = await client.post("/attendance/daily", headers=seed.headers(other), json={
        "batch_id": str(classroom["batch"].id), "date": _today().isoformat(),
    })
    assert r.status_code == 403

    admin = await seed.profile(["school_admin"], school=classroom["school"])
    r = await client.post("/attendance/daily", headers=seed.headers(admin), json={
        "batch_id": str(classroom["batch"].id), "date": _today().isoformat(),
    })
    assert r.status_code == 403


async def test_date_window(client, seed, classroom):
    headers = seed.headers(classroom["teacher"])
    batch_id = str(classroom["batch"].id)

    old = await client.post("/attendance/daily", headers=headers, json={
        "batch_id": batch_id, "date": (_today() - timedelta(days=3)).isoformat(),
    })
    assert old.status_code == 400
    assert "48 hours" in old.json()["detail"]

    future = await client.post("/attendance/daily", headers=headers, json={
        "batch_id": batch_id, "date": (_today() + timedelta(days=1)).isoformat(),
    })
    assert future.status_code == 400

    backfill = await client.post("/attendance/daily", headers=headers, json={
        "batch_id": batch_id, "date": (_today() - timedelta(days=2)).isoformat(),
    })
    assert backfill.status_code == 200


async def test_records_for_students_outside_the_batch(client, seed, classroom):
    outsider = await seed.student(classroom["school"])
    r = await client.post("/attendance/daily", headers=seed.headers(classroom["teacher"]), json={
        "batch_id": str(classroom["batch"].id),
        "date": _today().isoformat(),
        "records": [{"student_id": str(outsider.id), "status": "A"}],
    })
    assert r.status_code == 400


async def test_duplicate_records_are_rejected(client, seed, classroom):
    s1 = classroom["students"][0]
    r = await client.post("/attendance/daily", headers=seed.headers(classroom["teacher"]), json={
        "batch_id": str(classroom["batch"].id),
        "date": _today().isoformat(),
        "records": [
            {"student_id": str(s1.id), "status": "A"},
            {"student_id": str(s1.id), "status": "L"},
        ],
    })
    assert r.status_code == 422


async def test_empty_batch(client, seed):
    school = await seed.school()
    teacher = await seed.profile(["teacher"], school=school)
    batch = await seed.batch(await seed.course(await seed.year(school)), class_teacher=teacher)
    r = await client.post("/attendance/daily", headers=seed.headers(teacher), json={
        "batch_id": str(batch.id), "date": _today().isoformat(),
    })
    assert r.status_code == 404


async def test_export_excel(client, seed, classroom):
    headers = seed.headers(classroom["teacher"])
    s1 = classroom["students"][0]
    await client.post("/attendance/daily", headers=headers, json={
        "batch_id": str(classroom["batch"].id),
        "date": _today().isoformat(),
        "records": [{"student_id": str(s1.id), "status": "A"}],
    })

    r = await client.get("/attendance/export-excel", headers=headers,
                         params={"batch_id": str(classroom["batch"].id)})
    assert r.status_code == 200
    assert r.headers["content-type"] == XLSX_MEDIA_TYPE

    ws = openpyxl.load_workbook(io.BytesIO(r.content))["Attendance Report"]
    assert ws["A1"].value == "Admission No."
    rows = {row[0]: row for row in ws.iter_rows(min_row=2, max_row=4, values_only=True)}
    assert rows[s1.admission_number][3:5] == (0, 1)
    assert rows[s1.admission_number][7] == "0.0%"


async def test_export_rejects_reversed_range(client, seed, classroom):
    r = await client.get("/attendance/export-excel", headers=seed.headers(classroom["teacher"]), params={
        "batch_id": str(classroom["batch"].id), "from_date": "2025-02-01", "to_date": "2025-01-01",
    })
    assert r.status_code == 400


async def test_export_forbidden_for_other_school(client, seed, classroom):
    outsider = await seed.profile(["school_admin"], school=await seed.school())
    r = await client.get("/attendance/export-excel", headers=seed.headers(outsider),
                         params={"batch_id": str(classroom["batch"].id)})
    assert r.status_code == 403


def test_workbook_counts_half_days_as_half_present():
    class Student:
        def __init__(self, id, admission_number):
            self.id = id
            self.admission_number = admission_number
            self.first_name = "Asha"
            self.last_name = admission_number

    day1, day2 = _today() - timedelta(days=1), _today()
    student = Student(1, "ADM-1")
    records = [
        Attendance(student_id=1, date=day1, status=AttendanceStatus.PRESENT),
        Attendance(student_id=1, date=day2, status=AttendanceStatus.HALF_DAY),
    ]
    ws = build_attendance_workbook([student], records).active
    row = [cell.value for cell in ws[2]]
    assert row[2:8] == [2, 1, 0, 1, 0, "75.0%"]
    assert row[8:] == ["P", "HD"]
    assert ws["A4"].value == "Batch Summary"
    assert len(ws._charts) == 1
