import logging
import os
import tempfile
import uuid
from collections import Counter
from datetime import date, datetime, timedelta, timezone
from typing import List, Optional

import openpyxl
from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import FileResponse
from openpyxl.chart import PieChart, Reference
from openpyxl.styles import Alignment, Font
from sqlalchemy import and_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy.exc import IntegrityError
from starlette.background import BackgroundTask

from services.access_control.roles import Role
from services.academic.models.academic import Batch, BatchStudent
from services.attendance_management_system.models.attendance import Attendance, AttendanceStatus
from services.attendance_management_system.schemas.attendance import (
    AttendanceCounts,
    AttendanceOut,
    DailyAttendanceCreate,
    DailyAttendanceResponse,
)
from services.user_management.models.students import StudentDetails
from shared.auth import require_roles, ensure_school_access
from shared.db import get_db
from shared.errors import describe_db_error, error_status

LOGGER = logging.getLogger(__name__)

router = APIRouter(prefix="/attendance", tags=["Attendance Management"])

# Attendance can be back-filled for at most this long
BACKDATE_LIMIT = timedelta(days=2)

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


async def _get_batch_students(db: AsyncSession, batch_id: uuid.UUID) -> List[StudentDetails]:
    result = await db.execute(
        select(StudentDetails)
        .join(BatchStudent, BatchStudent.student_id == StudentDetails.id)
        .where(BatchStudent.batch_id == batch_id)
        .order_by(StudentDetails.admission_number, StudentDetails.first_name)
    )
    return result.scalars().all()


async def _get_batch(db: AsyncSession, batch_id: uuid.UUID, current_user: dict) -> Batch:
    batch = await db.get(Batch, batch_id)
    if not batch:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Batch not found or access denied"
        )
    ensure_school_access(current_user, batch.school_id)
    return batch


# --- TAKE DAILY ATTENDANCE BY CLASS-TEACHER ---
@router.post("/daily", response_model=DailyAttendanceResponse)
async def record_daily_attendance(
    attendance_data: DailyAttendanceCreate,
    db: AsyncSession = Depends(get_db),
    current_user: dict = Depends(require_roles(Role.TEACHER))
):
    """
    Record daily attendance for a batch.
    Only students with non-present status need to be included in the records.
    All other students will be automatically marked as present.
    """
    teacher_id = uuid.UUID(current_user["user_id"])
    batch = await _get_batch(db, attendance_data.batch_id, current_user)

    today = datetime.now(timezone.utc).date()
    if attendance_data.date > today:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Attendance cannot be recorded for future dates."
        )
    if attendance_data.date < today - BACKDATE_LIMIT:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Attendance cannot be recorded for dates older than 48 hours."
        )

    if batch.class_teacher_id != teacher_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You are not the assigned teacher for this batch"
        )

    students = await _get_batch_students(db, batch.id)
    if not students:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No students found in this batch"
        )

    attendance_input_map = {record.student_id: record for record in attendance_data.records}
    unknown = set(attendance_input_map) - {student.id for student in students}
    if unknown:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Some records refer to students outside this batch"
        )

    existing_attendance_result = await db.execute(
        select(Attendance).where(
            and_(
                Attendance.batch_id == batch.id,
                Attendance.date == attendance_data.date
            )
        )
    )
    existing_attendance_map = {
        record.student_id: record for record in existing_attendance_result.scalars()
    }

    attendances = []
    for student in students:
        record = attendance_input_map.get(student.id)
        if record:
            status_val, arrival_time, notes = record.status, record.arrival_time, record.notes
        else:
            status_val, arrival_time, notes = AttendanceStatus.PRESENT, None, None

        existing = existing_attendance_map.get(student.id)
        if existing:
            existing.status = status_val
            existing.arrival_time = arrival_time
            existing.notes = notes
            existing.recorded_by = teacher_id
            attendances.append(existing)
        else:
            new_attendance = Attendance(
                school_id=batch.school_id,
                batch_id=batch.id,
                date=attendance_data.date,
                student_id=student.id,
                status=status_val,
                recorded_by=teacher_id,
                arrival_time=arrival_time,
                notes=notes
            )
            db.add(new_attendance)
            attendances.append(new_attendance)

    try:
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        raise HTTPException(status_code=error_status(e), detail=describe_db_error(e))

    LOGGER.info("Attendance for batch %s on %s recorded by %s", batch.name, attendance_data.date, current_user["email"])
    return DailyAttendanceResponse(
        batch_id=batch.id,
        batch_name=batch.name,
        date=attendance_data.date,
        **AttendanceCounts.tally(a.status for a in attendances),
        attendances=[AttendanceOut.model_validate(a) for a in attendances],
    )


@router.get("/batch/{batch_id}", response_model=List[AttendanceOut])
async def get_batch_attendance(
    batch_id: uuid.UUID,
    on: date,
    db: AsyncSession = Depends(get_db),
    current_user: dict = Depends(require_roles(Role.SUPER_ADMIN, Role.SCHOOL_ADMIN, Role.TEACHER))
):
    batch = await _get_batch(db, batch_id, current_user)
    result = await db.execute(
        select(Attendance).where(Attendance.batch_id == batch.id, Attendance.date == on)
    )
    return result.scalars().all()


def build_attendance_workbook(students, attendance_data) -> openpyxl.Workbook:
    attendance_map = {
        (record.student_id, record.date): record.status
        for record in attendance_data
    }
    all_dates = sorted(set(rec.date for rec in attendance_data))

    wb = openpyxl.Workbook()
    ws = wb.active
    ws.title = "Attendance Report"

    base_headers = ["Admission No.", "Student Name", "Total Days", "Present", "Absent", "Half Day", "Leave", "Attendance %"]
    # Cross-platform safe formatting for Excel headers
    date_headers = [d.strftime("%d-%b").lstrip("0") for d in all_dates]

    ws.append(base_headers + date_headers)
    for cell in ws[1]:
        cell.font = Font(bold=True)
        cell.alignment = Alignment(horizontal="center")

    total_days = len(all_dates)
    totals = Counter()

    for student in students:
        statuses = [attendance_map.get((student.id, day)) for day in all_dates]
        counts = Counter(s for s in statuses if s is not None)
        present = counts[AttendanceStatus.PRESENT]
        # A half day counts as half a day present
        perc = ((present + counts[AttendanceStatus.HALF_DAY] / 2) / total_days) * 100 if total_days else 0
        ws.append(
            [
                student.admission_number or "",
                f"{student.first_name} {student.last_name}",
                total_days,
                present,
                counts[AttendanceStatus.ABSENT],
                counts[AttendanceStatus.HALF_DAY],
                counts[AttendanceStatus.LEAVE],
                f"{perc:.1f}%",
            ]
            + [s.value if s is not None else "N/A" for s in statuses]
        )
        totals.update(counts)

    summary_row_start = len(students) + 3
    ws[f"A{summary_row_start}"] = "Batch Summary"
    ws[f"A{summary_row_start}"].font = Font(bold=True)

    summary = [
        ("Total Students", len(students)),
        ("Total Days", total_days),
        ("Total Present", totals[AttendanceStatus.PRESENT]),
        ("Total Absent", totals[AttendanceStatus.ABSENT]),
        ("Total Half Day", totals[AttendanceStatus.HALF_DAY]),
        ("Total Leave", totals[AttendanceStatus.LEAVE]),
    ]
    for offset, (label, value) in enumerate(summary, start=1):
        ws[f"A{summary_row_start + offset}"] = label
        ws[f"B{summary_row_start + offset}"] = value

    chart = PieChart()
    labels = Reference(ws, min_col=1, min_row=summary_row_start + 3, max_row=summary_row_start + 6)
    data = Reference(ws, min_col=2, min_row=summary_row_start + 3, max_row=summary_row_start + 6)
    chart.add_data(data, titles_from_data=False)
    chart.set_categories(labels)
    chart.title = "Batch Attendance Distribution"
    ws.add_chart(chart, f"E{summary_row_start + 1}")
    return wb


@router.get("/export-excel")
async def export_attendance_excel(
    batch_id: uuid.UUID,
    from_date: Optional[date] = None,
    to_date: Optional[date] = None,
    db: AsyncSession = Depends(get_db),
    current_user: dict = Depends(require_roles(Role.SUPER_ADMIN, Role.SCHOOL_ADMIN, Role.TEACHER))
):
    batch = await _get_batch(db, batch_id, current_user)
    to_date = to_date or datetime.now(timezone.utc).date()
    from_date = from_date or to_date - timedelta(days=30)
    if from_date > to_date:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="from_date must not be after to_date")

    students = await _get_batch_students(db, batch.id)
    if not students:
        raise HTTPException(status_code=404, detail="No students found for this batch")

    attendance_result = await db.execute(
        select(Attendance).where(
            Attendance.batch_id == batch.id,
            Attendance.date >= from_date,
            Attendance.date <= to_date
        )
    )
    wb = build_attendance_workbook(students, attendance_result.scalars().all())

    with tempfile.NamedTemporaryFile(delete=False, suffix=".xlsx") as tmp:
        wb.save(tmp.name)
        tmp_path = tmp.name

    LOGGER.info("Exported attendance for batch %s (%s to %s)", batch.name, from_date, to_date)
    return FileResponse(
        tmp_path,
        filename=f"attendance_{batch.name}.xlsx",
        media_type=XLSX_MEDIA_TYPE,
        background=BackgroundTask(os.remove, tmp_path),
    )
