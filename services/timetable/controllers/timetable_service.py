# services/timetable/controllers/timetable_service.py
import logging
from datetime import date
from typing import Dict, List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import and_, delete, or_, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy.exc import IntegrityError

from services.access_control.roles import Role
from services.academic.models.academic import AcademicYear, Batch, Subject
from services.timetable.models.timetable import TimetableConfiguration, TimetablePeriod, TimetableSchedule
from services.timetable.schemas.timetable import (
    PeriodIn,
    PeriodOut,
    TimetableConfigurationSave,
    TimetableConfigurationOut,
    ScheduleCreate,
    ScheduleOut,
)
from services.timetable.validation import (
    PeriodTiming,
    validate_period_timings,
    extract_day_name,
    is_valid_day_id,
    overlapping_day_ids,
)
from services.user_management.models.profiles import Profile
from shared.auth import require_roles, ensure_school_access
from shared.db import get_db
from shared.errors import describe_db_error, error_status

LOGGER = logging.getLogger(__name__)

router = APIRouter(prefix="/timetable", tags=["Timetable"])

_admins = require_roles(Role.SUPER_ADMIN, Role.SCHOOL_ADMIN)
_readers = require_roles(Role.SUPER_ADMIN, Role.SCHOOL_ADMIN, Role.TEACHER, Role.STUDENT, Role.PARENT)

# Stand-in for an open-ended validity window
OPEN_ENDED = date(2099, 12, 31)


def _bad_request(detail):
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


async def _get_year(db: AsyncSession, year_id: UUID, school_id: str) -> AcademicYear:
    year = await db.get(AcademicYear, year_id)
    if not year or year.school_id != school_id:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Academic year not found")
    return year


def _check_timings(periods: List[PeriodIn], scope: str):
    timings = [
        PeriodTiming(
            key=f"{scope}:{index}",
            number=period.number,
            start_time=period.start_time,
            end_time=period.end_time,
            type=period.type.value,
            label=period.label,
        )
        for index, period in enumerate(periods)
    ]
    errors = validate_period_timings(timings)
    if errors:
        raise _bad_request({
            "message": f"Invalid period timings for {scope}",
            "errors": [{"type": e.type, "message": e.message} for e in errors],
        })


def _configuration_out(config: TimetableConfiguration, periods: List[TimetablePeriod]) -> TimetableConfigurationOut:
    return TimetableConfigurationOut(
        id=config.id,
        school_id=config.school_id,
        academic_year_id=config.academic_year_id,
        name=config.name,
        is_active=config.is_active,
        is_default=config.is_default,
        is_weekly_mode=config.is_weekly_mode,
        selected_days=config.selected_days or [],
        fortnight_start_date=config.fortnight_start_date,
        enable_flexible_timings=config.enable_flexible_timings,
        batch_ids=config.batch_ids or [],
        periods=[PeriodOut.model_validate(p) for p in periods],
    )


# --- SAVE TIMETABLE CONFIGURATION (upsert by school, year and name) ---
@router.post("/configurations", response_model=TimetableConfigurationOut)
async def save_timetable_configuration(
    payload: TimetableConfigurationSave,
    db: AsyncSession = Depends(get_db),
    current_user: dict = Depends(_admins)
):
    ensure_school_access(current_user, payload.school_id)
    await _get_year(db, payload.academic_year_id, payload.school_id)

    for day_id in payload.selected_days:
        if not is_valid_day_id(day_id, payload.is_weekly_mode):
            raise _bad_request(f"Invalid day identifier: {day_id}")
    if not payload.is_weekly_mode and payload.fortnight_start_date is None:
        raise _bad_request("A fortnight start date is required when not in weekly mode")

    day_specific: Dict[str, List[PeriodIn]] = {}
    if payload.enable_flexible_timings:
        for day_id, periods in payload.day_specific_periods.items():
            if day_id not in payload.selected_days:
                raise _bad_request(f"Invalid day identifier in custom periods: {day_id}")
            if periods:
                day_specific[day_id] = periods

    _check_timings(payload.default_periods, "default periods")
    for day_id, periods in day_specific.items():
        _check_timings(periods, day_id)

    if payload.batch_ids:
        found = set((await db.execute(
            select(Batch.id).where(
                Batch.id.in_(payload.batch_ids),
                Batch.school_id == payload.school_id,
                Batch.academic_year_id == payload.academic_year_id,
            )
        )).scalars())
        if found != set(payload.batch_ids):
            raise _bad_request("Some batches do not belong to this academic year")

    result = await db.execute(
        select(TimetableConfiguration).where(
            TimetableConfiguration.school_id == payload.school_id,
            TimetableConfiguration.academic_year_id == payload.academic_year_id,
            TimetableConfiguration.name == payload.name,
        )
    )
    config = result.scalars().first()
    if config is None:
        config = TimetableConfiguration(
            school_id=payload.school_id,
            academic_year_id=payload.academic_year_id,
            name=payload.name,
        )
        db.add(config)
    else:
        await db.execute(delete(TimetablePeriod).where(TimetablePeriod.configuration_id == config.id))

    config.is_active = payload.is_active
    config.is_default = payload.is_default
    config.is_weekly_mode = payload.is_weekly_mode
    config.selected_days = list(payload.selected_days)
    config.fortnight_start_date = None if payload.is_weekly_mode else payload.fortnight_start_date
    config.enable_flexible_timings = payload.enable_flexible_timings
    config.batch_ids = [str(batch_id) for batch_id in payload.batch_ids]
    await db.flush()

    if payload.is_default:
        await db.execute(
            update(TimetableConfiguration)
            .where(
                TimetableConfiguration.school_id == payload.school_id,
                TimetableConfiguration.academic_year_id == payload.academic_year_id,
                TimetableConfiguration.id != config.id,
            )
            .values(is_default=False)
        )

    periods = []
    layouts = [(None, payload.default_periods)] + list(day_specific.items())
    for day_id, day_periods in layouts:
        for period in day_periods:
            row = TimetablePeriod(
                configuration_id=config.id,
                day_of_week=day_id,
                number=period.number,
                start_time=period.start_time,
                end_time=period.end_time,
                type=period.type.value,
                label=period.label,
            )
            db.add(row)
            periods.append(row)

    try:
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        raise HTTPException(status_code=error_status(e), detail=describe_db_error(e))

    LOGGER.info("Saved timetable configuration %r for school %s", config.name, config.school_id)
    return _configuration_out(config, periods)


@router.get("/{school_id}/configurations", response_model=List[TimetableConfigurationOut])
async def list_timetable_configurations(
    school_id: str,
    academic_year_id: Optional[UUID] = None,
    db: AsyncSession = Depends(get_db),
    current_user: dict = Depends(_readers)
):
    ensure_school_access(current_user, school_id)
    stmt = select(TimetableConfiguration).where(TimetableConfiguration.school_id == school_id)
    if academic_year_id:
        stmt = stmt.where(TimetableConfiguration.academic_year_id == academic_year_id)
    configs = (await db.execute(stmt.order_by(TimetableConfiguration.name))).scalars().all()

    periods_by_config: Dict[UUID, List[TimetablePeriod]] = {c.id: [] for c in configs}
    if configs:
        period_rows = await db.execute(
            select(TimetablePeriod)
            .where(TimetablePeriod.configuration_id.in_(list(periods_by_config)))
            .order_by(TimetablePeriod.day_of_week, TimetablePeriod.start_time)
        )
        for period in period_rows.scalars():
            periods_by_config[period.configuration_id].append(period)

    return [_configuration_out(c, periods_by_config[c.id]) for c in configs]


async def find_schedule_conflict(db: AsyncSession, payload: ScheduleCreate) -> Optional[str]:
    """Message describing the first clash with an active schedule, or None."""
    new_end = payload.valid_to or OPEN_ENDED
    overlapping = and_(
        TimetableSchedule.school_id == payload.school_id,
        TimetableSchedule.day_of_week.in_(overlapping_day_ids(payload.day_of_week)),
        TimetableSchedule.period_number == payload.period_number,
        TimetableSchedule.is_active == True,
        TimetableSchedule.valid_from <= new_end,
        or_(TimetableSchedule.valid_to.is_(None), TimetableSchedule.valid_to >= payload.valid_from),
    )

    batch_clash = await db.execute(
        select(TimetableSchedule.id).where(overlapping, TimetableSchedule.batch_id == payload.batch_id)
    )
    if batch_clash.first():
        return "This time slot is already occupied for this batch"

    if payload.teacher_id:
        teacher_clash = await db.execute(
            select(TimetableSchedule.id).where(overlapping, TimetableSchedule.teacher_id == payload.teacher_id)
        )
        if teacher_clash.first():
            return "This teacher is already scheduled for this time slot"
    return None


# --- CREATE SCHEDULE ENTRY ---
@router.post("/schedules", response_model=ScheduleOut, status_code=status.HTTP_201_CREATED)
async def create_schedule(
    payload: ScheduleCreate,
    db: AsyncSession = Depends(get_db),
    current_user: dict = Depends(_admins)
):
    ensure_school_access(current_user, payload.school_id)
    payload.day_of_week = payload.day_of_week.strip().lower()
    if extract_day_name(payload.day_of_week) is None:
        raise _bad_request(f"Invalid day identifier: {payload.day_of_week}")
    if payload.valid_to and payload.valid_to < payload.valid_from:
        raise _bad_request("valid_to must not be before valid_from")
    if payload.start_time and payload.end_time and payload.start_time >= payload.end_time:
        raise _bad_request("End time must be after start time")

    await _get_year(db, payload.academic_year_id, payload.school_id)
    batch = await db.get(Batch, payload.batch_id)
    if not batch or batch.school_id != payload.school_id:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Batch not found")
    subject = await db.get(Subject, payload.subject_id)
    if not subject or subject.school_id != payload.school_id:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Subject not found")
    if payload.teacher_id:
        teacher = await db.get(Profile, payload.teacher_id)
        if not teacher or teacher.school_id != payload.school_id or Role.TEACHER.value not in (teacher.roles or []):
            raise _bad_request("Teacher must be a teacher of this school")

    conflict = await find_schedule_conflict(db, payload)
    if conflict:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=conflict)

    schedule = TimetableSchedule(**payload.model_dump())
    db.add(schedule)
    try:
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        raise HTTPException(status_code=error_status(e), detail=describe_db_error(e))

    await db.refresh(schedule)
    return schedule


@router.get("/{school_id}/schedules", response_model=List[ScheduleOut])
async def list_schedules(
    school_id: str,
    batch_id: Optional[UUID] = None,
    teacher_id: Optional[UUID] = None,
    day_of_week: Optional[str] = None,
    db: AsyncSession = Depends(get_db),
    current_user: dict = Depends(_readers)
):
    ensure_school_access(current_user, school_id)
    stmt = select(TimetableSchedule).where(
        TimetableSchedule.school_id == school_id,
        TimetableSchedule.is_active == True,
    )
    if batch_id:
        stmt = stmt.where(TimetableSchedule.batch_id == batch_id)
    if teacher_id:
        stmt = stmt.where(TimetableSchedule.teacher_id == teacher_id)
    if day_of_week:
        stmt = stmt.where(TimetableSchedule.day_of_week == day_of_week.lower())
    result = await db.execute(
        stmt.order_by(TimetableSchedule.day_of_week, TimetableSchedule.period_number)
    )
    return result.scalars().all()


# --- REMOVE SCHEDULE ENTRY (soft delete) ---
@router.delete("/schedules/{schedule_id}")
async def delete_schedule(
    schedule_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: dict = Depends(_admins)
):
    schedule = await db.get(TimetableSchedule, schedule_id)
    if not schedule or not schedule.is_active:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Schedule not found")
    ensure_school_access(current_user, schedule.school_id)

    schedule.is_active = False
    await db.commit()
    return {"message": "Schedule removed"}
