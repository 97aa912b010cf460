# services/academic/controllers/academic_service.py
import logging
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy.exc import IntegrityError

from services.access_control.roles import Role
from services.academic.models.academic import AcademicYear, Course, Batch, Subject, BatchStudent
from services.academic.schemas.academic import (
    AcademicYearCreate,
    AcademicYearOut,
    CourseCreate,
    CourseOut,
    BatchCreate,
    BatchOut,
    SubjectCreate,
    SubjectOut,
    BatchStudentsAssign,
    BatchStudentsAssigned,
    CloneStructureRequest,
    CloneStructureResult,
)
from services.user_management.models.profiles import Profile
from services.user_management.models.students import StudentDetails
from services.user_management.schemas.directory import StudentOut
from shared.auth import require_roles, ensure_school_access
from shared.db import get_db
from shared.errors import ServiceError, describe_db_error, error_status

LOGGER = logging.getLogger(__name__)

router = APIRouter(prefix="/academic", tags=["Academic Structure"])

_admins = require_roles(Role.SUPER_ADMIN, Role.SCHOOL_ADMIN)
_readers = require_roles(Role.SUPER_ADMIN, Role.SCHOOL_ADMIN, Role.TEACHER)


async def _commit(db: AsyncSession):
    try:
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        raise HTTPException(status_code=error_status(e), detail=describe_db_error(e))


async def get_year_for(db: AsyncSession, year_id: UUID, current_user: dict) -> AcademicYear:
    year = await db.get(AcademicYear, year_id)
    if not year:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Academic year not found")
    ensure_school_access(current_user, year.school_id)
    return year


def _check_same_year(year: AcademicYear, school_id: str):
    if year.school_id != school_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Academic year belongs to a different school"
        )


# --- ACADEMIC YEARS ---
@router.post("/years", response_model=AcademicYearOut, status_code=status.HTTP_201_CREATED)
async def create_academic_year(
    payload: AcademicYearCreate,
    db: AsyncSession = Depends(get_db),
    current_user: dict = Depends(_admins)
):
    ensure_school_access(current_user, payload.school_id)
    if payload.end_date <= payload.start_date:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="End date must be after start date"
        )

    year = AcademicYear(**payload.model_dump())
    db.add(year)
    await _commit(db)
    await db.refresh(year)
    return year


@router.get("/{school_id}/years", response_model=List[AcademicYearOut])
async def list_academic_years(
    school_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: dict = Depends(_readers)
):
    ensure_school_access(current_user, school_id)
    result = await db.execute(
        select(AcademicYear)
        .where(AcademicYear.school_id == school_id)
        .order_by(AcademicYear.start_date.desc())
    )
    return result.scalars().all()


@router.post("/years/{year_id}/set-active", response_model=AcademicYearOut)
async def set_active_academic_year(
    year_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: dict = Depends(_admins)
):
    """Make ``year_id`` the only active year of its school, in one transaction."""
    year = await get_year_for(db, year_id, current_user)
    if year.is_archived:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="An archived academic year cannot be activated"
        )

    await db.execute(
        update(AcademicYear)
        .where(AcademicYear.school_id == year.school_id, AcademicYear.id != year.id)
        .values(is_active=False)
    )
    year.is_active = True
    await _commit(db)
    await db.refresh(year)
    LOGGER.info("Academic year %s is now active for school %s", year.name, year.school_id)
    return year


@router.post("/years/{year_id}/archive", response_model=AcademicYearOut)
async def archive_academic_year(
    year_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: dict = Depends(_admins)
):
    year = await get_year_for(db, year_id, current_user)
    year.is_archived = True
    year.is_active = False
    await _commit(db)
    await db.refresh(year)
    return year


async def clone_academic_structure(
    db: AsyncSession, source: AcademicYear, target: AcademicYear, options: CloneStructureRequest
) -> CloneStructureResult:
    """Copy courses, batches and subjects of ``source`` into ``target``.

    Rows whose name already exists in the target year are left alone, so the
    copy can be re-run. Batches keep their course by name and lose their
    class teacher, who is assigned per year. Nothing is committed here.
    """
    if source.id == target.id:
        raise ServiceError("Source and target academic years must differ")
    if source.school_id != target.school_id:
        raise ServiceError("Academic years belong to different schools")

    result = CloneStructureResult(source_year_id=source.id, target_year_id=target.id)

    target_courses = {
        c.name: c for c in (await db.execute(
            select(Course).where(Course.academic_year_id == target.id)
        )).scalars()
    }
    source_courses = (await db.execute(
        select(Course).where(Course.academic_year_id == source.id)
    )).scalars().all()

    if options.clone_courses:
        for course in source_courses:
            if course.name in target_courses:
                continue
            copy = Course(
                school_id=target.school_id,
                academic_year_id=target.id,
                name=course.name,
                description=course.description,
            )
            db.add(copy)
            target_courses[course.name] = copy
            result.courses += 1
        await db.flush()

    if options.clone_batches:
        course_names = {c.id: c.name for c in source_courses}
        existing = {
            (b.course_id, b.name) for b in (await db.execute(
                select(Batch).where(Batch.academic_year_id == target.id)
            )).scalars()
        }
        source_batches = (await db.execute(
            select(Batch).where(Batch.academic_year_id == source.id)
        )).scalars().all()
        for batch in source_batches:
            target_course = target_courses.get(course_names.get(batch.course_id))
            if target_course is None or (target_course.id, batch.name) in existing:
                continue
            db.add(Batch(
                school_id=target.school_id,
                academic_year_id=target.id,
                course_id=target_course.id,
                name=batch.name,
                capacity=batch.capacity,
                is_active=batch.is_active,
            ))
            result.batches += 1

    if options.clone_subjects:
        existing_subjects = set((await db.execute(
            select(Subject.name).where(Subject.academic_year_id == target.id)
        )).scalars())
        source_subjects = (await db.execute(
            select(Subject).where(Subject.academic_year_id == source.id)
        )).scalars().all()
        for subject in source_subjects:
            if subject.name in existing_subjects:
                continue
            db.add(Subject(
                school_id=target.school_id,
                academic_year_id=target.id,
                name=subject.name,
                code=subject.code,
                is_core=subject.is_core,
            ))
            result.subjects += 1

    return result


@router.post("/clone-structure", response_model=CloneStructureResult)
async def clone_structure(
    payload: CloneStructureRequest,
    db: AsyncSession = Depends(get_db),
    current_user: dict = Depends(_admins)
):
    source = await get_year_for(db, payload.source_year_id, current_user)
    target = await get_year_for(db, payload.target_year_id, current_user)
    result = await clone_academic_structure(db, source, target, payload)
    await _commit(db)
    LOGGER.info(
        "Cloned %s courses, %s batches, %s subjects from %s to %s",
        result.courses, result.batches, result.subjects, source.name, target.name,
    )
    return result


# --- COURSES ---
@router.post("/courses", response_model=CourseOut, status_code=status.HTTP_201_CREATED)
async def create_course(
    payload: CourseCreate,
    db: AsyncSession = Depends(get_db),
    current_user: dict = Depends(_admins)
):
    ensure_school_access(current_user, payload.school_id)
    year = await get_year_for(db, payload.academic_year_id, current_user)
    _check_same_year(year, payload.school_id)

    course = Course(**payload.model_dump())
    db.add(course)
    await _commit(db)
    await db.refresh(course)
    return course


@router.get("/{school_id}/courses", response_model=List[CourseOut])
async def list_courses(
    school_id: str,
    academic_year_id: Optional[UUID] = None,
    db: AsyncSession = Depends(get_db),
    current_user: dict = Depends(_readers)
):
    ensure_school_access(current_user, school_id)
    stmt = select(Course).where(Course.school_id == school_id)
    if academic_year_id:
        stmt = stmt.where(Course.academic_year_id == academic_year_id)
    result = await db.execute(stmt.order_by(Course.name))
    return result.scalars().all()


# --- BATCHES ---
@router.post("/batches", response_model=BatchOut, status_code=status.HTTP_201_CREATED)
async def create_batch(
    payload: BatchCreate,
    db: AsyncSession = Depends(get_db),
    current_user: dict = Depends(_admins)
):
    ensure_school_access(current_user, payload.school_id)
    year = await get_year_for(db, payload.academic_year_id, current_user)
    _check_same_year(year, payload.school_id)

    course = await db.get(Course, payload.course_id)
    if not course or course.academic_year_id != year.id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Course not found in this academic year"
        )

    if payload.class_teacher_id:
        teacher = await db.get(Profile, payload.class_teacher_id)
        if not teacher or teacher.school_id != payload.school_id or Role.TEACHER.value not in (teacher.roles or []):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Class teacher must be a teacher of this school"
            )

    batch = Batch(**payload.model_dump())
    db.add(batch)
    await _commit(db)
    await db.refresh(batch)
    return batch


@router.get("/{school_id}/batches", response_model=List[BatchOut])
async def list_batches(
    school_id: str,
    academic_year_id: Optional[UUID] = None,
    db: AsyncSession = Depends(get_db),
    current_user: dict = Depends(_readers)
):
    ensure_school_access(current_user, school_id)
    stmt = select(Batch).where(Batch.school_id == school_id)
    if academic_year_id:
        stmt = stmt.where(Batch.academic_year_id == academic_year_id)
    result = await db.execute(stmt.order_by(Batch.name))
    return result.scalars().all()


async def get_batch_for(db: AsyncSession, batch_id: UUID, current_user: dict) -> Batch:
    batch = await db.get(Batch, batch_id)
    if not batch:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Batch not found")
    ensure_school_access(current_user, batch.school_id)
    return batch


@router.post("/batches/{batch_id}/students", response_model=BatchStudentsAssigned)
async def assign_students_to_batch(
    batch_id: UUID,
    payload: BatchStudentsAssign,
    db: AsyncSession = Depends(get_db),
    current_user: dict = Depends(_admins)
):
    batch = await get_batch_for(db, batch_id, current_user)

    wanted = set(payload.student_ids)
    found = set((await db.execute(
        select(StudentDetails.id).where(
            StudentDetails.id.in_(wanted),
            StudentDetails.school_id == batch.school_id,
        )
    )).scalars())
    if found != wanted:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Some students do not belong to this school"
        )

    already = set((await db.execute(
        select(BatchStudent.student_id).where(BatchStudent.batch_id == batch.id)
    )).scalars())
    to_add = wanted - already

    if batch.capacity is not None and len(already) + len(to_add) > batch.capacity:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Batch capacity of {batch.capacity} would be exceeded"
        )

    for student_id in to_add:
        db.add(BatchStudent(batch_id=batch.id, student_id=student_id))
    await _commit(db)

    return BatchStudentsAssigned(batch_id=batch.id, added=len(to_add), total=len(already) + len(to_add))


@router.get("/batches/{batch_id}/students", response_model=List[StudentOut])
async def list_batch_students(
    batch_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: dict = Depends(_readers)
):
    batch = await get_batch_for(db, batch_id, current_user)
    result = await db.execute(
        select(StudentDetails)
        .join(BatchStudent, BatchStudent.student_id == StudentDetails.id)
        .where(BatchStudent.batch_id == batch.id)
        .order_by(StudentDetails.first_name, StudentDetails.last_name)
    )
    return result.scalars().all()


# --- SUBJECTS ---
@router.post("/subjects", response_model=SubjectOut, status_code=status.HTTP_201_CREATED)
async def create_subject(
    payload: SubjectCreate,
    db: AsyncSession = Depends(get_db),
    current_user: dict = Depends(_admins)
):
    ensure_school_access(current_user, payload.school_id)
    year = await get_year_for(db, payload.academic_year_id, current_user)
    _check_same_year(year, payload.school_id)

    subject = Subject(**payload.model_dump())
    db.add(subject)
    await _commit(db)
    await db.refresh(subject)
    return subject


@router.get("/{school_id}/subjects", response_model=List[SubjectOut])
async def list_subjects(
    school_id: str,
    academic_year_id: Optional[UUID] = None,
    db: AsyncSession = Depends(get_db),
    current_user: dict = Depends(require_roles(Role.SUPER_ADMIN, Role.SCHOOL_ADMIN, Role.TEACHER, Role.STUDENT))
):
    ensure_school_access(current_user, school_id)
    stmt = select(Subject).where(Subject.school_id == school_id)
    if academic_year_id:
        stmt = stmt.where(Subject.academic_year_id == academic_year_id)
    result = await db.execute(stmt.order_by(Subject.name))
    return result.scalars().all()
