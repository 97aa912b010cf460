# services/user_management/controllers/directory_service.py
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy.exc import IntegrityError

from services.access_control.roles import Role
from services.user_management.models.staff import StaffDetails
from services.user_management.models.students import StudentDetails
from services.user_management.schemas.directory import StaffCreate, StaffOut, StudentCreate, StudentOut
from shared.auth import require_roles, ensure_school_access
from shared.db import get_db
from shared.errors import describe_db_error, error_status

router = APIRouter(prefix="/directory", tags=["Staff & Students"])

_admins = require_roles(Role.SUPER_ADMIN, Role.SCHOOL_ADMIN)


async def _save(db: AsyncSession, row):
    db.add(row)
    try:
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        raise HTTPException(status_code=error_status(e), detail=describe_db_error(e))
    await db.refresh(row)
    return row


# --- ADD STAFF MEMBER ---
@router.post("/staff", response_model=StaffOut, status_code=status.HTTP_201_CREATED)
async def add_staff(
    payload: StaffCreate,
    db: AsyncSession = Depends(get_db),
    current_user: dict = Depends(_admins)
):
    ensure_school_access(current_user, payload.school_id)
    data = payload.model_dump()
    if data["email"]:
        data["email"] = data["email"].lower()
    return await _save(db, StaffDetails(**data))


@router.get("/{school_id}/staff", response_model=List[StaffOut])
async def list_staff(
    school_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: dict = Depends(_admins)
):
    ensure_school_access(current_user, school_id)
    result = await db.execute(
        select(StaffDetails)
        .where(StaffDetails.school_id == school_id)
        .order_by(StaffDetails.first_name, StaffDetails.last_name)
    )
    return result.scalars().all()


# --- ADD STUDENT ---
@router.post("/students", response_model=StudentOut, status_code=status.HTTP_201_CREATED)
async def add_student(
    payload: StudentCreate,
    db: AsyncSession = Depends(get_db),
    current_user: dict = Depends(_admins)
):
    ensure_school_access(current_user, payload.school_id)
    data = payload.model_dump()
    if data["email"]:
        data["email"] = data["email"].lower()
    return await _save(db, StudentDetails(**data))


@router.get("/{school_id}/students", response_model=List[StudentOut])
async def list_students(
    school_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: dict = Depends(require_roles(Role.SUPER_ADMIN, Role.SCHOOL_ADMIN, Role.TEACHER))
):
    ensure_school_access(current_user, school_id)
    result = await db.execute(
        select(StudentDetails)
        .where(StudentDetails.school_id == school_id)
        .order_by(StudentDetails.first_name, StudentDetails.last_name)
    )
    return result.scalars().all()
