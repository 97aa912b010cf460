# services/user_management/controllers/school_service.py
import logging
from typing import List
from uuid import uuid4

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy.exc import IntegrityError

from services.access_control.roles import Role
from services.user_management.models.schools import School
from services.user_management.schemas.schools import SchoolCreate, SchoolUpdate, SchoolOut
from shared.auth import require_roles, ensure_school_access
from shared.db import get_db
from shared.errors import describe_db_error, error_status

LOGGER = logging.getLogger(__name__)

router = APIRouter(prefix="/schools", tags=["Schools"])


# --- SCHOOL (TENANT) REGISTRATION ---
@router.post("/", response_model=SchoolOut, status_code=status.HTTP_201_CREATED)
async def register_school(
    school_data: SchoolCreate,
    db: AsyncSession = Depends(get_db),
    current_user: dict = Depends(require_roles(Role.SUPER_ADMIN))
):
    if school_data.email:
        result = await db.execute(select(School).where(School.email == school_data.email))
        if result.scalars().first():
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="School with this email already exists"
            )

    new_school = School(id=str(uuid4()), **school_data.model_dump())
    db.add(new_school)
    try:
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        raise HTTPException(status_code=error_status(e), detail=describe_db_error(e))

    await db.refresh(new_school)
    LOGGER.info("School %s registered by %s", new_school.id, current_user["email"])
    return new_school


# --- LIST SCHOOLS ---
@router.get("/", response_model=List[SchoolOut])
async def list_schools(
    db: AsyncSession = Depends(get_db),
    current_user: dict = Depends(require_roles(Role.SUPER_ADMIN))
):
    result = await db.execute(select(School).order_by(School.name))
    return result.scalars().all()


@router.get("/{school_id}", response_model=SchoolOut)
async def get_school(
    school_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: dict = Depends(require_roles(Role.SUPER_ADMIN, Role.SCHOOL_ADMIN))
):
    ensure_school_access(current_user, school_id)
    school = await db.get(School, school_id)
    if not school:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="School not found")
    return school


@router.patch("/{school_id}", response_model=SchoolOut)
async def update_school(
    school_id: str,
    payload: SchoolUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: dict = Depends(require_roles(Role.SUPER_ADMIN, Role.SCHOOL_ADMIN))
):
    ensure_school_access(current_user, school_id)
    school = await db.get(School, school_id)
    if not school:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="School not found")

    for key, value in payload.model_dump(exclude_unset=True).items():
        setattr(school, key, value)
    try:
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        raise HTTPException(status_code=error_status(e), detail=describe_db_error(e))

    await db.refresh(school)
    return school
