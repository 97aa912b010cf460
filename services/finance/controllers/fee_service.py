# services/finance/controllers/fee_service.py
import logging
from decimal import Decimal
from typing import Dict, List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy.exc import IntegrityError

from services.access_control.roles import Role
from services.academic.models.academic import AcademicYear
from services.finance.models.fees import FeeStructure, FeeComponent
from services.finance.schemas.fees import (
    FeeComponentIn,
    FeeComponentOut,
    FeeStructureCreate,
    FeeStructureUpdate,
    FeeStructureOut,
)
from shared.auth import require_roles, ensure_school_access
from shared.db import get_db
from shared.errors import describe_db_error, error_status

LOGGER = logging.getLogger(__name__)

router = APIRouter(prefix="/fees", tags=["Fees"])

_admins = require_roles(Role.SUPER_ADMIN, Role.SCHOOL_ADMIN)
_readers = require_roles(Role.SUPER_ADMIN, Role.SCHOOL_ADMIN, Role.STUDENT, Role.PARENT)


async def _get_year(db: AsyncSession, year_id: UUID, school_id: str) -> AcademicYear:
    year = await db.get(AcademicYear, year_id)
    if not year or year.school_id != school_id:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Academic year not found")
    return year


async def _get_structure(db: AsyncSession, structure_id: UUID, current_user: dict) -> FeeStructure:
    structure = await db.get(FeeStructure, structure_id)
    if not structure:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Fee structure not found")
    ensure_school_access(current_user, structure.school_id)
    return structure


def _add_components(db: AsyncSession, structure: FeeStructure, components: List[FeeComponentIn]) -> List[FeeComponent]:
    rows = [
        FeeComponent(
            fee_structure_id=structure.id,
            name=component.name,
            amount=component.amount,
            due_date=component.due_date,
            recurring=component.recurring.value,
        )
        for component in components
    ]
    db.add_all(rows)
    structure.total_amount = sum((row.amount for row in rows), Decimal("0"))
    return rows


async def _load_components(db: AsyncSession, structure_ids: List[UUID]) -> Dict[UUID, List[FeeComponent]]:
    components: Dict[UUID, List[FeeComponent]] = {structure_id: [] for structure_id in structure_ids}
    if structure_ids:
        result = await db.execute(
            select(FeeComponent)
            .where(FeeComponent.fee_structure_id.in_(structure_ids))
            .order_by(FeeComponent.name)
        )
        for component in result.scalars():
            components[component.fee_structure_id].append(component)
    return components


def _structure_out(structure: FeeStructure, components: List[FeeComponent]) -> FeeStructureOut:
    return FeeStructureOut(
        id=structure.id,
        school_id=structure.school_id,
        academic_year_id=structure.academic_year_id,
        name=structure.name,
        total_amount=structure.total_amount,
        components=[FeeComponentOut.model_validate(c) for c in components],
        created_at=structure.created_at,
        updated_at=structure.updated_at,
    )


async def _commit(db: AsyncSession):
    try:
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        raise HTTPException(status_code=error_status(e), detail=describe_db_error(e))


# --- CREATE FEE STRUCTURE ---
@router.post("/structures", response_model=FeeStructureOut, status_code=status.HTTP_201_CREATED)
async def create_fee_structure(
    payload: FeeStructureCreate,
    db: AsyncSession = Depends(get_db),
    current_user: dict = Depends(_admins)
):
    ensure_school_access(current_user, payload.school_id)
    await _get_year(db, payload.academic_year_id, payload.school_id)

    structure = FeeStructure(
        school_id=payload.school_id,
        academic_year_id=payload.academic_year_id,
        name=payload.name.strip(),
    )
    db.add(structure)
    try:
        await db.flush()
        components = _add_components(db, structure, payload.components)
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        raise HTTPException(status_code=error_status(e), detail=describe_db_error(e))
    await db.refresh(structure)

    LOGGER.info("Created fee structure %r for school %s", structure.name, structure.school_id)
    return _structure_out(structure, components)


@router.get("/{school_id}/structures", response_model=List[FeeStructureOut])
async def list_fee_structures(
    school_id: str,
    academic_year_id: Optional[UUID] = None,
    q: Optional[str] = None,
    db: AsyncSession = Depends(get_db),
    current_user: dict = Depends(_readers)
):
    """Fee structures of a school, newest first. ``q`` filters by name."""
    ensure_school_access(current_user, school_id)
    stmt = select(FeeStructure).where(FeeStructure.school_id == school_id)
    if academic_year_id:
        stmt = stmt.where(FeeStructure.academic_year_id == academic_year_id)
    if q and q.strip():
        stmt = stmt.where(FeeStructure.name.ilike(f"%{q.strip()}%"))
    structures = (await db.execute(
        stmt.order_by(FeeStructure.created_at.desc(), FeeStructure.name)
    )).scalars().all()

    components = await _load_components(db, [s.id for s in structures])
    return [_structure_out(s, components[s.id]) for s in structures]


@router.get("/structures/{structure_id}", response_model=FeeStructureOut)
async def get_fee_structure(
    structure_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: dict = Depends(_readers)
):
    structure = await _get_structure(db, structure_id, current_user)
    components = await _load_components(db, [structure.id])
    return _structure_out(structure, components[structure.id])


# --- UPDATE FEE STRUCTURE (components are replaced as a whole) ---
@router.put("/structures/{structure_id}", response_model=FeeStructureOut)
async def update_fee_structure(
    structure_id: UUID,
    payload: FeeStructureUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: dict = Depends(_admins)
):
    structure = await _get_structure(db, structure_id, current_user)
    if payload.academic_year_id is not None:
        await _get_year(db, payload.academic_year_id, structure.school_id)
        structure.academic_year_id = payload.academic_year_id
    if payload.name is not None:
        structure.name = payload.name.strip()

    if payload.components is not None:
        await db.execute(delete(FeeComponent).where(FeeComponent.fee_structure_id == structure.id))
        _add_components(db, structure, payload.components)

    await _commit(db)
    await db.refresh(structure)
    components = await _load_components(db, [structure.id])

    LOGGER.info("Updated fee structure %s", structure.id)
    return _structure_out(structure, components[structure.id])


@router.delete("/structures/{structure_id}")
async def delete_fee_structure(
    structure_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: dict = Depends(_admins)
):
    structure = await _get_structure(db, structure_id, current_user)
    await db.execute(delete(FeeComponent).where(FeeComponent.fee_structure_id == structure.id))
    await db.delete(structure)
    await _commit(db)

    LOGGER.info("Deleted fee structure %s", structure_id)
    return {"message": "Fee structure deleted"}
