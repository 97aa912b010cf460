# services/edge_functions/controllers/functions_service.py
"""
Administrative helper endpoints, mounted under ``/functions/v1``.

Every function answers with JSON. Failures carry an ``error`` key rather
than FastAPI's usual ``detail`` so existing dashboard clients keep working.
Each call runs in one transaction: on any failure nothing is written.
"""
import logging
from datetime import datetime, timezone
from typing import List, Optional, Tuple
from uuid import UUID

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy.exc import SQLAlchemyError

from services.access_control.roles import Role, normalize_roles, parse_role
from services.edge_functions.migrations import get_migration, apply_migration
from services.edge_functions.schemas.functions import (
    CreateAdminUserRequest,
    CreateStaffLoginRequest,
    CreateStudentLoginRequest,
    DisableStaffLoginRequest,
    EnsureTablesRequest,
)
from services.user_management.models.profiles import Identity, Profile
from services.user_management.models.schools import School
from services.user_management.models.staff import StaffDetails
from services.user_management.models.students import StudentDetails
from shared.auth import require_roles, ensure_school_access, get_password_hash, has_any_role
from shared.db import get_db
from shared.errors import describe_db_error

LOGGER = logging.getLogger(__name__)

router = APIRouter(prefix="/functions/v1", tags=["Edge Functions"])

_admins = require_roles(Role.SUPER_ADMIN, Role.SCHOOL_ADMIN)

FIX_RLS_DISABLED_MESSAGE = (
    "This functionality has been disabled. The fix-rls edge function no longer applies any changes."
)


def respond(data: dict, status_code: int = status.HTTP_200_OK) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=data)


def fail(message: str, status_code: int, **extra) -> JSONResponse:
    return respond({"error": message, **extra}, status_code)


def normalize_email(email: Optional[str]) -> str:
    return (email or "").strip().lower()


def parse_uuid(value) -> Optional[UUID]:
    try:
        return UUID(str(value))
    except ValueError:
        return None


def missing_fields(payload, names: List[Tuple[str, str]]) -> dict:
    """Map each wire name to True when the field is absent or empty."""
    return {alias: not getattr(payload, name) for name, alias in names}


def _identity_json(identity: Identity) -> dict:
    return {
        "id": str(identity.id),
        "email": identity.email,
        "user_metadata": identity.user_metadata,
        "email_confirmed_at": identity.email_confirmed_at.isoformat() if identity.email_confirmed_at else None,
    }


async def _rollback_and_fail(db: AsyncSession, function: str, error: SQLAlchemyError) -> JSONResponse:
    await db.rollback()
    LOGGER.exception("%s failed", function)
    return fail(describe_db_error(error), status.HTTP_500_INTERNAL_SERVER_ERROR)


# --- CREATE SCHOOL ADMIN ---
@router.post("/create-admin-user")
async def create_admin_user(
    payload: CreateAdminUserRequest,
    db: AsyncSession = Depends(get_db),
    current_user: dict = Depends(require_roles(Role.SUPER_ADMIN))
):
    details = missing_fields(payload, [
        ("admin_email", "admin_email"), ("admin_password", "admin_password"),
        ("admin_school_id", "admin_school_id"),
    ])
    if any(details.values()):
        return fail("Missing required fields", status.HTTP_400_BAD_REQUEST, details=details)

    email = normalize_email(payload.admin_email)
    try:
        if not await db.get(School, payload.admin_school_id):
            return fail("School not found", status.HTTP_500_INTERNAL_SERVER_ERROR)

        metadata = {
            "first_name": payload.admin_first_name,
            "last_name": payload.admin_last_name,
            "role": Role.SCHOOL_ADMIN.value,
            "school_id": payload.admin_school_id,
        }
        identity = Identity(
            email=email,
            hashed_password=get_password_hash(payload.admin_password),
            user_metadata=metadata,
            email_confirmed_at=datetime.now(timezone.utc),
        )
        db.add(identity)
        # a duplicate email fails here, before any profile exists
        await db.flush()

        db.add(Profile(
            id=identity.id,
            email=email,
            first_name=payload.admin_first_name,
            last_name=payload.admin_last_name,
            roles=[Role.SCHOOL_ADMIN.value],
            school_id=payload.admin_school_id,
        ))
        await db.commit()
    except SQLAlchemyError as e:
        return await _rollback_and_fail(db, "create-admin-user", e)

    LOGGER.info("School admin %s created for school %s", email, payload.admin_school_id)
    return respond({
        "user": _identity_json(identity),
        "message": "Admin user created and confirmed successfully",
    })


def may_take_over(current_user: dict, profile: Profile, school_id: str) -> bool:
    """Whether the caller may rewrite an existing profile's roles and school.

    Only a super_admin may touch a super_admin or a profile of another school.
    """
    if has_any_role(current_user, Role.SUPER_ADMIN):
        return True
    if Role.SUPER_ADMIN in normalize_roles(profile.roles):
        return False
    return profile.school_id in (None, school_id)


# --- CREATE / LINK STAFF LOGIN ---
@router.post("/create-staff-login")
async def create_staff_login(
    payload: CreateStaffLoginRequest,
    db: AsyncSession = Depends(get_db),
    current_user: dict = Depends(_admins)
):
    details = missing_fields(payload, [
        ("email", "email"), ("first_name", "firstName"), ("last_name", "lastName"),
        ("school_id", "schoolId"), ("staff_id", "staffId"), ("roles", "roles"),
    ])
    if any(details.values()):
        return fail("Missing required fields", status.HTTP_400_BAD_REQUEST, details=details)

    ensure_school_access(current_user, payload.school_id)

    requested = payload.roles if isinstance(payload.roles, list) else [payload.roles]
    roles = []
    for value in requested:
        role = parse_role(value)
        if role is None:
            return fail(f"Invalid role: {value}", status.HTTP_400_BAD_REQUEST)
        if role == Role.SUPER_ADMIN:
            return fail("The super_admin role cannot be granted to staff", status.HTTP_400_BAD_REQUEST)
        if role.value not in roles:
            roles.append(role.value)

    email = normalize_email(payload.email)
    try:
        staff_id = parse_uuid(payload.staff_id)
        staff = None
        if staff_id:
            result = await db.execute(
                select(StaffDetails).where(
                    StaffDetails.id == staff_id,
                    StaffDetails.school_id == payload.school_id,
                )
            )
            staff = result.scalars().first()
        if not staff:
            return fail("Staff not found in staff_details table", status.HTTP_404_NOT_FOUND)

        if normalize_email(staff.email) != email:
            return fail(
                "Email does not match staff record",
                status.HTTP_400_BAD_REQUEST,
                details={"staffEmail": staff.email, "providedEmail": payload.email},
            )

        identity = (await db.execute(select(Identity).where(Identity.email == email))).scalars().first()
        profile = (await db.execute(select(Profile).where(Profile.email == email))).scalars().first()
        if profile and not may_take_over(current_user, profile, payload.school_id):
            LOGGER.info("Refused linking %s: profile belongs to another school or is a super_admin", email)
            return fail("This user cannot be linked by a school admin", status.HTTP_403_FORBIDDEN)

        if identity and profile:
            profile.first_name = payload.first_name
            profile.last_name = payload.last_name
            profile.school_id = payload.school_id
            profile.roles = roles
            profile.is_active = True
            staff.profile_id = profile.id
            await db.commit()
            LOGGER.info("Linked existing login %s to staff %s", email, staff.id)
            return respond({"user_id": str(profile.id), "status": "linked_existing", "roles": roles})

        if not identity:
            if not payload.password:
                return fail("Password is required to create a login", status.HTTP_400_BAD_REQUEST)
            identity = Identity(
                email=email,
                hashed_password=get_password_hash(payload.password),
                user_metadata={
                    "first_name": payload.first_name,
                    "last_name": payload.last_name,
                    "school_id": payload.school_id,
                    "staff_id": str(staff.id),
                    "roles": roles,
                },
                email_confirmed_at=datetime.now(timezone.utc),
            )
            if profile:
                # a deactivated profile gets its login back under the same id
                identity.id = profile.id
            db.add(identity)
            await db.flush()

        if profile:
            profile.first_name = payload.first_name
            profile.last_name = payload.last_name
            profile.school_id = payload.school_id
            profile.roles = roles
            profile.is_active = True
        else:
            profile = Profile(
                id=identity.id,
                email=email,
                first_name=payload.first_name,
                last_name=payload.last_name,
                school_id=payload.school_id,
                roles=roles,
            )
            db.add(profile)
            await db.flush()

        staff.profile_id = profile.id
        await db.commit()
    except SQLAlchemyError as e:
        return await _rollback_and_fail(db, "create-staff-login", e)

    LOGGER.info("Created login %s for staff %s with roles %s", email, staff.id, roles)
    return respond({"user_id": str(profile.id), "status": "created", "roles": roles})


# --- CREATE / LINK STUDENT LOGIN ---
@router.post("/create-student-login")
async def create_student_login(
    payload: CreateStudentLoginRequest,
    db: AsyncSession = Depends(get_db),
    current_user: dict = Depends(_admins)
):
    details = missing_fields(payload, [
        ("email", "email"), ("first_name", "firstName"), ("last_name", "lastName"),
        ("school_id", "schoolId"), ("student_id", "studentId"),
    ])
    if any(details.values()):
        return fail("Missing required fields", status.HTTP_400_BAD_REQUEST, details=details)

    ensure_school_access(current_user, payload.school_id)

    email = normalize_email(payload.email)
    try:
        student_id = parse_uuid(payload.student_id)
        student = None
        if student_id:
            result = await db.execute(
                select(StudentDetails).where(
                    StudentDetails.id == student_id,
                    StudentDetails.school_id == payload.school_id,
                )
            )
            student = result.scalars().first()
        if not student:
            return fail("Student not found in student_details table", status.HTTP_404_NOT_FOUND)

        result = await db.execute(
            select(Profile).where(Profile.email == email, Profile.school_id == payload.school_id)
        )
        existing_profile = result.scalars().first()
        if existing_profile:
            student.profile_id = existing_profile.id
            await db.commit()
            return respond({"user_id": str(existing_profile.id), "status": "already_exists"})

        taken = await db.execute(select(Identity.id).where(Identity.email == email))
        if taken.first():
            return fail("Failed to create user", status.HTTP_500_INTERNAL_SERVER_ERROR)
        if not payload.password:
            return fail("Password is required to create a login", status.HTTP_400_BAD_REQUEST)

        identity = Identity(
            email=email,
            hashed_password=get_password_hash(payload.password),
            user_metadata={
                "first_name": payload.first_name,
                "last_name": payload.last_name,
                "school_id": payload.school_id,
                "student_id": str(student.id),
                "roles": [Role.STUDENT.value],
            },
            email_confirmed_at=datetime.now(timezone.utc),
        )
        db.add(identity)
        await db.flush()

        db.add(Profile(
            id=identity.id,
            email=email,
            first_name=payload.first_name,
            last_name=payload.last_name,
            school_id=payload.school_id,
            roles=[Role.STUDENT.value],
        ))
        await db.flush()
        student.profile_id = identity.id
        await db.commit()
    except SQLAlchemyError as e:
        return await _rollback_and_fail(db, "create-student-login", e)

    LOGGER.info("Created login %s for student %s", email, student.id)
    return respond({"user_id": str(identity.id), "status": "created"})


# --- DISABLE STAFF LOGIN ---
@router.post("/disable-staff-login")
async def disable_staff_login(
    payload: DisableStaffLoginRequest,
    db: AsyncSession = Depends(get_db),
    current_user: dict = Depends(_admins)
):
    """Remove the staff member's credentials; the profile stays, marked inactive."""
    if not payload.staff_id:
        return fail("Staff ID is required", status.HTTP_400_BAD_REQUEST)

    try:
        staff_id = parse_uuid(payload.staff_id)
        staff = await db.get(StaffDetails, staff_id) if staff_id else None
        if not staff:
            return fail("Staff not found", status.HTTP_404_NOT_FOUND)
        ensure_school_access(current_user, staff.school_id)

        profile_id = staff.profile_id
        if not profile_id:
            return fail("Staff has no associated profile", status.HTTP_400_BAD_REQUEST)

        identity = await db.get(Identity, profile_id)
        if identity:
            await db.delete(identity)
        profile = await db.get(Profile, profile_id)
        if profile:
            profile.is_active = False
        staff.profile_id = None
        await db.commit()
    except SQLAlchemyError as e:
        return await _rollback_and_fail(db, "disable-staff-login", e)

    LOGGER.info("Disabled login of staff %s (profile %s)", staff.id, profile_id)
    return respond({"success": True})


# --- ENSURE TABLES (reviewed migrations only) ---
@router.post("/ensure-tables")
async def ensure_tables(
    payload: EnsureTablesRequest,
    db: AsyncSession = Depends(get_db),
    current_user: dict = Depends(require_roles(Role.SUPER_ADMIN))
):
    if not payload.table_name:
        return fail("Table name is required", status.HTTP_400_BAD_REQUEST)

    migration = get_migration(payload.table_name)
    if migration is None:
        return fail(f"Unknown table: {payload.table_name}", status.HTTP_400_BAD_REQUEST)

    try:
        await apply_migration(db, migration)
        await db.commit()
    except SQLAlchemyError as e:
        return await _rollback_and_fail(db, "ensure-tables", e)

    return respond({"success": True, "message": f"Table {payload.table_name} ensured"})


# --- FIX RLS (retired) ---
@router.post("/fix-rls")
async def fix_rls():
    return respond({"message": FIX_RLS_DISABLED_MESSAGE})
