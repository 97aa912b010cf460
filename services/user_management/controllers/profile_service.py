# services/user_management/controllers/profile_service.py
import logging
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from services.access_control.roles import Role, normalize_roles
from services.user_management.models.profiles import Profile
from services.user_management.schemas.profiles import ProfileOut, ProfileUpdate, RoleUpdate
from shared.auth import get_active_user, require_roles, ensure_school_access, has_any_role
from shared.db import get_db

LOGGER = logging.getLogger(__name__)

router = APIRouter(prefix="/profiles", tags=["Profiles"])


# --- LIST PROFILES OF A SCHOOL ---
@router.get("/", response_model=List[ProfileOut])
async def list_profiles(
    school_id: str,
    role: Optional[Role] = None,
    db: AsyncSession = Depends(get_db),
    current_user: dict = Depends(require_roles(Role.SUPER_ADMIN, Role.SCHOOL_ADMIN))
):
    ensure_school_access(current_user, school_id)
    result = await db.execute(
        select(Profile)
        .where(Profile.school_id == school_id)
        .order_by(Profile.first_name, Profile.last_name)
    )
    profiles = result.scalars().all()
    if role is not None:
        profiles = [p for p in profiles if role in normalize_roles(p.roles)]
    return profiles


# --- UPDATE OWN PROFILE (roles excluded) ---
@router.patch("/me", response_model=ProfileOut)
async def update_my_profile(
    payload: ProfileUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: dict = Depends(get_active_user)
):
    profile = await db.get(Profile, UUID(current_user["user_id"]))
    if not profile:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Profile not found")

    for key, value in payload.model_dump(exclude_unset=True).items():
        setattr(profile, key, value)
    await db.commit()
    await db.refresh(profile)
    return profile


# --- CHANGE ROLES (privileged) ---
@router.put("/{profile_id}/roles", response_model=ProfileOut)
async def update_profile_roles(
    profile_id: UUID,
    payload: RoleUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: dict = Depends(require_roles(Role.SUPER_ADMIN, Role.SCHOOL_ADMIN))
):
    profile = await db.get(Profile, profile_id)
    if not profile:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Profile not found")

    if not has_any_role(current_user, Role.SUPER_ADMIN):
        ensure_school_access(current_user, profile.school_id)
        if Role.SUPER_ADMIN in payload.roles or Role.SUPER_ADMIN in normalize_roles(profile.roles):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Only a super_admin can grant or revoke the super_admin role"
            )

    new_roles = [role.value for role in normalize_roles(payload.roles)]
    LOGGER.info("Roles of %s changed from %s to %s by %s",
                profile.email, profile.roles, new_roles, current_user["email"])
    profile.roles = new_roles
    await db.commit()
    await db.refresh(profile)
    return profile
