# services/access_control/controllers/access_service.py
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from services.access_control.guard import SessionState, evaluate_access
from services.access_control.menu import get_role_menu
from services.access_control.roles import get_primary_role, get_default_route
from services.access_control.route_rules import capabilities_for
from services.access_control.schemas.access import (
    AccessMe,
    RoleMenu,
    MenuEntryOut,
    AccessCheckRequest,
    AccessCheckResponse,
    Capabilities,
)
from services.user_management.models.profiles import Profile
from services.user_management.schemas.profiles import ProfileOut
from shared.auth import get_current_user, get_optional_user
from shared.db import get_db

router = APIRouter(prefix="/access", tags=["Access"])


async def _load_profile(db: AsyncSession, current_user: dict) -> Profile:
    profile = await db.get(Profile, UUID(current_user["user_id"]))
    if not profile or not profile.is_active:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Profile not found")
    return profile


@router.get("/me", response_model=AccessMe)
async def access_me(
    db: AsyncSession = Depends(get_db),
    current_user: dict = Depends(get_current_user)
):
    profile = await _load_profile(db, current_user)
    return AccessMe(
        profile=ProfileOut.model_validate(profile),
        primary_role=get_primary_role(profile.roles),
        default_route=get_default_route(profile.roles),
    )


@router.get("/menu", response_model=RoleMenu)
async def access_menu(
    db: AsyncSession = Depends(get_db),
    current_user: dict = Depends(get_current_user)
):
    profile = await _load_profile(db, current_user)
    role = get_primary_role(profile.roles)
    return RoleMenu(
        role=role,
        entries=[MenuEntryOut.model_validate(entry) for entry in get_role_menu(role)],
    )


@router.post("/check", response_model=AccessCheckResponse)
async def access_check(
    payload: AccessCheckRequest,
    db: AsyncSession = Depends(get_db),
    current_user: Optional[dict] = Depends(get_optional_user)
):
    """Run the route guard for the caller; anonymous callers are allowed."""
    session = SessionState()
    if current_user:
        profile = await db.get(Profile, UUID(current_user["user_id"]))
        if profile and profile.is_active:
            session = SessionState(user_id=str(profile.id), roles=list(profile.roles or []))

    decision = evaluate_access(session, payload.path)
    return AccessCheckResponse(path=payload.path, action=decision.action, target=decision.target)


@router.get("/capabilities", response_model=Capabilities)
async def access_capabilities(
    db: AsyncSession = Depends(get_db),
    current_user: dict = Depends(get_current_user)
):
    profile = await _load_profile(db, current_user)
    roles = list(profile.roles or [])
    return Capabilities(roles=roles, paths=capabilities_for(roles))
