# services/user_management/controllers/auth_service.py
import logging
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy.exc import IntegrityError

from services.access_control.roles import Role, get_primary_role, get_default_route
from services.user_management.models.profiles import Identity, Profile
from services.user_management.models.schools import School
from services.user_management.schemas.profiles import (
    SignupRequest,
    LoginRequest,
    LoginResponse,
    ProfileOut,
)
from shared.auth import verify_password, get_password_hash, create_profile_token, get_active_user
from shared.db import get_db
from shared.errors import describe_db_error, error_status

LOGGER = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Auth"])


def build_login_response(profile: Profile) -> LoginResponse:
    return LoginResponse(
        access_token=create_profile_token(profile),
        profile=ProfileOut.model_validate(profile),
        primary_role=get_primary_role(profile.roles),
        default_route=get_default_route(profile.roles),
    )


# --- SELF SIGN-UP (always a student) ---
@router.post("/signup", response_model=LoginResponse, status_code=status.HTTP_201_CREATED)
async def signup(payload: SignupRequest, db: AsyncSession = Depends(get_db)):
    email = payload.email.lower()
    existing = await db.execute(select(Identity).where(Identity.email == email))
    if existing.scalars().first():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="User with this email already exists"
        )

    if payload.school_id and not await db.get(School, payload.school_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="School not found")

    identity = Identity(
        email=email,
        hashed_password=get_password_hash(payload.password),
        user_metadata={"first_name": payload.first_name, "last_name": payload.last_name},
    )
    db.add(identity)
    await db.flush()

    profile = Profile(
        id=identity.id,
        email=email,
        first_name=payload.first_name,
        last_name=payload.last_name,
        roles=[Role.STUDENT.value],
        school_id=payload.school_id,
    )
    db.add(profile)
    try:
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        raise HTTPException(status_code=error_status(e), detail=describe_db_error(e))

    await db.refresh(profile)
    LOGGER.info("Signed up %s", email)
    return build_login_response(profile)


# --- LOGIN ---
@router.post("/login", response_model=LoginResponse)
async def login(payload: LoginRequest, db: AsyncSession = Depends(get_db)):
    result = await db.execute(select(Identity).where(Identity.email == payload.email.lower()))
    identity = result.scalars().first()

    if not identity or not verify_password(payload.password, identity.hashed_password):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials"
        )

    profile = await db.get(Profile, identity.id)
    if not profile or not profile.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="This account has been disabled"
        )

    return build_login_response(profile)


# --- CURRENT PROFILE ---
@router.get("/me", response_model=ProfileOut)
async def me(
    db: AsyncSession = Depends(get_db),
    current_user: dict = Depends(get_active_user)
):
    profile = await db.get(Profile, UUID(current_user["user_id"]))
    if not profile:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Profile not found")
    return profile
