# shared/auth.py
import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from uuid import UUID

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy.ext.asyncio import AsyncSession

from services.access_control.roles import Role, normalize_roles
from services.user_management.models.profiles import Profile
from shared.config import settings
from shared.db import get_db

LOGGER = logging.getLogger(__name__)

pwd_context = CryptContext(
    schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=settings.bcrypt_rounds
)


def verify_password(plain_password, hashed_password):
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password):
    return pwd_context.hash(password)


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None):
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    )
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.secret_key, algorithm=settings.algorithm)


def create_profile_token(profile) -> str:
    return create_access_token({
        "sub": profile.email,
        "user_id": str(profile.id),
        "roles": list(profile.roles or []),
        "school_id": profile.school_id,
    })


def decode_token(token: str):
    try:
        return jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
    except JWTError:
        return None


oauth2_scheme = OAuth2PasswordBearer(tokenUrl="auth/login")


def get_current_user(token: str = Depends(oauth2_scheme)):
    payload = decode_token(token)
    if not payload:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user_id: str = payload.get("user_id")
    email: str = payload.get("sub")
    roles = payload.get("roles")
    school_id: str = payload.get("school_id")

    if not user_id or not email or not isinstance(roles, list):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Token is missing required fields"
        )

    return {
        "user_id": user_id,
        "email": email,
        "roles": [str(role) for role in roles],
        "school_id": school_id,
    }


optional_oauth2_scheme = OAuth2PasswordBearer(tokenUrl="auth/login", auto_error=False)


def get_optional_user(token: Optional[str] = Depends(optional_oauth2_scheme)):
    """Like get_current_user, but anonymous callers get None instead of a 401."""
    if not token:
        return None
    return get_current_user(token)


async def get_active_user(
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """The token holder, with roles and school read from their stored profile.

    A disabled or deleted profile is refused even while its token is unexpired.
    """
    try:
        profile_id = UUID(current_user["user_id"])
    except ValueError:
        profile_id = None
    profile = await db.get(Profile, profile_id) if profile_id else None
    if not profile or not profile.is_active:
        LOGGER.info("Refused token of inactive or unknown profile %s", current_user["email"])
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="This account is disabled or no longer exists",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return {
        "user_id": str(profile.id),
        "email": profile.email,
        "roles": [str(role) for role in profile.roles or []],
        "school_id": profile.school_id,
    }


def has_any_role(current_user: dict, *roles: Role) -> bool:
    return bool(set(normalize_roles(current_user["roles"])) & set(roles))


def require_roles(*roles: Role):
    """Dependency factory: the caller must hold at least one of ``roles``."""

    def dependency(current_user: dict = Depends(get_active_user)):
        if not has_any_role(current_user, *roles):
            LOGGER.info(
                "Denied %s: holds %s, needs one of %s",
                current_user["email"], current_user["roles"], [r.value for r in roles],
            )
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Not authorized to perform this action",
            )
        return current_user

    return dependency


def ensure_school_access(current_user: dict, school_id: Optional[str]) -> None:
    # super_admin is the only role allowed across tenants
    if has_any_role(current_user, Role.SUPER_ADMIN):
        return
    if not school_id or current_user["school_id"] != school_id:
        LOGGER.info("Denied %s: cross-tenant access to school %s", current_user["email"], school_id)
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You can only access data from your own school",
        )
