# services/access_control/schemas/access.py
from pydantic import BaseModel
from typing import List, Optional

from services.access_control.guard import AccessAction
from services.access_control.roles import Role
from services.user_management.schemas.profiles import ProfileOut


class MenuEntryOut(BaseModel):
    label: str
    path: str
    icon: str
    badge: Optional[int] = None

    class Config:
        from_attributes = True


class AccessMe(BaseModel):
    profile: ProfileOut
    primary_role: Optional[Role] = None
    default_route: str


class RoleMenu(BaseModel):
    role: Optional[Role] = None
    entries: List[MenuEntryOut]


class AccessCheckRequest(BaseModel):
    path: str


class AccessCheckResponse(BaseModel):
    path: str
    action: AccessAction
    target: Optional[str] = None


class Capabilities(BaseModel):
    roles: List[str]
    paths: List[str]
