# services/user_management/schemas/schools.py

from pydantic import BaseModel, EmailStr
from typing import Optional, Dict, Any
from datetime import datetime


class SchoolCreate(BaseModel):
    name: str
    address: str
    board: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[EmailStr] = None
    settings: Optional[Dict[str, Any]] = None


class SchoolUpdate(BaseModel):
    name: Optional[str] = None
    address: Optional[str] = None
    board: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[EmailStr] = None
    settings: Optional[Dict[str, Any]] = None


class SchoolOut(BaseModel):
    id: str
    name: str
    address: str
    board: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    settings: Optional[Dict[str, Any]] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
