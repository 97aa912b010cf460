# services/user_management/schemas/directory.py
from pydantic import BaseModel, EmailStr
from typing import Optional
from datetime import datetime
from uuid import UUID


class StaffCreate(BaseModel):
    school_id: str
    first_name: str
    last_name: str
    email: Optional[EmailStr] = None
    employee_id: Optional[str] = None
    designation: Optional[str] = None


class StaffOut(BaseModel):
    id: UUID
    school_id: str
    first_name: str
    last_name: str
    email: Optional[str] = None
    employee_id: Optional[str] = None
    designation: Optional[str] = None
    profile_id: Optional[UUID] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class StudentCreate(BaseModel):
    school_id: str
    first_name: str
    last_name: str
    email: Optional[EmailStr] = None
    admission_number: Optional[str] = None


class StudentOut(BaseModel):
    id: UUID
    school_id: str
    first_name: str
    last_name: str
    email: Optional[str] = None
    admission_number: Optional[str] = None
    profile_id: Optional[UUID] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
