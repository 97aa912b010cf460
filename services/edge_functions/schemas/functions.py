# services/edge_functions/schemas/functions.py
from pydantic import BaseModel, Field
from typing import List, Optional, Union


class CreateAdminUserRequest(BaseModel):
    admin_email: Optional[str] = None
    admin_password: Optional[str] = None
    admin_first_name: Optional[str] = None
    admin_last_name: Optional[str] = None
    admin_school_id: Optional[str] = None


class CreateStaffLoginRequest(BaseModel):
    email: Optional[str] = None
    first_name: Optional[str] = Field(default=None, alias="firstName")
    last_name: Optional[str] = Field(default=None, alias="lastName")
    school_id: Optional[str] = Field(default=None, alias="schoolId")
    password: Optional[str] = None
    staff_id: Optional[str] = Field(default=None, alias="staffId")
    roles: Optional[Union[List[str], str]] = None

    class Config:
        populate_by_name = True


class CreateStudentLoginRequest(BaseModel):
    email: Optional[str] = None
    first_name: Optional[str] = Field(default=None, alias="firstName")
    last_name: Optional[str] = Field(default=None, alias="lastName")
    school_id: Optional[str] = Field(default=None, alias="schoolId")
    password: Optional[str] = None
    student_id: Optional[str] = Field(default=None, alias="studentId")

    class Config:
        populate_by_name = True


class DisableStaffLoginRequest(BaseModel):
    staff_id: Optional[str] = Field(default=None, alias="staffId")

    class Config:
        populate_by_name = True


class EnsureTablesRequest(BaseModel):
    table_name: Optional[str] = Field(default=None, alias="tableName")

    class Config:
        populate_by_name = True
