# services/academic/schemas/academic.py
from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import date
from uuid import UUID


class AcademicYearCreate(BaseModel):
    school_id: str
    name: str
    start_date: date
    end_date: date


class AcademicYearOut(BaseModel):
    id: UUID
    school_id: str
    name: str
    start_date: date
    end_date: date
    is_active: bool
    is_archived: bool

    class Config:
        from_attributes = True


class CourseCreate(BaseModel):
    school_id: str
    academic_year_id: UUID
    name: str
    description: Optional[str] = None


class CourseOut(BaseModel):
    id: UUID
    school_id: str
    academic_year_id: UUID
    name: str
    description: Optional[str] = None

    class Config:
        from_attributes = True


class BatchCreate(BaseModel):
    school_id: str
    academic_year_id: UUID
    course_id: UUID
    name: str
    capacity: Optional[int] = Field(default=None, ge=1)
    class_teacher_id: Optional[UUID] = None


class BatchOut(BaseModel):
    id: UUID
    school_id: str
    academic_year_id: UUID
    course_id: UUID
    name: str
    capacity: Optional[int] = None
    class_teacher_id: Optional[UUID] = None
    is_active: bool

    class Config:
        from_attributes = True


class SubjectCreate(BaseModel):
    school_id: str
    academic_year_id: UUID
    name: str
    code: Optional[str] = None
    is_core: bool = True


class SubjectOut(BaseModel):
    id: UUID
    school_id: str
    academic_year_id: UUID
    name: str
    code: Optional[str] = None
    is_core: bool

    class Config:
        from_attributes = True


class BatchStudentsAssign(BaseModel):
    student_ids: List[UUID] = Field(..., min_length=1)


class BatchStudentsAssigned(BaseModel):
    batch_id: UUID
    added: int
    total: int


class CloneStructureRequest(BaseModel):
    source_year_id: UUID
    target_year_id: UUID
    clone_courses: bool = True
    clone_batches: bool = True
    clone_subjects: bool = True


class CloneStructureResult(BaseModel):
    source_year_id: UUID
    target_year_id: UUID
    courses: int = 0
    batches: int = 0
    subjects: int = 0
