# services/academic/models/academic.py
from sqlalchemy import (
    Column, String, ForeignKey, Date, DateTime, Boolean, Integer, Text, Index, Uuid, UniqueConstraint
)
from sqlalchemy.sql import func
from shared.db import Base
import uuid


class AcademicYear(Base):
    __tablename__ = "academic_years"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    school_id = Column(String, ForeignKey("schools.id"), nullable=False)
    name = Column(String(50), nullable=False)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    is_active = Column(Boolean, default=False, nullable=False)
    is_archived = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        UniqueConstraint("school_id", "name", name="uq_academic_year_name"),
        Index("idx_academic_year_school", "school_id"),
    )


class Course(Base):
    __tablename__ = "courses"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    school_id = Column(String, ForeignKey("schools.id"), nullable=False)
    academic_year_id = Column(Uuid, ForeignKey("academic_years.id"), nullable=False)
    name = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        UniqueConstraint("academic_year_id", "name", name="uq_course_name_per_year"),
    )


class Batch(Base):
    __tablename__ = "batches"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    school_id = Column(String, ForeignKey("schools.id"), nullable=False)
    academic_year_id = Column(Uuid, ForeignKey("academic_years.id"), nullable=False)
    course_id = Column(Uuid, ForeignKey("courses.id"), nullable=False)
    name = Column(String(100), nullable=False)
    capacity = Column(Integer, nullable=True)
    class_teacher_id = Column(Uuid, ForeignKey("profiles.id"), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        UniqueConstraint("course_id", "name", name="uq_batch_name_per_course"),
        Index("idx_batch_school_year", "school_id", "academic_year_id"),
    )


class Subject(Base):
    __tablename__ = "subjects"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    school_id = Column(String, ForeignKey("schools.id"), nullable=False)
    academic_year_id = Column(Uuid, ForeignKey("academic_years.id"), nullable=False)
    name = Column(String(100), nullable=False)
    code = Column(String(20), nullable=True)
    is_core = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        UniqueConstraint("academic_year_id", "name", name="uq_subject_name_per_year"),
    )


class BatchStudent(Base):
    __tablename__ = "batch_students"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    batch_id = Column(Uuid, ForeignKey("batches.id", ondelete="CASCADE"), nullable=False)
    student_id = Column(Uuid, ForeignKey("student_details.id", ondelete="CASCADE"), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        UniqueConstraint("batch_id", "student_id", name="uq_batch_student"),
    )
