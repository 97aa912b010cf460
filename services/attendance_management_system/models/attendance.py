# services/attendance_management_system/models/attendance.py
from sqlalchemy import Column, ForeignKey, Date, Time, Enum, Text, String, Index, DateTime, UniqueConstraint, Uuid
from sqlalchemy.sql import func
from shared.db import Base
import enum
import uuid


class AttendanceStatus(str, enum.Enum):
    PRESENT = "P"
    ABSENT = "A"
    HALF_DAY = "HD"
    LEAVE = "L"


class Attendance(Base):
    """One row per student, batch and day. Re-recording a day updates the row."""
    __tablename__ = "attendances"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    school_id = Column(String, ForeignKey("schools.id"), nullable=False)
    date = Column(Date, nullable=False)
    batch_id = Column(Uuid, ForeignKey("batches.id"), nullable=False)
    student_id = Column(Uuid, ForeignKey("student_details.id"), nullable=False)
    status = Column(Enum(AttendanceStatus), nullable=False)
    recorded_by = Column(Uuid, ForeignKey("profiles.id"), nullable=False)
    arrival_time = Column(Time)
    notes = Column(Text)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    __table_args__ = (
        Index("idx_attendance_batch_date", "batch_id", "date"),
        Index("idx_attendance_student_date", "student_id", "date"),
        UniqueConstraint("batch_id", "date", "student_id", name="uq_attendance_per_student_per_day"),
    )
