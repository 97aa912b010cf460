# services/timetable/models/timetable.py
from sqlalchemy import (
    Column, String, ForeignKey, Date, DateTime, Boolean, Integer, Time, Index, Uuid, UniqueConstraint
)
from sqlalchemy.sql import func
from shared.db import Base, JSONType
import uuid


class TimetableConfiguration(Base):
    __tablename__ = "timetable_configurations"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    school_id = Column(String, ForeignKey("schools.id"), nullable=False)
    academic_year_id = Column(Uuid, ForeignKey("academic_years.id"), nullable=False)
    name = Column(String(100), nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    is_default = Column(Boolean, default=False, nullable=False)
    is_weekly_mode = Column(Boolean, default=True, nullable=False)
    # day ids: "monday".."sunday", or "week1-monday".."week2-sunday" in fortnight mode
    selected_days = Column(JSONType, nullable=False, default=list)
    fortnight_start_date = Column(Date, nullable=True)
    enable_flexible_timings = Column(Boolean, default=False, nullable=False)
    batch_ids = Column(JSONType, nullable=False, default=list)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    __table_args__ = (
        UniqueConstraint("school_id", "academic_year_id", "name", name="uq_timetable_configuration_name"),
    )


class TimetablePeriod(Base):
    __tablename__ = "timetable_periods"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    configuration_id = Column(
        Uuid, ForeignKey("timetable_configurations.id", ondelete="CASCADE"), nullable=False
    )
    # NULL for the default day layout
    day_of_week = Column(String(20), nullable=True)
    number = Column(Integer, nullable=False)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)
    type = Column(String(10), nullable=False, default="period")
    label = Column(String(50), nullable=True)

    __table_args__ = (
        Index("idx_timetable_period_configuration", "configuration_id"),
    )


class TimetableSchedule(Base):
    __tablename__ = "timetable_schedules"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    school_id = Column(String, ForeignKey("schools.id"), nullable=False)
    academic_year_id = Column(Uuid, ForeignKey("academic_years.id"), nullable=False)
    batch_id = Column(Uuid, ForeignKey("batches.id"), nullable=False)
    subject_id = Column(Uuid, ForeignKey("subjects.id"), nullable=False)
    teacher_id = Column(Uuid, ForeignKey("profiles.id"), nullable=True)
    day_of_week = Column(String(20), nullable=False)
    period_number = Column(Integer, nullable=False)
    start_time = Column(Time, nullable=True)
    end_time = Column(Time, nullable=True)
    valid_from = Column(Date, nullable=False)
    # NULL means open-ended
    valid_to = Column(Date, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        Index("idx_schedule_batch_slot", "batch_id", "day_of_week", "period_number"),
        Index("idx_schedule_teacher_slot", "teacher_id", "day_of_week", "period_number"),
    )
