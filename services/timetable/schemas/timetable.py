# services/timetable/schemas/timetable.py
from pydantic import BaseModel, Field
from typing import Dict, List, Optional
from datetime import date, time
from enum import Enum
from uuid import UUID


class PeriodType(str, Enum):
    PERIOD = "period"
    BREAK = "break"


class PeriodIn(BaseModel):
    number: int = Field(..., ge=1)
    start_time: time
    end_time: time
    type: PeriodType = PeriodType.PERIOD
    label: Optional[str] = None


class PeriodOut(PeriodIn):
    day_of_week: Optional[str] = None

    class Config:
        from_attributes = True


class TimetableConfigurationSave(BaseModel):
    school_id: str
    academic_year_id: UUID
    name: str
    is_active: bool = True
    is_default: bool = False
    is_weekly_mode: bool = True
    selected_days: List[str] = Field(..., min_length=1)
    fortnight_start_date: Optional[date] = None
    default_periods: List[PeriodIn] = Field(..., min_length=1)
    enable_flexible_timings: bool = False
    day_specific_periods: Dict[str, List[PeriodIn]] = Field(default_factory=dict)
    batch_ids: List[UUID] = Field(default_factory=list)


class TimetableConfigurationOut(BaseModel):
    id: UUID
    school_id: str
    academic_year_id: UUID
    name: str
    is_active: bool
    is_default: bool
    is_weekly_mode: bool
    selected_days: List[str]
    fortnight_start_date: Optional[date] = None
    enable_flexible_timings: bool
    batch_ids: List[UUID]
    periods: List[PeriodOut] = Field(default_factory=list)


class ScheduleCreate(BaseModel):
    school_id: str
    academic_year_id: UUID
    batch_id: UUID
    subject_id: UUID
    teacher_id: Optional[UUID] = None
    day_of_week: str
    period_number: int = Field(..., ge=1)
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    valid_from: date
    valid_to: Optional[date] = None


class ScheduleOut(BaseModel):
    id: UUID
    school_id: str
    academic_year_id: UUID
    batch_id: UUID
    subject_id: UUID
    teacher_id: Optional[UUID] = None
    day_of_week: str
    period_number: int
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    valid_from: date
    valid_to: Optional[date] = None
    is_active: bool

    class Config:
        from_attributes = True
