# services/attendance_management_system/schemas/attendance.py
from collections import Counter
from datetime import date, time
from typing import Iterable, List, Optional
from pydantic import BaseModel, Field, field_validator
import uuid

from services.attendance_management_system.models.attendance import AttendanceStatus


class StudentAttendanceRecord(BaseModel):
    student_id: uuid.UUID
    status: AttendanceStatus = AttendanceStatus.PRESENT
    arrival_time: Optional[time] = None
    notes: Optional[str] = None


class DailyAttendanceCreate(BaseModel):
    batch_id: uuid.UUID
    date: date
    records: List[StudentAttendanceRecord] = Field(
        default_factory=list,
        description="Only students who were not present; everyone else in the batch is marked present."
    )

    @field_validator("records")
    @classmethod
    def one_record_per_student(cls, records):
        seen = set()
        for record in records:
            if record.student_id in seen:
                raise ValueError(f"Duplicate record for student {record.student_id}")
            seen.add(record.student_id)
        return records


class AttendanceOut(BaseModel):
    id: uuid.UUID
    student_id: uuid.UUID
    status: AttendanceStatus
    arrival_time: Optional[time] = None
    notes: Optional[str] = None
    recorded_by: uuid.UUID

    class Config:
        from_attributes = True


class AttendanceCounts(BaseModel):
    present: int = 0
    absent: int = 0
    half_day: int = 0
    leave: int = 0

    @staticmethod
    def tally(statuses: Iterable[AttendanceStatus]) -> dict:
        counts = Counter(statuses)
        return {
            "present": counts[AttendanceStatus.PRESENT],
            "absent": counts[AttendanceStatus.ABSENT],
            "half_day": counts[AttendanceStatus.HALF_DAY],
            "leave": counts[AttendanceStatus.LEAVE],
        }


class DailyAttendanceResponse(AttendanceCounts):
    batch_id: uuid.UUID
    batch_name: str
    date: date
    attendances: List[AttendanceOut]
