# services/timetable/validation.py
import re
from dataclasses import dataclass
from datetime import time
from typing import List, Optional, Sequence, Tuple, Union

TIME_PATTERN = re.compile(r"^([0-1]?[0-9]|2[0-3]):[0-5][0-9]$")

OVERLAP = "overlap"
INVALID_TIME = "invalid-time"
END_BEFORE_START = "end-before-start"

TimeValue = Union[str, time, None]


@dataclass(frozen=True)
class PeriodTiming:
    key: str
    number: int
    start_time: TimeValue
    end_time: TimeValue
    type: str = "period"
    label: Optional[str] = None

    @property
    def display_name(self) -> str:
        if self.type == "period":
            return f"Period {self.number}"
        return self.label or "Break"


@dataclass(frozen=True)
class TimingError:
    key: str
    message: str
    type: str


def is_valid_time_format(value: str) -> bool:
    return bool(TIME_PATTERN.match(value or ""))


def time_to_minutes(value: TimeValue) -> int:
    if isinstance(value, time):
        return value.hour * 60 + value.minute
    hours, minutes = value.split(":")[:2]
    return int(hours) * 60 + int(minutes)


def _minutes_or_none(value: TimeValue) -> Optional[int]:
    if value is None or value == "":
        return None
    return time_to_minutes(value)


def validate_period_timings(periods: Sequence[PeriodTiming]) -> List[TimingError]:
    """Return at most one error per (period, error type), in period order."""
    errors = []
    seen = set()

    def add(period: PeriodTiming, message: str, kind: str):
        if (period.key, kind) not in seen:
            seen.add((period.key, kind))
            errors.append(TimingError(period.key, message, kind))

    spans = {}
    for period in periods:
        bad = [v for v in (period.start_time, period.end_time)
               if isinstance(v, str) and v and not is_valid_time_format(v)]
        if bad:
            add(period, f"{period.display_name}: Invalid time format", INVALID_TIME)
            continue
        start, end = _minutes_or_none(period.start_time), _minutes_or_none(period.end_time)
        if start is None or end is None:
            continue
        spans[period.key] = (start, end)
        if start >= end:
            add(period, f"{period.display_name}: End time must be after start time", END_BEFORE_START)

    for index, period in enumerate(periods):
        if period.key not in spans:
            continue
        start, end = spans[period.key]
        for other_index, other in enumerate(periods):
            if other_index == index or other.key not in spans:
                continue
            other_start, other_end = spans[other.key]
            if start < other_end and end > other_start:
                add(period, f"{period.display_name} overlaps with {other.display_name}", OVERLAP)

    return errors


WEEK_DAYS = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")
FORTNIGHT_PREFIXES = ("week1-", "week2-")


def extract_day_name(day_id: str) -> Optional[str]:
    """``"week2-monday"`` and ``"monday"`` both give ``"monday"``; anything else gives None."""
    day = (day_id or "").strip().lower()
    for prefix in FORTNIGHT_PREFIXES:
        if day.startswith(prefix):
            day = day[len(prefix):]
            break
    return day if day in WEEK_DAYS else None


def is_valid_day_id(day_id: str, weekly: bool) -> bool:
    if extract_day_name(day_id) is None:
        return False
    has_prefix = day_id.lower().startswith(FORTNIGHT_PREFIXES)
    return has_prefix != weekly


def overlapping_day_ids(day_id: str) -> Tuple[str, ...]:
    """Day identifiers whose slots coincide with ``day_id``.

    A weekly ``monday`` falls in both fortnight weeks, so it meets
    ``week1-monday`` and ``week2-monday``; the two fortnight weeks never meet.
    """
    day = extract_day_name(day_id)
    if day is None:
        return ()
    day_id = day_id.strip().lower()
    if day_id == day:
        return (day,) + tuple(prefix + day for prefix in FORTNIGHT_PREFIXES)
    return (day_id, day)
