from datetime import time

from services.timetable.validation import (
    END_BEFORE_START,
    INVALID_TIME,
    OVERLAP,
    PeriodTiming,
    extract_day_name,
    is_valid_day_id,
    is_valid_time_format,
    overlapping_day_ids,
    time_to_minutes,
    validate_period_timings,
)


def _period(key, number, start, end, type="period", label=None):
    return PeriodTiming(key=key, number=number, start_time=start, end_time=end, type=type, label=label)


def test_back_to_back_periods_are_valid():
    periods = [
        _period("p1", 1, "08:00", "08:45"),
        _period("b1", 2, "08:45", "09:00", type="break", label="Snack"),
        _period("p2", 3, time(9, 0), time(9, 45)),
    ]
    assert validate_period_timings(periods) == []


def test_end_before_start_is_reported():
    errors = validate_period_timings([_period("p1", 1, "09:00", "08:00")])
    assert [(e.key, e.type) for e in errors] == [("p1", END_BEFORE_START)]
    assert errors[0].message == "Period 1: End time must be after start time"


def test_overlaps_are_reported_once_per_period():
    periods = [
        _period("p1", 1, "08:00", "09:00"),
        _period("p2", 2, "08:30", "09:30"),
        _period("b1", 3, "08:45", "09:15", type="break"),
    ]
    errors = validate_period_timings(periods)
    assert [(e.key, e.type) for e in errors] == [("p1", OVERLAP), ("p2", OVERLAP), ("b1", OVERLAP)]
    assert errors[0].message == "Period 1 overlaps with Period 2"
    assert errors[2].message == "Break overlaps with Period 1"


def test_invalid_and_missing_times():
    errors = validate_period_timings([
        _period("p1", 1, "25:00", "26:00"),
        _period("p2", 2, None, "09:00"),
    ])
    assert [(e.key, e.type) for e in errors] == [("p1", INVALID_TIME)]


def test_time_helpers():
    assert time_to_minutes("07:05") == 425
    assert time_to_minutes(time(13, 30)) == 810
    assert is_valid_time_format("7:05")
    assert not is_valid_time_format("24:00")
    assert not is_valid_time_format("12:60")


def test_day_ids():
    assert extract_day_name("Monday") == "monday"
    assert extract_day_name("week2-friday") == "friday"
    assert extract_day_name("week3-friday") is None
    assert is_valid_day_id("monday", weekly=True)
    assert not is_valid_day_id("week1-monday", weekly=True)
    assert is_valid_day_id("week1-monday", weekly=False)
    assert not is_valid_day_id("monday", weekly=False)


def test_weekly_days_meet_both_fortnight_weeks():
    assert overlapping_day_ids("Monday") == ("monday", "week1-monday", "week2-monday")
    assert overlapping_day_ids("week2-monday") == ("week2-monday", "monday")
    assert "week1-monday" not in overlapping_day_ids("week2-monday")
    assert overlapping_day_ids("funday") == ()
