from .timetable import TimetableConfiguration, TimetablePeriod, TimetableSchedule
