from .attendance import Attendance, AttendanceStatus
