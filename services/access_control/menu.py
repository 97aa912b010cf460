# services/access_control/menu.py
from dataclasses import dataclass
from typing import Optional, Tuple

from services.access_control.roles import Role, parse_role


@dataclass(frozen=True)
class MenuEntry:
    label: str
    path: str
    icon: str
    # Static placeholder count, not a live value
    badge: Optional[int] = None


def _entry(label, path, icon, badge=None) -> MenuEntry:
    return MenuEntry(label, path, icon, badge)


SETTINGS = _entry("Settings", "/settings", "Settings")

MENU_CONFIG = {
    Role.SUPER_ADMIN: (
        _entry("Dashboard", "/super-admin-dashboard", "LayoutDashboard"),
        _entry("Tenants", "/school-management", "Building"),
        _entry("Users", "/users", "Users"),
        _entry("Analytics", "/analytics", "BarChart"),
        _entry("Billing", "/billing", "CreditCard"),
        _entry("Modules", "/modules", "Puzzle"),
        _entry("Support", "/support", "LifeBuoy"),
        SETTINGS,
    ),
    Role.SCHOOL_ADMIN: (
        _entry("Dashboard", "/school-admin", "LayoutDashboard"),
        _entry("Academic", "/academic", "School"),
        _entry("Students", "/students", "GraduationCap", 3),
        _entry("Staff & HR", "/staff", "UserRound"),
        _entry("Timetable", "/timetable", "CalendarDays"),
        _entry("Attendance", "/attendance", "ClipboardCheck"),
        _entry("Fees", "/fees", "Landmark"),
        _entry("Library", "/library", "BookOpen"),
        _entry("Transport", "/transport", "Bus"),
        _entry("Hostel", "/hostel", "Home"),
        _entry("Communication", "/communication", "MessageSquare", 5),
        _entry("Reports", "/reports", "FileText"),
        SETTINGS,
    ),
    Role.TEACHER: (
        _entry("Dashboard", "/teacher", "LayoutDashboard"),
        _entry("Classes", "/classes", "GraduationCap"),
        _entry("Timetable", "/timetable", "CalendarDays"),
        _entry("Attendance", "/attendance", "ClipboardCheck"),
        _entry("Subjects", "/subjects", "BookOpen"),
        _entry("Assignments", "/assignments", "FileEdit", 2),
        _entry("Examinations", "/examinations", "FileSpreadsheet"),
        _entry("Library", "/library", "BookOpen"),
        _entry("Messaging", "/messaging", "MessageSquare", 3),
        SETTINGS,
    ),
    Role.STUDENT: (
        _entry("Dashboard", "/student", "LayoutDashboard"),
        _entry("Timetable", "/timetable", "CalendarDays"),
        _entry("Attendance", "/attendance", "ClipboardCheck"),
        _entry("Subjects", "/subjects", "BookOpen"),
        _entry("Assignments", "/assignments", "FileEdit", 4),
        _entry("Examinations", "/examinations", "FileSpreadsheet"),
        _entry("Fees", "/fees", "Receipt"),
        _entry("Messaging", "/messaging", "MessageSquare"),
        _entry("Certificates", "/certificates", "Award"),
        SETTINGS,
    ),
    Role.PARENT: (
        _entry("Dashboard", "/parent", "LayoutDashboard"),
        _entry("Children", "/children", "Baby", 2),
        _entry("Timetable", "/timetable", "CalendarDays"),
        _entry("Attendance", "/attendance", "ClipboardCheck"),
        _entry("Academics", "/academics", "School"),
        _entry("Assignments", "/assignments", "FileEdit"),
        _entry("Examinations", "/examinations", "FileSpreadsheet"),
        _entry("Fees", "/fees", "Receipt"),
        _entry("Messaging", "/messaging", "MessageSquare", 1),
        SETTINGS,
    ),
    Role.LIBRARIAN: (
        _entry("Dashboard", "/dashboard", "LayoutDashboard"),
        _entry("Library", "/library", "BookOpen"),
        _entry("Messaging", "/messaging", "MessageSquare"),
        SETTINGS,
    ),
    Role.STAFF: (
        _entry("Dashboard", "/dashboard", "LayoutDashboard"),
        _entry("Messaging", "/messaging", "MessageSquare"),
        SETTINGS,
    ),
}


def get_role_menu(role) -> Tuple[MenuEntry, ...]:
    return MENU_CONFIG.get(parse_role(role), ())
