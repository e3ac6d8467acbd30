from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime
from typing import Any, Mapping, Optional

import pytest
from werkzeug.security import generate_password_hash

from src.school_portal.school_portal.attendance.model import AttendanceRecord
from src.school_portal.school_portal.container import wire
from src.school_portal.school_portal.core.enums import AttendanceStatus, LeaveStatus, ReportStatus, Role
from src.school_portal.school_portal.leaves.model import LeaveRequest
from src.school_portal.school_portal.notifications.model import Notification
from src.school_portal.school_portal.reports.model import EDITABLE_FIELDS, DailyReport
from src.school_portal.school_portal.schedules.model import Period, ScheduledPeriod
from src.school_portal.school_portal.schools.class_model import SchoolClass
from src.school_portal.school_portal.schools.class_repository import DuplicateClassError
from src.school_portal.school_portal.schools.model import School
from src.school_portal.school_portal.users.model import User


class InMemoryUsers:
    def __init__(self, users=()):
        self.users_by_id: dict[int, User] = {u.user_id: u for u in users}

    def get_by_id(self, user_id: int) -> Optional[User]:
        return self.users_by_id.get(user_id)

    def get_by_username(self, username: str) -> Optional[User]:
        for u in self.users_by_id.values():
            if u.username == username:
                return u
        return None

    def create_user(self, *, full_name, username, email, password_hash, role, school_id) -> int:
        user_id = max(self.users_by_id, default=0) + 1
        self.users_by_id[user_id] = User(
            user_id=user_id,
            full_name=full_name,
            username=username,
            email=email,
            password_hash=password_hash,
            role=role,
            school_id=school_id,
        )
        return user_id

    def list_users(self, *, role=None, school_id=None):
        return [
            u
            for u in self.users_by_id.values()
            if (role is None or u.role == role) and (school_id is None or u.school_id == school_id)
        ]

    def set_active(self, user_id: int, is_active: bool) -> bool:
        user = self.users_by_id.get(user_id)
        if not user:
            return False
        self.users_by_id[user_id] = replace(user, is_active=is_active)
        return True


class InMemorySchools:
    def __init__(self, schools=(), teacher_schools=()):
        self.schools: dict[int, School] = {s.school_id: s for s in schools}
        self.teacher_schools: set[tuple[int, int]] = set(teacher_schools)

    def get_by_id(self, school_id: int) -> Optional[School]:
        return self.schools.get(school_id)

    def list_schools(self, *, school_ids=None):
        items = sorted(self.schools.values(), key=lambda s: s.name)
        if school_ids is not None:
            items = [s for s in items if s.school_id in school_ids]
        return items

    def create_school(self, *, name, code, address) -> int:
        school_id = max(self.schools, default=0) + 1
        self.schools[school_id] = School(school_id=school_id, name=name, code=code, address=address)
        return school_id

    def assign_teacher(self, *, teacher_id: int, school_id: int) -> None:
        self.teacher_schools.add((teacher_id, school_id))

    def unassign_teacher(self, *, teacher_id: int, school_id: int) -> bool:
        if (teacher_id, school_id) not in self.teacher_schools:
            return False
        self.teacher_schools.discard((teacher_id, school_id))
        return True

    def list_teacher_school_ids(self, teacher_id: int):
        return sorted(s for t, s in self.teacher_schools if t == teacher_id)


class InMemoryClasses:
    def __init__(self, classes=()):
        self.classes: dict[int, SchoolClass] = {c.class_id: c for c in classes}

    def get_by_id(self, class_id: int) -> Optional[SchoolClass]:
        return self.classes.get(class_id)

    def find_by_grade(self, *, school_id: int, grade: str) -> Optional[SchoolClass]:
        for c in sorted(self.classes.values(), key=lambda c: c.class_id):
            if c.school_id == school_id and c.grade == grade:
                return c
        return None

    def create_class(self, *, school_id, name, grade, academic_year) -> int:
        if any(c.school_id == school_id and c.name == name for c in self.classes.values()):
            raise DuplicateClassError(name)
        class_id = max(self.classes, default=0) + 1
        self.classes[class_id] = SchoolClass(
            class_id=class_id, school_id=school_id, name=name, grade=grade, academic_year=academic_year
        )
        return class_id

    def list_for_school(self, school_id: int):
        return [c for c in self.classes.values() if c.school_id == school_id]


class InMemorySchedules:
    def __init__(self, schedules=()):
        self.schedules: dict[int, ScheduledPeriod] = {s.schedule_id: s for s in schedules}

    def list_active_for_day(self, *, teacher_id, school_id, day_of_week):
        return [
            s
            for s in self.schedules.values()
            if s.is_active and s.teacher_id == teacher_id and s.school_id == school_id and s.day_of_week == day_of_week
        ]

    def list_for_school(self, *, school_id, teacher_id=None, day_of_week=None, include_inactive=False):
        return [
            s
            for s in self.schedules.values()
            if s.school_id == school_id
            and (teacher_id is None or s.teacher_id == teacher_id)
            and (day_of_week is None or s.day_of_week == day_of_week)
            and (include_inactive or s.is_active)
        ]

    def get_by_id(self, schedule_id: int) -> Optional[ScheduledPeriod]:
        return self.schedules.get(schedule_id)

    def create_schedule(self, **kwargs) -> int:
        schedule_id = max(self.schedules, default=0) + 1
        self.schedules[schedule_id] = ScheduledPeriod(schedule_id=schedule_id, **kwargs)
        return schedule_id

    def set_active(self, schedule_id: int, is_active: bool) -> bool:
        s = self.schedules.get(schedule_id)
        if not s:
            return False
        self.schedules[schedule_id] = replace(s, is_active=is_active)
        return True


class InMemoryPeriods:
    def __init__(self, periods=()):
        self.periods: dict[int, Period] = {p.period_id: p for p in periods}

    def get_by_id(self, period_id: int) -> Optional[Period]:
        return self.periods.get(period_id)

    def list_for_school(self, school_id: int):
        return sorted((p for p in self.periods.values() if p.school_id == school_id), key=lambda p: p.period_number)

    def create_period(self, *, school_id, period_number, start_time, end_time) -> int:
        period_id = max(self.periods, default=0) + 1
        self.periods[period_id] = Period(
            period_id=period_id,
            school_id=school_id,
            period_number=period_number,
            start_time=start_time,
            end_time=end_time,
        )
        return period_id


class InMemoryReports:
    def __init__(self):
        self.reports: dict[int, DailyReport] = {}

    def create_report(self, *, teacher_id: int, fields: Mapping[str, Any], created_at: datetime) -> int:
        report_id = len(self.reports) + 1
        values = {"class_id": None, "grade": None}
        values.update({k: v for k, v in fields.items() if k in EDITABLE_FIELDS})
        self.reports[report_id] = DailyReport(
            report_id=report_id,
            teacher_id=teacher_id,
            created_at=created_at,
            **values,
        )
        return report_id

    def get_by_id(self, report_id: int) -> Optional[DailyReport]:
        return self.reports.get(report_id)

    def update_report(self, report_id: int, *, fields, updated_at) -> bool:
        report = self.reports.get(report_id)
        if not report:
            return False
        changes = {k: v for k, v in fields.items() if k in EDITABLE_FIELDS}
        self.reports[report_id] = replace(report, updated_at=updated_at, **changes)
        return True

    def list_for_day(self, *, teacher_id: int, school_id: int, report_date: date):
        return [
            r
            for r in self.reports.values()
            if r.teacher_id == teacher_id and r.school_id == school_id and r.report_date == report_date
        ]

    def list_reports(
        self,
        *,
        teacher_id=None,
        school_ids=None,
        status=None,
        report_date=None,
        class_id=None,
        limit=50,
        offset=0,
    ):
        items = [
            r
            for r in self.reports.values()
            if (teacher_id is None or r.teacher_id == teacher_id)
            and (school_ids is None or r.school_id in school_ids)
            and (status is None or r.report_status == status)
            and (report_date is None or r.report_date == report_date)
            and (class_id is None or r.class_id == class_id)
        ]
        items.sort(key=lambda r: (r.report_date, r.report_id), reverse=True)
        return items[offset : offset + limit]

    def set_review(self, report_id: int, *, status: ReportStatus, reviewer_id, reviewed_at, notes) -> bool:
        report = self.reports.get(report_id)
        if not report:
            return False
        self.reports[report_id] = replace(
            report, report_status=status, approved_by=reviewer_id, approved_at=reviewed_at, notes=notes
        )
        return True


class InMemoryAttendance:
    def __init__(self):
        self.records: dict[tuple[int, int, date], AttendanceRecord] = {}
        self.upserts = 0

    def get_for_day(self, *, user_id: int, school_id: int, attendance_date: date) -> Optional[AttendanceRecord]:
        return self.records.get((user_id, school_id, attendance_date))

    def upsert_status(
        self,
        *,
        user_id,
        school_id,
        attendance_date,
        status,
        class_id,
        recorded_by,
        recorded_at,
        remarks=None,
        preserve_leave=True,
    ) -> None:
        self.upserts += 1
        key = (user_id, school_id, attendance_date)
        existing = self.records.get(key)
        if existing and preserve_leave and existing.status == AttendanceStatus.LEAVE_APPROVED:
            return
        self.records[key] = AttendanceRecord(
            attendance_id=existing.attendance_id if existing else len(self.records) + 1,
            user_id=user_id,
            school_id=school_id,
            attendance_date=attendance_date,
            status=status,
            class_id=class_id,
            recorded_by=recorded_by,
            recorded_at=recorded_at,
            remarks=remarks,
            teacher_name=existing.teacher_name if existing else None,
        )

    def list_records(self, *, start_date=None, end_date=None, user_id=None, school_ids=None, limit=30, offset=0):
        items = [
            r
            for r in self.records.values()
            if (start_date is None or r.attendance_date >= start_date)
            and (end_date is None or r.attendance_date <= end_date)
            and (user_id is None or r.user_id == user_id)
            and (school_ids is None or r.school_id in school_ids)
        ]
        items.sort(key=lambda r: (r.attendance_date, r.user_id), reverse=True)
        return items[offset : offset + limit]


class InMemoryLeaves:
    def __init__(self):
        self.leaves: dict[int, LeaveRequest] = {}

    def create_leave(self, *, created_at, **kwargs) -> int:
        leave_id = len(self.leaves) + 1
        self.leaves[leave_id] = LeaveRequest(
            leave_id=leave_id,
            status=LeaveStatus.PENDING,
            created_at=created_at,
            **kwargs,
        )
        return leave_id

    def get_by_id(self, leave_id: int) -> Optional[LeaveRequest]:
        return self.leaves.get(leave_id)

    def list_leaves(self, *, teacher_id=None, school_ids=None, status=None, limit=100, offset=0):
        items = [
            lv
            for lv in self.leaves.values()
            if (teacher_id is None or lv.teacher_id == teacher_id)
            and (school_ids is None or lv.school_id in school_ids)
            and (status is None or lv.status == status)
        ]
        return items[offset : offset + limit]

    def decide(self, leave_id: int, *, status, reviewer_id, reviewed_at, notes) -> bool:
        leave = self.leaves.get(leave_id)
        if not leave or leave.status != LeaveStatus.PENDING:
            return False
        self.leaves[leave_id] = replace(
            leave, status=status, reviewed_by=reviewer_id, reviewed_at=reviewed_at, review_notes=notes
        )
        return True


class InMemoryNotifications:
    def __init__(self, users: InMemoryUsers):
        self._users = users
        self.notifications: dict[int, Notification] = {}

    def _with_recipient(self, n: Notification) -> Notification:
        user = self._users.get_by_id(n.user_id)
        if user is None:
            return n
        return replace(n, recipient_name=user.full_name, recipient_role=user.role.value)

    def _matching(self, *, user_id=None, sender_id=None, school_ids=None, is_read=None):
        items = [
            n
            for n in self.notifications.values()
            if (user_id is None or n.user_id == user_id)
            and (sender_id is None or n.sender_id == sender_id)
            and (school_ids is None or n.school_id in school_ids)
            and (is_read is None or n.is_read == is_read)
        ]
        items.sort(key=lambda n: (n.created_at, n.notification_id), reverse=True)
        return items

    def create_notifications(self, *, user_ids, school_id, sender_id, title, message, notification_type, created_at) -> int:
        for user_id in user_ids:
            notification_id = len(self.notifications) + 1
            self.notifications[notification_id] = Notification(
                notification_id=notification_id,
                user_id=user_id,
                school_id=school_id,
                sender_id=sender_id,
                title=title,
                message=message,
                notification_type=notification_type,
                created_at=created_at,
            )
        return len(user_ids)

    def get_by_id(self, notification_id: int) -> Optional[Notification]:
        n = self.notifications.get(notification_id)
        return self._with_recipient(n) if n else None

    def list_notifications(self, *, limit=50, offset=0, **filters):
        return [self._with_recipient(n) for n in self._matching(**filters)[offset : offset + limit]]

    def count_notifications(self, **filters) -> int:
        return len(self._matching(**filters))

    def set_read(self, notification_id: int, *, user_id: int, is_read: bool, read_at) -> bool:
        n = self.notifications.get(notification_id)
        if not n or n.user_id != user_id:
            return False
        self.notifications[notification_id] = replace(n, is_read=is_read, read_at=read_at)
        return True

    def mark_all_read(self, *, user_id: int, read_at) -> int:
        unread = [n for n in self.notifications.values() if n.user_id == user_id and not n.is_read]
        for n in unread:
            self.notifications[n.notification_id] = replace(n, is_read=True, read_at=read_at)
        return len(unread)


class FakeClock:
    """Monotonic seconds for cache tests."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


# Users / schools shared by the service and API tests.
ADMIN_ID, NHS_ADMIN_ID, TEACHER_ID, OTHER_TEACHER_ID = 1, 2, 3, 4
STUDENT_ID, RSP_STUDENT_ID = 5, 6
NHS, RSP = 1, 2

FIXED_NOW = datetime(2025, 3, 3, 15, 30, 0)  # a Monday


def _user(user_id, username, role, school_id=None, password="secret1"):
    return User(
        user_id=user_id,
        full_name=username.title(),
        username=username,
        email=None,
        password_hash=generate_password_hash(password),
        role=role,
        school_id=school_id,
    )


@pytest.fixture
def fixed_now():
    return FIXED_NOW


@pytest.fixture
def repos():
    users = InMemoryUsers(
        [
            _user(ADMIN_ID, "admin", Role.ADMIN),
            _user(NHS_ADMIN_ID, "nhsadmin", Role.SCHOOL_ADMIN, NHS),
            _user(TEACHER_ID, "teacher", Role.TEACHER),
            _user(OTHER_TEACHER_ID, "other", Role.TEACHER),
            _user(STUDENT_ID, "student", Role.STUDENT, NHS),
            _user(RSP_STUDENT_ID, "rspstudent", Role.STUDENT, RSP),
        ]
    )
    schools = InMemorySchools(
        [
            School(school_id=NHS, name="Northfield High School", code="NHS", address=None),
            School(school_id=RSP, name="Riverside Primary", code="RSP", address=None),
        ],
        teacher_schools=[(TEACHER_ID, NHS), (OTHER_TEACHER_ID, RSP)],
    )
    classes = InMemoryClasses(
        [
            SchoolClass(class_id=1, school_id=NHS, name="Class - 7", grade="7", academic_year="2024-25"),
            SchoolClass(class_id=2, school_id=NHS, name="Class - 8", grade="8", academic_year="2024-25"),
            SchoolClass(class_id=3, school_id=RSP, name="Class - 7", grade="7", academic_year="2024-25"),
        ]
    )
    return {
        "users_repo": users,
        "schools_repo": schools,
        "classes_repo": classes,
        "schedules_repo": InMemorySchedules(),
        "periods_repo": InMemoryPeriods(),
        "reports_repo": InMemoryReports(),
        "attendance_repo": InMemoryAttendance(),
        "leaves_repo": InMemoryLeaves(),
        "notifications_repo": InMemoryNotifications(users),
    }


@pytest.fixture
def container(repos, fixed_now):
    return wire(**repos, clock=lambda: fixed_now)


@pytest.fixture
def app(container):
    from src.school_portal.school_portal.main import create_app

    return create_app(settings_module="config.testing", container=container)


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def login(client):
    def _login(username: str, password: str = "secret1") -> dict:
        resp = client.post("/api/auth/login", json={"username": username, "password": password})
        assert resp.status_code == 200, resp.get_json()
        return {"Authorization": f"Bearer {resp.get_json()['access_token']}"}

    return _login
