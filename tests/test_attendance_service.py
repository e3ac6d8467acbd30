from __future__ import annotations

from datetime import date, datetime

import pytest

from src.school_portal.school_portal.attendance.model import AttendanceRecord
from src.school_portal.school_portal.attendance.service import default_range
from src.school_portal.school_portal.core.enums import AttendanceStatus, Role
from src.school_portal.school_portal.core.exceptions import AuthorizationError, ValidationError
from src.school_portal.school_portal.users.model import Identity

from conftest import NHS, NHS_ADMIN_ID, OTHER_TEACHER_ID, RSP, TEACHER_ID

NHS_ADMIN = Identity(user_id=NHS_ADMIN_ID, full_name="Nhsadmin", role=Role.SCHOOL_ADMIN, school_id=NHS)
TEACHER = Identity(user_id=TEACHER_ID, full_name="Teacher", role=Role.TEACHER, school_id=None)


def _put(repo, user_id, school_id, day, status, name):
    repo.records[(user_id, school_id, day)] = AttendanceRecord(
        attendance_id=len(repo.records) + 1,
        user_id=user_id,
        school_id=school_id,
        attendance_date=day,
        status=status,
        recorded_at=datetime(2025, 3, day.day, 16, 0),
        teacher_name=name,
    )


@pytest.fixture
def seeded(repos):
    repo = repos["attendance_repo"]
    _put(repo, TEACHER_ID, NHS, date(2025, 3, 3), AttendanceStatus.PRESENT, "Teacher")
    _put(repo, TEACHER_ID, NHS, date(2025, 3, 4), AttendanceStatus.PRESENT, "Teacher")
    _put(repo, TEACHER_ID, NHS, date(2025, 3, 5), AttendanceStatus.LEAVE_APPROVED, "Teacher")
    _put(repo, TEACHER_ID, NHS, date(2025, 3, 6), AttendanceStatus.ABSENT, "Teacher")
    _put(repo, 9, NHS, date(2025, 3, 3), AttendanceStatus.PENDING, "Anna")
    _put(repo, OTHER_TEACHER_ID, RSP, date(2025, 3, 3), AttendanceStatus.PRESENT, "Other")
    return repo


def test_summary_counts_per_teacher(container, seeded):
    rows = container.attendance_service.summary(NHS_ADMIN, start_date=date(2025, 3, 1), end_date=date(2025, 3, 31))

    assert [r.teacher_name for r in rows] == ["Anna", "Teacher"]
    teacher = rows[1].to_dict()
    assert (teacher["present"], teacher["absent"], teacher["leave"], teacher["total"]) == (2, 1, 1, 4)
    assert teacher["present_percentage"] == 50.0
    assert rows[0].other == 1


def test_export_rows_are_flat(container, seeded):
    rows = container.attendance_service.export_rows(NHS_ADMIN, start_date=date(2025, 3, 6), end_date=date(2025, 3, 6))

    assert rows == [
        {
            "date": "2025-03-06",
            "user_id": TEACHER_ID,
            "teacher_name": "Teacher",
            "school_id": NHS,
            "class_id": "",
            "status": "Absent",
            "recorded_at": "2025-03-06 16:00:00",
            "remarks": "",
        }
    ]


def test_teacher_sees_only_own_records(container, seeded):
    records = container.attendance_service.list_for_teacher(TEACHER, limit=2)

    assert [r.attendance_date.day for r in records] == [6, 5]
    with pytest.raises(AuthorizationError):
        container.attendance_service.list_for_teacher(TEACHER, school_id=RSP)
    with pytest.raises(AuthorizationError):
        container.attendance_service.list_for_school(TEACHER)


def test_school_view_is_scoped(container, seeded):
    records = container.attendance_service.list_for_school(NHS_ADMIN, limit=100)
    assert {r.school_id for r in records} == {NHS}


def test_reversed_range_is_rejected(container):
    with pytest.raises(ValidationError):
        container.attendance_service.summary(NHS_ADMIN, start_date=date(2025, 3, 5), end_date=date(2025, 3, 1))


def test_default_range():
    assert default_range(date(2025, 3, 31)) == (date(2025, 3, 1), date(2025, 3, 31))
