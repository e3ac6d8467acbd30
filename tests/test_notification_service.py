from __future__ import annotations

import pytest

from src.school_portal.school_portal.core.enums import Role
from src.school_portal.school_portal.core.exceptions import AuthorizationError, NotFoundError, ValidationError
from src.school_portal.school_portal.notifications.service import parse_read_filter
from src.school_portal.school_portal.users.model import Identity

from conftest import (
    ADMIN_ID,
    FIXED_NOW,
    NHS,
    NHS_ADMIN_ID,
    OTHER_TEACHER_ID,
    RSP,
    RSP_STUDENT_ID,
    STUDENT_ID,
    TEACHER_ID,
)

ADMIN = Identity(user_id=ADMIN_ID, full_name="Admin", role=Role.ADMIN, school_id=None)
NHS_ADMIN = Identity(user_id=NHS_ADMIN_ID, full_name="Nhsadmin", role=Role.SCHOOL_ADMIN, school_id=NHS)
TEACHER = Identity(user_id=TEACHER_ID, full_name="Teacher", role=Role.TEACHER, school_id=None)
STUDENT = Identity(user_id=STUDENT_ID, full_name="Student", role=Role.STUDENT, school_id=NHS)


def _message(**overrides):
    data = {
        "title": "Sports day",
        "message": "Bring your kit on Friday.",
        "recipientType": "role",
        "recipients": ["student", "teacher"],
    }
    data.update(overrides)
    return data


def test_school_admin_sends_to_roles_of_own_school_only(container, repos):
    sent, recipients = container.notification_service.send(NHS_ADMIN, _message())

    assert (sent, recipients) == (2, 2)
    stored = repos["notifications_repo"].notifications.values()
    assert {n.user_id for n in stored} == {STUDENT_ID, TEACHER_ID}
    assert {n.school_id for n in stored} == {NHS}
    assert all(n.notification_type == "general" and not n.is_read for n in stored)
    assert all(n.sender_id == NHS_ADMIN_ID and n.created_at == FIXED_NOW for n in stored)


def test_individual_recipients_outside_the_school_are_dropped(container, repos):
    sent, _ = container.notification_service.send(
        NHS_ADMIN,
        _message(recipientType="individual", recipients=[STUDENT_ID, RSP_STUDENT_ID, OTHER_TEACHER_ID, 999]),
    )

    assert sent == 1
    assert [n.user_id for n in repos["notifications_repo"].notifications.values()] == [STUDENT_ID]


def test_no_matching_recipients_is_rejected(container):
    with pytest.raises(ValidationError):
        container.notification_service.send(NHS_ADMIN, _message(recipientType="individual", recipients=[RSP_STUDENT_ID]))


def test_deactivated_users_are_skipped(container, repos):
    repos["users_repo"].set_active(STUDENT_ID, False)

    sent, _ = container.notification_service.send(NHS_ADMIN, _message())
    assert sent == 1
    assert [n.user_id for n in repos["notifications_repo"].notifications.values()] == [TEACHER_ID]
    with pytest.raises(ValidationError):
        container.notification_service.send(NHS_ADMIN, _message(recipients=["student"]))


@pytest.mark.parametrize(
    "overrides",
    [
        {"title": ""},
        {"message": None},
        {"title": "x" * 256},
        {"recipientType": "everyone"},
        {"recipients": []},
        {"recipients": "student"},
        {"recipients": ["janitor"]},
    ],
)
def test_send_validation(container, overrides):
    with pytest.raises(ValidationError):
        container.notification_service.send(NHS_ADMIN, _message(**overrides))


def test_admin_must_name_a_school(container):
    with pytest.raises(ValidationError):
        container.notification_service.send(ADMIN, _message())

    sent, _ = container.notification_service.send(ADMIN, _message(school_id=RSP, recipients=["student"]))
    assert sent == 1


def test_school_admin_cannot_target_another_school(container):
    with pytest.raises(AuthorizationError):
        container.notification_service.send(NHS_ADMIN, _message(school_id=RSP))


def test_teacher_only_reaches_students_of_assigned_school(container, repos):
    with pytest.raises(AuthorizationError):
        container.notification_service.send(TEACHER, _message(school_id=NHS))
    with pytest.raises(AuthorizationError):
        container.notification_service.send(TEACHER, _message(school_id=RSP, recipients=["student"]))

    sent, _ = container.notification_service.send(
        TEACHER, _message(school_id=NHS, recipientType="individual", recipients=[STUDENT_ID, NHS_ADMIN_ID])
    )
    assert sent == 1
    assert [n.user_id for n in repos["notifications_repo"].notifications.values()] == [STUDENT_ID]


def test_students_cannot_send(container):
    with pytest.raises(AuthorizationError):
        container.notification_service.send(STUDENT, _message())


def test_recipient_reads_own_notifications(container):
    container.notification_service.send(NHS_ADMIN, _message(title="First"))
    container.notification_service.send(NHS_ADMIN, _message(title="Second"))

    items, total, unread = container.notification_service.list_mine(STUDENT)
    assert [n.title for n in items] == ["Second", "First"]
    assert (total, unread) == (2, 2)

    read = container.notification_service.set_read(STUDENT, items[0].notification_id)
    assert read.is_read
    assert read.read_at == FIXED_NOW

    unread_items, total, unread = container.notification_service.list_mine(STUDENT, is_read=False)
    assert [n.title for n in unread_items] == ["First"]
    assert (total, unread) == (1, 1)


def test_cannot_mark_someone_elses_notification(container):
    container.notification_service.send(NHS_ADMIN, _message(recipients=["student"]))
    items, _, _ = container.notification_service.list_mine(STUDENT)

    with pytest.raises(NotFoundError):
        container.notification_service.set_read(TEACHER, items[0].notification_id)
    with pytest.raises(NotFoundError):
        container.notification_service.set_read(STUDENT, 999)


def test_mark_unread_clears_read_time(container):
    container.notification_service.send(NHS_ADMIN, _message(recipients=["student"]))
    items, _, _ = container.notification_service.list_mine(STUDENT)
    container.notification_service.set_read(STUDENT, items[0].notification_id)

    again = container.notification_service.set_read(STUDENT, items[0].notification_id, is_read=False)

    assert not again.is_read
    assert again.read_at is None


def test_mark_all_read(container):
    container.notification_service.send(NHS_ADMIN, _message())
    container.notification_service.send(NHS_ADMIN, _message())

    assert container.notification_service.mark_all_read(STUDENT) == 2
    assert container.notification_service.mark_all_read(STUDENT) == 0
    assert container.notification_service.list_mine(TEACHER)[2] == 2


def test_school_listing_is_scoped(container):
    container.notification_service.send(NHS_ADMIN, _message())
    container.notification_service.send(ADMIN, _message(school_id=RSP, recipients=["student"]))
    container.notification_service.send(
        TEACHER, _message(school_id=NHS, recipientType="individual", recipients=[STUDENT_ID])
    )

    items, total = container.notification_service.list_for_school(NHS_ADMIN)
    assert total == 3
    assert {n.school_id for n in items} == {NHS}
    assert container.notification_service.list_for_school(NHS_ADMIN, user_id=TEACHER_ID)[1] == 1
    with pytest.raises(AuthorizationError):
        container.notification_service.list_for_school(NHS_ADMIN, school_id=RSP)

    assert container.notification_service.list_for_school(ADMIN)[1] == 4

    sent_by_teacher, total = container.notification_service.list_for_school(TEACHER)
    assert total == 1
    assert sent_by_teacher[0].recipient_name == "Student"

    with pytest.raises(AuthorizationError):
        container.notification_service.list_for_school(STUDENT)


@pytest.mark.parametrize("value, expected", [(None, None), ("all", None), ("READ", True), ("unread", False)])
def test_parse_read_filter(value, expected):
    assert parse_read_filter(value) is expected


def test_parse_read_filter_rejects_unknown():
    with pytest.raises(ValidationError):
        parse_read_filter("archived")
