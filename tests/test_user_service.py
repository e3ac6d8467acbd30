from __future__ import annotations

import pytest

from src.school_portal.school_portal.core.enums import Role
from src.school_portal.school_portal.core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    NotFoundError,
    ValidationError,
)

from conftest import NHS, RSP, TEACHER_ID


def test_authenticate_ok(container):
    user = container.auth_service.authenticate("teacher", "secret1")
    assert user.user_id == TEACHER_ID


def test_authenticate_rejects_wrong_password_and_inactive(container, repos):
    with pytest.raises(AuthenticationError):
        container.auth_service.authenticate("teacher", "nope")

    repos["users_repo"].set_active(TEACHER_ID, False)
    with pytest.raises(AuthenticationError):
        container.auth_service.authenticate("teacher", "secret1")


def test_placeholder_hash_never_authenticates(container, repos):
    users = repos["users_repo"]
    user_id = users.create_user(
        full_name="Seeded", username="seeded", email=None, password_hash="CHANGE_ME", role=Role.TEACHER, school_id=None
    )
    assert users.get_by_id(user_id)
    with pytest.raises(AuthenticationError):
        container.auth_service.authenticate("seeded", "CHANGE_ME")


def test_school_admin_creates_teacher_for_own_school(container, repos):
    user_id = container.user_service.create_account(
        current_role=Role.SCHOOL_ADMIN,
        current_school_id=NHS,
        full_name="New Teacher",
        username="newt",
        password="secret1",
        role=Role.TEACHER,
        school_id=RSP,
    )

    user = repos["users_repo"].get_by_id(user_id)
    assert user.role == Role.TEACHER
    assert user.school_id is None
    assert repos["schools_repo"].list_teacher_school_ids(user_id) == [NHS]


def test_school_admin_cannot_create_school_admin(container):
    with pytest.raises(AuthorizationError):
        container.user_service.create_account(
            current_role=Role.SCHOOL_ADMIN,
            current_school_id=NHS,
            full_name="X",
            username="x",
            password="secret1",
            role=Role.SCHOOL_ADMIN,
        )


def test_teacher_cannot_create_accounts(container):
    with pytest.raises(AuthorizationError):
        container.user_service.create_account(
            current_role=Role.TEACHER,
            current_school_id=None,
            full_name="X",
            username="x",
            password="secret1",
            role=Role.STUDENT,
        )


def test_create_account_validation(container):
    kwargs = dict(current_role=Role.ADMIN, current_school_id=None, full_name="X", role=Role.STUDENT, school_id=NHS)
    with pytest.raises(ValidationError):
        container.user_service.create_account(username="teacher", password="secret1", **kwargs)
    with pytest.raises(ValidationError):
        container.user_service.create_account(username="fresh", password="123", **kwargs)
    with pytest.raises(NotFoundError):
        container.user_service.create_account(
            current_role=Role.ADMIN,
            current_school_id=None,
            full_name="X",
            username="fresh",
            password="secret1",
            role=Role.STUDENT,
            school_id=99,
        )


def test_deactivate_is_admin_only(container, repos):
    with pytest.raises(AuthorizationError):
        container.user_service.deactivate(current_role=Role.SCHOOL_ADMIN, user_id=TEACHER_ID)

    container.user_service.deactivate(current_role=Role.ADMIN, user_id=TEACHER_ID)
    assert repos["users_repo"].get_by_id(TEACHER_ID).is_active is False
