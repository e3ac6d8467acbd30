from __future__ import annotations

import pytest

from src.school_portal.school_portal.core.enums import Role
from src.school_portal.school_portal.core.exceptions import AuthorizationError, NotFoundError, ValidationError
from src.school_portal.school_portal.users.model import Identity

from conftest import ADMIN_ID, NHS, NHS_ADMIN_ID, OTHER_TEACHER_ID, RSP, TEACHER_ID

ADMIN = Identity(user_id=ADMIN_ID, full_name="Admin", role=Role.ADMIN, school_id=None)
NHS_ADMIN = Identity(user_id=NHS_ADMIN_ID, full_name="Nhsadmin", role=Role.SCHOOL_ADMIN, school_id=NHS)
TEACHER = Identity(user_id=TEACHER_ID, full_name="Teacher", role=Role.TEACHER, school_id=None)


def test_admin_is_unrestricted(container):
    access = container.school_access
    assert access.accessible_school_ids(ADMIN) is None
    assert access.can_access(ADMIN, RSP)


def test_school_admin_sees_home_school_only(container):
    access = container.school_access
    assert access.accessible_school_ids(NHS_ADMIN) == [NHS]
    assert access.can_access(NHS_ADMIN, NHS)
    assert not access.can_access(NHS_ADMIN, RSP)


def test_teacher_scope_follows_assignments(container, repos):
    access = container.school_access
    assert access.accessible_school_ids(TEACHER) == [NHS]

    repos["schools_repo"].assign_teacher(teacher_id=TEACHER_ID, school_id=RSP)
    assert access.accessible_school_ids(TEACHER) == [NHS, RSP]


def test_require_access_raises(container):
    with pytest.raises(AuthorizationError):
        container.school_access.require_access(TEACHER, RSP)


def test_school_list_is_scoped(container):
    names = [s.code for s in container.school_service.list_for(TEACHER)]
    assert names == ["NHS"]
    assert len(container.school_service.list_for(ADMIN)) == 2


def test_get_school_outside_scope_is_forbidden(container):
    with pytest.raises(AuthorizationError):
        container.school_service.get(NHS_ADMIN, RSP)


def test_only_admin_assigns_teachers(container, repos):
    service = container.school_service
    with pytest.raises(AuthorizationError):
        service.assign_teacher(current_role=Role.SCHOOL_ADMIN, teacher_id=OTHER_TEACHER_ID, school_id=NHS)

    service.assign_teacher(current_role=Role.ADMIN, teacher_id=OTHER_TEACHER_ID, school_id=NHS)
    assert service.is_teacher_at(teacher_id=OTHER_TEACHER_ID, school_id=NHS)

    service.unassign_teacher(current_role=Role.ADMIN, teacher_id=OTHER_TEACHER_ID, school_id=NHS)
    with pytest.raises(NotFoundError):
        service.unassign_teacher(current_role=Role.ADMIN, teacher_id=OTHER_TEACHER_ID, school_id=NHS)


def test_assign_rejects_non_teacher(container):
    with pytest.raises(NotFoundError):
        container.school_service.assign_teacher(current_role=Role.ADMIN, teacher_id=NHS_ADMIN_ID, school_id=NHS)


def test_create_school_requires_name(container):
    with pytest.raises(ValidationError):
        container.school_service.create_school(current_role=Role.ADMIN, name="  ")
    school_id = container.school_service.create_school(current_role=Role.ADMIN, name="Hill Academy", code="HA")
    assert school_id == 3


def test_resolve_class_finds_or_creates_by_grade(container, repos):
    classes = container.class_service
    assert classes.resolve_class_id(school_id=NHS, class_id=None, grade="7") == 1

    new_id = classes.resolve_class_id(school_id=NHS, class_id=None, grade="9")
    created = repos["classes_repo"].get_by_id(new_id)
    assert created.name == "Class - 9"
    assert created.academic_year == "2024-25"
    assert classes.resolve_class_id(school_id=NHS, class_id=None, grade="9") == new_id


def test_resolve_class_rejects_class_of_other_school(container):
    with pytest.raises(ValidationError):
        container.class_service.resolve_class_id(school_id=NHS, class_id=3, grade=None)


def test_resolve_class_without_grade_or_id(container):
    assert container.class_service.resolve_class_id(school_id=NHS, class_id=None, grade=None) is None


def test_duplicate_class_name_is_a_validation_error(container):
    with pytest.raises(ValidationError):
        container.class_service.create_class(school_id=NHS, name="Class - 7", grade="7")
