from __future__ import annotations

import pytest

from src.quran_portal.quran_portal.core.enums import Role
from src.quran_portal.quran_portal.core.exceptions import AuthorizationError, NotFoundError, ValidationError


def test_only_admin_creates_classes(world):
    svc = world.container.class_service

    with pytest.raises(AuthorizationError):
        svc.create_class(current_role=Role.TEACHER, name="Thursday Boys")
    with pytest.raises(ValidationError):
        svc.create_class(current_role=Role.ADMIN, name="  ")

    class_id = svc.create_class(current_role=Role.ADMIN, name=" Thursday Boys ")
    assert svc.get_class(class_id).name == "Thursday Boys"


def test_rename_and_delete_missing_class(world):
    svc = world.container.class_service

    with pytest.raises(NotFoundError):
        svc.rename_class(current_role=Role.ADMIN, class_id=99, name="New")
    with pytest.raises(NotFoundError):
        svc.delete_class(current_role=Role.ADMIN, class_id=99)


def test_assign_teacher_rejects_parents(world, teacher):
    svc = world.container.class_service
    class_id = svc.create_class(current_role=Role.ADMIN, name="Friday Hifz")
    parent = world.users.add("p@home.test", Role.PARENT)

    with pytest.raises(ValidationError):
        svc.assign_teacher(current_role=Role.ADMIN, class_id=class_id, teacher_id=parent.user_id)

    svc.assign_teacher(current_role=Role.ADMIN, class_id=class_id, teacher_id=teacher.user_id)
    assert svc.list_teachers(class_id) == [
        {"user_id": teacher.user_id, "full_name": "Ustadh Omar", "email": "teacher@school.test"}
    ]
    assert [c.class_id for c in svc.list_for_user(world.session_user(teacher))] == [class_id]

    svc.remove_teacher(current_role=Role.ADMIN, class_id=class_id, teacher_id=teacher.user_id)
    with pytest.raises(NotFoundError):
        svc.remove_teacher(current_role=Role.ADMIN, class_id=class_id, teacher_id=teacher.user_id)


def test_manage_rights(world, teacher, admin):
    svc = world.container.class_service
    class_id = svc.create_class(current_role=Role.ADMIN, name="Tuesday Boys")

    assert svc.can_manage(world.session_user(admin), class_id) is True
    assert svc.can_manage(world.session_user(teacher), class_id) is False
    world.classes.assign_teacher(class_id, teacher.user_id)
    assert svc.can_manage(world.session_user(teacher), class_id) is True
    assert svc.list_for_user(world.session_user(world.users.add("x@home.test", Role.PARENT))) == []


def test_link_weekday_and_weekend_classes(world):
    svc = world.container.class_service
    weekday = svc.create_class(current_role=Role.ADMIN, name="Tuesday Girls")
    weekend = svc.create_class(current_role=Role.ADMIN, name="Saturday Girls")
    third = svc.create_class(current_role=Role.ADMIN, name="Sunday Girls")

    with pytest.raises(ValidationError):
        svc.link_classes(current_role=Role.ADMIN, weekday_class_id=weekday, weekend_class_id=weekday)

    svc.link_classes(current_role=Role.ADMIN, weekday_class_id=weekday, weekend_class_id=weekend)

    assert svc.linked_class_ids(weekend) == [weekend, weekday]
    assert svc.linked_class_ids(third) == [third]
    with pytest.raises(ValidationError):
        svc.link_classes(current_role=Role.ADMIN, weekday_class_id=third, weekend_class_id=weekend)

    svc.unlink(current_role=Role.ADMIN, class_id=weekday)
    assert svc.get_link(weekend) is None
    with pytest.raises(NotFoundError):
        svc.unlink(current_role=Role.ADMIN, class_id=weekday)
