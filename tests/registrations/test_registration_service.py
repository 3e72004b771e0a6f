from __future__ import annotations

import pytest

from src.quran_portal.quran_portal.core.enums import RegistrationStatus, Role
from src.quran_portal.quran_portal.core.exceptions import AuthorizationError, NotFoundError, ValidationError
from src.quran_portal.quran_portal.registrations.service import student_email


@pytest.fixture
def svc(world):
    return world.container.registration_service


def _submit(svc, **overrides):
    data = dict(
        email="Family@Home.test",
        parent_name="Amina Rahman",
        phone="15557770000",
        registration_type="parent",
        students=[{"name": "Musa Rahman", "age": 9}, {"name": "Safiya Rahman", "age": "7"}],
    )
    data.update(overrides)
    return svc.submit_registration(**data)


def test_student_email():
    assert student_email(" Musa  Rahman ") == "musa.rahman@students.quranportal.local"
    assert student_email("Musa Rahman", suffix="a1b2") == "musa.rahman.a1b2@students.quranportal.local"


def test_submit_registration_stores_students(world, svc):
    registration_id = _submit(svc)

    reg = svc.get_registration(registration_id)
    assert reg.email == "family@home.test"
    assert reg.status == RegistrationStatus.PENDING
    assert [(s.name, s.age) for s in reg.students] == [("Musa Rahman", 9), ("Safiya Rahman", 7)]


@pytest.mark.parametrize(
    "overrides",
    [
        {"email": "not-an-email"},
        {"phone": ""},
        {"registration_type": "school"},
        {"students": []},
        {"students": [{"name": "Musa", "age": 0}]},
        {"students": [{"name": "", "age": 5}]},
    ],
)
def test_submit_registration_validation(svc, overrides):
    with pytest.raises(ValidationError):
        _submit(svc, **overrides)


def test_admin_only_listing_and_status_filter(svc):
    first = _submit(svc)
    _submit(svc, email="other@home.test")
    svc.reject_registration(current_role=Role.ADMIN, registration_id=first)

    with pytest.raises(AuthorizationError):
        svc.list_registrations(current_role=Role.TEACHER)

    pending = svc.list_registrations(current_role=Role.ADMIN, status=RegistrationStatus.PENDING)
    assert [r.email for r in pending] == ["other@home.test"]
    assert svc.get_registration(first).status == RegistrationStatus.REJECTED
    with pytest.raises(NotFoundError):
        svc.reject_registration(current_role=Role.ADMIN, registration_id=999)


def test_process_parent_registration_creates_parent_and_students(world, svc):
    class_id = world.classes.create_class("Saturday Juniors")
    registration_id = _submit(svc)
    musa, safiya = svc.get_registration(registration_id).students

    out = svc.process_registration(
        current_role=Role.ADMIN,
        registration_id=registration_id,
        class_assignments={str(musa.id): class_id, str(safiya.id): None},
    )

    assert out["success"] is True
    assert out["message"] == "Successfully processed registration. Created 2 accounts."
    assert [c["type"] for c in out["results"]["created"]] == ["parent", "student"]
    parent = world.users.get_by_email("family@home.test")
    assert parent.role == Role.PARENT
    assert parent.phone_number == "+15557770000"
    assert world.links.get_preferences(parent.user_id).phone_number == "+15557770000"
    (student,) = world.students.list_by_classes([class_id])
    assert student.email == "musa.rahman@students.quranportal.local"
    assert [l.student_id for l in world.links.list_for_parent(parent.user_id)] == [student.student_id]
    assert svc.get_registration(registration_id).status == RegistrationStatus.PROCESSED


def test_process_reuses_existing_parent_and_student(world, svc):
    class_id = world.classes.create_class("Saturday Juniors")
    parent = world.users.add("family@home.test", Role.PARENT)
    existing = world.add_student("Musa Rahman", class_id)
    world.links.create_link(parent_user_id=parent.user_id, student_id=existing.student_id)
    registration_id = _submit(svc, students=[{"name": "Musa Rahman", "age": 9}])
    (musa,) = svc.get_registration(registration_id).students

    out = svc.process_registration(
        current_role=Role.ADMIN, registration_id=registration_id, class_assignments={musa.id: class_id}
    )

    assert [c["type"] for c in out["results"]["created"]] == ["student_existing"]
    assert len(world.students.students) == 1
    assert len(world.links.list_for_parent(parent.user_id)) == 1


def test_process_adult_registration(world, svc):
    class_id = world.classes.create_class("Evening Adults")
    registration_id = _submit(svc, registration_type="adult", students=[{"name": "Amina Rahman", "age": 34}])
    (adult_entry,) = svc.get_registration(registration_id).students

    out = svc.process_registration(
        current_role=Role.ADMIN, registration_id=registration_id, class_assignments={adult_entry.id: class_id}
    )

    created = out["results"]["created"][-1]
    assert created["type"] == "adult_student"
    (adult,) = world.adults.list_all()
    assert adult.email == created["email"]
    assert adult.phone_number == "+15557770000"
    assert adult.class_id == class_id
    assert world.students.get_by_id(adult.student_id).name == "Amina Rahman"


def test_process_reports_unknown_class_per_student(world, svc):
    registration_id = _submit(svc, students=[{"name": "Musa Rahman", "age": 9}])
    (musa,) = svc.get_registration(registration_id).students

    out = svc.process_registration(
        current_role=Role.ADMIN, registration_id=registration_id, class_assignments={musa.id: 404}
    )

    assert out["results"]["errors"] == [{"type": "student", "name": "Musa Rahman", "error": "Class not found"}]
    assert svc.get_registration(registration_id).status == RegistrationStatus.PROCESSED


@pytest.mark.parametrize("assignments", [{"abc": 1}, {"1": "Saturday"}])
def test_process_rejects_non_numeric_class_assignments(world, svc, assignments):
    registration_id = _submit(svc)

    with pytest.raises(ValidationError):
        svc.process_registration(current_role=Role.ADMIN, registration_id=registration_id, class_assignments=assignments)

    assert svc.get_registration(registration_id).status == RegistrationStatus.PENDING
    assert world.users.get_by_email("family@home.test") is None
