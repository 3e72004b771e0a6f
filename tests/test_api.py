from __future__ import annotations

import pytest

from src.quran_portal.quran_portal.billing.model import Subscription
from src.quran_portal.quran_portal.core.enums import AttendanceStatus, Role


@pytest.fixture
def paid_admin(world, admin):
    world.subscriptions.upsert(
        Subscription(admin.user_id, "cus_admin", "sub_admin", is_active=True, subscription_status="active")
    )
    return admin


def test_login_sets_session_and_reports_subscription(client, admin):
    res = client.post("/api/login", json={"email": "admin@school.test", "password": "secret123"})

    assert res.status_code == 200
    assert res.get_json()["user"]["role"] == "admin"
    assert res.get_json()["subscribed"] is False
    assert client.get("/api/me").get_json()["email"] == "admin@school.test"


def test_login_failure_is_json_401(client, admin):
    res = client.post("/api/login", json={"email": "admin@school.test", "password": "nope"})

    assert res.status_code == 401
    assert res.get_json() == {"success": False, "error": "Invalid email or password"}


def test_logout_clears_session(client, login, teacher):
    login(teacher)
    client.post("/api/logout")

    assert client.get("/api/me").status_code == 401


def test_protected_routes_need_login_and_role(client, login, world):
    assert client.get("/api/classes").status_code == 401

    login(world.users.add("p@home.test", Role.PARENT))
    res = client.post("/api/classes", json={"name": "New"})
    assert res.status_code == 403


def test_unsubscribed_admin_is_sent_to_billing(client, login, admin):
    login(admin)

    res = client.get("/api/classes")

    assert res.status_code == 402
    assert res.get_json()["billing_required"] is True
    assert client.get("/api/billing/subscription").get_json() == {"subscribed": False}


def test_admin_manages_classes(client, login, paid_admin, teacher):
    login(paid_admin)

    res = client.post("/api/classes", json={"name": "Tuesday Boys"})
    assert res.status_code == 201
    class_id = res.get_json()["class_id"]

    assert client.post(f"/api/classes/{class_id}/teachers", json={"teacher_id": teacher.user_id}).status_code == 200
    detail = client.get(f"/api/classes/{class_id}").get_json()
    assert detail["teachers"][0]["user_id"] == teacher.user_id
    assert detail["linked_class_id"] is None
    assert client.get("/api/classes").get_json()["classes"] == [{"class_id": class_id, "name": "Tuesday Boys"}]


def test_validation_and_not_found_errors(client, login, paid_admin):
    login(paid_admin)

    assert client.post("/api/classes", json={"name": ""}).status_code == 400
    assert client.delete("/api/classes/999").get_json() == {"success": False, "error": "Class not found"}
    assert client.get("/api/nowhere").status_code == 404


def test_teacher_marks_attendance(client, login, world, teacher):
    class_id = world.classes.create_class("Tuesday Boys")
    world.classes.assign_teacher(class_id, teacher.user_id)
    student = world.add_student("Bilal Khan", class_id)
    login(teacher)

    res = client.post(
        f"/api/classes/{class_id}/attendance",
        json={"student_id": student.student_id, "status": "absent", "date": "2025-03-11"},
    )

    assert res.status_code == 200
    assert res.get_json()["absence_level"] == 2
    roster = client.get(f"/api/classes/{class_id}/attendance?date=2025-03-11").get_json()
    assert roster["students"][0]["attendance_status"] == AttendanceStatus.ABSENT.value

    bad = client.post(f"/api/classes/{class_id}/attendance", json={"student_id": student.student_id, "status": "late"})
    assert bad.status_code == 400


def test_grade_requires_passed_flag(client, login, world, teacher):
    class_id = world.classes.create_class("Tuesday Boys")
    world.classes.assign_teacher(class_id, teacher.user_id)
    student = world.add_student("Bilal Khan", class_id)
    login(teacher)
    created = client.post(f"/api/students/{student.student_id}/assignments", json={"surah": "Al-Qadr", "verses": "1-5"})
    assignment_id = created.get_json()["assignment_id"]

    assert created.status_code == 201
    assert client.post(f"/api/assignments/{assignment_id}/grade", json={}).status_code == 400
    graded = client.post(f"/api/assignments/{assignment_id}/grade", json={"passed": True})
    assert graded.get_json()["status"] == "passed"


def test_class_report_csv(client, login, world, paid_admin):
    class_id = world.classes.create_class("Sunday Juniors")
    world.add_student("Amina", class_id)
    login(paid_admin)

    res = client.get(f"/api/classes/{class_id}/report.csv?month=2025-03")

    assert res.status_code == 200
    assert res.headers["Content-Disposition"] == f"attachment; filename=class_{class_id}_2025-03.csv"
    lines = res.get_data(as_text=True).splitlines()
    assert lines[0].startswith("name,lessons_passed")
    assert lines[1].startswith("Amina,0,0")


def test_public_registration_skips_login(client):
    res = client.post(
        "/api/registrations",
        json={
            "email": "family@home.test",
            "phone": "15557770000",
            "registration_type": "parent",
            "students": [{"name": "Musa Rahman", "age": 9}],
        },
    )

    assert res.status_code == 201
    assert res.get_json()["registration_id"] == 1


def test_webhook_errors_use_plain_error_body(client):
    res = client.post("/api/billing/webhook", data=b"not json", content_type="application/json")

    assert res.status_code == 400
    assert "error" in res.get_json()


def test_external_service_error_keeps_provider_status(client, login, world, paid_admin):
    world.sms.failing.add("+15557770000")
    login(paid_admin)

    res = client.post("/api/sms/direct", json={"phone_number": "555-777-0000", "message": "hello"})

    assert res.status_code == 400
    assert res.get_json()["success"] is False


def test_unexpected_errors_are_hidden(client, login, world, paid_admin, monkeypatch):
    def boom():
        raise RuntimeError("db exploded")

    monkeypatch.setattr(world.container.reset_service, "reset_status", boom)
    login(paid_admin)

    res = client.get("/api/resets/status")

    assert res.status_code == 500
    assert res.get_json() == {"success": False, "error": "Internal server error"}


def test_quran_pages_for_logged_in_user(client, login, world, teacher):
    login(teacher)

    res = client.post("/api/quran/pages", json={"surah": "Al-Baqarah", "verses": "1-20"})

    assert res.status_code == 200
    assert res.get_json()["pages"] == 3


def test_record_pages_updates_monthly_progress(client, login, world, teacher):
    class_id = world.classes.create_class("Tuesday Boys")
    world.classes.assign_teacher(class_id, teacher.user_id)
    student = world.add_student("Bilal Khan", class_id)
    login(teacher)

    res = client.post(
        f"/api/students/{student.student_id}/pages",
        json={"surah": "Al-Baqarah", "verses": "1-5", "month": "2025-03"},
    )

    assert res.get_json()["pages"] == 1
    stats = client.get(f"/api/students/{student.student_id}/stats?month=2025-03").get_json()
    assert stats["progress"]["pages_passed_current"] == 1


def test_unsigned_webhook_cannot_activate_subscription(client, world, admin):
    event = {
        "type": "checkout.session.completed",
        "data": {"object": {"customer": "cus_x", "customer_details": {"email": "admin@school.test"}}},
    }

    res = client.post("/api/billing/webhook", json=event)

    assert res.status_code == 400
    assert "Stripe-Signature" in res.get_json()["error"]
    assert world.subscriptions.get_by_user(admin.user_id) is None


def test_registration_admin_routes_need_subscription(client, login, admin):
    login(admin)

    assert client.get("/api/registrations").status_code == 402
    assert client.post("/api/registrations/1/process", json={"classAssignments": {}}).status_code == 402
    assert client.post("/api/registrations/1/reject").status_code == 402

    res = client.post(
        "/api/registrations",
        json={
            "email": "family@home.test",
            "phone": "15557770000",
            "registration_type": "parent",
            "students": [{"name": "Musa Rahman", "age": 9}],
        },
    )
    assert res.status_code == 201


def test_non_numeric_ids_are_rejected_with_400(client, login, world, paid_admin):
    class_id = world.classes.create_class("Tuesday Boys")
    student = world.add_student("Bilal Khan", class_id)
    login(paid_admin)

    transfer = client.post(f"/api/students/{student.student_id}/transfer", json={"class_id": "abc"})
    link = client.post(f"/api/students/{student.student_id}/parents", json={"parent_user_id": "x"})

    assert transfer.status_code == 400
    assert transfer.get_json()["error"] == "class_id must be a number"
    assert link.status_code == 400
    assert link.get_json()["error"] == "parent_user_id must be a number"
