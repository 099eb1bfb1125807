"""
Integration tests for the marketplace API

Runs the FastAPI app against a fresh demo backend per test.
"""
import pytest
from fastapi.testclient import TestClient

from main import app
from app.services.backends import DemoBackend, get_backend

pytestmark = pytest.mark.integration

STUDENT = {"Authorization": "Bearer demo_student_token"}
TUTOR = {"Authorization": "Bearer demo_tutor_token"}
ADMIN = {"Authorization": "Bearer demo_admin_token"}


@pytest.fixture
def backend():
    return DemoBackend()


@pytest.fixture
def client(backend):
    app.dependency_overrides[get_backend] = lambda: backend
    yield TestClient(app)
    app.dependency_overrides.clear()


class TestHealthAndAuth:
    """Test public endpoints and the auth envelope"""

    def test_health_is_public(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "ok"

    def test_missing_token(self, client):
        response = client.get("/api/v1/tutors")
        assert response.status_code == 401
        assert response.json()["error"]["code"] == "AUTH_001"

    def test_invalid_token(self, client):
        response = client.get("/api/v1/tutors", headers={"Authorization": "Bearer nope"})
        assert response.status_code == 401
        assert response.json()["error"]["code"] == "AUTH_002"

    def test_wrong_role(self, client):
        response = client.get("/api/v1/dashboard/admin", headers=STUDENT)
        assert response.status_code == 403
        assert response.json()["error"]["code"] == "AUTH_004"


class TestTutorEndpoints:
    """Test browsing, profile edits and approval"""

    def test_browse_by_subject(self, client):
        response = client.get("/api/v1/tutors", params={"subject": "Physics"}, headers=STUDENT)
        assert response.status_code == 200

        body = response.json()
        assert body["metadata"]["count"] == len(body["data"])
        assert all(
            any(s["name"] == "Physics" for s in tutor["subjects"])
            for tutor in body["data"]
        )

    def test_tutor_edits_own_profile(self, client):
        response = client.patch(
            "/api/v1/tutors/t1/profile",
            json={"subjects": [{"name": "Physics", "grades": ["G11", "G12"]}]},
            headers=TUTOR,
        )
        assert response.status_code == 200
        assert response.json()["data"]["grades"] == ["G11", "G12"]

    def test_tutor_cannot_edit_another_profile(self, client):
        response = client.patch("/api/v1/tutors/t2/profile", json={"bio": "x"}, headers=TUTOR)
        assert response.status_code == 403

    def test_admin_approves_tutor(self, client, backend):
        t8 = backend.store.state.find_tutor("t8").model_copy(update={"is_active": False})
        backend.store._state = backend.store.state.model_copy(update={
            "tutors": tuple(t8 if t.id == "t8" else t for t in backend.store.state.tutors)
        })

        hidden = client.get("/api/v1/tutors", headers=STUDENT).json()["data"]
        assert "t8" not in {t["id"] for t in hidden}

        response = client.post("/api/v1/tutors/t8/approve", headers=ADMIN)
        assert response.status_code == 200
        assert response.json()["data"]["is_active"] is True

    def test_approve_unknown_tutor(self, client):
        response = client.post("/api/v1/tutors/t99/approve", headers=ADMIN)
        assert response.status_code == 404
        assert response.json()["error"]["code"] == "NOT_FOUND"


class TestSessionEndpoints:
    """Test booking, cancelling, logging and responding"""

    def test_book_session(self, client):
        response = client.post(
            "/api/v1/sessions",
            json={"tutor_id": "t2", "subject": "English", "date": "2025-03-01T10:00:00", "notes": "note"},
            headers=STUDENT,
        )
        assert response.status_code == 201

        session = response.json()["data"]
        assert session["status"] == "scheduled"
        assert session["duration"] == 60
        assert session["price"] == 50
        assert session["student_id"] == "st1"

    def test_book_subject_not_taught(self, client):
        response = client.post(
            "/api/v1/sessions",
            json={"tutor_id": "t2", "subject": "Physics", "date": "2025-03-01T10:00:00"},
            headers=STUDENT,
        )
        assert response.status_code == 422
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"

    def test_cancel_twice(self, client):
        first = client.post("/api/v1/sessions/s22/cancel", headers=STUDENT)
        assert first.status_code == 200
        assert first.json()["data"]["status"] == "cancelled"

        second = client.post("/api/v1/sessions/s22/cancel", headers=STUDENT)
        assert second.status_code == 409
        assert second.json()["error"]["code"] == "INVALID_TRANSITION"

    def test_student_cannot_cancel_someone_elses_session(self, client):
        response = client.post("/api/v1/sessions/s23/cancel", headers=STUDENT)
        assert response.status_code == 403

    def test_cancel_unknown_session(self, client):
        response = client.post("/api/v1/sessions/s404/cancel", headers=ADMIN)
        assert response.status_code == 404

    def test_tutor_logs_completed_session(self, client, backend):
        response = client.post("/api/v1/sessions/s22/log", json={"status": "completed"}, headers=TUTOR)
        assert response.status_code == 201

        payment = response.json()["data"]
        assert payment["amount"] == 50
        assert payment["tutor_amount"] == 25
        assert payment["student_paid"] is False
        assert payment["created_at"] == "2025-02-07"
        assert backend.store.state.find_session("s22").status.value == "completed"

    def test_log_no_show_hyphenated(self, client):
        response = client.post("/api/v1/sessions/s22/log", json={"status": "no-show"}, headers=TUTOR)
        assert response.status_code == 201
        assert response.json()["data"]["amount"] == 0

    def test_log_invalid_status(self, client):
        response = client.post("/api/v1/sessions/s22/log", json={"status": "finished"}, headers=TUTOR)
        assert response.status_code == 422

    def test_tutor_logs_new_completed_session(self, client, backend):
        response = client.post(
            "/api/v1/sessions/logged",
            json={"student_id": "st1", "subject": "Mathematics", "date": "2025-02-05T16:00:00", "status": "completed"},
            headers=TUTOR,
        )
        assert response.status_code == 201

        data = response.json()["data"]
        assert data["session"]["tutor_id"] == "t1"
        assert data["session"]["status"] == "completed"
        assert data["payment"]["session_id"] == data["session"]["id"]
        assert data["payment"]["amount"] == 50
        assert backend.store.state.find_session(data["session"]["id"]) is not None

    def test_log_new_cancelled_session_is_not_charged(self, client):
        response = client.post(
            "/api/v1/sessions/logged",
            json={"student_id": "st1", "subject": "Mathematics", "date": "2025-02-05T16:00:00", "status": "cancelled"},
            headers=TUTOR,
        )
        assert response.status_code == 201
        assert response.json()["data"]["session"]["status"] == "cancelled"
        assert response.json()["data"]["payment"]["amount"] == 0

    def test_log_new_session_rejects_open_status(self, client):
        response = client.post(
            "/api/v1/sessions/logged",
            json={"student_id": "st1", "subject": "Mathematics", "date": "2025-02-05T16:00:00", "status": "scheduled"},
            headers=TUTOR,
        )
        assert response.status_code == 422

    def test_admin_must_name_the_tutor(self, client):
        body = {"student_id": "st1", "subject": "Mathematics", "date": "2025-02-05T16:00:00", "status": "completed"}

        missing = client.post("/api/v1/sessions/logged", json=body, headers=ADMIN)
        assert missing.status_code == 422
        assert missing.json()["error"]["code"] == "VALIDATION_ERROR"

        named = client.post("/api/v1/sessions/logged", json={**body, "tutor_id": "t1"}, headers=ADMIN)
        assert named.status_code == 201

    def test_tutor_cannot_log_for_another_tutor(self, client):
        response = client.post(
            "/api/v1/sessions/logged",
            json={
                "student_id": "st1",
                "subject": "English",
                "date": "2025-02-05T16:00:00",
                "status": "completed",
                "tutor_id": "t2",
            },
            headers=TUTOR,
        )
        assert response.status_code == 403

    def test_students_cannot_log_sessions(self, client):
        response = client.post(
            "/api/v1/sessions/logged",
            json={"student_id": "st1", "subject": "Mathematics", "date": "2025-02-05T16:00:00", "status": "completed"},
            headers=STUDENT,
        )
        assert response.status_code == 403

    def test_tutor_edits_notes_of_own_session(self, client, backend):
        response = client.patch("/api/v1/sessions/s16/notes", json={"notes": "Covered chain rule"}, headers=TUTOR)
        assert response.status_code == 200
        assert response.json()["data"]["notes"] == "Covered chain rule"
        assert response.json()["data"]["status"] == "completed"
        assert backend.store.state.find_session("s16").notes == "Covered chain rule"

    def test_tutor_cannot_edit_notes_of_another_tutors_session(self, client):
        response = client.patch("/api/v1/sessions/s23/notes", json={"notes": "x"}, headers=TUTOR)
        assert response.status_code == 403

    def test_booking_request_confirmation_flow(self, client):
        booked = client.post(
            "/api/v1/sessions",
            json={
                "tutor_id": "t1",
                "subject": "Mathematics",
                "date": "2025-03-03T16:00:00",
                "requires_confirmation": True,
            },
            headers=STUDENT,
        ).json()["data"]
        assert booked["status"] == "pending_confirmation"

        response = client.post(f"/api/v1/sessions/{booked['id']}/respond", json={"accept": True}, headers=TUTOR)
        assert response.status_code == 200
        assert response.json()["data"]["status"] == "confirmed"

    def test_admin_session_table(self, client):
        response = client.get("/api/v1/sessions", params={"tutor_id": "t1"}, headers=ADMIN)
        assert response.status_code == 200

        rows = {row["id"]: row["payment_status"] for row in response.json()["data"]}
        assert rows == {"s1": "paid", "s2": "paid", "s9": "paid", "s12": "owing", "s16": "owing", "s22": "pending"}

    def test_admin_session_table_status_filter(self, client):
        response = client.get("/api/v1/sessions", params={"status": "no-show"}, headers=ADMIN)
        assert {row["id"] for row in response.json()["data"]} == {"s19", "s20"}

    def test_admin_session_table_bad_range(self, client):
        response = client.get("/api/v1/sessions", params={"date_range": "year"}, headers=ADMIN)
        assert response.status_code == 422


class TestStudentEndpoints:
    """Test student profile edits"""

    def test_student_updates_own_profile(self, client, backend):
        response = client.patch("/api/v1/students/st1/profile", json={"grade": "G12"}, headers=STUDENT)
        assert response.status_code == 200

        student = response.json()["data"]
        assert student["grade"] == "G12"
        assert student["parent_name"] == "Wei Chen"
        assert backend.store.state.find_student("st1").grade == "G12"

    def test_student_cannot_edit_another_profile(self, client):
        response = client.patch("/api/v1/students/st2/profile", json={"grade": "G12"}, headers=STUDENT)
        assert response.status_code == 403

    def test_admin_updates_parent_contact(self, client):
        response = client.patch(
            "/api/v1/students/st2/profile",
            json={"parent_email": "parent@example.com"},
            headers=ADMIN,
        )
        assert response.status_code == 200
        assert response.json()["data"]["parent_email"] == "parent@example.com"

    def test_unknown_grade(self, client):
        response = client.patch("/api/v1/students/st1/profile", json={"grade": "G13"}, headers=STUDENT)
        assert response.status_code == 422
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"

    def test_tutors_cannot_edit_student_profiles(self, client):
        response = client.patch("/api/v1/students/st1/profile", json={"grade": "G12"}, headers=TUTOR)
        assert response.status_code == 403


class TestPaymentEndpoints:
    """Test payment flag endpoints"""

    def test_student_paid_moves_payment_to_pending_payouts(self, client):
        response = client.post("/api/v1/payments/p16/student-paid", headers=ADMIN)
        assert response.status_code == 200
        assert response.json()["data"]["student_paid"] is True

        summary = client.get("/api/v1/dashboard/financials", headers=ADMIN).json()["data"]
        assert "p16" in {p["id"] for p in summary["pending_tutor_payouts"]}
        assert "p16" not in {p["id"] for p in summary["outstanding_student_payments"]}

    def test_tutor_paid_on_zero_payment(self, client):
        response = client.post("/api/v1/payments/p19/tutor-paid", headers=ADMIN)
        assert response.status_code == 409

    def test_only_admins_mark_payments(self, client):
        response = client.post("/api/v1/payments/p16/student-paid", headers=TUTOR)
        assert response.status_code == 403


class TestDashboardEndpoints:
    """Test role dashboards over the seed data"""

    def test_admin_overview(self, client):
        response = client.get("/api/v1/dashboard/admin", headers=ADMIN)
        assert response.status_code == 200

        body = response.json()
        data = body["data"]
        assert data["sessions_this_month"] == 5
        assert data["active_tutors"] == 7
        assert data["outstanding_amount"] == 200
        assert len(data["attention"]["overdue_payments"]) == 4
        assert [w["count"] for w in data["weekly_sessions"]] == [2, 0, 0, 3, 4, 4, 4, 0]
        assert [m["revenue"] for m in data["monthly_revenue"]] == [200, 650, 0]
        assert body["metadata"]["backend"] == "demo"

    def test_financials(self, client):
        data = client.get("/api/v1/dashboard/financials", headers=ADMIN).json()["data"]
        assert data["total_revenue"] == 850
        assert data["collected_from_students"] == 650
        assert data["owed_to_tutors"] == 100

    def test_tutor_dashboard(self, client):
        data = client.get("/api/v1/dashboard/tutor", headers=TUTOR).json()["data"]
        assert data["tutor_id"] == "t1"
        assert data["total_earnings"] == 75
        assert data["pending_payout"] == 50

    def test_student_dashboard(self, client):
        data = client.get("/api/v1/dashboard/student", headers=STUDENT).json()["data"]
        assert [s["id"] for s in data["upcoming_sessions"]] == ["s22", "s24"]
        assert data["amount_owing"] == 100

    def test_admin_views_a_student_dashboard(self, client):
        response = client.get("/api/v1/dashboard/student", params={"student_id": "st3"}, headers=ADMIN)
        assert response.status_code == 200
        assert response.json()["data"]["student_id"] == "st3"

    def test_admin_dashboards_need_a_profile_id(self, client):
        for path, parameter in (("/api/v1/dashboard/tutor", "tutor_id"), ("/api/v1/dashboard/student", "student_id")):
            response = client.get(path, headers=ADMIN)
            assert response.status_code == 422
            assert response.json()["error"]["code"] == "VALIDATION_ERROR"
            assert response.json()["error"]["details"] == {"parameter": parameter}

    def test_user_activity(self, client):
        data = client.get("/api/v1/dashboard/users", headers=ADMIN).json()["data"]
        assert data["tutors"]["t1"] == 5
        assert data["students"]["st1"] == 5


class TestDemoEndpoints:
    """Test the raw demo store endpoints"""

    def test_dispatch_action(self, client):
        response = client.post(
            "/api/v1/demo/actions",
            json={"type": "SET_ROLE", "role": "admin"},
            headers=STUDENT,
        )
        assert response.status_code == 200
        assert response.json()["changed"] is True
        assert response.json()["data"]["current_role"] == "admin"

    def test_dispatch_direct_log(self, client):
        response = client.post(
            "/api/v1/demo/actions",
            json={
                "type": "LOG_NEW_SESSION",
                "student_id": "st1",
                "subject": "Mathematics",
                "date": "2025-02-05T16:00:00",
                "status": "no-show",
            },
            headers=TUTOR,
        )
        assert response.status_code == 200

        state = response.json()["data"]
        assert state["sessions"][-1]["status"] == "no_show"
        assert state["payments"][-1]["session_id"] == state["sessions"][-1]["id"]
        assert state["payments"][-1]["amount"] == 0

    def test_rejected_action_maps_to_error(self, client):
        response = client.post(
            "/api/v1/demo/actions",
            json={"type": "CANCEL_SESSION", "session_id": "s16"},
            headers=STUDENT,
        )
        assert response.status_code == 409

    def test_unknown_action_type(self, client):
        response = client.post("/api/v1/demo/actions", json={"type": "NOPE"}, headers=STUDENT)
        assert response.status_code == 422

    def test_reset(self, client):
        client.post("/api/v1/sessions/s22/cancel", headers=STUDENT)

        response = client.post("/api/v1/demo/reset", headers=ADMIN)
        assert response.status_code == 200

        state = client.get("/api/v1/demo/state", headers=STUDENT).json()["data"]
        s22 = next(s for s in state["sessions"] if s["id"] == "s22")
        assert s22["status"] == "scheduled"
