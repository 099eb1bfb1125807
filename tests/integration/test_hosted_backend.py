"""
Integration tests for the marketplace backends

Runs the same contract against the demo store and the database adapter on an
in-memory SQLite database, both loaded with the seed data.
"""
from datetime import date, datetime

import pytest
from fastapi import HTTPException
from fastapi.security import HTTPAuthorizationCredentials

from app.api.auth import get_current_user
from app.database import Base, build_engine, build_session_factory
from app.domain.errors import DomainValidationError, InvalidTransitionError, NotFoundError
from app.domain.records import PaymentRecord, Role, SessionStatus, SubjectOffering
from app.services import metrics
from app.services.backends import DemoBackend
from app.services.hosted_backend import SqlMarketplaceBackend
from app.services.scheduler import scan_attention_items
from app.services.seed_data import build_initial_state
from app.services.state_store import StateStore

pytestmark = pytest.mark.integration

TODAY = datetime(2025, 2, 7, 12, 0)


@pytest.fixture
async def hosted():
    """Database backend on a fresh in-memory SQLite database with the seed loaded"""
    engine = build_engine("sqlite+aiosqlite:///:memory:")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    backend = SqlMarketplaceBackend(build_session_factory(engine), clock=lambda: TODAY)
    await backend.load_state(build_initial_state())

    yield backend

    await engine.dispose()


@pytest.fixture(params=["demo", "hosted"])
async def backend(request, hosted):
    if request.param == "demo":
        return DemoBackend(StateStore(clock=lambda: TODAY))
    return hosted


class TestBackendContract:
    """Both adapters accept and reject the same operations"""

    async def test_snapshot_matches_seed_counts(self, backend):
        state = await backend.snapshot()
        assert (len(state.tutors), len(state.students), len(state.sessions), len(state.payments)) == (8, 12, 26, 21)

    async def test_book_session(self, backend):
        session = await backend.book_session("st1", "t2", "English", datetime(2025, 3, 1, 10, 0), "note")

        assert session.status == SessionStatus.SCHEDULED
        assert session.duration == 60
        assert session.price == 50

        state = await backend.snapshot()
        assert len(state.sessions) == 27
        assert state.find_session(session.id) is not None

    async def test_book_rejections(self, backend):
        with pytest.raises(DomainValidationError):
            await backend.book_session("st1", "t2", "Physics", datetime(2025, 3, 1, 10, 0))
        with pytest.raises(NotFoundError):
            await backend.book_session("st404", "t2", "English", datetime(2025, 3, 1, 10, 0))

        assert len((await backend.snapshot()).sessions) == 26

    async def test_cancel_then_cancel_again(self, backend):
        cancelled = await backend.cancel_session("s22")
        assert cancelled.status == SessionStatus.CANCELLED

        with pytest.raises(InvalidTransitionError):
            await backend.cancel_session("s22")

    async def test_log_session_creates_payment(self, backend):
        payment = await backend.log_session("s22", SessionStatus.COMPLETED)

        assert payment.amount == 50
        assert payment.tutor_amount == 25
        assert payment.created_at == TODAY.date()

        state = await backend.snapshot()
        assert state.find_session("s22").status == SessionStatus.COMPLETED
        assert len(state.payments) == 22
        assert state.find_payment(payment.id) == payment

    async def test_log_no_show(self, backend):
        payment = await backend.log_session("s23", SessionStatus.NO_SHOW)
        assert payment.amount == 0 and payment.tutor_amount == 0

    async def test_rejected_log_writes_nothing(self, backend):
        with pytest.raises(DomainValidationError):
            await backend.log_session("s22", SessionStatus.CANCELLED)

        state = await backend.snapshot()
        assert state.find_session("s22").status == SessionStatus.SCHEDULED
        assert len(state.payments) == 21

    async def test_respond_to_booking(self, backend):
        pending = await backend.book_session(
            "st1", "t1", "Mathematics", datetime(2025, 3, 3, 16, 0), requires_confirmation=True
        )
        assert pending.status == SessionStatus.PENDING_CONFIRMATION

        confirmed = await backend.respond_to_booking(pending.id, accept=True)
        assert confirmed.status == SessionStatus.CONFIRMED

        with pytest.raises(InvalidTransitionError):
            await backend.respond_to_booking(pending.id, accept=False)

    async def test_payment_flags(self, backend):
        paid = await backend.mark_student_paid("p16")
        assert paid.student_paid is True
        assert (await backend.mark_student_paid("p16")) == paid

        paid_out = await backend.mark_tutor_paid("p16")
        assert paid_out.student_paid and paid_out.tutor_paid

        with pytest.raises(InvalidTransitionError):
            await backend.mark_tutor_paid("p19")
        with pytest.raises(NotFoundError):
            await backend.mark_student_paid("p404")

    async def test_profile_update(self, backend):
        tutor = await backend.update_tutor_profile(
            "t1",
            subjects=[SubjectOffering(name="Physics", grades=("G12", "G11"))],
        )
        assert tutor.grades == ("G12", "G11")

        reloaded = (await backend.snapshot()).find_tutor("t1")
        assert reloaded.subjects == tutor.subjects
        assert reloaded.bio == tutor.bio

    async def test_approve_tutor(self, backend):
        tutor = await backend.approve_tutor("t3")
        assert tutor.is_active is True

        with pytest.raises(NotFoundError):
            await backend.approve_tutor("t404")

    async def test_log_new_session_writes_session_and_payment(self, backend):
        logged = await backend.log_new_session(
            "t1", "st1", "Mathematics", datetime(2025, 2, 5, 16, 0), SessionStatus.COMPLETED, duration=90, notes="Limits"
        )

        assert logged.session.status == SessionStatus.COMPLETED
        assert logged.session.duration == 90
        assert logged.payment.session_id == logged.session.id
        assert logged.payment.amount == 50 and logged.payment.tutor_amount == 25
        assert logged.payment.created_at == TODAY.date()

        state = await backend.snapshot()
        assert state.find_session(logged.session.id) == logged.session
        assert state.payment_for_session(logged.session.id) == logged.payment

    async def test_log_new_cancelled_session(self, backend):
        logged = await backend.log_new_session(
            "t1", "st1", "Mathematics", datetime(2025, 2, 5, 16, 0), SessionStatus.CANCELLED
        )

        assert logged.session.status == SessionStatus.CANCELLED
        assert logged.payment.amount == 0
        assert len((await backend.snapshot()).payments) == 22

    async def test_rejected_direct_log_writes_nothing(self, backend):
        with pytest.raises(DomainValidationError):
            await backend.log_new_session("t1", "st1", "Chemistry", datetime(2025, 2, 5, 16, 0), SessionStatus.COMPLETED)
        with pytest.raises(DomainValidationError):
            await backend.log_new_session("t1", "st1", "Mathematics", datetime(2025, 2, 5, 16, 0), SessionStatus.SCHEDULED)
        with pytest.raises(NotFoundError):
            await backend.log_new_session("t1", "st404", "Mathematics", datetime(2025, 2, 5, 16, 0), SessionStatus.COMPLETED)

        state = await backend.snapshot()
        assert (len(state.sessions), len(state.payments)) == (26, 21)

    async def test_update_session_notes(self, backend):
        session = await backend.update_session_notes("s16", "Homework: exercises 4-9")
        assert session.notes == "Homework: exercises 4-9"
        assert (await backend.snapshot()).find_session("s16").notes == "Homework: exercises 4-9"

        with pytest.raises(NotFoundError):
            await backend.update_session_notes("s404", "x")

    async def test_update_student_profile(self, backend):
        student = await backend.update_student_profile("st1", grade="G12", parent_email="wei@example.com")
        assert student.grade == "G12"
        assert student.parent_name == "Wei Chen"

        assert (await backend.snapshot()).find_student("st1") == student

        with pytest.raises(DomainValidationError):
            await backend.update_student_profile("st1", grade="G13")
        with pytest.raises(NotFoundError):
            await backend.update_student_profile("st404", grade="G9")

class TestHostedMetrics:
    """Dashboards computed from a database snapshot match the demo store"""

    async def test_admin_overview_matches_demo(self, hosted):
        hosted_overview = metrics.admin_overview(await hosted.snapshot(), TODAY)
        demo_overview = metrics.admin_overview(build_initial_state(), TODAY)

        for key in ("sessions_this_month", "revenue_this_month", "active_tutors", "outstanding_amount"):
            assert hosted_overview[key] == demo_overview[key]
        assert hosted_overview["weekly_sessions"] == demo_overview["weekly_sessions"]
        assert hosted_overview["monthly_revenue"] == demo_overview["monthly_revenue"]

    async def test_financials_after_student_pays(self, hosted):
        await hosted.mark_student_paid("p16")
        summary = metrics.financial_summary(await hosted.snapshot())

        assert summary["owed_to_tutors"] == 125
        assert "p16" in {p.id for p in summary["pending_tutor_payouts"]}

    async def test_attention_scan(self, hosted):
        summary = await scan_attention_items(hosted)

        assert summary["unlogged_sessions"] == 0
        assert summary["overdue_payments"] == 4
        assert summary["recent_no_shows"] == 2

    async def test_reload_replaces_rows(self, hosted):
        await hosted.book_session("st1", "t2", "English", datetime(2025, 3, 1, 10, 0))
        await hosted.load_state(build_initial_state())

        assert len((await hosted.snapshot()).sessions) == 26

    async def test_same_day_payments_keep_creation_order(self, hosted):
        state = build_initial_state()
        older = PaymentRecord(id="p99-aaaaaaaa", session_id="s22", amount=50, tutor_amount=25, created_at=date(2025, 2, 7))
        newer = older.model_copy(update={"id": "p100-bbbbbbbb", "amount": 0, "tutor_amount": 0})
        await hosted.load_state(state.model_copy(update={"payments": state.payments + (older, newer)}))

        snapshot = await hosted.snapshot()

        assert [p.id for p in snapshot.payments[-2:]] == ["p99-aaaaaaaa", "p100-bbbbbbbb"]
        assert snapshot.payment_for_session("s22").id == "p100-bbbbbbbb"


def bearer(token: str) -> HTTPAuthorizationCredentials:
    return HTTPAuthorizationCredentials(scheme="Bearer", credentials=token)


class TestStoredAccounts:
    """Roles come from stored user rows on the database backend"""

    async def test_loaded_profiles_have_accounts(self, hosted):
        tutor = await hosted.resolve_user("u-t1")
        assert (tutor.role, tutor.profile_id) == (Role.TUTOR, "t1")

        student = await hosted.resolve_user("u-st3")
        assert (student.role, student.profile_id) == (Role.STUDENT, "st3")

        admin = await hosted.resolve_user("u-admin")
        assert (admin.role, admin.profile_id) == (Role.ADMIN, None)

    async def test_unknown_account(self, hosted):
        with pytest.raises(NotFoundError):
            await hosted.resolve_user("u-nobody")

    async def test_current_user_role_comes_from_stored_row(self, hosted):
        user = await get_current_user(bearer("demo_tutor_token"), backend=hosted)
        assert (user.user_id, user.role, user.profile_id) == ("u-t1", Role.TUTOR, "t1")

    async def test_token_without_account_is_rejected(self, hosted):
        seed = build_initial_state()
        await hosted.load_state(seed.model_copy(update={
            "students": tuple(s for s in seed.students if s.id != "st1"),
            "sessions": tuple(s for s in seed.sessions if s.student_id != "st1"),
            "payments": (),
        }))

        with pytest.raises(HTTPException) as excinfo:
            await get_current_user(bearer("demo_student_token"), backend=hosted)

        assert excinfo.value.status_code == 401
        assert excinfo.value.detail["error"]["code"] == "AUTH_003"

    async def test_demo_backend_trusts_the_token(self):
        user = await get_current_user(bearer("demo_student_token"), backend=DemoBackend())
        assert (user.role, user.profile_id) == (Role.STUDENT, "st1")
