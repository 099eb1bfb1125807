"""
Hosted Marketplace Backend

Database adapter for the marketplace contract. Every operation runs in its own
AsyncSession and commits once, so logging a session writes the status change
and its payment together or not at all. Guards come from app.domain.lifecycle,
the same rules the demo reducer enforces.
"""
import logging
from datetime import datetime
from typing import Callable, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.database import AsyncSessionLocal
from app.domain import lifecycle
from app.domain.errors import NotFoundError
from app.domain.records import (
    AppState,
    PaymentRecord,
    SessionRecord,
    Role,
    SessionStatus,
    StudentRecord,
    SubjectOffering,
    TutorRecord,
    UserRecord,
)
from app.models.payment import Payment
from app.models.session import Session
from app.models.student import Student
from app.models.tutor import Tutor
from app.models.user import User
from app.services.backends import LoggedSession, MarketplaceBackend
from app.services.seed_data import DEMO_ADMIN_EMAIL, DEMO_ADMIN_USER_ID

logger = logging.getLogger(__name__)


async def _get_or_404(db: AsyncSession, model, entity: str, entity_id: str):
    row = await db.get(model, entity_id)
    if row is None:
        raise NotFoundError(entity, entity_id)
    return row


class SqlMarketplaceBackend(MarketplaceBackend):
    """Marketplace operations over the SQLAlchemy async ORM"""

    name = "hosted"

    def __init__(
        self,
        session_factory: Optional[async_sessionmaker] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.session_factory = session_factory or AsyncSessionLocal
        self._clock = clock

    def today(self) -> datetime:
        return self._clock()

    async def snapshot(self) -> AppState:
        """Read every table into one immutable AppState"""
        async with self.session_factory() as db:
            tutors = (await db.execute(select(Tutor).order_by(Tutor.id))).scalars().all()
            students = (await db.execute(select(Student).order_by(Student.id))).scalars().all()
            sessions = (await db.execute(
                select(Session).order_by(Session.scheduled_at, Session.id)
            )).scalars().all()
            payments = (await db.execute(select(Payment))).scalars().all()

        return AppState(
            tutors=tuple(t.to_record() for t in tutors),
            students=tuple(s.to_record() for s in students),
            sessions=tuple(s.to_record() for s in sessions),
            # Same-day payments keep creation order: p100 after p99
            payments=tuple(sorted(
                (p.to_record() for p in payments),
                key=lambda p: (p.created_at, lifecycle.id_ordinal(p.id)),
            )),
        )

    async def book_session(
        self,
        student_id: str,
        tutor_id: str,
        subject: str,
        when: datetime,
        notes: str = "",
        requires_confirmation: bool = False,
    ) -> SessionRecord:
        async with self.session_factory() as db:
            tutor = await _get_or_404(db, Tutor, "tutor", tutor_id)
            await _get_or_404(db, Student, "student", student_id)
            lifecycle.validate_booking(tutor.to_record(), subject)

            existing_ids = (await db.execute(select(Session.id))).scalars().all()
            record = lifecycle.new_session(
                session_id=lifecycle.generate_id("s", set(existing_ids)),
                student_id=student_id,
                tutor_id=tutor_id,
                subject=subject,
                when=when,
                notes=notes,
                requires_confirmation=requires_confirmation,
            )
            db.add(Session.from_record(record))
            await db.commit()

        logger.info(f"Booked session {record.id} with tutor {tutor_id} for {student_id}")
        return record

    async def cancel_session(self, session_id: str) -> SessionRecord:
        async with self.session_factory() as db:
            row = await _get_or_404(db, Session, "session", session_id)
            lifecycle.ensure_cancellable(row.to_record())

            row.status = SessionStatus.CANCELLED.value
            await db.commit()
            record = row.to_record()

        logger.info(f"Cancelled session {session_id}")
        return record

    async def log_session(self, session_id: str, outcome: SessionStatus) -> PaymentRecord:
        async with self.session_factory() as db:
            row = await _get_or_404(db, Session, "session", session_id)
            session = row.to_record()
            lifecycle.ensure_loggable(session, outcome)

            existing_ids = (await db.execute(select(Payment.id))).scalars().all()
            payment = lifecycle.payment_for_log(
                payment_id=lifecycle.generate_id("p", set(existing_ids)),
                session=session,
                outcome=outcome,
                created_at=self.today().date(),
            )
            row.status = outcome.value
            db.add(Payment.from_record(payment))
            # Status change and payment insert commit together
            await db.commit()

        logger.info(f"Logged session {session_id} as {outcome.value}, payment {payment.id} amount {payment.amount}")
        return payment

    async def log_new_session(
        self,
        tutor_id: str,
        student_id: str,
        subject: str,
        when: datetime,
        outcome: SessionStatus,
        duration: int = 0,
        notes: str = "",
    ) -> LoggedSession:
        async with self.session_factory() as db:
            tutor = await _get_or_404(db, Tutor, "tutor", tutor_id)
            await _get_or_404(db, Student, "student", student_id)
            lifecycle.validate_booking(tutor.to_record(), subject)

            session_ids = (await db.execute(select(Session.id))).scalars().all()
            payment_ids = (await db.execute(select(Payment.id))).scalars().all()
            session = lifecycle.logged_session(
                session_id=lifecycle.generate_id("s", set(session_ids)),
                student_id=student_id,
                tutor_id=tutor_id,
                subject=subject,
                when=when,
                outcome=outcome,
                duration=duration,
                notes=notes,
            )
            payment = lifecycle.payment_for_log(
                payment_id=lifecycle.generate_id("p", set(payment_ids)),
                session=session,
                outcome=session.status,
                created_at=self.today().date(),
            )
            db.add(Session.from_record(session))
            await db.flush()
            db.add(Payment.from_record(payment))
            await db.commit()

        logger.info(f"Tutor {tutor_id} logged new session {session.id} as {outcome.value}, payment {payment.id}")
        return LoggedSession(session, payment)

    async def update_session_notes(self, session_id: str, notes: str) -> SessionRecord:
        async with self.session_factory() as db:
            row = await _get_or_404(db, Session, "session", session_id)
            if row.notes != notes:
                row.notes = notes
                await db.commit()
                logger.info(f"Updated notes on session {session_id}")
            return row.to_record()

    async def respond_to_booking(self, session_id: str, accept: bool) -> SessionRecord:
        async with self.session_factory() as db:
            row = await _get_or_404(db, Session, "session", session_id)
            lifecycle.ensure_pending(row.to_record())

            row.status = lifecycle.response_status(accept).value
            await db.commit()
            record = row.to_record()

        logger.info(f"Session {session_id} {'confirmed' if accept else 'declined'} by tutor")
        return record

    async def update_tutor_profile(
        self,
        tutor_id: str,
        bio: Optional[str] = None,
        subjects: Optional[List[SubjectOffering]] = None,
        calendly_link: Optional[str] = None,
    ) -> TutorRecord:
        async with self.session_factory() as db:
            row = await _get_or_404(db, Tutor, "tutor", tutor_id)
            current = row.to_record()
            patched = lifecycle.apply_profile_patch(
                current,
                bio=bio,
                subjects=subjects,
                calendly_link=calendly_link,
            )
            if patched is current:
                return current

            row.bio = patched.bio
            row.subjects = [s.model_dump(mode="json") for s in patched.subjects]
            row.grades = list(patched.grades)
            row.calendly_link = patched.calendly_link
            await db.commit()

        logger.info(f"Updated profile for tutor {tutor_id}")
        return patched

    async def update_student_profile(
        self,
        student_id: str,
        grade: Optional[str] = None,
        parent_name: Optional[str] = None,
        parent_email: Optional[str] = None,
    ) -> StudentRecord:
        async with self.session_factory() as db:
            row = await _get_or_404(db, Student, "student", student_id)
            current = row.to_record()
            patched = lifecycle.apply_student_patch(
                current,
                grade=grade,
                parent_name=parent_name,
                parent_email=parent_email,
            )
            if patched is current:
                return current

            row.grade = patched.grade
            row.parent_name = patched.parent_name
            row.parent_email = patched.parent_email
            await db.commit()

        logger.info(f"Updated profile for student {student_id}")
        return patched

    async def approve_tutor(self, tutor_id: str) -> TutorRecord:
        async with self.session_factory() as db:
            row = await _get_or_404(db, Tutor, "tutor", tutor_id)
            if not row.is_active:
                row.is_active = True
                await db.commit()
                logger.info(f"Approved tutor {tutor_id}")
            return row.to_record()

    async def mark_student_paid(self, payment_id: str) -> PaymentRecord:
        async with self.session_factory() as db:
            row = await _get_or_404(db, Payment, "payment", payment_id)
            if not row.student_paid:
                row.student_paid = True
                row.payment_date = self.today()
                await db.commit()
                logger.info(f"Payment {payment_id} marked paid by student")
            return row.to_record()

    async def mark_tutor_paid(self, payment_id: str) -> PaymentRecord:
        async with self.session_factory() as db:
            row = await _get_or_404(db, Payment, "payment", payment_id)
            lifecycle.ensure_tutor_payable(row.to_record())
            if not row.tutor_paid:
                row.tutor_paid = True
                row.payment_date = self.today()
                await db.commit()
                logger.info(f"Payment {payment_id} paid out to tutor")
            return row.to_record()

    async def resolve_user(self, user_id: str) -> UserRecord:
        """
        Role and profile of a stored account.

        Raises:
            NotFoundError: If no account has this id
        """
        async with self.session_factory() as db:
            row = await _get_or_404(db, User, "user", user_id)
            profile_id = None
            if row.role == Role.TUTOR.value:
                profile_id = (await db.execute(
                    select(Tutor.id).where(Tutor.user_id == user_id)
                )).scalar_one_or_none()
            elif row.role == Role.STUDENT.value:
                profile_id = (await db.execute(
                    select(Student.id).where(Student.user_id == user_id)
                )).scalar_one_or_none()
            return row.to_record(profile_id=profile_id)

    async def load_state(self, state: AppState) -> None:
        """
        Replace all marketplace rows with the contents of a snapshot.

        Every tutor and student gets an account with the matching role, plus
        one admin account.
        """
        async with self.session_factory() as db:
            for model in (Payment, Session, Student, Tutor, User):
                for row in (await db.execute(select(model))).scalars().all():
                    await db.delete(row)
            await db.flush()

            users = [User(id=DEMO_ADMIN_USER_ID, email=DEMO_ADMIN_EMAIL, name="Admin", role=Role.ADMIN.value)]
            tutors = [Tutor.from_record(t) for t in state.tutors]
            students = [Student.from_record(s) for s in state.students]
            for profile, role in [(t, Role.TUTOR) for t in tutors] + [(s, Role.STUDENT) for s in students]:
                profile.user_id = lifecycle.user_id_for(profile.id)
                users.append(User(id=profile.user_id, email=profile.email, name=profile.name, role=role.value))

            db.add_all(users)
            await db.flush()
            db.add_all(tutors)
            db.add_all(students)
            await db.flush()
            db.add_all([Session.from_record(s) for s in state.sessions])
            await db.flush()
            db.add_all([Payment.from_record(p) for p in state.payments])
            await db.commit()

        logger.info(
            f"Loaded {len(state.tutors)} tutors, {len(state.students)} students, "
            f"{len(state.sessions)} sessions, {len(state.payments)} payments"
        )
