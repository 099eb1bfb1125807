"""
Marketplace Backends

One async contract served by two adapters: the in-memory demo store and the
database-backed hosted store. Routes depend on ``MarketplaceBackend`` only, so
either adapter can sit behind the API.
"""
import logging
from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, NamedTuple, Optional

from app import config
from app.domain.actions import (
    ApproveTutor,
    BookSession,
    CancelSession,
    LogNewSession,
    LogSession,
    MarkPaymentStudentPaid,
    MarkPaymentTutorPaid,
    RespondToBooking,
    UpdateSessionNotes,
    UpdateStudentProfile,
    UpdateTutorProfile,
)
from app.domain.records import (
    AppState,
    PaymentRecord,
    SessionRecord,
    SessionStatus,
    StudentRecord,
    SubjectOffering,
    TutorRecord,
    UserRecord,
)
from app.services.state_store import StateStore

logger = logging.getLogger(__name__)


class LoggedSession(NamedTuple):
    """A session recorded after the fact and the payment created with it"""
    session: SessionRecord
    payment: PaymentRecord


class MarketplaceBackend(ABC):
    """
    Operations every store adapter provides.

    Mutations return the affected record and raise DomainError subclasses on
    rejection. ``snapshot`` feeds the metrics layer.
    """

    name = "abstract"

    @abstractmethod
    async def snapshot(self) -> AppState:
        ...

    @abstractmethod
    def today(self) -> datetime:
        """Reference moment for dashboards and payment dates"""

    @abstractmethod
    async def book_session(
        self,
        student_id: str,
        tutor_id: str,
        subject: str,
        when: datetime,
        notes: str = "",
        requires_confirmation: bool = False,
    ) -> SessionRecord:
        ...

    @abstractmethod
    async def cancel_session(self, session_id: str) -> SessionRecord:
        ...

    @abstractmethod
    async def log_session(self, session_id: str, outcome: SessionStatus) -> PaymentRecord:
        ...

    @abstractmethod
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
        ...

    @abstractmethod
    async def update_session_notes(self, session_id: str, notes: str) -> SessionRecord:
        ...

    @abstractmethod
    async def respond_to_booking(self, session_id: str, accept: bool) -> SessionRecord:
        ...

    @abstractmethod
    async def update_tutor_profile(
        self,
        tutor_id: str,
        bio: Optional[str] = None,
        subjects: Optional[List[SubjectOffering]] = None,
        calendly_link: Optional[str] = None,
    ) -> TutorRecord:
        ...

    @abstractmethod
    async def update_student_profile(
        self,
        student_id: str,
        grade: Optional[str] = None,
        parent_name: Optional[str] = None,
        parent_email: Optional[str] = None,
    ) -> StudentRecord:
        ...

    @abstractmethod
    async def approve_tutor(self, tutor_id: str) -> TutorRecord:
        ...

    @abstractmethod
    async def mark_student_paid(self, payment_id: str) -> PaymentRecord:
        ...

    @abstractmethod
    async def mark_tutor_paid(self, payment_id: str) -> PaymentRecord:
        ...

    async def resolve_user(self, user_id: str) -> Optional[UserRecord]:
        """
        Stored account for an authenticated user id.

        None means the token's own role and profile are authoritative.
        """
        return None


class DemoBackend(MarketplaceBackend):
    """Adapter over the in-memory StateStore; rejections raise through strict mode"""

    name = "demo"

    def __init__(self, store: Optional[StateStore] = None):
        self.store = store or StateStore(strict=True, clock=lambda: config.DEMO_TODAY)
        self.store.strict = True

    def today(self) -> datetime:
        return config.DEMO_TODAY

    async def snapshot(self) -> AppState:
        return self.store.state

    async def book_session(
        self,
        student_id: str,
        tutor_id: str,
        subject: str,
        when: datetime,
        notes: str = "",
        requires_confirmation: bool = False,
    ) -> SessionRecord:
        result = self.store.dispatch(BookSession(
            student_id=student_id,
            tutor_id=tutor_id,
            subject=subject,
            date=when,
            notes=notes,
            requires_confirmation=requires_confirmation,
        ))
        return result.state.sessions[-1]

    async def cancel_session(self, session_id: str) -> SessionRecord:
        result = self.store.dispatch(CancelSession(session_id=session_id))
        return result.state.find_session(session_id)

    async def log_session(self, session_id: str, outcome: SessionStatus) -> PaymentRecord:
        result = self.store.dispatch(LogSession(session_id=session_id, status=outcome))
        return result.state.payments[-1]

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
        result = self.store.dispatch(LogNewSession(
            tutor_id=tutor_id,
            student_id=student_id,
            subject=subject,
            date=when,
            status=outcome,
            duration=duration or config.SESSION_DURATION_MINUTES,
            notes=notes,
        ))
        return LoggedSession(result.state.sessions[-1], result.state.payments[-1])

    async def update_session_notes(self, session_id: str, notes: str) -> SessionRecord:
        result = self.store.dispatch(UpdateSessionNotes(session_id=session_id, notes=notes))
        return result.state.find_session(session_id)

    async def respond_to_booking(self, session_id: str, accept: bool) -> SessionRecord:
        result = self.store.dispatch(RespondToBooking(session_id=session_id, accept=accept))
        return result.state.find_session(session_id)

    async def update_tutor_profile(
        self,
        tutor_id: str,
        bio: Optional[str] = None,
        subjects: Optional[List[SubjectOffering]] = None,
        calendly_link: Optional[str] = None,
    ) -> TutorRecord:
        result = self.store.dispatch(UpdateTutorProfile(
            tutor_id=tutor_id,
            bio=bio,
            subjects=subjects,
            calendly_link=calendly_link,
        ))
        return result.state.find_tutor(tutor_id)

    async def update_student_profile(
        self,
        student_id: str,
        grade: Optional[str] = None,
        parent_name: Optional[str] = None,
        parent_email: Optional[str] = None,
    ) -> StudentRecord:
        result = self.store.dispatch(UpdateStudentProfile(
            student_id=student_id,
            grade=grade,
            parent_name=parent_name,
            parent_email=parent_email,
        ))
        return result.state.find_student(student_id)

    async def approve_tutor(self, tutor_id: str) -> TutorRecord:
        result = self.store.dispatch(ApproveTutor(tutor_id=tutor_id))
        return result.state.find_tutor(tutor_id)

    async def mark_student_paid(self, payment_id: str) -> PaymentRecord:
        result = self.store.dispatch(MarkPaymentStudentPaid(payment_id=payment_id))
        return result.state.find_payment(payment_id)

    async def mark_tutor_paid(self, payment_id: str) -> PaymentRecord:
        result = self.store.dispatch(MarkPaymentTutorPaid(payment_id=payment_id))
        return result.state.find_payment(payment_id)


# Global backend instance
_backend: Optional[MarketplaceBackend] = None


def get_backend() -> MarketplaceBackend:
    """Get or create the global backend selected by STORE_BACKEND."""
    global _backend
    if _backend is None:
        if config.STORE_BACKEND == "hosted":
            from app.services.hosted_backend import SqlMarketplaceBackend
            _backend = SqlMarketplaceBackend()
        else:
            _backend = DemoBackend()
        logger.info(f"Using {_backend.name} marketplace backend")
    return _backend
