"""
Marketplace domain records

Immutable pydantic models shared by the in-memory demo store and the hosted
database adapter. Updates are expressed with ``model_copy(update=...)`` so a
snapshot handed to a caller never changes underneath it.
"""
from datetime import date, datetime
from enum import Enum
from typing import Iterable, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Role(str, Enum):
    """Mutually exclusive user roles"""
    STUDENT = "student"
    TUTOR = "tutor"
    ADMIN = "admin"


class SessionStatus(str, Enum):
    """Canonical session status vocabulary for both adapters"""
    PENDING_CONFIRMATION = "pending_confirmation"
    CONFIRMED = "confirmed"
    SCHEDULED = "scheduled"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    NO_SHOW = "no_show"

    @classmethod
    def _missing_(cls, value):
        # Demo clients spell it "no-show"
        if isinstance(value, str):
            normalized = value.strip().lower().replace("-", "_")
            for member in cls:
                if member.value == normalized:
                    return member
        return None


class _Record(BaseModel):
    model_config = ConfigDict(frozen=True)


class SubjectOffering(_Record):
    """A subject a tutor teaches and the grade levels it is offered for"""
    name: str
    grades: Tuple[str, ...] = ()


def union_grades(subjects: Iterable[SubjectOffering]) -> Tuple[str, ...]:
    """Union of grades across subjects, in first-seen order"""
    seen: List[str] = []
    for subject in subjects:
        for grade in subject.grades:
            if grade not in seen:
                seen.append(grade)
    return tuple(seen)


class TutorRecord(_Record):
    id: str
    name: str
    email: str
    bio: str = ""
    subjects: Tuple[SubjectOffering, ...] = ()
    grades: Tuple[str, ...] = ()
    calendly_link: str = ""
    rating: float = Field(default=0.0, ge=0, le=5)
    total_sessions: int = 0
    joined_date: Optional[date] = None
    avatar_initials: str = ""
    is_active: bool = True

    def teaches(self, subject: str) -> bool:
        return any(s.name == subject for s in self.subjects)


class StudentRecord(_Record):
    id: str
    name: str
    email: str
    grade: str = ""
    parent_name: str = ""
    parent_email: str = ""
    joined_date: Optional[date] = None


class UserRecord(_Record):
    id: str
    email: str
    name: str
    role: Role
    phone: Optional[str] = None
    created_at: Optional[datetime] = None
    # Tutor or student row linked to this account; None for admins
    profile_id: Optional[str] = None


class SessionRecord(_Record):
    id: str
    student_id: str
    tutor_id: str
    subject: str
    date: datetime
    duration: int = 60
    status: SessionStatus = SessionStatus.SCHEDULED
    price: float = 50.0
    notes: str = ""

    @field_validator("date")
    @classmethod
    def _strip_timezone(cls, value: datetime) -> datetime:
        # All comparisons happen on naive local times
        return value.astimezone().replace(tzinfo=None) if value.tzinfo else value


class PaymentRecord(_Record):
    id: str
    session_id: str
    amount: float = 0.0
    tutor_amount: float = 0.0
    student_paid: bool = False
    tutor_paid: bool = False
    created_at: Optional[date] = None

    @property
    def is_billable(self) -> bool:
        return self.amount > 0


class AppState(_Record):
    """
    Canonical snapshot of the marketplace.

    ``current_role`` and ``is_logged_in`` are session-scoped flags of the demo
    store; the hosted adapter always reports the defaults.
    """
    current_role: Role = Role.STUDENT
    is_logged_in: bool = False
    tutors: Tuple[TutorRecord, ...] = ()
    students: Tuple[StudentRecord, ...] = ()
    sessions: Tuple[SessionRecord, ...] = ()
    payments: Tuple[PaymentRecord, ...] = ()

    def find_tutor(self, tutor_id: str) -> Optional[TutorRecord]:
        return next((t for t in self.tutors if t.id == tutor_id), None)

    def find_student(self, student_id: str) -> Optional[StudentRecord]:
        return next((s for s in self.students if s.id == student_id), None)

    def find_session(self, session_id: str) -> Optional[SessionRecord]:
        return next((s for s in self.sessions if s.id == session_id), None)

    def find_payment(self, payment_id: str) -> Optional[PaymentRecord]:
        return next((p for p in self.payments if p.id == payment_id), None)

    def payment_for_session(self, session_id: str) -> Optional[PaymentRecord]:
        """Most recent payment recorded against a session"""
        matches = [p for p in self.payments if p.session_id == session_id]
        return matches[-1] if matches else None
