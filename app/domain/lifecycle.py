"""
Session and payment lifecycle rules

The single source of truth for what each marketplace action may do. Both the
in-memory reducer and the database adapter call these guards and builders, so
the two backends cannot drift apart.

State machine:

    pending_confirmation --accept--> confirmed
    pending_confirmation --decline--> cancelled
    scheduled | confirmed --cancel--> cancelled
    scheduled | confirmed | ... --log--> completed | no_show  (+ one Payment)
    (none) --direct log--> completed | no_show | cancelled  (+ one Payment)

Payment flags flip one way, false to true, independently of each other.
"""
import re
import uuid
from datetime import date, datetime
from typing import Collection, Optional, Sequence

from app import config
from app.domain.errors import DomainValidationError, InvalidTransitionError
from app.domain.records import (
    PaymentRecord,
    SessionRecord,
    SessionStatus,
    StudentRecord,
    SubjectOffering,
    TutorRecord,
    union_grades,
)
from app.services.seed_data import GRADES

# Statuses of a session that is booked but not yet logged
OPEN_STATUSES = frozenset({SessionStatus.SCHEDULED, SessionStatus.CONFIRMED})

# Outcomes a tutor may log
LOGGABLE_OUTCOMES = frozenset({SessionStatus.COMPLETED, SessionStatus.NO_SHOW})

# Outcomes a tutor may record when logging a session that was never booked
DIRECT_LOG_OUTCOMES = LOGGABLE_OUTCOMES | {SessionStatus.CANCELLED}

# Only completed sessions are charged
BILLABLE_STATUSES = frozenset({SessionStatus.COMPLETED})

_ORDINAL = re.compile(r"^[a-z]+(\d+)")


def is_open(session: SessionRecord) -> bool:
    return session.status in OPEN_STATUSES


def generate_id(prefix: str, existing_ids: Collection[str] = ()) -> str:
    """
    Generate a record id like ``s27-3f9a1c2b`` that is unique among existing_ids.

    The numeric part follows the collection size; the random suffix keeps ids
    unique across processes and after deletions.
    """
    ordinal = len(existing_ids) + 1
    while True:
        candidate = f"{prefix}{ordinal}-{uuid.uuid4().hex[:8]}"
        if candidate not in existing_ids:
            return candidate


def id_ordinal(record_id: str) -> int:
    """Numeric part of an id such as ``p27-3f9a1c2b`` or ``p27``; 0 when there is none"""
    match = _ORDINAL.match(record_id)
    return int(match.group(1)) if match else 0


def user_id_for(profile_id: str) -> str:
    """Account id owning a tutor or student profile"""
    return f"u-{profile_id}"


def tutor_share(amount: float) -> float:
    """Tutor's fixed share of a charged amount"""
    if amount <= 0:
        return 0.0
    return round(amount * config.TUTOR_SHARE, 2)


def charge_for_outcome(status: SessionStatus) -> float:
    """Flat charge for a logged outcome: the standard rate if billable, else zero"""
    return config.STANDARD_RATE if status in BILLABLE_STATUSES else 0.0


def new_session(
    session_id: str,
    student_id: str,
    tutor_id: str,
    subject: str,
    when: datetime,
    notes: str = "",
    requires_confirmation: bool = False,
) -> SessionRecord:
    """Build a freshly booked session at the standard rate and duration"""
    status = SessionStatus.PENDING_CONFIRMATION if requires_confirmation else SessionStatus.SCHEDULED
    return SessionRecord(
        id=session_id,
        student_id=student_id,
        tutor_id=tutor_id,
        subject=subject,
        date=when,
        duration=config.SESSION_DURATION_MINUTES,
        status=status,
        price=config.STANDARD_RATE,
        notes=notes or "",
    )


def logged_session(
    session_id: str,
    student_id: str,
    tutor_id: str,
    subject: str,
    when: datetime,
    outcome: SessionStatus,
    duration: int = 0,
    notes: str = "",
) -> SessionRecord:
    """
    Build a session a tutor records after the fact, already in its final status.

    Raises:
        DomainValidationError: If the outcome is not completed, no_show or cancelled
    """
    if outcome not in DIRECT_LOG_OUTCOMES:
        raise DomainValidationError(
            f"Cannot log a new session as {outcome.value}",
            {"allowed": sorted(s.value for s in DIRECT_LOG_OUTCOMES)},
        )
    return SessionRecord(
        id=session_id,
        student_id=student_id,
        tutor_id=tutor_id,
        subject=subject,
        date=when,
        duration=duration or config.SESSION_DURATION_MINUTES,
        status=outcome,
        price=config.STANDARD_RATE,
        notes=notes or "",
    )


def validate_booking(tutor: TutorRecord, subject: str) -> None:
    """Reject bookings with a tutor who is not approved or does not teach the subject"""
    if not tutor.is_active:
        raise DomainValidationError(
            f"Tutor '{tutor.id}' is awaiting approval and cannot be booked",
            {"tutor_id": tutor.id},
        )
    if not tutor.teaches(subject):
        raise DomainValidationError(
            f"Tutor '{tutor.id}' does not teach {subject}",
            {"tutor_id": tutor.id, "subject": subject, "subjects": [s.name for s in tutor.subjects]},
        )


def ensure_cancellable(session: SessionRecord) -> None:
    if not is_open(session):
        raise InvalidTransitionError(
            f"Session '{session.id}' is {session.status.value} and cannot be cancelled",
            {"session_id": session.id, "status": session.status.value},
        )


def ensure_loggable(session: SessionRecord, outcome: SessionStatus) -> None:
    """A log outcome must be completed or no_show; pending bookings must be confirmed first"""
    if outcome not in LOGGABLE_OUTCOMES:
        raise DomainValidationError(
            f"Cannot log a session as {outcome.value}",
            {"allowed": sorted(s.value for s in LOGGABLE_OUTCOMES)},
        )
    if session.status == SessionStatus.PENDING_CONFIRMATION:
        raise InvalidTransitionError(
            f"Session '{session.id}' has not been confirmed by the tutor",
            {"session_id": session.id, "status": session.status.value},
        )


def ensure_pending(session: SessionRecord) -> None:
    if session.status != SessionStatus.PENDING_CONFIRMATION:
        raise InvalidTransitionError(
            f"Session '{session.id}' is not awaiting confirmation",
            {"session_id": session.id, "status": session.status.value},
        )


def response_status(accept: bool) -> SessionStatus:
    return SessionStatus.CONFIRMED if accept else SessionStatus.CANCELLED


def payment_for_log(
    payment_id: str,
    session: SessionRecord,
    outcome: SessionStatus,
    created_at: date,
) -> PaymentRecord:
    """The payment record created when a session is logged with an outcome"""
    amount = charge_for_outcome(outcome)
    return PaymentRecord(
        id=payment_id,
        session_id=session.id,
        amount=amount,
        tutor_amount=tutor_share(amount),
        student_paid=False,
        tutor_paid=False,
        created_at=created_at,
    )


def ensure_tutor_payable(payment: PaymentRecord) -> None:
    """A tutor payout only exists for a billable payment"""
    if not payment.is_billable:
        raise InvalidTransitionError(
            f"Payment '{payment.id}' has no charge, so there is no tutor payout",
            {"payment_id": payment.id, "amount": payment.amount},
        )


def apply_profile_patch(
    tutor: TutorRecord,
    bio: Optional[str] = None,
    subjects: Optional[Sequence[SubjectOffering]] = None,
    calendly_link: Optional[str] = None,
) -> TutorRecord:
    """
    Merge-patch a tutor profile.

    Omitted fields stay as they are. Supplying subjects also recomputes the
    grade summary as the union of grades across the new subject list.
    """
    update = {}
    if bio is not None:
        update["bio"] = bio
    if subjects is not None:
        offerings = tuple(subjects)
        update["subjects"] = offerings
        update["grades"] = union_grades(offerings)
    if calendly_link is not None:
        update["calendly_link"] = calendly_link
    return tutor.model_copy(update=update) if update else tutor


def apply_student_patch(
    student: StudentRecord,
    grade: Optional[str] = None,
    parent_name: Optional[str] = None,
    parent_email: Optional[str] = None,
) -> StudentRecord:
    """
    Merge-patch a student profile; omitted fields stay as they are.

    Raises:
        DomainValidationError: If grade is not a known grade level
    """
    if grade is not None and grade not in GRADES:
        raise DomainValidationError(
            f"Unknown grade level {grade}",
            {"grade": grade, "allowed": list(GRADES)},
        )

    update = {}
    if grade is not None:
        update["grade"] = grade
    if parent_name is not None:
        update["parent_name"] = parent_name
    if parent_email is not None:
        update["parent_email"] = parent_email
    return student.model_copy(update=update) if update else student
