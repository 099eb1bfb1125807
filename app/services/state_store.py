"""
Demo State Store

Pure reducer over AppState snapshots plus a thin mutable wrapper that owns the
"current" snapshot. Each action produces a new snapshot; the previous one is
never modified.

Rejected actions (unknown ids, guard violations) leave the state untouched.
``apply_action`` reports why through ``DispatchResult.error`` and
``StateStore(strict=True)`` raises it instead.
"""
import logging
import threading
from datetime import date, datetime
from typing import Callable, Collection, Dict, NamedTuple, Optional, Tuple, TypeVar

from app.domain import lifecycle
from app.domain.actions import (
    ApproveTutor,
    BookSession,
    CancelSession,
    Login,
    LogNewSession,
    LogSession,
    Logout,
    MarkPaymentStudentPaid,
    MarkPaymentTutorPaid,
    RespondToBooking,
    SetRole,
    UpdateSessionNotes,
    UpdateStudentProfile,
    UpdateTutorProfile,
)
from app.domain.errors import DomainError, NotFoundError
from app.domain.records import AppState, Role, SessionStatus
from app.services.seed_data import build_initial_state

logger = logging.getLogger(__name__)

IdFactory = Callable[[str, Collection[str]], str]
T = TypeVar("T")


class DispatchResult(NamedTuple):
    """Outcome of applying one action"""
    state: AppState
    changed: bool
    error: Optional[DomainError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class _Context(NamedTuple):
    today: date
    new_id: IdFactory


def _replace(items: Tuple[T, ...], updated: T) -> Tuple[T, ...]:
    """Swap the item sharing updated's id, keeping order"""
    return tuple(updated if item.id == updated.id else item for item in items)


# Action handlers: (state, action, context) -> new state, raising DomainError to reject


def _set_role(state: AppState, action: SetRole, ctx: _Context) -> AppState:
    return state.model_copy(update={"current_role": action.role})


def _login(state: AppState, action: Login, ctx: _Context) -> AppState:
    return state.model_copy(update={"is_logged_in": True})


def _logout(state: AppState, action: Logout, ctx: _Context) -> AppState:
    # Logging out always returns to the default role
    return state.model_copy(update={"is_logged_in": False, "current_role": Role.STUDENT})


def _book_session(state: AppState, action: BookSession, ctx: _Context) -> AppState:
    tutor = state.find_tutor(action.tutor_id)
    if tutor is None:
        raise NotFoundError("tutor", action.tutor_id)
    if state.find_student(action.student_id) is None:
        raise NotFoundError("student", action.student_id)
    lifecycle.validate_booking(tutor, action.subject)

    session = lifecycle.new_session(
        session_id=ctx.new_id("s", {s.id for s in state.sessions}),
        student_id=action.student_id,
        tutor_id=action.tutor_id,
        subject=action.subject,
        when=action.date,
        notes=action.notes,
        requires_confirmation=action.requires_confirmation,
    )
    return state.model_copy(update={"sessions": state.sessions + (session,)})


def _cancel_session(state: AppState, action: CancelSession, ctx: _Context) -> AppState:
    session = state.find_session(action.session_id)
    if session is None:
        raise NotFoundError("session", action.session_id)
    lifecycle.ensure_cancellable(session)

    cancelled = session.model_copy(update={"status": SessionStatus.CANCELLED})
    return state.model_copy(update={"sessions": _replace(state.sessions, cancelled)})


def _log_session(state: AppState, action: LogSession, ctx: _Context) -> AppState:
    session = state.find_session(action.session_id)
    if session is None:
        raise NotFoundError("session", action.session_id)
    lifecycle.ensure_loggable(session, action.status)

    payment = lifecycle.payment_for_log(
        payment_id=ctx.new_id("p", {p.id for p in state.payments}),
        session=session,
        outcome=action.status,
        created_at=ctx.today,
    )
    logged = session.model_copy(update={"status": action.status})
    return state.model_copy(update={
        "sessions": _replace(state.sessions, logged),
        "payments": state.payments + (payment,),
    })


def _log_new_session(state: AppState, action: LogNewSession, ctx: _Context) -> AppState:
    tutor = state.find_tutor(action.tutor_id)
    if tutor is None:
        raise NotFoundError("tutor", action.tutor_id)
    if state.find_student(action.student_id) is None:
        raise NotFoundError("student", action.student_id)
    lifecycle.validate_booking(tutor, action.subject)

    session = lifecycle.logged_session(
        session_id=ctx.new_id("s", {s.id for s in state.sessions}),
        student_id=action.student_id,
        tutor_id=action.tutor_id,
        subject=action.subject,
        when=action.date,
        outcome=action.status,
        duration=action.duration,
        notes=action.notes,
    )
    payment = lifecycle.payment_for_log(
        payment_id=ctx.new_id("p", {p.id for p in state.payments}),
        session=session,
        outcome=session.status,
        created_at=ctx.today,
    )
    return state.model_copy(update={
        "sessions": state.sessions + (session,),
        "payments": state.payments + (payment,),
    })


def _update_session_notes(state: AppState, action: UpdateSessionNotes, ctx: _Context) -> AppState:
    session = state.find_session(action.session_id)
    if session is None:
        raise NotFoundError("session", action.session_id)
    if session.notes == action.notes:
        return state

    annotated = session.model_copy(update={"notes": action.notes})
    return state.model_copy(update={"sessions": _replace(state.sessions, annotated)})


def _respond_to_booking(state: AppState, action: RespondToBooking, ctx: _Context) -> AppState:
    session = state.find_session(action.session_id)
    if session is None:
        raise NotFoundError("session", action.session_id)
    lifecycle.ensure_pending(session)

    responded = session.model_copy(update={"status": lifecycle.response_status(action.accept)})
    return state.model_copy(update={"sessions": _replace(state.sessions, responded)})


def _update_tutor_profile(state: AppState, action: UpdateTutorProfile, ctx: _Context) -> AppState:
    tutor = state.find_tutor(action.tutor_id)
    if tutor is None:
        raise NotFoundError("tutor", action.tutor_id)

    patched = lifecycle.apply_profile_patch(
        tutor,
        bio=action.bio,
        subjects=action.subjects,
        calendly_link=action.calendly_link,
    )
    if patched is tutor:
        return state
    return state.model_copy(update={"tutors": _replace(state.tutors, patched)})


def _update_student_profile(state: AppState, action: UpdateStudentProfile, ctx: _Context) -> AppState:
    student = state.find_student(action.student_id)
    if student is None:
        raise NotFoundError("student", action.student_id)

    patched = lifecycle.apply_student_patch(
        student,
        grade=action.grade,
        parent_name=action.parent_name,
        parent_email=action.parent_email,
    )
    if patched is student:
        return state
    return state.model_copy(update={"students": _replace(state.students, patched)})


def _approve_tutor(state: AppState, action: ApproveTutor, ctx: _Context) -> AppState:
    tutor = state.find_tutor(action.tutor_id)
    if tutor is None:
        raise NotFoundError("tutor", action.tutor_id)
    if tutor.is_active:
        return state

    approved = tutor.model_copy(update={"is_active": True})
    return state.model_copy(update={"tutors": _replace(state.tutors, approved)})


def _mark_student_paid(state: AppState, action: MarkPaymentStudentPaid, ctx: _Context) -> AppState:
    payment = state.find_payment(action.payment_id)
    if payment is None:
        raise NotFoundError("payment", action.payment_id)
    if payment.student_paid:
        return state

    paid = payment.model_copy(update={"student_paid": True})
    return state.model_copy(update={"payments": _replace(state.payments, paid)})


def _mark_tutor_paid(state: AppState, action: MarkPaymentTutorPaid, ctx: _Context) -> AppState:
    payment = state.find_payment(action.payment_id)
    if payment is None:
        raise NotFoundError("payment", action.payment_id)
    lifecycle.ensure_tutor_payable(payment)
    if payment.tutor_paid:
        return state

    paid = payment.model_copy(update={"tutor_paid": True})
    return state.model_copy(update={"payments": _replace(state.payments, paid)})


_HANDLERS: Dict[type, Callable] = {
    SetRole: _set_role,
    Login: _login,
    Logout: _logout,
    BookSession: _book_session,
    CancelSession: _cancel_session,
    LogSession: _log_session,
    LogNewSession: _log_new_session,
    UpdateSessionNotes: _update_session_notes,
    RespondToBooking: _respond_to_booking,
    UpdateTutorProfile: _update_tutor_profile,
    UpdateStudentProfile: _update_student_profile,
    ApproveTutor: _approve_tutor,
    MarkPaymentStudentPaid: _mark_student_paid,
    MarkPaymentTutorPaid: _mark_tutor_paid,
}


def apply_action(
    state: AppState,
    action,
    today: Optional[date] = None,
    id_factory: IdFactory = lifecycle.generate_id,
) -> DispatchResult:
    """
    Apply one action to a snapshot.

    Args:
        state: Current snapshot
        action: Any store action
        today: Date stamped on payments created by this action (defaults to today)
        id_factory: Generates ids for new sessions and payments

    Returns:
        DispatchResult with the next snapshot. On rejection the snapshot is the
        input unchanged and ``error`` names the reason.

    Raises:
        TypeError: If the action type is unknown
    """
    handler = _HANDLERS.get(type(action))
    if handler is None:
        raise TypeError(f"Unsupported action: {type(action).__name__}")

    ctx = _Context(today=today or date.today(), new_id=id_factory)
    try:
        next_state = handler(state, action, ctx)
    except DomainError as e:
        return DispatchResult(state=state, changed=False, error=e)

    return DispatchResult(state=next_state, changed=next_state is not state)


def reduce(state: AppState, action, **kwargs) -> AppState:
    """Reducer form of apply_action: rejected actions return the input state"""
    return apply_action(state, action, **kwargs).state


class StateStore:
    """
    Mutable holder of the current demo snapshot.

    Actions are applied one at a time under a lock, so concurrent API requests
    see serialized transitions.
    """

    def __init__(
        self,
        initial_state: Optional[AppState] = None,
        strict: bool = False,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self._initial_state = initial_state or build_initial_state()
        self._state = self._initial_state
        self.strict = strict
        self._clock = clock
        self._lock = threading.Lock()

    @property
    def state(self) -> AppState:
        return self._state

    def dispatch(self, action) -> DispatchResult:
        """
        Apply an action and make its result the current snapshot.

        Raises:
            DomainError: In strict mode, when the action is rejected
        """
        with self._lock:
            result = apply_action(self._state, action, today=self._clock().date())
            self._state = result.state

        if result.error is not None:
            logger.warning(f"{action.type} rejected: {result.error.message}")
            if self.strict:
                raise result.error
        elif result.changed:
            logger.info(f"{action.type} applied")
        else:
            logger.debug(f"{action.type} left state unchanged")

        return result

    def reset(self) -> AppState:
        """Restore the snapshot the store was created with"""
        with self._lock:
            self._state = self._initial_state
        logger.info("Demo store reset to initial state")
        return self._state
