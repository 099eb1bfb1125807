"""
Session API Endpoints

GET /api/v1/sessions - Admin session table with payment status
POST /api/v1/sessions - Student books a session
POST /api/v1/sessions/:id/cancel - Cancel an open session
POST /api/v1/sessions/:id/log - Tutor logs the outcome, creating a payment
POST /api/v1/sessions/logged - Tutor records a session that was never booked
POST /api/v1/sessions/:id/respond - Tutor accepts or declines a booking request
PATCH /api/v1/sessions/:id/notes - Tutor edits the notes on their session
"""
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Path, Query, status
from pydantic import BaseModel, Field

from app.api.auth import CurrentUser, ensure_acts_as, require_roles
from app.domain.errors import DomainValidationError, NotFoundError
from app.domain.records import PaymentRecord, Role, SessionRecord, SessionStatus
from app.services.backends import MarketplaceBackend, get_backend
from app.services.filters import (
    filter_sessions_by_date_range,
    filter_sessions_by_status,
    filter_sessions_by_student,
    filter_sessions_by_tutor,
    sort_sessions_by_date,
)
from app.services.metrics import session_payment_status

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/sessions", tags=["sessions"])


# Pydantic models


class SessionRow(SessionRecord):
    """Session with its payment column for the admin table"""
    payment_status: str = Field(..., pattern="^(pending|n/a|paid|owing)$")


class SessionListResponse(BaseModel):
    data: List[SessionRow]
    metadata: Dict[str, Any]


class SessionResponse(BaseModel):
    data: SessionRecord


class PaymentResponse(BaseModel):
    data: PaymentRecord


class BookSessionRequest(BaseModel):
    tutor_id: str
    subject: str
    date: datetime
    notes: str = ""
    requires_confirmation: bool = False


class LogSessionRequest(BaseModel):
    """Outcome of a held session: completed or no_show"""
    status: SessionStatus


class LogNewSessionRequest(BaseModel):
    """
    A session held outside the booking flow.

    Admins must name the tutor; tutors log for themselves.
    """
    student_id: str
    subject: str
    date: datetime
    status: SessionStatus
    duration: int = Field(60, gt=0, le=480)
    notes: str = ""
    tutor_id: Optional[str] = None


class LoggedSessionData(BaseModel):
    session: SessionRecord
    payment: PaymentRecord


class LoggedSessionResponse(BaseModel):
    data: LoggedSessionData


class SessionNotesRequest(BaseModel):
    notes: str


class RespondRequest(BaseModel):
    accept: bool


async def _load_session(backend: MarketplaceBackend, session_id: str) -> SessionRecord:
    session = (await backend.snapshot()).find_session(session_id)
    if session is None:
        raise NotFoundError("session", session_id)
    return session


# API Endpoints


@router.get("", response_model=SessionListResponse)
async def list_sessions(
    session_status: Optional[SessionStatus] = Query(None, alias="status", description="Filter by status"),
    tutor_id: Optional[str] = Query(None),
    student_id: Optional[str] = Query(None),
    date_range: str = Query("all", pattern="^(week|month|all)$"),
    user: CurrentUser = Depends(require_roles(Role.ADMIN)),
    backend: MarketplaceBackend = Depends(get_backend),
) -> Dict[str, Any]:
    """
    Filtered session table, newest first.

    Each row carries payment_status: pending, n/a, paid or owing.
    """
    state = await backend.snapshot()
    sessions = filter_sessions_by_status(state.sessions, session_status.value if session_status else None)
    sessions = filter_sessions_by_tutor(sessions, tutor_id)
    sessions = filter_sessions_by_student(sessions, student_id)
    sessions = filter_sessions_by_date_range(sessions, date_range, backend.today())

    rows = [
        SessionRow(**s.model_dump(), payment_status=session_payment_status(state, s))
        for s in sort_sessions_by_date(sessions)
    ]
    return {
        "data": rows,
        "metadata": {"count": len(rows), "date_range": date_range},
    }


@router.post("", response_model=SessionResponse, status_code=status.HTTP_201_CREATED)
async def book_session(
    request: BookSessionRequest,
    user: CurrentUser = Depends(require_roles(Role.STUDENT)),
    backend: MarketplaceBackend = Depends(get_backend),
) -> Dict[str, Any]:
    """Book a session with an approved tutor for a subject they teach"""
    session = await backend.book_session(
        student_id=user.profile_id,
        tutor_id=request.tutor_id,
        subject=request.subject,
        when=request.date,
        notes=request.notes,
        requires_confirmation=request.requires_confirmation,
    )
    return {"data": session}


@router.post("/logged", response_model=LoggedSessionResponse, status_code=status.HTTP_201_CREATED)
async def log_new_session(
    request: LogNewSessionRequest,
    user: CurrentUser = Depends(require_roles(Role.TUTOR, Role.ADMIN)),
    backend: MarketplaceBackend = Depends(get_backend),
) -> Dict[str, Any]:
    """
    Record a session that already happened, directly as completed, no_show or
    cancelled, together with its payment.
    """
    tutor_id = request.tutor_id or user.profile_id
    if tutor_id is None:
        raise DomainValidationError("tutor_id is required for admins", {"field": "tutor_id"})
    ensure_acts_as(user, tutor_id)

    logged = await backend.log_new_session(
        tutor_id=tutor_id,
        student_id=request.student_id,
        subject=request.subject,
        when=request.date,
        outcome=request.status,
        duration=request.duration,
        notes=request.notes,
    )
    logger.info(f"Session {logged.session.id} logged directly by {user.user_id}")
    return {"data": {"session": logged.session, "payment": logged.payment}}


@router.post("/{session_id}/cancel", response_model=SessionResponse)
async def cancel_session(
    session_id: str = Path(..., description="Session id"),
    user: CurrentUser = Depends(require_roles(Role.STUDENT, Role.ADMIN)),
    backend: MarketplaceBackend = Depends(get_backend),
) -> Dict[str, Any]:
    """Cancel a scheduled or confirmed session. Students may only cancel their own."""
    session = await _load_session(backend, session_id)
    ensure_acts_as(user, session.student_id)

    return {"data": await backend.cancel_session(session_id)}


@router.post("/{session_id}/log", response_model=PaymentResponse, status_code=status.HTTP_201_CREATED)
async def log_session(
    request: LogSessionRequest,
    session_id: str = Path(..., description="Session id"),
    user: CurrentUser = Depends(require_roles(Role.TUTOR, Role.ADMIN)),
    backend: MarketplaceBackend = Depends(get_backend),
) -> Dict[str, Any]:
    """
    Log a session outcome.

    Returns:
        The payment created for the session: the standard rate when completed,
        zero for a no-show.
    """
    session = await _load_session(backend, session_id)
    ensure_acts_as(user, session.tutor_id)

    payment = await backend.log_session(session_id, request.status)
    logger.info(f"Session {session_id} logged as {request.status.value} by {user.user_id}")
    return {"data": payment}


@router.post("/{session_id}/respond", response_model=SessionResponse)
async def respond_to_booking(
    request: RespondRequest,
    session_id: str = Path(..., description="Session id"),
    user: CurrentUser = Depends(require_roles(Role.TUTOR)),
    backend: MarketplaceBackend = Depends(get_backend),
) -> Dict[str, Any]:
    """Accept (confirmed) or decline (cancelled) a booking awaiting confirmation"""
    session = await _load_session(backend, session_id)
    ensure_acts_as(user, session.tutor_id)

    return {"data": await backend.respond_to_booking(session_id, request.accept)}


@router.patch("/{session_id}/notes", response_model=SessionResponse)
async def update_session_notes(
    request: SessionNotesRequest,
    session_id: str = Path(..., description="Session id"),
    user: CurrentUser = Depends(require_roles(Role.TUTOR, Role.ADMIN)),
    backend: MarketplaceBackend = Depends(get_backend),
) -> Dict[str, Any]:
    """Replace the notes on a session in any status. Tutors may only edit their own sessions."""
    session = await _load_session(backend, session_id)
    ensure_acts_as(user, session.tutor_id)

    return {"data": await backend.update_session_notes(session_id, request.notes)}
