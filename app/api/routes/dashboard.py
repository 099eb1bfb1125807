"""
Dashboard Data API Endpoints

Role-specific aggregates computed from a snapshot of the active backend.
"""
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from app.api.auth import CurrentUser, ensure_acts_as, require_roles
from app.domain.errors import DomainValidationError, NotFoundError
from app.domain.records import PaymentRecord, Role, SessionRecord
from app.services import metrics
from app.services.backends import MarketplaceBackend, get_backend

router = APIRouter(prefix="/api/v1/dashboard", tags=["dashboard"])


# Pydantic models


class AdminOverview(BaseModel):
    """Admin overview cards and charts"""
    sessions_this_month: int
    revenue_this_month: float
    active_tutors: int
    outstanding_amount: float
    pending_tutor_approvals: int
    total_tutors: int
    total_students: int
    cancelled_sessions: int
    attention: metrics.AttentionReport
    weekly_sessions: List[metrics.WeekBucket]
    monthly_revenue: List[metrics.MonthRevenue]


class FinancialSummary(BaseModel):
    total_revenue: float
    collected_from_students: float
    owed_to_tutors: float
    outstanding_student_payments: List[PaymentRecord]
    pending_tutor_payouts: List[PaymentRecord]


class TutorDashboard(BaseModel):
    tutor_id: str
    upcoming_sessions: List[SessionRecord]
    completed_this_month: int
    total_earnings: float
    pending_payout: float
    weekly_sessions: List[metrics.WeekBucket]


class StudentDashboard(BaseModel):
    student_id: str
    upcoming_sessions: List[SessionRecord]
    completed_count: int
    recent_completed: List[SessionRecord]
    amount_owing: float


class UserActivity(BaseModel):
    """Completed-session counts for the admin users view"""
    tutors: Dict[str, int]
    students: Dict[str, int]


class AdminOverviewResponse(BaseModel):
    data: AdminOverview
    metadata: Dict[str, Any]


class FinancialSummaryResponse(BaseModel):
    data: FinancialSummary
    metadata: Dict[str, Any]


class TutorDashboardResponse(BaseModel):
    data: TutorDashboard
    metadata: Dict[str, Any]


class StudentDashboardResponse(BaseModel):
    data: StudentDashboard
    metadata: Dict[str, Any]


class UserActivityResponse(BaseModel):
    data: UserActivity


def _metadata(backend: MarketplaceBackend) -> Dict[str, Any]:
    return {"as_of": backend.today().isoformat(), "backend": backend.name}


# API Endpoints


@router.get("/admin", response_model=AdminOverviewResponse)
async def get_admin_overview(
    user: CurrentUser = Depends(require_roles(Role.ADMIN)),
    backend: MarketplaceBackend = Depends(get_backend),
) -> Dict[str, Any]:
    """
    Admin overview: this month's sessions and revenue, active tutors,
    outstanding balance, attention items and the weekly/monthly charts.
    """
    state = await backend.snapshot()
    return {
        "data": metrics.admin_overview(state, backend.today()),
        "metadata": _metadata(backend),
    }


@router.get("/financials", response_model=FinancialSummaryResponse)
async def get_financials(
    user: CurrentUser = Depends(require_roles(Role.ADMIN)),
    backend: MarketplaceBackend = Depends(get_backend),
) -> Dict[str, Any]:
    """Revenue totals plus the outstanding-payment and pending-payout lists"""
    state = await backend.snapshot()
    return {
        "data": metrics.financial_summary(state),
        "metadata": _metadata(backend),
    }


@router.get("/users", response_model=UserActivityResponse)
async def get_user_activity(
    user: CurrentUser = Depends(require_roles(Role.ADMIN)),
    backend: MarketplaceBackend = Depends(get_backend),
) -> Dict[str, Any]:
    state = await backend.snapshot()
    return {
        "data": {
            "tutors": metrics.completed_session_counts(state, by="tutor"),
            "students": metrics.completed_session_counts(state, by="student"),
        }
    }


@router.get("/tutor", response_model=TutorDashboardResponse)
async def get_tutor_dashboard(
    tutor_id: Optional[str] = Query(None, description="Admins only: tutor to view"),
    user: CurrentUser = Depends(require_roles(Role.TUTOR, Role.ADMIN)),
    backend: MarketplaceBackend = Depends(get_backend),
) -> Dict[str, Any]:
    """Upcoming sessions, earnings and weekly completed counts for the signed-in tutor"""
    tutor_id = tutor_id or user.profile_id
    if tutor_id is None:
        raise DomainValidationError("tutor_id query parameter is required for admins", {"parameter": "tutor_id"})
    ensure_acts_as(user, tutor_id)

    state = await backend.snapshot()
    if state.find_tutor(tutor_id) is None:
        raise NotFoundError("tutor", tutor_id)

    return {
        "data": metrics.tutor_dashboard(state, tutor_id, backend.today()),
        "metadata": _metadata(backend),
    }


@router.get("/student", response_model=StudentDashboardResponse)
async def get_student_dashboard(
    student_id: Optional[str] = Query(None, description="Admins only: student to view"),
    user: CurrentUser = Depends(require_roles(Role.STUDENT, Role.ADMIN)),
    backend: MarketplaceBackend = Depends(get_backend),
) -> Dict[str, Any]:
    """Upcoming sessions, recent completed sessions and amount owing for the signed-in student"""
    student_id = student_id or user.profile_id
    if student_id is None:
        raise DomainValidationError("student_id query parameter is required for admins", {"parameter": "student_id"})
    ensure_acts_as(user, student_id)

    state = await backend.snapshot()
    if state.find_student(student_id) is None:
        raise NotFoundError("student", student_id)

    return {
        "data": metrics.student_dashboard(state, student_id, backend.today()),
        "metadata": _metadata(backend),
    }
