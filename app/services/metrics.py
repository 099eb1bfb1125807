"""
Dashboard Metrics

Pure folds over an AppState snapshot that produce the student, tutor and
admin dashboard aggregates. Nothing here mutates state or reads the clock:
every function takes ``today`` explicitly, so the same snapshot and date
always produce the same numbers.

Business rules:
- Revenue only counts payments whose session is completed.
- A payment is billable when its session is completed and amount > 0.
- Outstanding = billable and the student has not paid.
- Pending tutor payout = billable, student paid, tutor not yet paid.
- Weeks start on Sunday at midnight.
- Monthly revenue is completed sessions x standard rate (flat rate).
"""
from datetime import datetime, timedelta
from typing import Any, Dict, Iterable, List, Optional, Sequence, Set, Tuple

from pydantic import BaseModel

from app import config
from app.domain.lifecycle import is_open
from app.domain.records import AppState, PaymentRecord, SessionRecord, SessionStatus
from app.services.filters import sort_sessions_by_date


LOGGED_STATUSES = (SessionStatus.COMPLETED, SessionStatus.NO_SHOW)


class WeekBucket(BaseModel):
    """Session count for one Sunday-start week"""
    week_start: datetime
    label: str
    count: int


class MonthRevenue(BaseModel):
    """Flat-rate revenue for one calendar month"""
    month: str
    year: int
    month_number: int
    revenue: float
    session_count: int


class AttentionReport(BaseModel):
    """Items an admin should act on"""
    unlogged_sessions: List[SessionRecord]
    overdue_payments: List[PaymentRecord]
    recent_no_shows: List[SessionRecord]

    @property
    def has_items(self) -> bool:
        return bool(self.unlogged_sessions or self.overdue_payments or self.recent_no_shows)


# Date helpers


def week_start(moment: datetime) -> datetime:
    """Sunday midnight on or before moment"""
    midnight = moment.replace(hour=0, minute=0, second=0, microsecond=0)
    # weekday(): Monday=0 ... Sunday=6
    days_since_sunday = (moment.weekday() + 1) % 7
    return midnight - timedelta(days=days_since_sunday)


def month_bounds(year: int, month: int) -> Tuple[datetime, datetime]:
    """[first instant of month, first instant of next month)"""
    start = datetime(year, month, 1)
    end = datetime(year + 1, 1, 1) if month == 12 else datetime(year, month + 1, 1)
    return start, end


def shift_month(reference: datetime, months_back: int) -> Tuple[int, int]:
    """(year, month) that lies months_back calendar months before reference"""
    index = reference.year * 12 + (reference.month - 1) - months_back
    return index // 12, index % 12 + 1


def is_within_days(moment: datetime, days: int, today: datetime) -> bool:
    """moment falls in [today - days, today]"""
    return today - timedelta(days=days) <= moment <= today


def is_same_month(moment: datetime, reference: datetime) -> bool:
    return moment.year == reference.year and moment.month == reference.month


def format_week_range(start: datetime) -> str:
    end = start + timedelta(days=6)
    return f"{start.strftime('%b')} {start.day} - {end.strftime('%b')} {end.day}"


# Payment folds


def _sessions_by_id(state: AppState) -> Dict[str, SessionRecord]:
    return {s.id: s for s in state.sessions}


def billable_payments(state: AppState) -> List[PaymentRecord]:
    """Payments with a charge whose session is completed"""
    sessions = _sessions_by_id(state)
    return [
        p for p in state.payments
        if p.amount > 0
        and p.session_id in sessions
        and sessions[p.session_id].status == SessionStatus.COMPLETED
    ]


def outstanding_student_payments(state: AppState) -> List[PaymentRecord]:
    return [p for p in billable_payments(state) if not p.student_paid]


def settled_student_payments(state: AppState) -> List[PaymentRecord]:
    """Billable payments the student has paid; complement of outstanding"""
    return [p for p in billable_payments(state) if p.student_paid]


def pending_tutor_payouts(state: AppState) -> List[PaymentRecord]:
    """Collected from the student, not yet paid out to the tutor"""
    return [p for p in billable_payments(state) if p.student_paid and not p.tutor_paid]


def revenue_for_period(state: AppState, start: datetime, end: datetime) -> float:
    """Sum of amounts for completed sessions dated in [start, end)"""
    sessions = _sessions_by_id(state)
    total = 0.0
    for payment in state.payments:
        session = sessions.get(payment.session_id)
        if session is None or session.status != SessionStatus.COMPLETED:
            continue
        if start <= session.date < end:
            total += payment.amount
    return total


def _sum_amounts(payments: Iterable[PaymentRecord]) -> float:
    return sum(p.amount for p in payments)


# Session folds


def active_tutor_ids(state: AppState, today: datetime, days: Optional[int] = None) -> Set[str]:
    """Distinct tutors with a non-cancelled session in the last `days` days"""
    window = config.ACTIVE_TUTOR_WINDOW_DAYS if days is None else days
    return {
        s.tutor_id for s in state.sessions
        if s.status != SessionStatus.CANCELLED and is_within_days(s.date, window, today)
    }


def unlogged_sessions(state: AppState, today: datetime) -> List[SessionRecord]:
    """Booked sessions whose start has passed without an outcome being logged"""
    return [s for s in state.sessions if is_open(s) and s.date <= today]


def overdue_payments(state: AppState, today: datetime, grace_days: Optional[int] = None) -> List[PaymentRecord]:
    """Outstanding payments for sessions at least `grace_days` old"""
    grace = config.OVERDUE_GRACE_DAYS if grace_days is None else grace_days
    threshold = today - timedelta(days=grace)
    sessions = _sessions_by_id(state)
    return [p for p in outstanding_student_payments(state) if sessions[p.session_id].date <= threshold]


def recent_no_shows(state: AppState, today: datetime, days: Optional[int] = None) -> List[SessionRecord]:
    window = config.NO_SHOW_LOOKBACK_DAYS if days is None else days
    return [
        s for s in state.sessions
        if s.status == SessionStatus.NO_SHOW and is_within_days(s.date, window, today)
    ]


def needs_attention(state: AppState, today: datetime) -> AttentionReport:
    """Union of unlogged sessions, overdue payments and recent no-shows"""
    return AttentionReport(
        unlogged_sessions=unlogged_sessions(state, today),
        overdue_payments=overdue_payments(state, today),
        recent_no_shows=recent_no_shows(state, today),
    )


def weekly_session_counts(
    sessions: Sequence[SessionRecord],
    today: datetime,
    weeks: int = 8,
    statuses: Iterable[SessionStatus] = LOGGED_STATUSES,
) -> List[WeekBucket]:
    """
    Count sessions per week for the `weeks` weeks ending with the current one.

    Buckets are consecutive, oldest first, each covering
    [week_start, week_start + 7 days).
    """
    wanted = frozenset(statuses)
    buckets = []
    for i in range(weeks - 1, -1, -1):
        start = week_start(today - timedelta(days=i * 7))
        end = start + timedelta(days=7)
        count = sum(1 for s in sessions if s.status in wanted and start <= s.date < end)
        buckets.append(WeekBucket(week_start=start, label=format_week_range(start), count=count))
    return buckets


def monthly_revenue(sessions: Sequence[SessionRecord], today: datetime, months: int = 3) -> List[MonthRevenue]:
    """Completed sessions x standard rate for the `months` months ending with today's, oldest first"""
    rows = []
    for i in range(months - 1, -1, -1):
        year, month = shift_month(today, i)
        count = sum(
            1 for s in sessions
            if s.status == SessionStatus.COMPLETED and s.date.year == year and s.date.month == month
        )
        rows.append(MonthRevenue(
            month=datetime(year, month, 1).strftime("%B %Y"),
            year=year,
            month_number=month,
            revenue=count * config.STANDARD_RATE,
            session_count=count,
        ))
    return rows


def session_payment_status(state: AppState, session: SessionRecord) -> str:
    """
    Payment column of the admin session table.

    Returns:
        "pending" (not yet logged or no payment yet), "n/a" (nothing to charge),
        "paid" or "owing"
    """
    if session.status in (SessionStatus.CANCELLED, SessionStatus.NO_SHOW):
        return "n/a"
    if session.status != SessionStatus.COMPLETED:
        return "pending"
    payment = state.payment_for_session(session.id)
    if payment is None:
        return "pending"
    return "paid" if payment.student_paid else "owing"


def completed_session_counts(state: AppState, by: str = "tutor") -> Dict[str, int]:
    """
    Completed sessions per tutor or per student.

    Raises:
        ValueError: If by is not "tutor" or "student"
    """
    if by not in ("tutor", "student"):
        raise ValueError(f"Invalid grouping: {by}. Must be one of: tutor, student")

    counts: Dict[str, int] = {}
    for s in state.sessions:
        if s.status != SessionStatus.COMPLETED:
            continue
        key = s.tutor_id if by == "tutor" else s.student_id
        counts[key] = counts.get(key, 0) + 1
    return counts


# Dashboard compositions


def admin_overview(state: AppState, today: datetime) -> Dict[str, Any]:
    """
    Admin overview metrics.

    Returns:
        Dict with:
            - sessions_this_month: sessions of any status dated in today's month
            - revenue_this_month: completed-session revenue in today's month
            - active_tutors: tutors with a non-cancelled session in the active window
            - outstanding_amount: sum owed by students
            - pending_tutor_approvals: tutors awaiting admin approval
            - total_tutors / total_students / cancelled_sessions: headcounts
            - attention: AttentionReport
            - weekly_sessions: last 8 weeks of completed + no-show counts
            - monthly_revenue: last 3 months
    """
    month_start, month_end = month_bounds(today.year, today.month)
    attention = needs_attention(state, today)

    return {
        "sessions_this_month": sum(1 for s in state.sessions if is_same_month(s.date, today)),
        "revenue_this_month": revenue_for_period(state, month_start, month_end),
        "active_tutors": len(active_tutor_ids(state, today)),
        "outstanding_amount": _sum_amounts(outstanding_student_payments(state)),
        "pending_tutor_approvals": sum(1 for t in state.tutors if not t.is_active),
        "total_tutors": len(state.tutors),
        "total_students": len(state.students),
        "cancelled_sessions": sum(1 for s in state.sessions if s.status == SessionStatus.CANCELLED),
        "attention": attention,
        "weekly_sessions": weekly_session_counts(state.sessions, today, weeks=8),
        "monthly_revenue": monthly_revenue(state.sessions, today, months=3),
    }


def financial_summary(state: AppState) -> Dict[str, Any]:
    """Totals and action lists for the admin financials view"""
    billable = billable_payments(state)
    pending_payouts = [p for p in billable if p.student_paid and not p.tutor_paid]

    return {
        "total_revenue": _sum_amounts(billable),
        "collected_from_students": _sum_amounts(p for p in billable if p.student_paid),
        "owed_to_tutors": sum(p.tutor_amount for p in pending_payouts),
        "outstanding_student_payments": [p for p in billable if not p.student_paid],
        "pending_tutor_payouts": pending_payouts,
    }


def tutor_dashboard(state: AppState, tutor_id: str, today: datetime) -> Dict[str, Any]:
    """Upcoming sessions, earnings and weekly completed counts for one tutor"""
    my_sessions = [s for s in state.sessions if s.tutor_id == tutor_id]
    my_session_ids = {s.id for s in my_sessions}
    my_payments = [p for p in state.payments if p.session_id in my_session_ids]

    upcoming = sort_sessions_by_date(
        [s for s in my_sessions if is_open(s) and s.date > today],
        ascending=True,
    )

    return {
        "tutor_id": tutor_id,
        "upcoming_sessions": upcoming,
        "completed_this_month": sum(
            1 for s in my_sessions
            if s.status == SessionStatus.COMPLETED and is_same_month(s.date, today)
        ),
        "total_earnings": sum(p.tutor_amount for p in my_payments if p.tutor_paid and p.tutor_amount > 0),
        "pending_payout": sum(
            p.tutor_amount for p in my_payments
            if not p.tutor_paid and p.tutor_amount > 0 and p.amount > 0
        ),
        "weekly_sessions": weekly_session_counts(
            my_sessions, today, weeks=4, statuses=(SessionStatus.COMPLETED,)
        ),
    }


def student_dashboard(state: AppState, student_id: str, today: datetime) -> Dict[str, Any]:
    """Upcoming sessions, recent activity and amount owing for one student"""
    my_sessions = [s for s in state.sessions if s.student_id == student_id]
    my_session_ids = {s.id for s in my_sessions}

    upcoming = sort_sessions_by_date(
        [s for s in my_sessions if is_open(s) and s.date > today],
        ascending=True,
    )
    completed = [s for s in my_sessions if s.status == SessionStatus.COMPLETED]

    return {
        "student_id": student_id,
        "upcoming_sessions": upcoming,
        "completed_count": len(completed),
        "recent_completed": sort_sessions_by_date(completed)[:4],
        "amount_owing": sum(
            p.amount for p in state.payments
            if p.session_id in my_session_ids and not p.student_paid and p.amount > 0
        ),
    }
