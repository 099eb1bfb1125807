"""Tutor and session list filtering for browse and admin views"""
from datetime import datetime, timedelta
from typing import List, Optional, Sequence

from app.domain.records import SessionRecord, SessionStatus, TutorRecord

ALL = "all"

DATE_RANGE_DAYS = {"week": 7, "month": 30}


def _is_unset(value: Optional[str]) -> bool:
    return not value or value == ALL


def visible_tutors(tutors: Sequence[TutorRecord]) -> List[TutorRecord]:
    """Tutors students may see: only those an admin has approved"""
    return [t for t in tutors if t.is_active]


def filter_tutors_by_subject(tutors: Sequence[TutorRecord], subject: Optional[str]) -> List[TutorRecord]:
    if _is_unset(subject):
        return list(tutors)
    return [t for t in tutors if t.teaches(subject)]


def filter_tutors_by_grade(tutors: Sequence[TutorRecord], grade: Optional[str]) -> List[TutorRecord]:
    if _is_unset(grade):
        return list(tutors)
    return [t for t in tutors if grade in t.grades]


def filter_sessions_by_status(sessions: Sequence[SessionRecord], status: Optional[str]) -> List[SessionRecord]:
    if _is_unset(status):
        return list(sessions)
    wanted = SessionStatus(status)
    return [s for s in sessions if s.status == wanted]


def filter_sessions_by_tutor(sessions: Sequence[SessionRecord], tutor_id: Optional[str]) -> List[SessionRecord]:
    if _is_unset(tutor_id):
        return list(sessions)
    return [s for s in sessions if s.tutor_id == tutor_id]


def filter_sessions_by_student(sessions: Sequence[SessionRecord], student_id: Optional[str]) -> List[SessionRecord]:
    if _is_unset(student_id):
        return list(sessions)
    return [s for s in sessions if s.student_id == student_id]


def filter_sessions_by_date_range(
    sessions: Sequence[SessionRecord],
    date_range: Optional[str],
    today: datetime,
) -> List[SessionRecord]:
    """
    Keep sessions from the last week or month, plus everything still ahead.

    Raises:
        ValueError: If date_range is not one of "week", "month", "all"
    """
    if _is_unset(date_range):
        return list(sessions)
    if date_range not in DATE_RANGE_DAYS:
        raise ValueError(f"Invalid date range: {date_range}. Must be one of: week, month, all")

    threshold = today - timedelta(days=DATE_RANGE_DAYS[date_range])
    return [s for s in sessions if s.date >= threshold]


def sort_sessions_by_date(sessions: Sequence[SessionRecord], ascending: bool = False) -> List[SessionRecord]:
    """Newest first by default"""
    return sorted(sessions, key=lambda s: s.date, reverse=not ascending)
