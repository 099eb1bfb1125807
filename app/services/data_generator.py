"""
Synthetic Marketplace Data Generator

Builds larger demo states than the static seed: tutors, students and several
weeks of session history with the payments logging would have produced.
Generated states follow the same lifecycle rules as live traffic:

- only completed sessions carry a charge, at the standard rate
- tutor_amount is the tutor share of the charge
- tutor payouts only exist for billable payments the student has paid
- tutors awaiting approval have no sessions
"""
import logging
import random
from datetime import datetime, timedelta
from typing import Dict, List, Optional

from faker import Faker

from app import config
from app.domain import lifecycle
from app.domain.records import (
    AppState,
    PaymentRecord,
    SessionRecord,
    SessionStatus,
    StudentRecord,
    SubjectOffering,
    TutorRecord,
    union_grades,
)
from app.services.seed_data import GRADES, SUBJECTS

logger = logging.getLogger(__name__)

# Outcome mix for sessions already held
PAST_STATUS_WEIGHTS = {
    SessionStatus.COMPLETED: 0.80,
    SessionStatus.CANCELLED: 0.12,
    SessionStatus.NO_SHOW: 0.08,
}

# Booking state mix for sessions still ahead
FUTURE_STATUS_WEIGHTS = {
    SessionStatus.SCHEDULED: 0.70,
    SessionStatus.CONFIRMED: 0.20,
    SessionStatus.PENDING_CONFIRMATION: 0.10,
}


class DataGenerator:
    """Generates a consistent AppState around a reference date"""

    def __init__(
        self,
        today: Optional[datetime] = None,
        num_tutors: int = 20,
        num_students: int = 60,
        weeks_of_history: int = 12,
        weeks_ahead: int = 2,
        pending_tutors: int = 2,
        seed: Optional[int] = None,
    ):
        if pending_tutors >= num_tutors:
            raise ValueError("At least one tutor must be approved")

        self.today = today or config.DEMO_TODAY
        self.num_tutors = num_tutors
        self.num_students = num_students
        self.weeks_of_history = weeks_of_history
        self.weeks_ahead = weeks_ahead
        self.pending_tutors = pending_tutors

        self.random = random.Random(seed)
        self.fake = Faker()
        if seed is not None:
            self.fake.seed_instance(seed)

        logger.info(
            f"Initialized DataGenerator around {self.today.date()}: {num_tutors} tutors, "
            f"{num_students} students, {weeks_of_history} weeks of history"
        )

    def _weighted_status(self, weights: Dict[SessionStatus, float]) -> SessionStatus:
        statuses = list(weights)
        return self.random.choices(statuses, weights=[weights[s] for s in statuses])[0]

    def _session_time(self, day: datetime) -> datetime:
        """After-school slot on the quarter hour"""
        hour = self.random.randint(15, 20) if day.weekday() < 5 else self.random.randint(10, 17)
        minute = self.random.choice([0, 15, 30, 45])
        return day.replace(hour=hour, minute=minute, second=0, microsecond=0)

    def generate_tutors(self) -> List[TutorRecord]:
        tutors = []
        for i in range(self.num_tutors):
            name = self.fake.name()
            # Each tutor teaches 1-3 subjects
            num_subjects = self.random.choices([1, 2, 3], weights=[0.3, 0.5, 0.2])[0]
            offerings = []
            for subject in self.random.sample(SUBJECTS, num_subjects):
                low = self.random.randint(0, len(GRADES) - 1)
                offerings.append(SubjectOffering(name=subject, grades=tuple(GRADES[low:])))

            tutors.append(TutorRecord(
                id=f"t{i + 1}",
                name=name,
                email=self.fake.unique.email(),
                bio=self.fake.paragraph(nb_sentences=3),
                subjects=tuple(offerings),
                grades=union_grades(offerings),
                calendly_link=f"https://calendly.com/{self.fake.user_name()}",
                rating=round(self.random.uniform(3.5, 5.0), 1),
                total_sessions=0,
                joined_date=self.fake.date_between(
                    start_date=self.today.date() - timedelta(days=730),
                    end_date=self.today.date(),
                ),
                avatar_initials="".join(part[0] for part in name.split()[:2]).upper(),
                # The most recent sign-ups still await approval
                is_active=i < self.num_tutors - self.pending_tutors,
            ))

        logger.info(f"Generated {len(tutors)} tutor records")
        return tutors

    def generate_students(self) -> List[StudentRecord]:
        students = []
        for i in range(self.num_students):
            last_name = self.fake.last_name()
            students.append(StudentRecord(
                id=f"st{i + 1}",
                name=f"{self.fake.first_name()} {last_name}",
                email=self.fake.unique.email(),
                grade=self.random.choice(GRADES),
                parent_name=f"{self.fake.first_name()} {last_name}",
                parent_email=self.fake.unique.email(),
                joined_date=self.fake.date_between(
                    start_date=self.today.date() - timedelta(days=365),
                    end_date=self.today.date(),
                ),
            ))

        logger.info(f"Generated {len(students)} student records")
        return students

    def generate_sessions(
        self,
        tutors: List[TutorRecord],
        students: List[StudentRecord],
    ) -> List[SessionRecord]:
        """Weekly sessions per student with an approved tutor who teaches their grade"""
        active = [t for t in tutors if t.is_active]
        sessions = []
        start = self.today - timedelta(weeks=self.weeks_of_history)
        end = self.today + timedelta(weeks=self.weeks_ahead)

        for student in students:
            matching = [t for t in active if student.grade in t.grades] or active
            tutor = self.random.choice(matching)
            subject = self.random.choice([
                s.name for s in tutor.subjects if student.grade in s.grades
            ] or [s.name for s in tutor.subjects])

            day = start + timedelta(days=self.random.randint(0, 6))
            while day < end:
                when = self._session_time(day)
                if when <= self.today:
                    status = self._weighted_status(PAST_STATUS_WEIGHTS)
                else:
                    status = self._weighted_status(FUTURE_STATUS_WEIGHTS)

                sessions.append(SessionRecord(
                    id=f"s{len(sessions) + 1}",
                    student_id=student.id,
                    tutor_id=tutor.id,
                    subject=subject,
                    date=when,
                    duration=config.SESSION_DURATION_MINUTES,
                    status=status,
                    price=config.STANDARD_RATE,
                ))
                # Roughly weekly, sometimes skipping a week
                day += timedelta(weeks=self.random.choice([1, 1, 1, 2]))

        sessions.sort(key=lambda s: s.date)
        sessions = [s.model_copy(update={"id": f"s{i + 1}"}) for i, s in enumerate(sessions)]
        logger.info(f"Generated {len(sessions)} session records")
        return sessions

    def generate_payments(self, sessions: List[SessionRecord]) -> List[PaymentRecord]:
        """One payment per logged session; older charges are more likely to be settled"""
        payments = []
        for session in sessions:
            if session.status not in lifecycle.LOGGABLE_OUTCOMES:
                continue

            payment = lifecycle.payment_for_log(
                payment_id=f"p{len(payments) + 1}",
                session=session,
                outcome=session.status,
                created_at=session.date.date(),
            )
            if payment.is_billable:
                age_days = (self.today - session.date).days
                student_paid = self.random.random() < min(0.95, 0.3 + age_days / 30)
                tutor_paid = student_paid and self.random.random() < 0.7
                payment = payment.model_copy(update={
                    "student_paid": student_paid,
                    "tutor_paid": tutor_paid,
                })
            payments.append(payment)

        logger.info(f"Generated {len(payments)} payment records")
        return payments

    def generate_state(self) -> AppState:
        """
        Generate a complete marketplace snapshot.

        Returns:
            AppState with tutors, students, sessions and payments. Tutor
            total_sessions counts each tutor's completed sessions.
        """
        tutors = self.generate_tutors()
        students = self.generate_students()
        sessions = self.generate_sessions(tutors, students)
        payments = self.generate_payments(sessions)

        completed: Dict[str, int] = {}
        for s in sessions:
            if s.status == SessionStatus.COMPLETED:
                completed[s.tutor_id] = completed.get(s.tutor_id, 0) + 1
        tutors = [t.model_copy(update={"total_sessions": completed.get(t.id, 0)}) for t in tutors]

        return AppState(
            tutors=tuple(tutors),
            students=tuple(students),
            sessions=tuple(sessions),
            payments=tuple(payments),
        )
