"""
Demo Seed Data

Static fixtures for the in-memory demo store: 8 tutors, 12 students, and a
term of sessions (completed, cancelled, no-show, upcoming) with the payments
those sessions produced. Reporting is anchored at DEMO_TODAY (2025-02-07).
"""
from datetime import date, datetime
from typing import List

from app.domain.records import (
    AppState,
    PaymentRecord,
    Role,
    SessionRecord,
    SessionStatus,
    StudentRecord,
    SubjectOffering,
    TutorRecord,
)

# Acting identities of the demo store
DEMO_STUDENT_ID = "st1"
DEMO_TUTOR_ID = "t1"

# Platform admin account, which has no tutor or student profile
DEMO_ADMIN_USER_ID = "u-admin"
DEMO_ADMIN_EMAIL = "admin@willstutoring.com"

SUBJECTS = [
    "Mathematics",
    "English",
    "Physics",
    "Chemistry",
    "Biology",
    "Computer Science",
    "French",
    "Test Prep SAT/ACT",
]

GRADES = ["G9", "G10", "G11", "G12"]

_EVERY_GRADE = ("G9", "G10", "G11", "G12")
_SENIOR = ("G11", "G12")


def _offer(name: str, *grades: str) -> SubjectOffering:
    return SubjectOffering(name=name, grades=grades)


SEED_TUTORS: List[TutorRecord] = [
    TutorRecord(
        id="t1",
        name="Sarah Mitchell",
        email="sarah.m@willstutoring.com",
        bio=(
            "Fourth-year Mathematics student at the University of Waterloo. I love making "
            "calculus click for students who think it's impossible. Two years of tutoring "
            "experience with a focus on building problem-solving intuition."
        ),
        subjects=(_offer("Mathematics", *_EVERY_GRADE), _offer("Physics", *_SENIOR)),
        grades=_EVERY_GRADE,
        calendly_link="https://calendly.com/sarah-m-tutoring",
        rating=4.9,
        total_sessions=45,
        joined_date=date(2024, 9, 1),
        avatar_initials="SM",
    ),
    TutorRecord(
        id="t2",
        name="James Kim",
        email="james.k@willstutoring.com",
        bio=(
            "English Literature major at the University of Toronto. Passionate about helping "
            "students find their voice in writing and develop strong analytical reading skills."
        ),
        subjects=(_offer("English", *_EVERY_GRADE), _offer("French", "G9", "G10", "G11")),
        grades=_EVERY_GRADE,
        calendly_link="https://calendly.com/james-k-tutoring",
        rating=4.8,
        total_sessions=38,
        joined_date=date(2024, 9, 15),
        avatar_initials="JK",
    ),
    TutorRecord(
        id="t3",
        name="Priya Patel",
        email="priya.p@willstutoring.com",
        bio=(
            "Biochemistry student at McMaster University. I break down complex science concepts "
            "into digestible pieces and connect them to real-world applications."
        ),
        subjects=(_offer("Chemistry", *_SENIOR), _offer("Biology", *_SENIOR)),
        grades=_SENIOR,
        calendly_link="https://calendly.com/priya-p-tutoring",
        rating=4.7,
        total_sessions=32,
        joined_date=date(2024, 10, 1),
        avatar_initials="PP",
    ),
    TutorRecord(
        id="t4",
        name="Marcus Chen",
        email="marcus.c@willstutoring.com",
        bio=(
            "Computer Science student at the University of Waterloo with co-op experience at "
            "Shopify. I teach coding fundamentals and help students build real projects."
        ),
        subjects=(_offer("Computer Science", "G10", "G11", "G12"), _offer("Mathematics", "G9", "G10")),
        grades=("G10", "G11", "G12", "G9"),
        calendly_link="https://calendly.com/marcus-c-tutoring",
        rating=4.9,
        total_sessions=41,
        joined_date=date(2024, 9, 10),
        avatar_initials="MC",
    ),
    TutorRecord(
        id="t5",
        name="Emily Rousseau",
        email="emily.r@willstutoring.com",
        bio=(
            "Bilingual French-English tutor studying Linguistics at the University of Ottawa. "
            "I make French grammar feel natural through conversation-based learning."
        ),
        subjects=(_offer("French", *_EVERY_GRADE), _offer("English", "G9", "G10")),
        grades=_EVERY_GRADE,
        calendly_link="https://calendly.com/emily-r-tutoring",
        rating=4.6,
        total_sessions=28,
        joined_date=date(2024, 10, 15),
        avatar_initials="ER",
    ),
    TutorRecord(
        id="t6",
        name="David Okonkwo",
        email="david.o@willstutoring.com",
        bio=(
            "Engineering Physics student at Queen's University. My approach combines rigorous "
            "problem-solving with intuitive visual explanations."
        ),
        subjects=(_offer("Mathematics", *_SENIOR), _offer("Physics", *_SENIOR)),
        grades=_SENIOR,
        calendly_link="https://calendly.com/david-o-tutoring",
        rating=4.8,
        total_sessions=35,
        joined_date=date(2024, 9, 20),
        avatar_initials="DO",
    ),
    TutorRecord(
        id="t7",
        name="Aisha Rahman",
        email="aisha.r@willstutoring.com",
        bio=(
            "Pre-med student at Western University with a passion for biology and chemistry. "
            "I focus on building strong foundational understanding."
        ),
        subjects=(_offer("Biology", *_EVERY_GRADE), _offer("Chemistry", *_SENIOR)),
        grades=_EVERY_GRADE,
        calendly_link="https://calendly.com/aisha-r-tutoring",
        rating=4.7,
        total_sessions=30,
        joined_date=date(2024, 10, 5),
        avatar_initials="AR",
    ),
    TutorRecord(
        id="t8",
        name="Lucas Tremblay",
        email="lucas.t@willstutoring.com",
        bio=(
            "Mathematics graduate from McGill University specializing in test preparation, "
            "with structured study plans and proven strategies."
        ),
        subjects=(_offer("Test Prep SAT/ACT", *_SENIOR), _offer("Mathematics", *_SENIOR)),
        grades=_SENIOR,
        calendly_link="https://calendly.com/lucas-t-tutoring",
        rating=4.5,
        total_sessions=52,
        joined_date=date(2024, 8, 15),
        avatar_initials="LT",
    ),
]

_STUDENT_ROWS = [
    ("st1", "Alex Chen", "alex.chen", "G11", "Wei Chen", "wei.chen", date(2024, 9, 5)),
    ("st2", "Emma Wilson", "emma.wilson", "G10", "Karen Wilson", "karen.wilson", date(2024, 9, 10)),
    ("st3", "Noah Sharma", "noah.sharma", "G12", "Raj Sharma", "raj.sharma", date(2024, 9, 12)),
    ("st4", "Olivia Martin", "olivia.martin", "G9", "Claire Martin", "claire.martin", date(2024, 10, 1)),
    ("st5", "Liam O'Brien", "liam.obrien", "G11", "Sean O'Brien", "sean.obrien", date(2024, 9, 18)),
    ("st6", "Sophia Nguyen", "sophia.nguyen", "G10", "Minh Nguyen", "minh.nguyen", date(2024, 10, 5)),
    ("st7", "Ethan Tremblay", "ethan.tremblay", "G12", "Marc Tremblay", "marc.tremblay", date(2024, 9, 25)),
    ("st8", "Isabella Santos", "isabella.santos", "G9", "Maria Santos", "maria.santos", date(2024, 10, 10)),
    ("st9", "Mason Park", "mason.park", "G11", "Jin Park", "jin.park", date(2024, 9, 30)),
    ("st10", "Ava Kowalski", "ava.kowalski", "G10", "Anna Kowalski", "anna.kowalski", date(2024, 10, 8)),
    ("st11", "Lucas Dubois", "lucas.dubois", "G12", "Pierre Dubois", "pierre.dubois", date(2024, 10, 12)),
    ("st12", "Mia Thompson", "mia.thompson", "G11", "David Thompson", "david.thompson", date(2024, 9, 22)),
]

SEED_STUDENTS: List[StudentRecord] = [
    StudentRecord(
        id=student_id,
        name=name,
        email=f"{handle}@student.com",
        grade=grade,
        parent_name=parent,
        parent_email=f"{parent_handle}@email.com",
        joined_date=joined,
    )
    for student_id, name, handle, grade, parent, parent_handle, joined in _STUDENT_ROWS
]

COMPLETED = SessionStatus.COMPLETED
CANCELLED = SessionStatus.CANCELLED
NO_SHOW = SessionStatus.NO_SHOW
SCHEDULED = SessionStatus.SCHEDULED

# (id, student, tutor, subject, start, status, notes)
_SESSION_ROWS = [
    # Completed sessions, past 2 months
    ("s1", "st1", "t1", "Mathematics", "2024-12-10T10:00:00", COMPLETED, "Reviewed quadratic equations and factoring techniques."),
    ("s2", "st9", "t1", "Mathematics", "2024-12-13T14:00:00", COMPLETED, "Worked through trigonometric identities."),
    ("s3", "st1", "t4", "Computer Science", "2024-12-15T11:00:00", COMPLETED, "Intro to Python data structures, lists and dictionaries."),
    ("s4", "st10", "t3", "Chemistry", "2024-12-18T15:00:00", COMPLETED, "Stoichiometry practice problems and mole calculations."),
    ("s5", "st11", "t6", "Physics", "2025-01-06T13:00:00", COMPLETED, "Newton's laws of motion, problem set review."),
    ("s6", "st12", "t2", "English", "2025-01-08T10:00:00", COMPLETED, "Essay structure and thesis development for comparative analysis."),
    ("s7", "st8", "t7", "Biology", "2025-01-10T14:00:00", COMPLETED, "Cell biology review: mitosis and meiosis."),
    ("s8", "st3", "t4", "Computer Science", "2025-01-13T11:00:00", COMPLETED, "Java OOP concepts: classes, inheritance, and polymorphism."),
    # Completed sessions, past 2-4 weeks
    ("s9", "st1", "t1", "Mathematics", "2025-01-15T10:00:00", COMPLETED, "Derivatives and limits, foundational calculus review."),
    ("s10", "st5", "t6", "Mathematics", "2025-01-17T16:00:00", COMPLETED, "Worked through logarithmic and exponential functions."),
    ("s11", "st2", "t2", "English", "2025-01-18T10:00:00", COMPLETED, "Shakespeare's Macbeth: themes and character analysis."),
    ("s12", "st1", "t1", "Physics", "2025-01-20T14:00:00", COMPLETED, "Kinematics problems: velocity, acceleration, and projectile motion."),
    ("s13", "st7", "t8", "Test Prep SAT/ACT", "2025-01-22T09:00:00", COMPLETED, "SAT Math section, practice test review and strategies."),
    ("s14", "st6", "t5", "French", "2025-01-23T15:00:00", COMPLETED, "French verb conjugation: passe compose and imparfait."),
    ("s15", "st4", "t7", "Biology", "2025-01-25T11:00:00", COMPLETED, "Genetics fundamentals: Punnett squares and inheritance patterns."),
    ("s16", "st1", "t1", "Mathematics", "2025-01-29T10:00:00", COMPLETED, "Integration techniques: substitution and basic integrals."),
    # Cancelled sessions
    ("s17", "st2", "t5", "French", "2025-01-24T13:00:00", CANCELLED, ""),
    ("s18", "st5", "t3", "Chemistry", "2025-01-26T10:00:00", CANCELLED, ""),
    # No-show sessions
    ("s19", "st7", "t6", "Mathematics", "2025-01-28T16:00:00", NO_SHOW, ""),
    ("s20", "st9", "t4", "Computer Science", "2025-01-30T11:00:00", NO_SHOW, ""),
    # Completed, most recent
    ("s21", "st3", "t8", "Mathematics", "2025-01-31T14:00:00", COMPLETED, "Pre-calculus review for university preparation."),
    # Scheduled / upcoming sessions
    ("s22", "st1", "t1", "Mathematics", "2025-02-10T10:00:00", SCHEDULED, ""),
    ("s23", "st3", "t6", "Physics", "2025-02-11T13:00:00", SCHEDULED, ""),
    ("s24", "st1", "t4", "Computer Science", "2025-02-12T11:00:00", SCHEDULED, ""),
    ("s25", "st10", "t3", "Chemistry", "2025-02-13T15:00:00", SCHEDULED, ""),
    ("s26", "st6", "t2", "English", "2025-02-14T10:00:00", SCHEDULED, ""),
]

SEED_SESSIONS: List[SessionRecord] = [
    SessionRecord(
        id=session_id,
        student_id=student_id,
        tutor_id=tutor_id,
        subject=subject,
        date=datetime.fromisoformat(start),
        duration=60,
        status=status,
        price=50,
        notes=notes,
    )
    for session_id, student_id, tutor_id, subject, start, status, notes in _SESSION_ROWS
]

# (id, session, amount, student_paid, tutor_paid, created)
_PAYMENT_ROWS = [
    # Fully settled
    ("p1", "s1", 50, True, True, "2024-12-10"),
    ("p2", "s2", 50, True, True, "2024-12-13"),
    ("p3", "s3", 50, True, True, "2024-12-15"),
    ("p5", "s5", 50, True, True, "2025-01-06"),
    ("p6", "s6", 50, True, True, "2025-01-08"),
    ("p7", "s7", 50, True, True, "2025-01-10"),
    ("p9", "s9", 50, True, True, "2025-01-15"),
    ("p10", "s10", 50, True, True, "2025-01-17"),
    ("p15", "s15", 50, True, True, "2025-01-25"),
    # Student paid, tutor payout pending
    ("p4", "s4", 50, True, False, "2024-12-18"),
    ("p11", "s11", 50, True, False, "2025-01-18"),
    ("p14", "s14", 50, True, False, "2025-01-23"),
    ("p21", "s21", 50, True, False, "2025-01-31"),
    # Outstanding, student has not paid
    ("p8", "s8", 50, False, False, "2025-01-13"),
    ("p12", "s12", 50, False, False, "2025-01-20"),
    ("p13", "s13", 50, False, False, "2025-01-22"),
    ("p16", "s16", 50, False, False, "2025-01-29"),
    # Cancelled, no charge
    ("p17", "s17", 0, False, False, "2025-01-24"),
    ("p18", "s18", 0, False, False, "2025-01-26"),
    # No-show, no charge
    ("p19", "s19", 0, False, False, "2025-01-28"),
    ("p20", "s20", 0, False, False, "2025-01-30"),
]

SEED_PAYMENTS: List[PaymentRecord] = [
    PaymentRecord(
        id=payment_id,
        session_id=session_id,
        amount=amount,
        tutor_amount=amount / 2,
        student_paid=student_paid,
        tutor_paid=tutor_paid,
        created_at=date.fromisoformat(created),
    )
    for payment_id, session_id, amount, student_paid, tutor_paid, created in _PAYMENT_ROWS
]


def build_initial_state() -> AppState:
    """Fresh demo snapshot: logged out, student role, all seed collections"""
    return AppState(
        current_role=Role.STUDENT,
        is_logged_in=False,
        tutors=tuple(SEED_TUTORS),
        students=tuple(SEED_STUDENTS),
        sessions=tuple(SEED_SESSIONS),
        payments=tuple(SEED_PAYMENTS),
    )
