"""
Store actions

Each action is a small immutable pydantic model tagged by ``type`` so the HTTP
layer can accept any of them through one discriminated union.
"""
from datetime import datetime
from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from app.domain.records import Role, SessionStatus, SubjectOffering
from app.services.seed_data import DEMO_STUDENT_ID, DEMO_TUTOR_ID


class _Action(BaseModel):
    model_config = ConfigDict(frozen=True)


class SetRole(_Action):
    type: Literal["SET_ROLE"] = "SET_ROLE"
    role: Role


class Login(_Action):
    type: Literal["LOGIN"] = "LOGIN"


class Logout(_Action):
    type: Literal["LOGOUT"] = "LOGOUT"


class BookSession(_Action):
    type: Literal["BOOK_SESSION"] = "BOOK_SESSION"
    tutor_id: str
    subject: str
    date: datetime
    notes: str = ""
    student_id: str = DEMO_STUDENT_ID
    requires_confirmation: bool = False


class CancelSession(_Action):
    type: Literal["CANCEL_SESSION"] = "CANCEL_SESSION"
    session_id: str


class LogSession(_Action):
    type: Literal["LOG_SESSION"] = "LOG_SESSION"
    session_id: str
    status: SessionStatus


class LogNewSession(_Action):
    """A session the tutor records after it happened, created in its final status"""
    type: Literal["LOG_NEW_SESSION"] = "LOG_NEW_SESSION"
    student_id: str
    subject: str
    date: datetime
    status: SessionStatus
    duration: int = Field(default=60, gt=0)
    notes: str = ""
    tutor_id: str = DEMO_TUTOR_ID


class UpdateSessionNotes(_Action):
    type: Literal["UPDATE_SESSION_NOTES"] = "UPDATE_SESSION_NOTES"
    session_id: str
    notes: str


class RespondToBooking(_Action):
    type: Literal["RESPOND_TO_BOOKING"] = "RESPOND_TO_BOOKING"
    session_id: str
    accept: bool


class UpdateTutorProfile(_Action):
    type: Literal["UPDATE_TUTOR_PROFILE"] = "UPDATE_TUTOR_PROFILE"
    tutor_id: str = DEMO_TUTOR_ID
    bio: Optional[str] = None
    subjects: Optional[List[SubjectOffering]] = None
    calendly_link: Optional[str] = None


class UpdateStudentProfile(_Action):
    type: Literal["UPDATE_STUDENT_PROFILE"] = "UPDATE_STUDENT_PROFILE"
    student_id: str = DEMO_STUDENT_ID
    grade: Optional[str] = None
    parent_name: Optional[str] = None
    parent_email: Optional[str] = None


class ApproveTutor(_Action):
    type: Literal["APPROVE_TUTOR"] = "APPROVE_TUTOR"
    tutor_id: str


class MarkPaymentStudentPaid(_Action):
    type: Literal["MARK_PAYMENT_STUDENT_PAID"] = "MARK_PAYMENT_STUDENT_PAID"
    payment_id: str


class MarkPaymentTutorPaid(_Action):
    type: Literal["MARK_PAYMENT_TUTOR_PAID"] = "MARK_PAYMENT_TUTOR_PAID"
    payment_id: str


ActionUnion = Union[
    SetRole,
    Login,
    Logout,
    BookSession,
    CancelSession,
    LogSession,
    LogNewSession,
    UpdateSessionNotes,
    RespondToBooking,
    UpdateTutorProfile,
    UpdateStudentProfile,
    ApproveTutor,
    MarkPaymentStudentPaid,
    MarkPaymentTutorPaid,
]

# Any action, resolved by its ``type`` tag
AppAction = Annotated[ActionUnion, Field(discriminator="type")]
