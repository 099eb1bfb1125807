"""Session model - Individual tutoring sessions"""
from sqlalchemy import Column, String, Integer, Float, DateTime, Text, ForeignKey, CheckConstraint, Index
from sqlalchemy.sql import func

from app.database import Base
from app.domain.records import SessionRecord, SessionStatus

_STATUS_VALUES = ", ".join(f"'{s.value}'" for s in SessionStatus)


class Session(Base):
    """Tutoring session between one student and one tutor"""

    __tablename__ = "sessions"

    id = Column(String(64), primary_key=True)
    student_id = Column(String(64), ForeignKey("students.id", ondelete="CASCADE"), nullable=False)
    tutor_id = Column(String(64), ForeignKey("tutors.id", ondelete="CASCADE"), nullable=False)
    subject = Column(String(100), nullable=False)
    scheduled_at = Column(DateTime, nullable=False)
    duration_minutes = Column(Integer, nullable=False, default=60)
    status = Column(
        String(32),
        CheckConstraint(f"status IN ({_STATUS_VALUES})", name="sessions_status_check"),
        nullable=False,
        default=SessionStatus.SCHEDULED.value,
    )
    price = Column(Float, nullable=False, default=50.0)
    notes = Column(Text, nullable=False, default="")
    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime,
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    # Indexes for performance
    __table_args__ = (
        Index("idx_sessions_tutor_time", "tutor_id", "scheduled_at"),
        Index("idx_sessions_student", "student_id"),
        Index("idx_sessions_status", "status"),
    )

    def to_record(self) -> SessionRecord:
        return SessionRecord(
            id=self.id,
            student_id=self.student_id,
            tutor_id=self.tutor_id,
            subject=self.subject,
            date=self.scheduled_at,
            duration=self.duration_minutes,
            status=SessionStatus(self.status),
            price=self.price,
            notes=self.notes or "",
        )

    @classmethod
    def from_record(cls, record: SessionRecord) -> "Session":
        return cls(
            id=record.id,
            student_id=record.student_id,
            tutor_id=record.tutor_id,
            subject=record.subject,
            scheduled_at=record.date,
            duration_minutes=record.duration,
            status=record.status.value,
            price=record.price,
            notes=record.notes,
        )

    def __repr__(self):
        return f"<Session(id={self.id}, subject={self.subject}, status={self.status})>"
