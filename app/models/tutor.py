"""Tutor model - Tutor profile, subjects taught and approval flag"""
from sqlalchemy import Column, String, Integer, Float, Boolean, Date, DateTime, Text, JSON, ForeignKey, CheckConstraint, Index
from sqlalchemy.sql import func

from app.database import Base
from app.domain.records import SubjectOffering, TutorRecord


class Tutor(Base):
    """Tutor profile; invisible to students until is_active is set by an admin"""

    __tablename__ = "tutors"

    id = Column(String(64), primary_key=True)
    user_id = Column(String(64), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False)
    bio = Column(Text, nullable=False, default="")
    # [{"name": "Mathematics", "grades": ["G9", "G10"]}, ...]
    subjects = Column(JSON, nullable=False, default=list)
    grades = Column(JSON, nullable=False, default=list)
    calendly_link = Column(String(500), nullable=False, default="")
    rating = Column(
        Float,
        CheckConstraint("rating >= 0 AND rating <= 5", name="tutors_rating_check"),
        nullable=False,
        default=0.0,
    )
    total_sessions = Column(Integer, nullable=False, default=0)
    joined_date = Column(Date, nullable=True)
    avatar_initials = Column(String(4), nullable=False, default="")
    is_active = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime,
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    __table_args__ = (
        Index("idx_tutors_is_active", "is_active"),
        Index("idx_tutors_user", "user_id"),
    )

    def to_record(self) -> TutorRecord:
        return TutorRecord(
            id=self.id,
            name=self.name,
            email=self.email,
            bio=self.bio or "",
            subjects=tuple(SubjectOffering(**s) for s in (self.subjects or [])),
            grades=tuple(self.grades or []),
            calendly_link=self.calendly_link or "",
            rating=self.rating or 0.0,
            total_sessions=self.total_sessions or 0,
            joined_date=self.joined_date,
            avatar_initials=self.avatar_initials or "",
            is_active=bool(self.is_active),
        )

    @classmethod
    def from_record(cls, record: TutorRecord) -> "Tutor":
        return cls(
            id=record.id,
            name=record.name,
            email=record.email,
            bio=record.bio,
            subjects=[s.model_dump(mode="json") for s in record.subjects],
            grades=list(record.grades),
            calendly_link=record.calendly_link,
            rating=record.rating,
            total_sessions=record.total_sessions,
            joined_date=record.joined_date,
            avatar_initials=record.avatar_initials,
            is_active=record.is_active,
        )

    def __repr__(self):
        return f"<Tutor(id={self.id}, name={self.name}, active={self.is_active})>"
