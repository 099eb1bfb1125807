"""Student model - Student profile and parent contact"""
from sqlalchemy import Column, String, Date, DateTime, ForeignKey
from sqlalchemy.sql import func

from app.database import Base
from app.domain.records import StudentRecord


class Student(Base):
    """Student profile with grade level and parent contact"""

    __tablename__ = "students"

    id = Column(String(64), primary_key=True)
    user_id = Column(String(64), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False)
    grade = Column(String(10), nullable=False, default="")
    parent_name = Column(String(255), nullable=False, default="")
    parent_email = Column(String(255), nullable=False, default="")
    joined_date = Column(Date, nullable=True)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)

    def to_record(self) -> StudentRecord:
        return StudentRecord(
            id=self.id,
            name=self.name,
            email=self.email,
            grade=self.grade or "",
            parent_name=self.parent_name or "",
            parent_email=self.parent_email or "",
            joined_date=self.joined_date,
        )

    @classmethod
    def from_record(cls, record: StudentRecord) -> "Student":
        return cls(**record.model_dump())

    def __repr__(self):
        return f"<Student(id={self.id}, name={self.name}, grade={self.grade})>"
