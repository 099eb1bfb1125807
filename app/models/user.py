"""User model - Account identity and assigned role"""
from typing import Optional

from sqlalchemy import Column, String, DateTime, CheckConstraint, Index
from sqlalchemy.sql import func

from app.database import Base
from app.domain.records import Role, UserRecord


class User(Base):
    """Authenticated account; role comes from this row in the hosted variant"""

    __tablename__ = "users"

    id = Column(String(64), primary_key=True)
    email = Column(String(255), unique=True, nullable=False)
    name = Column(String(255), nullable=False)
    role = Column(
        String(20),
        CheckConstraint("role IN ('student', 'tutor', 'admin')", name="users_role_check"),
        nullable=False,
    )
    phone = Column(String(50), nullable=True)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)

    __table_args__ = (
        Index("idx_users_role", "role"),
    )

    def to_record(self, profile_id: Optional[str] = None) -> UserRecord:
        return UserRecord(
            id=self.id,
            email=self.email,
            name=self.name,
            role=Role(self.role),
            phone=self.phone,
            created_at=self.created_at,
            profile_id=profile_id,
        )

    def __repr__(self):
        return f"<User(id={self.id}, email={self.email}, role={self.role})>"
