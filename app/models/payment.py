"""Payment model - Billing record for a logged session"""
from sqlalchemy import Column, String, Float, Boolean, Date, DateTime, ForeignKey, CheckConstraint, Index
from sqlalchemy.sql import func

from app.database import Base
from app.domain.records import PaymentRecord


class Payment(Base):
    """Student charge and tutor payout for one session, each leg flagged independently"""

    __tablename__ = "payments"

    id = Column(String(64), primary_key=True)
    session_id = Column(String(64), ForeignKey("sessions.id", ondelete="CASCADE"), nullable=False)
    amount = Column(
        Float,
        CheckConstraint("amount >= 0", name="payments_amount_check"),
        nullable=False,
        default=0.0,
    )
    tutor_amount = Column(Float, nullable=False, default=0.0)
    student_paid = Column(Boolean, nullable=False, default=False)
    tutor_paid = Column(Boolean, nullable=False, default=False)
    created_at = Column(Date, nullable=False, server_default=func.current_date())
    # When the last leg was marked paid
    payment_date = Column(DateTime, nullable=True)

    __table_args__ = (
        Index("idx_payments_session", "session_id"),
        Index("idx_payments_outstanding", "student_paid", "tutor_paid"),
    )

    def to_record(self) -> PaymentRecord:
        return PaymentRecord(
            id=self.id,
            session_id=self.session_id,
            amount=self.amount,
            tutor_amount=self.tutor_amount,
            student_paid=bool(self.student_paid),
            tutor_paid=bool(self.tutor_paid),
            created_at=self.created_at,
        )

    @classmethod
    def from_record(cls, record: PaymentRecord) -> "Payment":
        return cls(**record.model_dump())

    def __repr__(self):
        return f"<Payment(id={self.id}, session={self.session_id}, amount={self.amount})>"
