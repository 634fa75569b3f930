"""
Payment Model
"""
from sqlalchemy import Column, String, Numeric, DateTime, ForeignKey, Enum, Uuid
from sqlalchemy.orm import relationship
from datetime import datetime
import enum
import uuid

from hostel.database import Base


class PaymentStatus(str, enum.Enum):
    PENDING = "pending"
    SUCCESS = "success"
    FAILED = "failed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self is not PaymentStatus.PENDING


class Payment(Base):
    __tablename__ = "payments"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    share_id = Column(Uuid, ForeignKey("bill_shares.id", ondelete="CASCADE"), nullable=False, index=True)
    student_id = Column(Uuid, ForeignKey("students.id"), nullable=False, index=True)
    room_id = Column(Uuid, ForeignKey("rooms.id"), nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)
    currency = Column(String(3), nullable=False, default="INR")
    order_id = Column(String, unique=True, nullable=False, index=True)
    payment_session_id = Column(String, nullable=True)
    payment_url = Column(String, nullable=True)
    status = Column(Enum(PaymentStatus, values_callable=lambda x: [e.value for e in x]), nullable=False, default=PaymentStatus.PENDING, index=True)
    failure_reason = Column(String, nullable=True)
    gateway_payment_id = Column(String, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
    completed_at = Column(DateTime, nullable=True)

    share = relationship("BillShare")
    student = relationship("Student")

    def __repr__(self):
        return f"<Payment {self.order_id} {self.status}>"
