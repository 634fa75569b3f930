"""
Leave request and gate visit models
"""
from sqlalchemy import Column, String, Integer, Boolean, DateTime, ForeignKey, Enum, Uuid
from sqlalchemy.orm import relationship
from datetime import datetime
import enum
import uuid

from hostel.database import Base


class LeaveStatus(str, enum.Enum):
    PENDING_OTP = "Pending OTP Verification"
    APPROVED = "Approved"
    REJECTED = "Rejected"


class VisitType(str, enum.Enum):
    OUTGOING = "outgoing"
    INCOMING = "incoming"


class Leave(Base):
    __tablename__ = "leaves"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    student_id = Column(Uuid, ForeignKey("students.id", ondelete="CASCADE"), nullable=False, index=True)
    start_date = Column(DateTime, nullable=False)
    end_date = Column(DateTime, nullable=False)
    reason = Column(String, nullable=False)
    status = Column(Enum(LeaveStatus, values_callable=lambda x: [e.value for e in x]), nullable=False, default=LeaveStatus.PENDING_OTP)
    otp_code = Column(String(6), nullable=True)
    rejection_reason = Column(String, nullable=True)
    approved_by = Column(Uuid, ForeignKey("admins.id"), nullable=True)
    approved_at = Column(DateTime, nullable=True)
    qr_available_from = Column(DateTime, nullable=True)
    qr_view_count = Column(Integer, nullable=False, default=0)
    qr_locked = Column(Boolean, nullable=False, default=False)
    outgoing_visit_count = Column(Integer, nullable=False, default=0)
    incoming_visit_count = Column(Integer, nullable=False, default=0)
    max_visits = Column(Integer, nullable=False, default=1)
    visit_locked = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    student = relationship("Student")
    visits = relationship("LeaveVisit", back_populates="leave", cascade="all, delete-orphan", order_by="LeaveVisit.scanned_at")

    @property
    def number_of_days(self) -> int:
        return max((self.end_date.date() - self.start_date.date()).days + 1, 1)

    def last_visit(self, visit_type: VisitType):
        matching = [v for v in self.visits if v.visit_type == visit_type]
        return matching[-1] if matching else None


class LeaveVisit(Base):
    __tablename__ = "leave_visits"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    leave_id = Column(Uuid, ForeignKey("leaves.id", ondelete="CASCADE"), nullable=False, index=True)
    visit_type = Column(Enum(VisitType, values_callable=lambda x: [e.value for e in x]), nullable=False)
    scanned_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    location = Column(String, nullable=True)
    scanned_by = Column(String, nullable=True)

    leave = relationship("Leave", back_populates="visits")
