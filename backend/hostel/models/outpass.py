"""
Outpass Model
"""
from sqlalchemy import Column, String, Integer, Boolean, DateTime, Date, Time, ForeignKey, Enum, Uuid
from sqlalchemy.orm import relationship
from datetime import datetime
import enum
import uuid

from hostel.database import Base


class OutpassStatus(str, enum.Enum):
    PENDING = "Pending"
    APPROVED = "Approved"
    REJECTED = "Rejected"


class Outpass(Base):
    __tablename__ = "outpasses"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    student_id = Column(Uuid, ForeignKey("students.id", ondelete="CASCADE"), nullable=False, index=True)
    date_of_outpass = Column(Date, nullable=False)
    out_time = Column(Time, nullable=False)
    in_time = Column(Time, nullable=False)
    reason = Column(String, nullable=False)
    status = Column(Enum(OutpassStatus, values_callable=lambda x: [e.value for e in x]), nullable=False, default=OutpassStatus.PENDING)
    rejection_reason = Column(String, nullable=True)
    approved_by = Column(Uuid, ForeignKey("admins.id"), nullable=True)
    qr_view_count = Column(Integer, nullable=False, default=0)
    qr_locked = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    student = relationship("Student")
