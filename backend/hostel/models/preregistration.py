"""
Student pre-registration request model
"""
from sqlalchemy import Column, String, Integer, DateTime, ForeignKey, Enum, Uuid
from datetime import datetime
import enum
import uuid

from hostel.database import Base


class PreRegistrationStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class PreRegistration(Base):
    __tablename__ = "preregistrations"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String, nullable=False)
    roll_number = Column(String, nullable=False, index=True)
    gender = Column(String, nullable=False)
    category = Column(String, nullable=False)
    course_id = Column(Uuid, ForeignKey("courses.id"), nullable=True)
    branch_id = Column(Uuid, ForeignKey("branches.id"), nullable=True)
    year = Column(Integer, nullable=True)
    phone = Column(String, nullable=True)
    parent_phone = Column(String, nullable=True)
    status = Column(Enum(PreRegistrationStatus, values_callable=lambda x: [e.value for e in x]), nullable=False, default=PreRegistrationStatus.PENDING, index=True)
    rejection_reason = Column(String, nullable=True)
    reviewed_by = Column(Uuid, ForeignKey("admins.id"), nullable=True)
    reviewed_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
