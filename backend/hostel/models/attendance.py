"""
Attendance Model
"""
from sqlalchemy import Column, String, Boolean, Date, DateTime, ForeignKey, UniqueConstraint, Uuid
from sqlalchemy.orm import relationship
from datetime import datetime
import uuid

from hostel.database import Base


class Attendance(Base):
    __tablename__ = "attendance"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    student_id = Column(Uuid, ForeignKey("students.id", ondelete="CASCADE"), nullable=False)
    date = Column(Date, nullable=False, index=True)
    morning = Column(Boolean, nullable=False, default=False)
    evening = Column(Boolean, nullable=False, default=False)
    notes = Column(String, nullable=True)
    taken_by = Column(Uuid, ForeignKey("admins.id"), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    student = relationship("Student")

    __table_args__ = (
        UniqueConstraint("student_id", "date", name="uq_attendance_student_date"),
    )

    @property
    def status(self) -> str:
        if self.morning and self.evening:
            return "Present"
        if self.morning or self.evening:
            return "Partial"
        return "Absent"
