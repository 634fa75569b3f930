"""
Student Model
"""
from sqlalchemy import Column, String, Boolean, DateTime, Integer, ForeignKey, Uuid
from sqlalchemy.orm import relationship
from datetime import datetime
import uuid

from hostel.database import Base


class Student(Base):
    __tablename__ = "students"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String, nullable=False)
    roll_number = Column(String, unique=True, nullable=False, index=True)
    password_hash = Column(String, nullable=False)
    gender = Column(String, nullable=False)
    category = Column(String, nullable=False)
    course_id = Column(Uuid, ForeignKey("courses.id"), nullable=True)
    branch_id = Column(Uuid, ForeignKey("branches.id"), nullable=True)
    year = Column(Integer, nullable=True)
    room_number = Column(String, nullable=True, index=True)
    phone = Column(String, nullable=True)
    parent_phone = Column(String, nullable=True)
    requires_password_change = Column(Boolean, default=True, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    last_login = Column(DateTime, nullable=True)

    course = relationship("Course")
    branch = relationship("Branch")

    def __repr__(self):
        return f"<Student {self.roll_number}>"
