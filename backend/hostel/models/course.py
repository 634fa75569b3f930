"""
Course and Branch Models
"""
from sqlalchemy import Column, String, ForeignKey, UniqueConstraint, Uuid
from sqlalchemy.orm import relationship
import uuid

from hostel.database import Base


class Course(Base):
    __tablename__ = "courses"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String, unique=True, nullable=False)
    code = Column(String, unique=True, nullable=False)

    branches = relationship("Branch", back_populates="course", cascade="all, delete-orphan", order_by="Branch.name")

    def __repr__(self):
        return f"<Course {self.code}>"


class Branch(Base):
    __tablename__ = "branches"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    course_id = Column(Uuid, ForeignKey("courses.id", ondelete="CASCADE"), nullable=False)
    name = Column(String, nullable=False)
    code = Column(String, nullable=False)

    course = relationship("Course", back_populates="branches")

    __table_args__ = (
        UniqueConstraint("course_id", "code", name="uq_branch_course_code"),
    )

    def __repr__(self):
        return f"<Branch {self.code}>"
