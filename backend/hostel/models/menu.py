"""
Mess menu, meal rating and notification models
"""
from sqlalchemy import Column, String, Integer, Boolean, Date, DateTime, ForeignKey, JSON, UniqueConstraint, Uuid
from sqlalchemy.orm import relationship
from datetime import datetime
import uuid

from hostel.database import Base

MEALS = ("breakfast", "lunch", "dinner")


class Menu(Base):
    __tablename__ = "menus"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    date = Column(Date, unique=True, nullable=False, index=True)
    meals = Column(JSON, nullable=False, default=dict)
    updated_by = Column(Uuid, ForeignKey("admins.id"), nullable=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    ratings = relationship("MealRating", back_populates="menu", cascade="all, delete-orphan")


class MealRating(Base):
    __tablename__ = "meal_ratings"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    menu_id = Column(Uuid, ForeignKey("menus.id", ondelete="CASCADE"), nullable=False)
    student_id = Column(Uuid, ForeignKey("students.id", ondelete="CASCADE"), nullable=False)
    meal = Column(String, nullable=False)
    rating = Column(Integer, nullable=False)
    comment = Column(String, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    menu = relationship("Menu", back_populates="ratings")

    __table_args__ = (
        UniqueConstraint("menu_id", "student_id", "meal", name="uq_rating_menu_student_meal"),
    )


class Notification(Base):
    __tablename__ = "notifications"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    student_id = Column(Uuid, ForeignKey("students.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String, nullable=False)
    message = Column(String, nullable=False)
    kind = Column(String, nullable=False, default="general")
    is_read = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
