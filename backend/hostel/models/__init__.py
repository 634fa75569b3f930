"""
Models package - Import all models to ensure SQLAlchemy relationships work
"""
# Import Base first
from hostel.database import Base

# Import models in dependency order to avoid relationship resolution issues
from hostel.models.course import Course, Branch
from hostel.models.admin import Admin
from hostel.models.student import Student
from hostel.models.room import Room, ElectricityBill, BillShare, ShareStatus
from hostel.models.payment import Payment, PaymentStatus
from hostel.models.leave import Leave, LeaveVisit, LeaveStatus, VisitType
from hostel.models.outpass import Outpass, OutpassStatus
from hostel.models.menu import Menu, MealRating, Notification, MEALS
from hostel.models.attendance import Attendance
from hostel.models.preregistration import PreRegistration, PreRegistrationStatus

__all__ = [
    "Base",
    "Course",
    "Branch",
    "Admin",
    "Student",
    "Room",
    "ElectricityBill",
    "BillShare",
    "ShareStatus",
    "Payment",
    "PaymentStatus",
    "Leave",
    "LeaveVisit",
    "LeaveStatus",
    "VisitType",
    "Outpass",
    "OutpassStatus",
    "Menu",
    "MealRating",
    "Notification",
    "MEALS",
    "Attendance",
    "PreRegistration",
    "PreRegistrationStatus",
]
