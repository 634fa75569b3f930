"""
Room, Electricity Bill and Bill Share Models
"""
from sqlalchemy import Column, String, Integer, Numeric, DateTime, ForeignKey, Enum, UniqueConstraint, Uuid
from sqlalchemy.orm import relationship
from datetime import datetime
import enum
import uuid

from hostel.database import Base


class ShareStatus(str, enum.Enum):
    """Payment state of one student's share of a bill"""
    UNPAID = "unpaid"
    PENDING = "pending"
    PAID = "paid"


class Room(Base):
    __tablename__ = "rooms"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    room_number = Column(String, nullable=False, index=True)
    gender = Column(String, nullable=False)
    category = Column(String, nullable=False)
    bed_count = Column(Integer, nullable=False, default=1)
    meter_reading = Column(Integer, nullable=True)
    electricity_rate = Column(Numeric(10, 2), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    bills = relationship("ElectricityBill", back_populates="room", cascade="all, delete-orphan")

    __table_args__ = (
        UniqueConstraint("room_number", "gender", "category", name="uq_room_number_gender_category"),
    )

    def __repr__(self):
        return f"<Room {self.room_number} {self.gender}/{self.category}>"


class ElectricityBill(Base):
    __tablename__ = "electricity_bills"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    room_id = Column(Uuid, ForeignKey("rooms.id", ondelete="CASCADE"), nullable=False)
    month = Column(String(7), nullable=False)  # YYYY-MM
    start_units = Column(Integer, nullable=False)
    end_units = Column(Integer, nullable=False)
    rate = Column(Numeric(10, 2), nullable=False)
    total = Column(Numeric(12, 2), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    room = relationship("Room", back_populates="bills")
    shares = relationship("BillShare", back_populates="bill", cascade="all, delete-orphan")

    __table_args__ = (
        UniqueConstraint("room_id", "month", name="uq_bill_room_month"),
    )

    @property
    def consumption(self) -> int:
        return self.end_units - self.start_units


class BillShare(Base):
    """One student's portion of a room's electricity bill"""
    __tablename__ = "bill_shares"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    bill_id = Column(Uuid, ForeignKey("electricity_bills.id", ondelete="CASCADE"), nullable=False)
    student_id = Column(Uuid, ForeignKey("students.id", ondelete="CASCADE"), nullable=False, index=True)
    student_share = Column(Numeric(12, 2), nullable=False)
    payment_status = Column(Enum(ShareStatus, values_callable=lambda x: [e.value for e in x]), nullable=False, default=ShareStatus.UNPAID)
    payment_id = Column(Uuid, nullable=True)
    order_id = Column(String, nullable=True)
    paid_at = Column(DateTime, nullable=True)

    bill = relationship("ElectricityBill", back_populates="shares")
    student = relationship("Student")

    __table_args__ = (
        UniqueConstraint("bill_id", "student_id", name="uq_share_bill_student"),
    )
