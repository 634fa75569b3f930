"""
Electricity bill generation
"""
from decimal import Decimal, ROUND_DOWN, ROUND_HALF_UP
from typing import List, Optional
import logging

from sqlalchemy.orm import Session

from hostel.models.room import BillShare, ElectricityBill, Room
from hostel.models.student import Student

logger = logging.getLogger(__name__)

PAISE = Decimal("0.01")


class BillingError(ValueError):
    pass


class BillConflict(BillingError):
    pass


def split_amount(total: Decimal, parts: int) -> List[Decimal]:
    """
    Split an amount evenly, rounded down to paise. The remainder goes to
    the first share, so the shares always add up to the total.
    """
    if parts < 1:
        raise BillingError("Cannot split a bill between zero students")
    total = Decimal(total).quantize(PAISE, rounding=ROUND_HALF_UP)
    base = (total / parts).quantize(PAISE, rounding=ROUND_DOWN)
    shares = [base] * parts
    shares[0] = total - base * (parts - 1)
    return shares


def room_students(db: Session, room: Room) -> List[Student]:
    """Active students allotted to a room"""
    return (
        db.query(Student)
        .filter(
            Student.room_number == room.room_number,
            Student.gender == room.gender,
            Student.category == room.category,
            Student.is_active.is_(True),
        )
        .order_by(Student.roll_number)
        .all()
    )


def generate_bill(
    db: Session,
    room: Room,
    month: str,
    end_units: int,
    start_units: Optional[int] = None,
    rate: Optional[Decimal] = None,
) -> ElectricityBill:
    """
    Generate a room's bill for a month and split it across its students.
    The room's meter reading advances to ``end_units``.
    """
    if db.query(ElectricityBill).filter(ElectricityBill.room_id == room.id, ElectricityBill.month == month).first():
        raise BillConflict(f"Bill for {month} already exists")

    start = start_units if start_units is not None else (room.meter_reading or 0)
    if end_units < start:
        raise BillingError("End reading is lower than start reading")

    rate = rate if rate is not None else room.electricity_rate
    if rate is None:
        raise BillingError("No electricity rate set for room")

    students = room_students(db, room)
    if not students:
        raise BillingError("Room has no students to bill")

    total = (Decimal(end_units - start) * Decimal(rate)).quantize(PAISE, rounding=ROUND_HALF_UP)
    bill = ElectricityBill(
        room_id=room.id,
        month=month,
        start_units=start,
        end_units=end_units,
        rate=rate,
        total=total,
    )
    for student, amount in zip(students, split_amount(total, len(students))):
        bill.shares.append(BillShare(student_id=student.id, student_share=amount))

    room.meter_reading = end_units
    db.add(bill)
    db.commit()
    db.refresh(bill)

    logger.info("Generated %s bill for room %s: %s across %s students", month, room.room_number, total, len(students))
    return bill
