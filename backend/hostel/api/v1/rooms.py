"""
Room and Electricity Bill API Routes
"""
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import func
from sqlalchemy.orm import Session

from hostel.config.permissions import AccessLevel, Permission
from hostel.database import get_db
from hostel.dependencies import CurrentUser, get_current_student, require_section
from hostel.models.room import BillShare, ElectricityBill, Room
from hostel.models.student import Student
from hostel.schemas.room import (
    BillShareResponse,
    ElectricityBillResponse,
    GenerateBillRequest,
    RoomCreate,
    RoomResponse,
    RoomStudent,
    RoomUpdate,
    StudentBillResponse,
)
from hostel.services import billing_service

router = APIRouter()
student_router = APIRouter()

view_rooms = require_section(Permission.ROOM_MANAGEMENT)
manage_rooms = require_section(Permission.ROOM_MANAGEMENT, AccessLevel.FULL)


def _room_response(room: Room, student_count: int = 0) -> RoomResponse:
    return RoomResponse(
        id=str(room.id),
        room_number=room.room_number,
        gender=room.gender,
        category=room.category,
        bed_count=room.bed_count,
        meter_reading=room.meter_reading,
        electricity_rate=room.electricity_rate,
        student_count=student_count,
        created_at=room.created_at,
    )


def _bill_response(bill: ElectricityBill) -> ElectricityBillResponse:
    return ElectricityBillResponse(
        id=str(bill.id),
        room_id=str(bill.room_id),
        month=bill.month,
        start_units=bill.start_units,
        end_units=bill.end_units,
        consumption=bill.consumption,
        rate=bill.rate,
        total=bill.total,
        shares=[
            BillShareResponse(
                bill_id=str(share.id),
                student_id=str(share.student_id),
                student_name=share.student.name if share.student else None,
                student_share=share.student_share,
                payment_status=share.payment_status.value,
                payment_id=str(share.payment_id) if share.payment_id else None,
                order_id=share.order_id,
                paid_at=share.paid_at,
            )
            for share in bill.shares
        ],
    )


def _get_room(db: Session, room_id: UUID) -> Room:
    room = db.query(Room).filter(Room.id == room_id).first()
    if not room:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Room not found")
    return room


def _room_taken(db: Session, room_number: str, gender: str, category: str, exclude_id: Optional[UUID] = None) -> bool:
    query = db.query(Room).filter(
        Room.room_number == room_number,
        Room.gender == gender,
        Room.category == category,
    )
    if exclude_id:
        query = query.filter(Room.id != exclude_id)
    return query.first() is not None


@router.get("", response_model=List[RoomResponse])
async def list_rooms(
    gender: Optional[str] = None,
    category: Optional[str] = None,
    current_user: CurrentUser = Depends(view_rooms),
    db: Session = Depends(get_db),
):
    """List rooms with their current occupancy"""
    query = db.query(Room)
    if gender:
        query = query.filter(Room.gender == gender)
    if category:
        query = query.filter(Room.category == category)
    rooms = query.order_by(Room.gender, Room.category, Room.room_number).all()

    counts = {
        (number, g, c): n
        for number, g, c, n in db.query(
            Student.room_number, Student.gender, Student.category, func.count(Student.id)
        )
        .filter(Student.room_number.isnot(None), Student.is_active.is_(True))
        .group_by(Student.room_number, Student.gender, Student.category)
        .all()
    }
    return [_room_response(r, counts.get((r.room_number, r.gender, r.category), 0)) for r in rooms]


@router.post("", response_model=RoomResponse, status_code=status.HTTP_201_CREATED)
async def create_room(
    data: RoomCreate,
    current_user: CurrentUser = Depends(manage_rooms),
    db: Session = Depends(get_db),
):
    """Create a room"""
    if _room_taken(db, data.room_number, data.gender, data.category):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Room already exists")

    room = Room(**data.model_dump())
    db.add(room)
    db.commit()
    db.refresh(room)
    return _room_response(room)


@router.put("/{room_id}", response_model=RoomResponse)
async def update_room(
    room_id: UUID,
    data: RoomUpdate,
    current_user: CurrentUser = Depends(manage_rooms),
    db: Session = Depends(get_db),
):
    """Update a room"""
    room = _get_room(db, room_id)
    update_data = data.model_dump(exclude_unset=True)

    number = update_data.get("room_number", room.room_number)
    category = update_data.get("category", room.category)
    if _room_taken(db, number, room.gender, category, exclude_id=room.id):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Room already exists")

    for field, value in update_data.items():
        setattr(room, field, value)

    db.commit()
    db.refresh(room)
    return _room_response(room, len(billing_service.room_students(db, room)))


@router.delete("/{room_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_room(
    room_id: UUID,
    current_user: CurrentUser = Depends(manage_rooms),
    db: Session = Depends(get_db),
):
    """Delete a room and its bills"""
    room = _get_room(db, room_id)
    db.delete(room)
    db.commit()
    return None


@router.get("/{room_id}/students", response_model=List[RoomStudent])
async def get_room_students(
    room_id: UUID,
    current_user: CurrentUser = Depends(view_rooms),
    db: Session = Depends(get_db),
):
    """Students allotted to a room"""
    room = _get_room(db, room_id)
    return [
        RoomStudent(id=str(s.id), name=s.name, roll_number=s.roll_number, year=s.year, phone=s.phone)
        for s in billing_service.room_students(db, room)
    ]


@router.get("/{room_id}/electricity-bills", response_model=List[ElectricityBillResponse])
async def get_room_bills(
    room_id: UUID,
    current_user: CurrentUser = Depends(view_rooms),
    db: Session = Depends(get_db),
):
    """A room's electricity bills, newest month first"""
    room = _get_room(db, room_id)
    bills = (
        db.query(ElectricityBill)
        .filter(ElectricityBill.room_id == room.id)
        .order_by(ElectricityBill.month.desc())
        .all()
    )
    return [_bill_response(b) for b in bills]


@router.post("/{room_id}/electricity-bill", response_model=ElectricityBillResponse, status_code=status.HTTP_201_CREATED)
async def generate_bill(
    room_id: UUID,
    data: GenerateBillRequest,
    current_user: CurrentUser = Depends(manage_rooms),
    db: Session = Depends(get_db),
):
    """Generate a month's bill and split it across the room's students"""
    room = _get_room(db, room_id)
    try:
        bill = billing_service.generate_bill(
            db, room, data.month, data.end_units, start_units=data.start_units, rate=data.rate,
        )
    except billing_service.BillConflict as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except billing_service.BillingError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return _bill_response(bill)


@student_router.get("/student/electricity-bills", response_model=List[StudentBillResponse])
async def get_my_bills(
    current_user: CurrentUser = Depends(get_current_student),
    db: Session = Depends(get_db),
):
    """The current student's bill shares, newest month first"""
    shares = (
        db.query(BillShare)
        .join(ElectricityBill, BillShare.bill_id == ElectricityBill.id)
        .filter(BillShare.student_id == current_user.id)
        .order_by(ElectricityBill.month.desc())
        .all()
    )
    return [
        StudentBillResponse(
            bill_id=str(share.id),
            room_id=str(share.bill.room_id),
            room_number=share.bill.room.room_number,
            month=share.bill.month,
            start_units=share.bill.start_units,
            end_units=share.bill.end_units,
            consumption=share.bill.consumption,
            rate=share.bill.rate,
            total=share.bill.total,
            student_share=share.student_share,
            payment_status=share.payment_status.value,
            payment_id=str(share.payment_id) if share.payment_id else None,
            order_id=share.order_id,
            paid_at=share.paid_at,
        )
        for share in shares
    ]
