"""
Attendance API Routes
"""
from dataclasses import asdict
from datetime import date
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from hostel.config.permissions import AccessLevel, Permission
from hostel.database import get_db
from hostel.dependencies import CurrentUser, require_section
from hostel.models.attendance import Attendance
from hostel.schemas.attendance import (
    AttendanceDateResponse,
    AttendanceEntry,
    AttendanceRangeResponse,
    AttendanceStatistics,
    AttendanceStudent,
    FailedRecord,
    TakeAttendanceRequest,
    TakeAttendanceResponse,
)
from hostel.services import attendance_service

router = APIRouter()

view_attendance = require_section(Permission.ATTENDANCE_MANAGEMENT)
take_attendance = require_section(Permission.ATTENDANCE_MANAGEMENT, AccessLevel.FULL)

MAX_RANGE_DAYS = 93


def _entry(record: Attendance) -> AttendanceEntry:
    return AttendanceEntry(
        student_id=str(record.student_id),
        name=record.student.name,
        roll_number=record.student.roll_number,
        room_number=record.student.room_number,
        date=record.date,
        morning=record.morning,
        evening=record.evening,
        status=record.status,
        notes=record.notes,
    )


@router.get("/students", response_model=List[AttendanceStudent])
async def get_students(
    on: Optional[date] = Query(None, alias="date"),
    course_id: Optional[UUID] = Query(None, alias="course"),
    branch_id: Optional[UUID] = Query(None, alias="branch"),
    gender: Optional[str] = None,
    room_number: Optional[str] = None,
    current_user: CurrentUser = Depends(view_attendance),
    db: Session = Depends(get_db),
):
    """Attendance sheet: students in scope, with marks already taken for the date"""
    students = attendance_service.list_students(
        db, current_user, course_id=course_id, branch_id=branch_id, gender=gender, room_number=room_number,
    )
    marks = {}
    if on and students:
        marks = {
            a.student_id: a
            for a in db.query(Attendance).filter(
                Attendance.date == on, Attendance.student_id.in_([s.id for s in students])
            ).all()
        }

    return [
        AttendanceStudent(
            id=str(s.id),
            name=s.name,
            roll_number=s.roll_number,
            room_number=s.room_number,
            gender=s.gender,
            year=s.year,
            morning=marks[s.id].morning if s.id in marks else None,
            evening=marks[s.id].evening if s.id in marks else None,
        )
        for s in students
    ]


@router.post("/take", response_model=TakeAttendanceResponse)
async def take(
    data: TakeAttendanceRequest,
    current_user: CurrentUser = Depends(take_attendance),
    db: Session = Depends(get_db),
):
    """Save morning/evening marks; existing marks for the date are replaced"""
    if data.date > date.today():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Cannot take attendance for a future date")

    successful, failed = attendance_service.take_attendance(db, current_user, data.date, data.records)
    return TakeAttendanceResponse(
        date=data.date,
        successful=successful,
        failed=[FailedRecord(student_id=sid, reason=reason) for sid, reason in failed],
    )


@router.get("/date", response_model=AttendanceDateResponse)
async def get_by_date(
    on: date = Query(..., alias="date"),
    current_user: CurrentUser = Depends(view_attendance),
    db: Session = Depends(get_db),
):
    """Marks for one day; students without marks count as absent"""
    records = attendance_service.records_between(db, current_user, on, on)
    total = len(attendance_service.list_students(db, current_user))
    stats = attendance_service.statistics(records, total=max(total, len(records)))
    return AttendanceDateResponse(
        date=on,
        records=[_entry(r) for r in records],
        statistics=AttendanceStatistics(**asdict(stats)),
    )


@router.get("/range", response_model=AttendanceRangeResponse)
async def get_by_range(
    start_date: date,
    end_date: date,
    current_user: CurrentUser = Depends(view_attendance),
    db: Session = Depends(get_db),
):
    """Marks between two dates, inclusive"""
    if end_date < start_date:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="end_date must not be before start_date")
    if (end_date - start_date).days >= MAX_RANGE_DAYS:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Range is limited to {MAX_RANGE_DAYS} days")

    records = attendance_service.records_between(db, current_user, start_date, end_date)
    stats = attendance_service.statistics(records)
    return AttendanceRangeResponse(
        start_date=start_date,
        end_date=end_date,
        records=[_entry(r) for r in records],
        statistics=AttendanceStatistics(**asdict(stats)),
    )
