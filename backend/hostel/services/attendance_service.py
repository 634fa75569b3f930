"""
Attendance Service
"""
from dataclasses import dataclass
from datetime import date
from typing import Iterable, List, Optional, Tuple
from uuid import UUID
import logging

from sqlalchemy.orm import Query, Session

from hostel.config.roles import Role
from hostel.models.attendance import Attendance
from hostel.models.student import Student

logger = logging.getLogger(__name__)

HOSTEL_GENDERS = {"boys": "Male", "girls": "Female"}


@dataclass(frozen=True)
class Statistics:
    total: int
    morning_present: int
    evening_present: int
    fully_present: int
    partially_present: int
    absent: int


def scope_students(query: Query, user) -> Query:
    """
    Restrict a student query to what a staff account may see.
    Principals see their courses (and branch, when set); wardens see
    their hostel.
    """
    account = user.account
    if user.role == Role.PRINCIPAL.value:
        course_ids = [UUID(c) for c in (account.course_ids or [])]
        query = query.filter(Student.course_id.in_(course_ids))
        if account.branch_id:
            query = query.filter(Student.branch_id == account.branch_id)
    elif user.role == Role.WARDEN.value and account.hostel_type in HOSTEL_GENDERS:
        query = query.filter(Student.gender == HOSTEL_GENDERS[account.hostel_type])
    return query


def list_students(
    db: Session,
    user,
    course_id: Optional[UUID] = None,
    branch_id: Optional[UUID] = None,
    gender: Optional[str] = None,
    room_number: Optional[str] = None,
) -> List[Student]:
    query = scope_students(db.query(Student).filter(Student.is_active.is_(True)), user)
    if course_id:
        query = query.filter(Student.course_id == course_id)
    if branch_id:
        query = query.filter(Student.branch_id == branch_id)
    if gender:
        query = query.filter(Student.gender == gender)
    if room_number:
        query = query.filter(Student.room_number == room_number)
    return query.order_by(Student.room_number, Student.roll_number).all()


def take_attendance(db: Session, user, on: date, records: Iterable) -> Tuple[int, List[Tuple[str, str]]]:
    """
    Upsert attendance marks for a date

    Returns:
        Tuple of (successful count, [(student_id, reason), ...] for failures)
    """
    records = list(records)
    ids = [r.student_id for r in records]
    visible = {
        s.id for s in scope_students(db.query(Student).filter(Student.id.in_(ids)), user).all()
    }
    existing = {
        a.student_id: a
        for a in db.query(Attendance).filter(Attendance.date == on, Attendance.student_id.in_(ids)).all()
    }

    successful = 0
    failed: List[Tuple[str, str]] = []
    for record in records:
        if record.student_id not in visible:
            failed.append((str(record.student_id), "Student not found"))
            continue

        attendance = existing.get(record.student_id)
        if attendance is None:
            attendance = Attendance(student_id=record.student_id, date=on)
            db.add(attendance)
            existing[record.student_id] = attendance

        attendance.morning = record.morning
        attendance.evening = record.evening
        attendance.notes = record.notes
        attendance.taken_by = user.id
        successful += 1

    db.commit()
    logger.info("Attendance for %s: %s saved, %s failed", on, successful, len(failed))
    return successful, failed


def records_between(db: Session, user, start: date, end: date) -> List[Attendance]:
    query = (
        db.query(Attendance)
        .join(Student, Attendance.student_id == Student.id)
        .filter(Attendance.date >= start, Attendance.date <= end)
    )
    query = scope_students(query, user)
    return query.order_by(Attendance.date, Student.roll_number).all()


def statistics(records: List[Attendance], total: Optional[int] = None) -> Statistics:
    """
    Summarise attendance marks. ``total`` is the number of students
    expected; students with no record count as absent.
    """
    total = len(records) if total is None else total
    fully = sum(1 for r in records if r.morning and r.evening)
    partially = sum(1 for r in records if r.morning != r.evening)
    return Statistics(
        total=total,
        morning_present=sum(1 for r in records if r.morning),
        evening_present=sum(1 for r in records if r.evening),
        fully_present=fully,
        partially_present=partially,
        absent=max(total - fully - partially, 0),
    )
