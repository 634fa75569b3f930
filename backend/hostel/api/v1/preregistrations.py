"""
Student Pre-registration API Routes

Prospective students submit their details publicly; staff with student
management review them. Approval creates the student account.
"""
from datetime import datetime
from typing import Optional
from uuid import UUID
import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from hostel.config.permissions import AccessLevel, Permission
from hostel.database import get_db
from hostel.dependencies import CurrentUser, require_section
from hostel.models.course import Branch
from hostel.models.preregistration import PreRegistration, PreRegistrationStatus
from hostel.models.student import Student
from hostel.schemas.preregistration import (
    ApproveRequest,
    PreRegistrationCreate,
    PreRegistrationListResponse,
    PreRegistrationReject,
    PreRegistrationResponse,
)
from hostel.utils.security import hash_password

logger = logging.getLogger(__name__)

router = APIRouter()

view_students = require_section(Permission.STUDENT_MANAGEMENT)
manage_students = require_section(Permission.STUDENT_MANAGEMENT, AccessLevel.FULL)


def _response(prereg: PreRegistration) -> PreRegistrationResponse:
    return PreRegistrationResponse(
        id=str(prereg.id),
        name=prereg.name,
        roll_number=prereg.roll_number,
        gender=prereg.gender,
        category=prereg.category,
        course_id=str(prereg.course_id) if prereg.course_id else None,
        branch_id=str(prereg.branch_id) if prereg.branch_id else None,
        year=prereg.year,
        phone=prereg.phone,
        parent_phone=prereg.parent_phone,
        status=prereg.status.value,
        rejection_reason=prereg.rejection_reason,
        reviewed_at=prereg.reviewed_at,
        created_at=prereg.created_at,
    )


def _get(db: Session, prereg_id: UUID) -> PreRegistration:
    prereg = db.query(PreRegistration).filter(PreRegistration.id == prereg_id).first()
    if not prereg:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Pre-registration not found")
    return prereg


def _get_pending(db: Session, prereg_id: UUID) -> PreRegistration:
    prereg = _get(db, prereg_id)
    if prereg.status != PreRegistrationStatus.PENDING:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Pre-registration already {prereg.status.value}",
        )
    return prereg


@router.post("", response_model=PreRegistrationResponse, status_code=status.HTTP_201_CREATED)
async def submit(data: PreRegistrationCreate, db: Session = Depends(get_db)):
    """Submit a pre-registration (public)"""
    if db.query(Student).filter(Student.roll_number == data.roll_number).first():
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="A student with this roll number already exists")

    pending = db.query(PreRegistration).filter(
        PreRegistration.roll_number == data.roll_number,
        PreRegistration.status == PreRegistrationStatus.PENDING,
    ).first()
    if pending:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="A pre-registration for this roll number is pending")

    if data.branch_id:
        branch = db.query(Branch).filter(Branch.id == data.branch_id).first()
        if branch is None or (data.course_id and branch.course_id != data.course_id):
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Branch does not belong to the selected course")

    prereg = PreRegistration(**data.model_dump())
    db.add(prereg)
    db.commit()
    db.refresh(prereg)
    return _response(prereg)


@router.get("", response_model=PreRegistrationListResponse)
async def list_preregistrations(
    prereg_status: Optional[PreRegistrationStatus] = Query(None, alias="status"),
    current_user: CurrentUser = Depends(view_students),
    db: Session = Depends(get_db),
):
    query = db.query(PreRegistration)
    if prereg_status:
        query = query.filter(PreRegistration.status == prereg_status)
    preregs = query.order_by(PreRegistration.created_at.desc()).all()
    return PreRegistrationListResponse(preregistrations=[_response(p) for p in preregs], total=len(preregs))


@router.get("/{prereg_id}", response_model=PreRegistrationResponse)
async def get_preregistration(
    prereg_id: UUID,
    current_user: CurrentUser = Depends(view_students),
    db: Session = Depends(get_db),
):
    return _response(_get(db, prereg_id))


@router.post("/{prereg_id}/approve", response_model=PreRegistrationResponse)
async def approve(
    prereg_id: UUID,
    data: Optional[ApproveRequest] = None,
    current_user: CurrentUser = Depends(manage_students),
    db: Session = Depends(get_db),
):
    """
    Approve and create the student account

    The initial password is the roll number and must be changed at first login
    """
    prereg = _get_pending(db, prereg_id)
    if db.query(Student).filter(Student.roll_number == prereg.roll_number).first():
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="A student with this roll number already exists")

    student = Student(
        name=prereg.name,
        roll_number=prereg.roll_number,
        password_hash=hash_password(prereg.roll_number),
        gender=prereg.gender,
        category=prereg.category,
        course_id=prereg.course_id,
        branch_id=prereg.branch_id,
        year=prereg.year,
        phone=prereg.phone,
        parent_phone=prereg.parent_phone,
        room_number=data.room_number if data else None,
        requires_password_change=True,
    )
    db.add(student)

    prereg.status = PreRegistrationStatus.APPROVED
    prereg.reviewed_by = current_user.id
    prereg.reviewed_at = datetime.utcnow()
    db.commit()
    db.refresh(prereg)

    logger.info("Approved pre-registration %s as student %s", prereg.id, prereg.roll_number)
    return _response(prereg)


@router.post("/{prereg_id}/reject", response_model=PreRegistrationResponse)
async def reject(
    prereg_id: UUID,
    data: PreRegistrationReject,
    current_user: CurrentUser = Depends(manage_students),
    db: Session = Depends(get_db),
):
    prereg = _get_pending(db, prereg_id)
    prereg.status = PreRegistrationStatus.REJECTED
    prereg.rejection_reason = data.rejection_reason
    prereg.reviewed_by = current_user.id
    prereg.reviewed_at = datetime.utcnow()
    db.commit()
    db.refresh(prereg)
    return _response(prereg)


@router.delete("/{prereg_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete(
    prereg_id: UUID,
    current_user: CurrentUser = Depends(manage_students),
    db: Session = Depends(get_db),
):
    prereg = _get(db, prereg_id)
    db.delete(prereg)
    db.commit()
    return None
