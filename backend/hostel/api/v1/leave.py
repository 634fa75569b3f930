"""
Leave API Routes

Student requests, admin OTP approval, and the public gate scan endpoints
used by security devices.
"""
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from hostel.config import settings
from hostel.config.permissions import AccessLevel, Permission
from hostel.database import get_db
from hostel.dependencies import CurrentUser, get_current_student, require_section
from hostel.models.leave import Leave, LeaveStatus, VisitType
from hostel.models.student import Student
from hostel.rate_limit import limiter
from hostel.schemas.leave import (
    LeaveCreate,
    LeaveResponse,
    QRViewResponse,
    RejectRequest,
    ScanRequest,
    ScanResponse,
    StudentSummary,
    VerifyOtpRequest,
    VisitResponse,
)
from hostel.services import leave_service

router = APIRouter()
admin_router = APIRouter()


def student_summary(student: Optional[Student]) -> Optional[StudentSummary]:
    if student is None:
        return None
    return StudentSummary(
        id=str(student.id),
        name=student.name,
        roll_number=student.roll_number,
        room_number=student.room_number,
        phone=student.phone,
        parent_phone=student.parent_phone,
    )


def leave_response(leave: Leave) -> LeaveResponse:
    return LeaveResponse(
        id=str(leave.id),
        student=student_summary(leave.student),
        start_date=leave.start_date,
        end_date=leave.end_date,
        number_of_days=leave.number_of_days,
        reason=leave.reason,
        status=leave.status.value,
        rejection_reason=leave.rejection_reason,
        approved_at=leave.approved_at,
        qr_available_from=leave.qr_available_from,
        qr_view_count=leave.qr_view_count,
        qr_locked=leave.qr_locked,
        outgoing_visit_count=leave.outgoing_visit_count,
        incoming_visit_count=leave.incoming_visit_count,
        max_visits=leave.max_visits,
        visit_locked=leave.visit_locked,
        visits=[
            VisitResponse(
                visit_type=v.visit_type.value,
                scanned_at=v.scanned_at,
                location=v.location,
                scanned_by=v.scanned_by,
            )
            for v in leave.visits
        ],
        created_at=leave.created_at,
    )


def _get_leave(db: Session, leave_id: UUID) -> Leave:
    leave = db.query(Leave).filter(Leave.id == leave_id).first()
    if not leave:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Leave not found")
    return leave


def _scan(db: Session, leave_id: UUID, visit_type: VisitType, data: Optional[ScanRequest]):
    data = data or ScanRequest()
    try:
        result = leave_service.record_scan(
            db, leave_id, visit_type, location=data.location, scanned_by=data.scanned_by,
        )
    except leave_service.ScanRejected as e:
        return JSONResponse(
            status_code=e.status_code,
            content={
                "message": e.message,
                "scanned_at": e.scanned_at.isoformat() if e.scanned_at else None,
                "leave_id": str(leave_id),
            },
        )
    except leave_service.LeaveError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)

    label = "Outgoing" if visit_type == VisitType.OUTGOING else "Incoming"
    return ScanResponse(
        message=f"{label} visit recorded",
        visit_type=visit_type.value,
        scanned_at=result.visit.scanned_at,
        leave=leave_response(result.leave),
    )


@router.post("/create", response_model=LeaveResponse, status_code=status.HTTP_201_CREATED)
async def create_leave(
    data: LeaveCreate,
    current_user: CurrentUser = Depends(get_current_student),
    db: Session = Depends(get_db),
):
    """Request leave; approval needs the OTP sent to the parent"""
    try:
        leave = leave_service.create_leave(db, current_user.account, data.start_date, data.end_date, data.reason)
    except leave_service.LeaveError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return leave_response(leave)


@router.get("/my-requests", response_model=List[LeaveResponse])
async def my_requests(
    current_user: CurrentUser = Depends(get_current_student),
    db: Session = Depends(get_db),
):
    leaves = (
        db.query(Leave)
        .filter(Leave.student_id == current_user.id)
        .order_by(Leave.created_at.desc())
        .all()
    )
    return [leave_response(leave) for leave in leaves]


@router.post("/qr-view/{leave_id}", response_model=QRViewResponse)
async def view_qr(
    leave_id: UUID,
    current_user: CurrentUser = Depends(get_current_student),
    db: Session = Depends(get_db),
):
    """
    Reveal the gate QR links for an approved leave

    Each call counts as a view; once the limit is reached the QR locks
    """
    leave = _get_leave(db, leave_id)
    if leave.student_id != current_user.id:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Leave not found")

    try:
        leave = leave_service.record_qr_view(db, leave.id)
    except leave_service.QRLocked as e:
        return JSONResponse(
            status_code=e.status_code,
            content={"message": e.message, "qr_locked": True, "leave_id": str(leave_id)},
        )
    except leave_service.LeaveError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)

    return QRViewResponse(
        qr_url=f"{settings.QR_BASE_URL}/leave/qr/{leave.id}",
        incoming_qr_url=f"{settings.QR_BASE_URL}/leave/incoming-qr/{leave.id}",
        qr_view_count=leave.qr_view_count,
        views_remaining=max(settings.QR_VIEW_LIMIT - leave.qr_view_count, 0),
        qr_locked=leave.qr_locked,
    )


@router.post("/qr/{leave_id}", response_model=ScanResponse)
@limiter.limit(settings.QR_SCAN_RATE_LIMIT)
async def scan_outgoing(
    request: Request,
    leave_id: UUID,
    data: Optional[ScanRequest] = None,
    db: Session = Depends(get_db),
):
    """Outgoing gate scan (public, called by security devices)"""
    return _scan(db, leave_id, VisitType.OUTGOING, data)


@router.post("/incoming-qr/{leave_id}", response_model=ScanResponse)
@limiter.limit(settings.QR_SCAN_RATE_LIMIT)
async def scan_incoming(
    request: Request,
    leave_id: UUID,
    data: Optional[ScanRequest] = None,
    db: Session = Depends(get_db),
):
    """Incoming gate scan (public); locks the leave against further visits"""
    return _scan(db, leave_id, VisitType.INCOMING, data)


@router.get("/{leave_id}", response_model=LeaveResponse)
async def get_leave(leave_id: UUID, db: Session = Depends(get_db)):
    """Leave details with visit history (public, shown to gate staff)"""
    return leave_response(_get_leave(db, leave_id))


@admin_router.get("/all", response_model=List[LeaveResponse])
async def list_leaves(
    leave_status: Optional[LeaveStatus] = Query(None, alias="status"),
    current_user: CurrentUser = Depends(require_section(Permission.LEAVE_MANAGEMENT)),
    db: Session = Depends(get_db),
):
    query = db.query(Leave)
    if leave_status:
        query = query.filter(Leave.status == leave_status)
    return [leave_response(leave) for leave in query.order_by(Leave.created_at.desc()).all()]


@admin_router.post("/verify-otp", response_model=LeaveResponse)
async def verify_otp(
    data: VerifyOtpRequest,
    current_user: CurrentUser = Depends(require_section(Permission.LEAVE_MANAGEMENT, AccessLevel.FULL)),
    db: Session = Depends(get_db),
):
    """Approve a leave with the OTP the parent received"""
    leave = _get_leave(db, data.leave_id)
    try:
        leave = leave_service.verify_otp(db, leave, data.otp, current_user.id)
    except leave_service.LeaveError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return leave_response(leave)


@admin_router.post("/reject", response_model=LeaveResponse)
async def reject_leave(
    data: RejectRequest,
    current_user: CurrentUser = Depends(require_section(Permission.LEAVE_MANAGEMENT, AccessLevel.FULL)),
    db: Session = Depends(get_db),
):
    leave = _get_leave(db, data.leave_id)
    try:
        leave = leave_service.reject_leave(db, leave, data.rejection_reason, current_user.id)
    except leave_service.LeaveError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return leave_response(leave)
