"""
Outpass API Routes
"""
from datetime import date
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from hostel.api.v1.leave import student_summary
from hostel.config import settings
from hostel.config.permissions import AccessLevel, Permission
from hostel.database import get_db
from hostel.dependencies import CurrentUser, get_current_student, require_section
from hostel.models.outpass import Outpass, OutpassStatus
from hostel.schemas.leave import OutpassCreate, OutpassReject, OutpassResponse, QRViewResponse

router = APIRouter()
admin_router = APIRouter()


def outpass_response(outpass: Outpass) -> OutpassResponse:
    return OutpassResponse(
        id=str(outpass.id),
        student=student_summary(outpass.student),
        date_of_outpass=outpass.date_of_outpass,
        out_time=outpass.out_time,
        in_time=outpass.in_time,
        reason=outpass.reason,
        status=outpass.status.value,
        rejection_reason=outpass.rejection_reason,
        qr_view_count=outpass.qr_view_count,
        qr_locked=outpass.qr_locked,
        created_at=outpass.created_at,
    )


def _get_outpass(db: Session, outpass_id: UUID) -> Outpass:
    outpass = db.query(Outpass).filter(Outpass.id == outpass_id).first()
    if not outpass:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Outpass not found")
    return outpass


def _get_pending(db: Session, outpass_id: UUID) -> Outpass:
    outpass = _get_outpass(db, outpass_id)
    if outpass.status != OutpassStatus.PENDING:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Outpass is already {outpass.status.value.lower()}",
        )
    return outpass


@router.post("/create", response_model=OutpassResponse, status_code=status.HTTP_201_CREATED)
async def create_outpass(
    data: OutpassCreate,
    current_user: CurrentUser = Depends(get_current_student),
    db: Session = Depends(get_db),
):
    """Request a same-day outpass"""
    if data.date_of_outpass < date.today():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Outpass date is in the past")

    outpass = Outpass(
        student_id=current_user.id,
        date_of_outpass=data.date_of_outpass,
        out_time=data.out_time,
        in_time=data.in_time,
        reason=data.reason,
    )
    db.add(outpass)
    db.commit()
    db.refresh(outpass)
    return outpass_response(outpass)


@router.get("/my-requests", response_model=List[OutpassResponse])
async def my_requests(
    current_user: CurrentUser = Depends(get_current_student),
    db: Session = Depends(get_db),
):
    outpasses = (
        db.query(Outpass)
        .filter(Outpass.student_id == current_user.id)
        .order_by(Outpass.created_at.desc())
        .all()
    )
    return [outpass_response(o) for o in outpasses]


@router.post("/qr-view/{outpass_id}", response_model=QRViewResponse)
async def view_qr(
    outpass_id: UUID,
    current_user: CurrentUser = Depends(get_current_student),
    db: Session = Depends(get_db),
):
    """Reveal the outpass QR link; counts towards the view limit"""
    outpass = db.query(Outpass).filter(Outpass.id == outpass_id).with_for_update().first()
    if not outpass or outpass.student_id != current_user.id:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Outpass not found")

    if outpass.status != OutpassStatus.APPROVED:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="QR code is only available for approved outpasses")
    if outpass.date_of_outpass < date.today():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Outpass has expired")
    if outpass.qr_locked:
        return JSONResponse(
            status_code=status.HTTP_403_FORBIDDEN,
            content={"message": "QR code view limit reached", "qr_locked": True, "outpass_id": str(outpass.id)},
        )

    outpass.qr_view_count += 1
    if outpass.qr_view_count >= settings.QR_VIEW_LIMIT:
        outpass.qr_locked = True
    db.commit()

    return QRViewResponse(
        qr_url=f"{settings.QR_BASE_URL}/outpass/qr/{outpass.id}",
        qr_view_count=outpass.qr_view_count,
        views_remaining=max(settings.QR_VIEW_LIMIT - outpass.qr_view_count, 0),
        qr_locked=outpass.qr_locked,
    )


@router.get("/{outpass_id}", response_model=OutpassResponse)
async def get_outpass(outpass_id: UUID, db: Session = Depends(get_db)):
    """Outpass details (public, shown to gate staff)"""
    return outpass_response(_get_outpass(db, outpass_id))


@admin_router.get("/all", response_model=List[OutpassResponse])
async def list_outpasses(
    outpass_status: Optional[OutpassStatus] = Query(None, alias="status"),
    current_user: CurrentUser = Depends(require_section(Permission.OUTPASS_MANAGEMENT)),
    db: Session = Depends(get_db),
):
    query = db.query(Outpass)
    if outpass_status:
        query = query.filter(Outpass.status == outpass_status)
    return [outpass_response(o) for o in query.order_by(Outpass.created_at.desc()).all()]


@admin_router.post("/{outpass_id}/approve", response_model=OutpassResponse)
async def approve_outpass(
    outpass_id: UUID,
    current_user: CurrentUser = Depends(require_section(Permission.OUTPASS_MANAGEMENT, AccessLevel.FULL)),
    db: Session = Depends(get_db),
):
    outpass = _get_pending(db, outpass_id)
    outpass.status = OutpassStatus.APPROVED
    outpass.approved_by = current_user.id
    db.commit()
    db.refresh(outpass)
    return outpass_response(outpass)


@admin_router.post("/{outpass_id}/reject", response_model=OutpassResponse)
async def reject_outpass(
    outpass_id: UUID,
    data: OutpassReject,
    current_user: CurrentUser = Depends(require_section(Permission.OUTPASS_MANAGEMENT, AccessLevel.FULL)),
    db: Session = Depends(get_db),
):
    outpass = _get_pending(db, outpass_id)
    outpass.status = OutpassStatus.REJECTED
    outpass.rejection_reason = data.rejection_reason
    outpass.approved_by = current_user.id
    db.commit()
    db.refresh(outpass)
    return outpass_response(outpass)
