"""
Leave Service

Leave requests, parent OTP approval, QR viewing and gate scans.

Every gate scan locks the leave row and re-checks the visit rules before
recording anything. A rejected scan never changes the leave.
"""
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional
from uuid import UUID
import logging

from sqlalchemy.orm import Session

from hostel.config import settings
from hostel.models.leave import Leave, LeaveStatus, LeaveVisit, VisitType
from hostel.models.student import Student
from hostel.utils.security import generate_otp, otp_matches

logger = logging.getLogger(__name__)


class LeaveError(Exception):
    """Leave request rejected"""

    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class ScanRejected(LeaveError):
    """A gate scan refused by the visit rules; carries the earlier scan time"""

    def __init__(self, message: str, status_code: int = 403, scanned_at: Optional[datetime] = None):
        super().__init__(message, status_code)
        self.scanned_at = scanned_at


class QRLocked(LeaveError):
    def __init__(self, message: str = "QR code view limit reached"):
        super().__init__(message, 403)


@dataclass(frozen=True)
class ScanResult:
    leave: Leave
    visit: LeaveVisit


def _mask_phone(phone: Optional[str]) -> str:
    if not phone:
        return "-"
    return f"{'*' * max(len(phone) - 4, 0)}{phone[-4:]}"


def create_leave(db: Session, student: Student, start_date: datetime, end_date: datetime, reason: str) -> Leave:
    """
    Create a leave request awaiting parent OTP verification.
    The OTP goes to the parent's phone; the warden enters it to approve.
    """
    overlapping = (
        db.query(Leave)
        .filter(
            Leave.student_id == student.id,
            Leave.status != LeaveStatus.REJECTED,
            Leave.start_date <= end_date,
            Leave.end_date >= start_date,
        )
        .first()
    )
    if overlapping:
        raise LeaveError("You already have a leave request for these dates", 409)

    leave = Leave(
        student_id=student.id,
        start_date=start_date,
        end_date=end_date,
        reason=reason,
        status=LeaveStatus.PENDING_OTP,
        otp_code=generate_otp(),
        qr_available_from=start_date - timedelta(minutes=settings.LEAVE_QR_AVAILABLE_BEFORE_MINUTES),
        max_visits=settings.LEAVE_MAX_OUTGOING_VISITS,
    )
    db.add(leave)
    db.commit()
    db.refresh(leave)

    logger.info("Leave %s created, OTP issued to parent %s", leave.id, _mask_phone(student.parent_phone))
    return leave


def verify_otp(db: Session, leave: Leave, otp: str, approved_by: UUID) -> Leave:
    """Approve a pending leave when the parent's OTP matches"""
    if leave.status != LeaveStatus.PENDING_OTP:
        raise LeaveError(f"Leave is already {leave.status.value.lower()}")

    if not otp_matches(leave.otp_code, otp):
        raise LeaveError("Invalid OTP")

    leave.status = LeaveStatus.APPROVED
    leave.approved_by = approved_by
    leave.approved_at = datetime.utcnow()
    leave.otp_code = None
    db.commit()
    db.refresh(leave)

    logger.info("Leave %s approved", leave.id)
    return leave


def reject_leave(db: Session, leave: Leave, reason: str, rejected_by: UUID) -> Leave:
    if leave.status != LeaveStatus.PENDING_OTP:
        raise LeaveError(f"Leave is already {leave.status.value.lower()}")

    leave.status = LeaveStatus.REJECTED
    leave.rejection_reason = reason
    leave.approved_by = rejected_by
    leave.otp_code = None
    db.commit()
    db.refresh(leave)
    return leave


def qr_window_open(leave: Leave, now: Optional[datetime] = None) -> bool:
    """The QR can be shown from ``qr_available_from`` until the leave ends"""
    now = now or datetime.utcnow()
    available_from = leave.qr_available_from or leave.start_date
    return available_from <= now <= leave.end_date


def record_qr_view(db: Session, leave_id: UUID, now: Optional[datetime] = None) -> Leave:
    """
    Count one QR view. The view that reaches ``QR_VIEW_LIMIT`` still
    succeeds; later views are refused.
    """
    leave = db.query(Leave).filter(Leave.id == leave_id).with_for_update().first()

    if leave.status != LeaveStatus.APPROVED:
        raise LeaveError("QR code is only available for approved leave")
    if not qr_window_open(leave, now):
        raise LeaveError("QR code is not available at this time")
    if leave.qr_locked:
        raise QRLocked()

    leave.qr_view_count += 1
    if leave.qr_view_count >= settings.QR_VIEW_LIMIT:
        leave.qr_locked = True
    db.commit()
    db.refresh(leave)
    return leave


def record_scan(
    db: Session,
    leave_id: UUID,
    visit_type: VisitType,
    location: Optional[str] = None,
    scanned_by: Optional[str] = None,
    now: Optional[datetime] = None,
) -> ScanResult:
    """
    Record a gate scan.

    Raises:
        LeaveError: unknown leave (404) or leave not approved (400)
        ScanRejected: the visit rules refuse the scan
    """
    now = now or datetime.utcnow()
    leave = db.query(Leave).filter(Leave.id == leave_id).with_for_update().first()

    if leave is None:
        raise LeaveError("Leave not found", 404)
    if leave.status != LeaveStatus.APPROVED:
        raise LeaveError("Leave is not approved")

    last = leave.last_visit(visit_type)
    last_at = last.scanned_at if last else None

    if leave.visit_locked:
        raise ScanRejected("QR code is locked", scanned_at=last_at)

    if last_at and now - last_at < timedelta(seconds=settings.QR_SCAN_LOCKOUT_SECONDS):
        raise ScanRejected("QR already scanned", scanned_at=last_at)

    if visit_type == VisitType.OUTGOING:
        if leave.outgoing_visit_count >= leave.max_visits:
            raise ScanRejected("Maximum outgoing visits reached", scanned_at=last_at)
    else:
        if leave.incoming_visit_count >= 1:
            raise ScanRejected("Incoming visit already recorded", scanned_at=last_at)
        if leave.outgoing_visit_count < 1:
            raise LeaveError("No outgoing visit recorded for this leave")

    visit = LeaveVisit(visit_type=visit_type, scanned_at=now, location=location, scanned_by=scanned_by)
    leave.visits.append(visit)
    if visit_type == VisitType.OUTGOING:
        leave.outgoing_visit_count += 1
    else:
        leave.incoming_visit_count += 1
        leave.visit_locked = True

    db.commit()
    db.refresh(leave)

    logger.info("Recorded %s scan for leave %s at %s", visit_type.value, leave.id, location or "-")
    return ScanResult(leave=leave, visit=visit)
