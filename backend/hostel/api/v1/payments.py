"""
Electricity Payment API Routes
"""
import json
import logging
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy.orm import Session

from hostel.config.permissions import Permission
from hostel.database import get_db
from hostel.dependencies import CurrentUser, get_current_student, get_current_user, require_section
from hostel.models.payment import Payment, PaymentStatus
from hostel.schemas.payment import (
    InitiatePaymentRequest,
    InitiatePaymentResponse,
    PaymentListResponse,
    PaymentRecord,
    PaymentStatusResponse,
)
from hostel.services import payment_service, permission_service
from hostel.services.payment_gateway import CashfreeService, GatewayError, get_payment_gateway

logger = logging.getLogger(__name__)

router = APIRouter()


def _status_response(payment: Payment) -> PaymentStatusResponse:
    return PaymentStatusResponse(
        payment_id=str(payment.id),
        order_id=payment.order_id,
        status=payment.status.value,
        amount=payment.amount,
        failure_reason=payment.failure_reason,
        completed_at=payment.completed_at,
    )


def _record(payment: Payment) -> PaymentRecord:
    return PaymentRecord(
        payment_id=str(payment.id),
        order_id=payment.order_id,
        student_id=str(payment.student_id),
        student_name=payment.student.name if payment.student else None,
        roll_number=payment.student.roll_number if payment.student else None,
        room_id=str(payment.room_id),
        amount=payment.amount,
        status=payment.status.value,
        failure_reason=payment.failure_reason,
        gateway_payment_id=payment.gateway_payment_id,
        created_at=payment.created_at,
        completed_at=payment.completed_at,
    )


def _get_visible_payment(db: Session, payment_id: UUID, current_user: CurrentUser) -> Payment:
    """Students see their own payments; staff need payment management"""
    payment = payment_service.get_payment(db, payment_id)

    if payment is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Payment not found")

    if current_user.is_student:
        if payment.student_id != current_user.id:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Payment not found")
    elif not permission_service.has_permission(current_user, Permission.PAYMENT_MANAGEMENT):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Access Restricted: Payment Management")

    return payment


@router.post("/initiate", response_model=InitiatePaymentResponse)
async def initiate_payment(
    data: InitiatePaymentRequest,
    current_user: CurrentUser = Depends(get_current_student),
    db: Session = Depends(get_db),
    gateway: CashfreeService = Depends(get_payment_gateway),
):
    """
    Create a payment session for a bill share

    A pending payment for the same share is returned rather than duplicated
    """
    try:
        payment, created = await payment_service.initiate_payment(
            db, gateway, current_user.account, data.bill_id, data.room_id,
        )
    except payment_service.PaymentNotFound as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except payment_service.PaymentConflict as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except GatewayError as e:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=f"Payment gateway error: {e}")

    return InitiatePaymentResponse(
        payment_id=str(payment.id),
        order_id=payment.order_id,
        amount=payment.amount,
        payment_session_id=payment.payment_session_id,
        payment_url=payment.payment_url,
        reused=not created,
    )


@router.get("/status/{payment_id}", response_model=PaymentStatusResponse)
async def get_payment_status(
    payment_id: UUID,
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
    gateway: CashfreeService = Depends(get_payment_gateway),
):
    """Current payment status; pending payments are checked with the gateway first"""
    payment = _get_visible_payment(db, payment_id, current_user)
    payment = await payment_service.get_status(db, gateway, payment)
    return _status_response(payment)


@router.post("/verify/{payment_id}", response_model=PaymentStatusResponse)
async def verify_payment(
    payment_id: UUID,
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
    gateway: CashfreeService = Depends(get_payment_gateway),
):
    """Force a gateway check, used after returning from checkout"""
    payment = _get_visible_payment(db, payment_id, current_user)
    try:
        payment = await payment_service.refresh_from_gateway(db, gateway, payment.id)
    except GatewayError as e:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=f"Payment gateway error: {e}")
    return _status_response(payment)


@router.delete("/cancel/{payment_id}", response_model=PaymentStatusResponse)
async def cancel_payment(
    payment_id: UUID,
    current_user: CurrentUser = Depends(get_current_student),
    db: Session = Depends(get_db),
    gateway: CashfreeService = Depends(get_payment_gateway),
):
    """Abandon a pending payment; the bill returns to unpaid"""
    payment = _get_visible_payment(db, payment_id, current_user)
    try:
        payment = await payment_service.cancel_payment(db, gateway, payment)
    except payment_service.PaymentConflict as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    return _status_response(payment)


@router.post("/webhook")
async def payment_webhook(
    request: Request,
    db: Session = Depends(get_db),
    gateway: CashfreeService = Depends(get_payment_gateway),
):
    """Gateway payment notification, signed with the merchant secret"""
    raw_body = await request.body()
    timestamp = request.headers.get("x-webhook-timestamp", "")
    signature = request.headers.get("x-webhook-signature", "")

    if not gateway.verify_webhook_signature(raw_body, timestamp, signature):
        logger.warning("Rejected webhook with invalid signature")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid signature")

    try:
        payload = json.loads(raw_body)
    except ValueError:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid payload")

    payment = payment_service.handle_webhook(db, payload)
    return {"received": True, "status": payment.status.value if payment else None}


@router.get("/history", response_model=PaymentListResponse)
async def payment_history(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    current_user: CurrentUser = Depends(get_current_student),
    db: Session = Depends(get_db),
):
    """The current student's payments, newest first"""
    query = db.query(Payment).filter(Payment.student_id == current_user.id)
    total = query.count()
    payments = query.order_by(Payment.created_at.desc()).offset((page - 1) * limit).limit(limit).all()
    return PaymentListResponse(payments=[_record(p) for p in payments], total=total, page=page, limit=limit)


@router.get("/all", response_model=PaymentListResponse)
async def list_payments(
    payment_status: Optional[PaymentStatus] = Query(None, alias="status"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    current_user: CurrentUser = Depends(require_section(Permission.PAYMENT_MANAGEMENT)),
    db: Session = Depends(get_db),
):
    """All payments for the payment records screen"""
    query = db.query(Payment)
    if payment_status:
        query = query.filter(Payment.status == payment_status)
    total = query.count()
    payments = query.order_by(Payment.created_at.desc()).offset((page - 1) * limit).limit(limit).all()
    return PaymentListResponse(payments=[_record(p) for p in payments], total=total, page=page, limit=limit)
