"""
Electricity bill payment lifecycle

A payment moves pending -> success | failed | cancelled exactly once.
Terminal payments are never touched again, so late or repeated gateway
results are no-ops.
"""
from datetime import datetime, timedelta
from typing import Optional, Tuple
from uuid import UUID
import logging
import secrets
import time

from sqlalchemy.orm import Session

from hostel.models.payment import Payment, PaymentStatus
from hostel.models.room import BillShare, ShareStatus
from hostel.models.student import Student
from hostel.services.payment_gateway import CashfreeService, GatewayError, GatewayResult, map_gateway_result

logger = logging.getLogger(__name__)


class PaymentError(Exception):
    """Payment request rejected"""


class PaymentNotFound(PaymentError):
    pass


class PaymentConflict(PaymentError):
    pass


def build_order_id(share: BillShare) -> str:
    """Merchant order id: ELEC_<share>_<epoch millis><nonce>"""
    return f"ELEC_{share.id.hex[:12]}_{int(time.time() * 1000)}{secrets.token_hex(2)}"


def _lock_payment(db: Session, payment_id: UUID) -> Optional[Payment]:
    """Lock the payment row and reload it over any copy already in the session"""
    return db.query(Payment).filter(Payment.id == payment_id).with_for_update().populate_existing().first()


def get_payment(db: Session, payment_id: UUID) -> Optional[Payment]:
    return db.query(Payment).filter(Payment.id == payment_id).first()


def find_pending_payment(db: Session, share_id: UUID) -> Optional[Payment]:
    return (
        db.query(Payment)
        .filter(Payment.share_id == share_id, Payment.status == PaymentStatus.PENDING)
        .order_by(Payment.created_at.desc())
        .first()
    )


async def initiate_payment(
    db: Session,
    gateway: CashfreeService,
    student: Student,
    share_id: UUID,
    room_id: UUID,
) -> Tuple[Payment, bool]:
    """
    Start paying a bill share

    Returns:
        Tuple of (payment, created). An existing pending payment for the
        share is returned instead of creating a second order.
    """
    share = (
        db.query(BillShare)
        .filter(BillShare.id == share_id, BillShare.student_id == student.id)
        .with_for_update()
        .populate_existing()
        .first()
    )
    if share is None or share.bill.room_id != room_id:
        raise PaymentNotFound("Bill not found")

    if share.payment_status == ShareStatus.PAID:
        raise PaymentConflict("Bill already paid")

    existing = find_pending_payment(db, share.id)
    if existing is not None:
        logger.info("Reusing pending payment %s for share %s", existing.order_id, share.id)
        return existing, False

    order_id = build_order_id(share)
    order = await gateway.create_order(
        order_id=order_id,
        amount=share.student_share,
        customer_id=str(student.id),
        customer_name=student.name,
        customer_phone=student.phone,
    )

    payment = Payment(
        share_id=share.id,
        student_id=student.id,
        room_id=room_id,
        amount=share.student_share,
        order_id=order_id,
        payment_session_id=order.get("payment_session_id"),
        payment_url=order.get("payment_link"),
        status=PaymentStatus.PENDING,
    )
    db.add(payment)
    db.flush()

    share.payment_status = ShareStatus.PENDING
    share.payment_id = payment.id
    share.order_id = order_id
    db.commit()
    db.refresh(payment)

    logger.info("Initiated payment %s for share %s (%s)", order_id, share.id, payment.amount)
    return payment, True


def apply_gateway_result(db: Session, payment: Payment, result: GatewayResult) -> bool:
    """
    Apply a gateway outcome to a payment and its bill share

    Returns:
        True if the payment changed state
    """
    if payment.status.is_terminal or result.status == PaymentStatus.PENDING:
        return False

    now = datetime.utcnow()
    payment.status = result.status
    payment.failure_reason = result.failure_reason
    payment.gateway_payment_id = result.gateway_payment_id or payment.gateway_payment_id
    payment.completed_at = now

    share = payment.share
    if share is not None and share.payment_id == payment.id:
        if result.status == PaymentStatus.SUCCESS:
            share.payment_status = ShareStatus.PAID
            share.paid_at = now
        elif share.payment_status != ShareStatus.PAID:
            share.payment_status = ShareStatus.UNPAID

    db.commit()
    logger.info("Payment %s is now %s", payment.order_id, result.status.value)
    return True


async def refresh_from_gateway(db: Session, gateway: CashfreeService, payment_id: UUID) -> Optional[Payment]:
    """
    Ask the gateway about a pending payment and apply any terminal result

    Raises:
        GatewayError: gateway unreachable
    """
    payment = get_payment(db, payment_id)
    if payment is None or payment.status.is_terminal:
        return payment

    result = await gateway.fetch_result(payment.order_id)

    payment = _lock_payment(db, payment_id)
    apply_gateway_result(db, payment, result)
    db.refresh(payment)
    return payment


async def get_status(db: Session, gateway: CashfreeService, payment: Payment) -> Payment:
    """Payment status, refreshed from the gateway while pending"""
    if payment.status.is_terminal:
        return payment
    try:
        return await refresh_from_gateway(db, gateway, payment.id)
    except GatewayError as e:
        logger.warning("Status check for %s kept local state: %s", payment.order_id, e)
        return payment


async def cancel_payment(db: Session, gateway: CashfreeService, payment: Payment) -> Payment:
    """
    Abandon a pending payment. The gateway order is terminated on a best
    effort basis; the local cancel stands either way.
    """
    payment = _lock_payment(db, payment.id)
    if payment.status.is_terminal:
        raise PaymentConflict(f"Payment already {payment.status.value}")

    try:
        await gateway.terminate_order(payment.order_id)
    except GatewayError as e:
        logger.warning("Could not terminate order %s: %s", payment.order_id, e)

    apply_gateway_result(
        db,
        payment,
        GatewayResult(PaymentStatus.CANCELLED, failure_reason="Payment cancelled by user"),
    )
    db.refresh(payment)
    return payment


def handle_webhook(db: Session, payload: dict) -> Optional[Payment]:
    """
    Apply a gateway webhook event

    Returns:
        The payment the event referred to, or None if unknown
    """
    data = payload.get("data") or {}
    order_id = (data.get("order") or {}).get("order_id")
    payment_data = data.get("payment") or {}
    if not order_id:
        return None

    payment = (
        db.query(Payment)
        .filter(Payment.order_id == order_id)
        .with_for_update()
        .populate_existing()
        .first()
    )
    if payment is None:
        logger.warning("Webhook for unknown order %s", order_id)
        return None

    result = map_gateway_result({}, [payment_data])
    if not apply_gateway_result(db, payment, result):
        logger.debug("Webhook for %s ignored (status %s)", order_id, payment.status.value)
    return payment


async def expire_payment(db: Session, gateway: CashfreeService, payment: Payment) -> bool:
    """
    Expire an abandoned payment

    The gateway order is terminated first so it can no longer be paid. When
    the gateway refuses (e.g. the order was paid in the meantime) its own
    outcome is applied instead, and the payment stays pending if there is
    none yet.

    Returns:
        True if the payment was expired
    """
    try:
        await gateway.terminate_order(payment.order_id)
    except GatewayError as e:
        logger.warning("Could not terminate abandoned order %s: %s", payment.order_id, e)
        try:
            result = await gateway.fetch_result(payment.order_id)
        except GatewayError as e:
            logger.warning("Expiry of %s postponed: %s", payment.order_id, e)
            return False
        apply_gateway_result(db, _lock_payment(db, payment.id), result)
        return False

    return apply_gateway_result(
        db,
        _lock_payment(db, payment.id),
        GatewayResult(PaymentStatus.FAILED, failure_reason="Payment session expired"),
    )


async def reconcile_pending(
    db: Session,
    gateway: CashfreeService,
    older_than: timedelta,
    expire_after: timedelta,
) -> dict:
    """
    Check stale pending payments against the gateway and expire abandoned ones

    Returns:
        Counts of checked, updated and expired payments
    """
    now = datetime.utcnow()
    stale = (
        db.query(Payment)
        .filter(Payment.status == PaymentStatus.PENDING, Payment.created_at <= now - older_than)
        .all()
    )

    checked = updated = expired = 0
    for payment in stale:
        checked += 1
        try:
            refreshed = await refresh_from_gateway(db, gateway, payment.id)
        except GatewayError as e:
            logger.warning("Reconcile skipped %s: %s", payment.order_id, e)
            refreshed = payment

        if refreshed.status.is_terminal:
            updated += 1
            continue

        if refreshed.created_at <= now - expire_after:
            if await expire_payment(db, gateway, refreshed):
                expired += 1
            elif refreshed.status.is_terminal:
                updated += 1

    return {"checked": checked, "updated": updated, "expired": expired}
