"""
Celery tasks for payment reconciliation

Stale pending payments are checked against the gateway. Abandoned ones are
expired so the bill can be paid again.
"""
from datetime import timedelta
import asyncio
import logging

from celery.exceptions import SoftTimeLimitExceeded

from hostel.celery_app import celery_app
from hostel.config import settings
from hostel.database import SessionLocal
from hostel.services import payment_service
from hostel.services.payment_gateway import cashfree_service

logger = logging.getLogger(__name__)


def get_celery_db():
    """Get database session for Celery tasks (direct, not a generator)"""
    return SessionLocal()


@celery_app.task(bind=True, max_retries=3)
def reconcile_pending_payments(self):
    """
    Check stale pending payments with the gateway and expire abandoned ones

    Returns:
        Counts of checked, updated and expired payments
    """
    db = get_celery_db()
    try:
        counts = asyncio.run(
            payment_service.reconcile_pending(
                db,
                cashfree_service,
                older_than=timedelta(seconds=settings.PAYMENT_RECONCILE_AFTER_SECONDS),
                expire_after=timedelta(minutes=settings.PAYMENT_EXPIRY_MINUTES),
            )
        )
        if counts["checked"]:
            logger.info(
                "Reconciled payments: %s checked, %s updated, %s expired",
                counts["checked"], counts["updated"], counts["expired"],
            )
        return counts
    except SoftTimeLimitExceeded:
        logger.warning("Payment reconciliation hit the soft time limit")
        db.rollback()
        raise
    except Exception as e:
        logger.error("Payment reconciliation failed: %s", e)
        db.rollback()
        raise self.retry(exc=e, countdown=60 * (2 ** self.request.retries))
    finally:
        db.close()
