"""
Celery application
"""
from celery import Celery

from hostel.config import settings

celery_app = Celery(
    "hostel",
    broker=settings.CELERY_BROKER_URL,
    backend=settings.CELERY_RESULT_BACKEND,
    include=["hostel.tasks.reconcile_payments"],
)

celery_app.conf.update(
    task_serializer="json",
    result_serializer="json",
    accept_content=["json"],
    timezone="UTC",
    enable_utc=True,
    task_soft_time_limit=240,
    task_time_limit=300,
    beat_schedule={
        "reconcile-pending-payments": {
            "task": "hostel.tasks.reconcile_payments.reconcile_pending_payments",
            "schedule": 60.0,
        },
    },
)
