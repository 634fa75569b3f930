"""
Payment Schemas
"""
from pydantic import BaseModel
from typing import Optional, List
from datetime import datetime
from decimal import Decimal
from uuid import UUID


class InitiatePaymentRequest(BaseModel):
    bill_id: UUID
    room_id: UUID


class InitiatePaymentResponse(BaseModel):
    payment_id: str
    order_id: str
    amount: Decimal
    payment_session_id: Optional[str] = None
    payment_url: Optional[str] = None
    reused: bool = False


class PaymentStatusResponse(BaseModel):
    payment_id: str
    order_id: str
    status: str
    amount: Decimal
    failure_reason: Optional[str] = None
    completed_at: Optional[datetime] = None


class PaymentRecord(BaseModel):
    payment_id: str
    order_id: str
    student_id: str
    student_name: Optional[str] = None
    roll_number: Optional[str] = None
    room_id: str
    amount: Decimal
    status: str
    failure_reason: Optional[str] = None
    gateway_payment_id: Optional[str] = None
    created_at: datetime
    completed_at: Optional[datetime] = None


class PaymentListResponse(BaseModel):
    payments: List[PaymentRecord]
    total: int
    page: int
    limit: int
