"""
Leave and Outpass Schemas
"""
from pydantic import BaseModel, Field, model_validator
from typing import Optional, List
from datetime import datetime, date, time
from uuid import UUID


class LeaveCreate(BaseModel):
    start_date: datetime
    end_date: datetime
    reason: str = Field(..., min_length=3, max_length=500)

    @model_validator(mode="after")
    def check_dates(self):
        if self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self


class VerifyOtpRequest(BaseModel):
    leave_id: UUID
    otp: str = Field(..., min_length=4, max_length=6)


class RejectRequest(BaseModel):
    leave_id: UUID
    rejection_reason: str = Field(..., min_length=3, max_length=500)


class ScanRequest(BaseModel):
    """Scanner metadata sent with a gate scan"""
    location: Optional[str] = None
    scanned_by: Optional[str] = None


class StudentSummary(BaseModel):
    id: str
    name: str
    roll_number: str
    room_number: Optional[str] = None
    phone: Optional[str] = None
    parent_phone: Optional[str] = None


class VisitResponse(BaseModel):
    visit_type: str
    scanned_at: datetime
    location: Optional[str] = None
    scanned_by: Optional[str] = None


class LeaveResponse(BaseModel):
    id: str
    student: Optional[StudentSummary] = None
    start_date: datetime
    end_date: datetime
    number_of_days: int
    reason: str
    status: str
    rejection_reason: Optional[str] = None
    approved_at: Optional[datetime] = None
    qr_available_from: Optional[datetime] = None
    qr_view_count: int
    qr_locked: bool
    outgoing_visit_count: int
    incoming_visit_count: int
    max_visits: int
    visit_locked: bool
    visits: List[VisitResponse] = []
    created_at: datetime


class ScanResponse(BaseModel):
    message: str
    visit_type: str
    scanned_at: datetime
    leave: LeaveResponse


class QRViewResponse(BaseModel):
    qr_url: str
    incoming_qr_url: Optional[str] = None
    qr_view_count: int
    views_remaining: int
    qr_locked: bool


class OutpassCreate(BaseModel):
    date_of_outpass: date
    out_time: time
    in_time: time
    reason: str = Field(..., min_length=3, max_length=500)

    @model_validator(mode="after")
    def check_times(self):
        if self.in_time <= self.out_time:
            raise ValueError("in_time must be after out_time")
        return self


class OutpassReject(BaseModel):
    rejection_reason: str = Field(..., min_length=3, max_length=500)


class OutpassResponse(BaseModel):
    id: str
    student: Optional[StudentSummary] = None
    date_of_outpass: date
    out_time: time
    in_time: time
    reason: str
    status: str
    rejection_reason: Optional[str] = None
    qr_view_count: int
    qr_locked: bool
    created_at: datetime
