"""
Student Pre-registration Schemas
"""
from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime
from uuid import UUID


class PreRegistrationCreate(BaseModel):
    name: str = Field(..., min_length=2, max_length=100)
    roll_number: str = Field(..., min_length=3, max_length=30)
    gender: str = Field(..., pattern="^(Male|Female)$")
    category: str = Field(..., min_length=1, max_length=20)
    course_id: Optional[UUID] = None
    branch_id: Optional[UUID] = None
    year: Optional[int] = Field(None, ge=1, le=6)
    phone: Optional[str] = Field(None, pattern=r"^\d{10}$")
    parent_phone: Optional[str] = Field(None, pattern=r"^\d{10}$")


class PreRegistrationReject(BaseModel):
    rejection_reason: str = Field(..., min_length=3, max_length=500)


class ApproveRequest(BaseModel):
    room_number: Optional[str] = None


class PreRegistrationResponse(BaseModel):
    id: str
    name: str
    roll_number: str
    gender: str
    category: str
    course_id: Optional[str] = None
    branch_id: Optional[str] = None
    year: Optional[int] = None
    phone: Optional[str] = None
    parent_phone: Optional[str] = None
    status: str
    rejection_reason: Optional[str] = None
    reviewed_at: Optional[datetime] = None
    created_at: datetime


class PreRegistrationListResponse(BaseModel):
    preregistrations: List[PreRegistrationResponse]
    total: int
