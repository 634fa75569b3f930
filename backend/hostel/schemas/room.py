"""
Room and Electricity Bill Schemas
"""
from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime
from decimal import Decimal


class RoomBase(BaseModel):
    room_number: str = Field(..., min_length=1, max_length=20)
    gender: str = Field(..., pattern="^(Male|Female)$")
    category: str = Field(..., min_length=1, max_length=20)
    bed_count: int = Field(1, ge=1, le=12)
    meter_reading: Optional[int] = Field(None, ge=0)
    electricity_rate: Optional[Decimal] = Field(None, gt=0)


class RoomCreate(RoomBase):
    pass


class RoomUpdate(BaseModel):
    room_number: Optional[str] = Field(None, min_length=1, max_length=20)
    category: Optional[str] = None
    bed_count: Optional[int] = Field(None, ge=1, le=12)
    meter_reading: Optional[int] = Field(None, ge=0)
    electricity_rate: Optional[Decimal] = Field(None, gt=0)


class RoomResponse(RoomBase):
    id: str
    student_count: int = 0
    created_at: datetime


class RoomStudent(BaseModel):
    id: str
    name: str
    roll_number: str
    year: Optional[int] = None
    phone: Optional[str] = None


class GenerateBillRequest(BaseModel):
    month: str = Field(..., pattern=r"^\d{4}-(0[1-9]|1[0-2])$")
    end_units: int = Field(..., ge=0)
    start_units: Optional[int] = Field(None, ge=0)
    rate: Optional[Decimal] = Field(None, gt=0)


class BillShareResponse(BaseModel):
    bill_id: str
    student_id: str
    student_name: Optional[str] = None
    student_share: Decimal
    payment_status: str
    payment_id: Optional[str] = None
    order_id: Optional[str] = None
    paid_at: Optional[datetime] = None


class ElectricityBillResponse(BaseModel):
    id: str
    room_id: str
    month: str
    start_units: int
    end_units: int
    consumption: int
    rate: Decimal
    total: Decimal
    shares: List[BillShareResponse] = []


class StudentBillResponse(BaseModel):
    """A student's view of their share of a room bill"""
    bill_id: str
    room_id: str
    room_number: str
    month: str
    start_units: int
    end_units: int
    consumption: int
    rate: Decimal
    total: Decimal
    student_share: Decimal
    payment_status: str
    payment_id: Optional[str] = None
    order_id: Optional[str] = None
    paid_at: Optional[datetime] = None
