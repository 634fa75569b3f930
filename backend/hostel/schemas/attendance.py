"""
Attendance Schemas
"""
from pydantic import BaseModel, Field
from typing import Optional, List
from uuid import UUID
import datetime as dt


class AttendanceRecordIn(BaseModel):
    student_id: UUID
    morning: bool = False
    evening: bool = False
    notes: Optional[str] = Field(None, max_length=255)


class TakeAttendanceRequest(BaseModel):
    date: dt.date
    records: List[AttendanceRecordIn] = Field(..., min_length=1)


class FailedRecord(BaseModel):
    student_id: str
    reason: str


class TakeAttendanceResponse(BaseModel):
    date: dt.date
    successful: int
    failed: List[FailedRecord] = []


class AttendanceStudent(BaseModel):
    """A student in the attendance sheet, with any marks already taken"""
    id: str
    name: str
    roll_number: str
    room_number: Optional[str] = None
    gender: str
    year: Optional[int] = None
    morning: Optional[bool] = None
    evening: Optional[bool] = None


class AttendanceEntry(BaseModel):
    student_id: str
    name: str
    roll_number: str
    room_number: Optional[str] = None
    date: dt.date
    morning: bool
    evening: bool
    status: str
    notes: Optional[str] = None


class AttendanceStatistics(BaseModel):
    total: int
    morning_present: int
    evening_present: int
    fully_present: int
    partially_present: int
    absent: int


class AttendanceDateResponse(BaseModel):
    date: dt.date
    records: List[AttendanceEntry]
    statistics: AttendanceStatistics


class AttendanceRangeResponse(BaseModel):
    start_date: dt.date
    end_date: dt.date
    records: List[AttendanceEntry]
    statistics: AttendanceStatistics
