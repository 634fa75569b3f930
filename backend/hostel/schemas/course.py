"""
Course Schemas
"""
from pydantic import BaseModel, Field
from typing import List
from uuid import UUID


class BranchResponse(BaseModel):
    id: UUID
    course_id: UUID
    name: str
    code: str

    class Config:
        from_attributes = True


class CourseResponse(BaseModel):
    id: UUID
    name: str
    code: str
    branches: List[BranchResponse] = []

    class Config:
        from_attributes = True


class CourseCreate(BaseModel):
    name: str = Field(..., min_length=2, max_length=100)
    code: str = Field(..., min_length=1, max_length=20)


class BranchCreate(BaseModel):
    name: str = Field(..., min_length=2, max_length=100)
    code: str = Field(..., min_length=1, max_length=20)
