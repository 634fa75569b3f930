"""
Staff account management schemas
"""
from pydantic import BaseModel, Field
from typing import Optional, List, Dict
from datetime import datetime
from uuid import UUID

from hostel.config.permissions import AccessLevel, Permission


class AdminCreate(BaseModel):
    """Staff account creation schema"""
    username: str = Field(..., min_length=3, max_length=50)
    password: str = Field(..., min_length=8)
    full_name: Optional[str] = None
    permissions: List[Permission] = []
    permission_access_levels: Dict[Permission, AccessLevel] = {}
    custom_role_name: Optional[str] = None
    hostel_type: Optional[str] = None
    course_ids: List[UUID] = []
    branch_id: Optional[UUID] = None
    requires_password_change: bool = False


class AdminUpdate(BaseModel):
    """Staff account update schema"""
    username: Optional[str] = Field(None, min_length=3, max_length=50)
    password: Optional[str] = Field(None, min_length=8)
    full_name: Optional[str] = None
    permissions: Optional[List[Permission]] = None
    permission_access_levels: Optional[Dict[Permission, AccessLevel]] = None
    custom_role_name: Optional[str] = None
    hostel_type: Optional[str] = None
    course_ids: Optional[List[UUID]] = None
    branch_id: Optional[UUID] = None
    is_active: Optional[bool] = None


class AdminResponse(BaseModel):
    """Staff account response schema"""
    id: str
    username: str
    full_name: Optional[str] = None
    role: str
    permissions: List[str]
    permission_access_levels: Dict[str, str]
    custom_role_name: Optional[str] = None
    hostel_type: Optional[str] = None
    course_ids: List[str] = []
    branch_id: Optional[str] = None
    is_active: bool
    created_at: datetime
    last_login: Optional[datetime] = None


class AdminListResponse(BaseModel):
    accounts: List[AdminResponse]
    total: int


class BranchOption(BaseModel):
    id: str
    name: str
    code: str


class BranchOptionsResponse(BaseModel):
    """Branch selector state for a principal's course selection"""
    enabled: bool
    branches: List[BranchOption]
