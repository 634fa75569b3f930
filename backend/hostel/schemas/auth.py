"""
Authentication Schemas
"""
from pydantic import BaseModel, Field
from typing import Optional, List, Dict


class AdminLoginRequest(BaseModel):
    """Staff login request schema"""
    username: str = Field(..., min_length=3)
    password: str = Field(..., min_length=6)


class StudentLoginRequest(BaseModel):
    """Student login request schema"""
    roll_number: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class SessionUser(BaseModel):
    """Account as seen by a signed-in client"""
    id: str
    name: str
    role: str
    permissions: List[str] = []
    permission_access_levels: Dict[str, str] = {}
    requires_password_change: bool = False
    roll_number: Optional[str] = None
    room_number: Optional[str] = None
    gender: Optional[str] = None
    category: Optional[str] = None


class LoginResponse(BaseModel):
    """Login response schema"""
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    requires_password_change: bool = False
    user: SessionUser


class RefreshTokenRequest(BaseModel):
    """Refresh token request schema"""
    refresh_token: str


class RefreshTokenResponse(BaseModel):
    """Refresh token response schema"""
    access_token: str
    token_type: str = "bearer"


class ResetPasswordRequest(BaseModel):
    """Change password request schema"""
    current_password: str
    new_password: str = Field(..., min_length=8)
