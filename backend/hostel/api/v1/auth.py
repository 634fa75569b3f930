"""
Authentication API Routes
"""
from typing import Union

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from hostel.config import settings
from hostel.database import get_db
from hostel.dependencies import CurrentUser, get_current_user_allow_password_change
from hostel.models.admin import Admin
from hostel.rate_limit import limiter
from hostel.schemas.auth import (
    AdminLoginRequest,
    StudentLoginRequest,
    LoginResponse,
    RefreshTokenRequest,
    RefreshTokenResponse,
    ResetPasswordRequest,
    SessionUser,
)
from hostel.services import auth_service
from hostel.models.student import Student

router = APIRouter()


def build_session_user(account: Union[Admin, Student]) -> SessionUser:
    """Build the client-facing account view"""
    current = CurrentUser.from_account(account)
    if isinstance(account, Admin):
        return SessionUser(
            id=str(account.id),
            name=account.full_name or account.username,
            role=current.role,
            permissions=current.permissions,
            permission_access_levels=current.permission_access_levels,
            requires_password_change=account.requires_password_change,
        )
    return SessionUser(
        id=str(account.id),
        name=account.name,
        role=current.role,
        requires_password_change=account.requires_password_change,
        roll_number=account.roll_number,
        room_number=account.room_number,
        gender=account.gender,
        category=account.category,
    )


def _login_response(account: Union[Admin, Student]) -> LoginResponse:
    access_token, refresh_token = auth_service.create_account_tokens(account)
    return LoginResponse(
        access_token=access_token,
        refresh_token=refresh_token,
        requires_password_change=account.requires_password_change,
        user=build_session_user(account),
    )


@router.post("/admin/login", response_model=LoginResponse)
@limiter.limit(settings.LOGIN_RATE_LIMIT)
async def admin_login(
    request: Request,
    credentials: AdminLoginRequest,
    db: Session = Depends(get_db)
):
    """
    Staff login with username and password

    Returns access token, refresh token, and account info
    """
    admin = auth_service.authenticate_admin(db, credentials.username, credentials.password)

    if not admin:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect username or password",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return _login_response(admin)


@router.post("/student/login", response_model=LoginResponse)
@limiter.limit(settings.LOGIN_RATE_LIMIT)
async def student_login(
    request: Request,
    credentials: StudentLoginRequest,
    db: Session = Depends(get_db)
):
    """
    Student login with roll number and password
    """
    student = auth_service.authenticate_student(db, credentials.roll_number, credentials.password)

    if not student:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect roll number or password",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return _login_response(student)


@router.post("/refresh", response_model=RefreshTokenResponse)
async def refresh_token(
    data: RefreshTokenRequest,
    db: Session = Depends(get_db)
):
    """
    Refresh access token using refresh token
    """
    new_access_token = auth_service.refresh_access_token(db, data.refresh_token)

    if not new_access_token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid refresh token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return RefreshTokenResponse(access_token=new_access_token)


@router.get("/me", response_model=SessionUser)
async def get_me(
    current_user: CurrentUser = Depends(get_current_user_allow_password_change),
):
    """Current account, including the forced password change flag"""
    return build_session_user(current_user.account)


@router.post("/reset-password", response_model=SessionUser)
async def reset_password(
    data: ResetPasswordRequest,
    current_user: CurrentUser = Depends(get_current_user_allow_password_change),
    db: Session = Depends(get_db),
):
    """
    Change the current account's password

    Clears the forced password change flag set on new accounts
    """
    if data.current_password == data.new_password:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="New password must differ from the current password",
        )

    if not auth_service.change_password(db, current_user.account, data.current_password, data.new_password):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Current password is incorrect",
        )

    return build_session_user(current_user.account)


@router.post("/logout")
async def logout():
    """
    Logout

    Client should delete tokens from local storage
    """
    return {"message": "Successfully logged out"}
