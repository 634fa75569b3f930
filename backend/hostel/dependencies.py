"""
Common Dependencies for FastAPI Routes
"""
from dataclasses import dataclass, field
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from typing import Optional, Callable, Dict, List, Union

from hostel.database import get_db
from hostel.config.permissions import AccessLevel, Permission, permission_label
from hostel.config.roles import Role, role_satisfies
from hostel.services.auth_service import decode_access_token, ACCOUNT_ADMIN, ACCOUNT_STUDENT
from hostel.services import permission_service
from hostel.models.admin import Admin
from hostel.models.student import Student
from hostel.utils.ids import parse_uuid

security = HTTPBearer()
optional_security = HTTPBearer(auto_error=False)


@dataclass
class CurrentUser:
    """Authenticated account, staff or student"""
    account: Union[Admin, Student]
    kind: str
    role: str
    permissions: List[str] = field(default_factory=list)
    permission_access_levels: Dict[str, str] = field(default_factory=dict)
    requires_password_change: bool = False

    @property
    def id(self):
        return self.account.id

    @property
    def is_student(self) -> bool:
        return self.kind == ACCOUNT_STUDENT

    @classmethod
    def from_account(cls, account: Union[Admin, Student]) -> "CurrentUser":
        if isinstance(account, Admin):
            return cls(
                account=account,
                kind=ACCOUNT_ADMIN,
                role=account.role_value,
                permissions=list(account.permissions or []),
                permission_access_levels=dict(account.permission_access_levels or {}),
                requires_password_change=account.requires_password_change,
            )
        return cls(
            account=account,
            kind=ACCOUNT_STUDENT,
            role=Role.STUDENT.value,
            requires_password_change=account.requires_password_change,
        )


def _load_account(db: Session, payload: dict) -> Optional[Union[Admin, Student]]:
    account_id = payload.get("sub")
    kind = payload.get("kind")
    if account_id is None or kind not in (ACCOUNT_ADMIN, ACCOUNT_STUDENT):
        return None
    model = Admin if kind == ACCOUNT_ADMIN else Student
    return db.query(model).filter(model.id == parse_uuid(account_id)).first()


async def get_current_user_allow_password_change(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db)
) -> CurrentUser:
    """
    Dependency to get the current authenticated account, even when it still
    has to change its password
    """
    payload = decode_access_token(credentials.credentials)

    if payload is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    account = _load_account(db, payload)
    if account is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
        )

    if not account.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Inactive user",
        )

    return CurrentUser.from_account(account)


async def get_current_user(
    current_user: CurrentUser = Depends(get_current_user_allow_password_change),
) -> CurrentUser:
    """
    Dependency to get the current authenticated account.
    Accounts flagged for a password change may only reach the reset endpoint.
    """
    if current_user.requires_password_change:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Password change required",
        )
    return current_user


async def get_optional_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(optional_security),
    db: Session = Depends(get_db),
) -> Optional[CurrentUser]:
    """Current account when a valid bearer token is supplied, else None"""
    if credentials is None:
        return None
    payload = decode_access_token(credentials.credentials)
    if payload is None:
        return None
    account = _load_account(db, payload)
    if account is None or not account.is_active:
        return None
    return CurrentUser.from_account(account)


def require_role(required: Role) -> Callable:
    """
    Dependency factory to require a role, matched through the role hierarchy

    Usage:
        current_user: CurrentUser = Depends(require_role(Role.ADMIN))
    """
    async def role_checker(current_user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
        if not role_satisfies(current_user.role, required):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Access denied. Required role: {Role(required).value}",
            )
        return current_user

    return role_checker


async def get_current_student(current_user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
    """Require a student account"""
    if not current_user.is_student:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Student access only",
        )
    return current_user


async def get_current_staff(current_user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
    """Require a staff account"""
    if current_user.is_student:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Staff access only",
        )
    return current_user


def require_section(permission: Permission, level: AccessLevel = AccessLevel.VIEW) -> Callable:
    """
    Dependency factory to require a dashboard permission at an access level.
    Super admins always pass. ``view`` grants never pass a FULL requirement.

    Usage:
        @router.put("/{room_id}")
        async def update_room(..., current_user = Depends(require_section(Permission.ROOM_MANAGEMENT, AccessLevel.FULL)))
    """
    async def section_checker(current_user: CurrentUser = Depends(get_current_staff)) -> CurrentUser:
        label = permission_label(permission)
        granted = permission_service.get_access_level(current_user, permission)
        if granted is None:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Access Restricted: {label}",
            )
        if level == AccessLevel.FULL and granted != AccessLevel.FULL:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Full access required for {label}",
            )
        return current_user

    return section_checker


def require_super_admin() -> Callable:
    """Dependency factory to require the super admin role"""
    return require_role(Role.SUPER_ADMIN)
