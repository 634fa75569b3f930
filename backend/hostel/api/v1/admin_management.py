"""
Staff Account Management API Routes

Sub-admins, wardens, principals, security staff and custom roles.
Listing needs admin management access; changes are super admin only.
"""
import enum
from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from hostel.config.permissions import ALL_PERMISSIONS, Permission
from hostel.config.roles import Role
from hostel.database import get_db
from hostel.dependencies import CurrentUser, require_section, require_super_admin
from hostel.models.admin import Admin
from hostel.schemas.admin import (
    AdminCreate,
    AdminListResponse,
    AdminResponse,
    AdminUpdate,
    BranchOption,
    BranchOptionsResponse,
)
from hostel.services import admin_management_service

router = APIRouter()


class AccountKind(str, enum.Enum):
    SUB_ADMINS = "sub-admins"
    WARDENS = "wardens"
    PRINCIPALS = "principals"
    CUSTOM_ROLES = "custom-roles"
    SECURITY = "security"


KIND_ROLES = {
    AccountKind.SUB_ADMINS: Role.SUB_ADMIN,
    AccountKind.WARDENS: Role.WARDEN,
    AccountKind.PRINCIPALS: Role.PRINCIPAL,
    AccountKind.CUSTOM_ROLES: Role.CUSTOM,
    AccountKind.SECURITY: Role.SECURITY,
}


def _admin_response(admin: Admin) -> AdminResponse:
    return AdminResponse(
        id=str(admin.id),
        username=admin.username,
        full_name=admin.full_name,
        role=admin.role_value,
        permissions=list(admin.permissions or []),
        permission_access_levels=dict(admin.permission_access_levels or {}),
        custom_role_name=admin.custom_role_name,
        hostel_type=admin.hostel_type,
        course_ids=list(admin.course_ids or []),
        branch_id=str(admin.branch_id) if admin.branch_id else None,
        is_active=admin.is_active,
        created_at=admin.created_at,
        last_login=admin.last_login,
    )


def _get_account(db: Session, kind: AccountKind, account_id: UUID) -> Admin:
    admin = admin_management_service.get_account(db, KIND_ROLES[kind], account_id)
    if not admin:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Account not found")
    return admin


@router.get("/permissions")
async def list_permissions(
    current_user: CurrentUser = Depends(require_section(Permission.ADMIN_MANAGEMENT)),
):
    """Grantable permissions with labels, for the account editor"""
    return [
        {"key": p.value, "label": meta["label"], "category": meta["category"]}
        for p, meta in ALL_PERMISSIONS.items()
    ]


@router.get("/principal-branches", response_model=BranchOptionsResponse)
async def principal_branches(
    course_ids: List[UUID] = Query(default=[]),
    current_user: CurrentUser = Depends(require_section(Permission.ADMIN_MANAGEMENT)),
    db: Session = Depends(get_db),
):
    """
    Branch selector options for a principal's course selection

    Enabled only when exactly one course is selected
    """
    branches = admin_management_service.branch_options(db, course_ids)
    return BranchOptionsResponse(
        enabled=len(set(course_ids)) == 1,
        branches=[BranchOption(id=str(b.id), name=b.name, code=b.code) for b in branches],
    )


@router.get("/{kind}", response_model=AdminListResponse)
async def list_accounts(
    kind: AccountKind,
    current_user: CurrentUser = Depends(require_section(Permission.ADMIN_MANAGEMENT)),
    db: Session = Depends(get_db),
):
    """List staff accounts of one kind"""
    accounts = admin_management_service.list_accounts(db, KIND_ROLES[kind])
    return AdminListResponse(accounts=[_admin_response(a) for a in accounts], total=len(accounts))


@router.post("/{kind}", response_model=AdminResponse, status_code=status.HTTP_201_CREATED)
async def create_account(
    kind: AccountKind,
    data: AdminCreate,
    current_user: CurrentUser = Depends(require_super_admin()),
    db: Session = Depends(get_db),
):
    """Create a staff account"""
    try:
        admin = admin_management_service.create_account(db, KIND_ROLES[kind], data)
    except admin_management_service.AccountConflict as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except admin_management_service.AccountError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return _admin_response(admin)


@router.get("/{kind}/{account_id}", response_model=AdminResponse)
async def get_account(
    kind: AccountKind,
    account_id: UUID,
    current_user: CurrentUser = Depends(require_section(Permission.ADMIN_MANAGEMENT)),
    db: Session = Depends(get_db),
):
    return _admin_response(_get_account(db, kind, account_id))


@router.put("/{kind}/{account_id}", response_model=AdminResponse)
async def update_account(
    kind: AccountKind,
    account_id: UUID,
    data: AdminUpdate,
    current_user: CurrentUser = Depends(require_super_admin()),
    db: Session = Depends(get_db),
):
    """Update a staff account"""
    admin = _get_account(db, kind, account_id)
    try:
        admin = admin_management_service.update_account(db, admin, data)
    except admin_management_service.AccountConflict as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except admin_management_service.AccountError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return _admin_response(admin)


@router.delete("/{kind}/{account_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_account(
    kind: AccountKind,
    account_id: UUID,
    current_user: CurrentUser = Depends(require_super_admin()),
    db: Session = Depends(get_db),
):
    """Delete a staff account"""
    admin = _get_account(db, kind, account_id)
    admin_management_service.delete_account(db, admin)
    return None
