"""
Staff account management: sub-admins, wardens, principals, security staff
and custom roles
"""
import logging
from typing import List, Optional, Sequence, Tuple
from uuid import UUID

from sqlalchemy.orm import Session

from hostel.config.permissions import DEFAULT_PERMISSIONS
from hostel.config.roles import Role
from hostel.models.admin import Admin
from hostel.models.course import Branch, Course
from hostel.schemas.admin import AdminCreate, AdminUpdate
from hostel.services.permission_service import normalize_grants
from hostel.utils.security import hash_password

logger = logging.getLogger(__name__)


class AccountError(ValueError):
    """Invalid staff account data"""


class AccountConflict(AccountError):
    """Username already taken"""


def branch_options(db: Session, course_ids: Sequence[UUID]) -> List[Branch]:
    """
    Branches a principal may be scoped to. The branch selector only applies
    when exactly one course is selected; otherwise there are no options.
    """
    unique_ids = list(dict.fromkeys(course_ids))
    if len(unique_ids) != 1:
        return []
    return (
        db.query(Branch)
        .filter(Branch.course_id == unique_ids[0])
        .order_by(Branch.name)
        .all()
    )


def resolve_principal_scope(
    db: Session,
    course_ids: Sequence[UUID],
    branch_id: Optional[UUID],
) -> Tuple[List[str], Optional[UUID]]:
    """
    Validate a principal's course/branch selection.

    Every course must exist. A branch is kept only when exactly one course is
    selected and the branch belongs to it; with several courses the branch is
    cleared.
    """
    unique_ids = list(dict.fromkeys(course_ids))
    if unique_ids:
        found = db.query(Course.id).filter(Course.id.in_(unique_ids)).count()
        if found != len(unique_ids):
            raise AccountError("Unknown course selected")

    if branch_id is None or len(unique_ids) != 1:
        return [str(c) for c in unique_ids], None

    branch = db.query(Branch).filter(Branch.id == branch_id).first()
    if branch is None or branch.course_id != unique_ids[0]:
        raise AccountError("Branch does not belong to the selected course")
    return [str(c) for c in unique_ids], branch.id


def list_accounts(db: Session, role: Role) -> List[Admin]:
    return (
        db.query(Admin)
        .filter(Admin.role == role)
        .order_by(Admin.created_at.desc())
        .all()
    )


def get_account(db: Session, role: Role, account_id: UUID) -> Optional[Admin]:
    return db.query(Admin).filter(Admin.id == account_id, Admin.role == role).first()


def create_account(db: Session, role: Role, data: AdminCreate) -> Admin:
    """Create a staff account of the given role"""
    if db.query(Admin).filter(Admin.username == data.username).first():
        raise AccountConflict("Username already exists")

    if role == Role.CUSTOM and not data.custom_role_name:
        raise AccountError("Custom roles require a role name")

    permissions = data.permissions
    levels = data.permission_access_levels
    if not permissions and role.value in DEFAULT_PERMISSIONS:
        defaults = DEFAULT_PERMISSIONS[role.value]
        permissions = list(defaults)
        levels = dict(defaults)
    granted, granted_levels = normalize_grants(permissions, levels)

    course_ids: List[str] = []
    branch_id = None
    if role == Role.PRINCIPAL:
        course_ids, branch_id = resolve_principal_scope(db, data.course_ids, data.branch_id)

    admin = Admin(
        username=data.username,
        password_hash=hash_password(data.password),
        full_name=data.full_name,
        role=role,
        permissions=granted,
        permission_access_levels=granted_levels,
        custom_role_name=data.custom_role_name if role == Role.CUSTOM else None,
        hostel_type=data.hostel_type if role == Role.WARDEN else None,
        course_ids=course_ids,
        branch_id=branch_id,
        requires_password_change=data.requires_password_change,
    )
    db.add(admin)
    db.commit()
    db.refresh(admin)

    logger.info("Created %s account %s", role.value, admin.username)
    return admin


def update_account(db: Session, admin: Admin, data: AdminUpdate) -> Admin:
    """Apply a partial update to a staff account"""
    if data.username and data.username != admin.username:
        if db.query(Admin).filter(Admin.username == data.username).first():
            raise AccountConflict("Username already exists")
        admin.username = data.username

    if data.password:
        admin.password_hash = hash_password(data.password)
    if data.full_name is not None:
        admin.full_name = data.full_name
    if data.is_active is not None:
        admin.is_active = data.is_active

    if data.permissions is not None or data.permission_access_levels is not None:
        permissions = data.permissions if data.permissions is not None else admin.permissions
        levels = (
            data.permission_access_levels
            if data.permission_access_levels is not None
            else admin.permission_access_levels
        )
        admin.permissions, admin.permission_access_levels = normalize_grants(permissions, levels)

    role = Role(admin.role_value)
    if role == Role.CUSTOM and data.custom_role_name:
        admin.custom_role_name = data.custom_role_name
    if role == Role.WARDEN and data.hostel_type is not None:
        admin.hostel_type = data.hostel_type
    if role == Role.PRINCIPAL and (data.course_ids is not None or data.branch_id is not None):
        course_ids = data.course_ids if data.course_ids is not None else [UUID(c) for c in admin.course_ids]
        admin.course_ids, admin.branch_id = resolve_principal_scope(db, course_ids, data.branch_id)

    db.commit()
    db.refresh(admin)
    return admin


def delete_account(db: Session, admin: Admin) -> None:
    db.delete(admin)
    db.commit()
    logger.info("Deleted %s account %s", admin.role_value, admin.username)
