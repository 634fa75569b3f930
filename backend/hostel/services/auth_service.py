"""
Authentication Service
"""
from datetime import datetime
from typing import Optional, Tuple, Union
from sqlalchemy.orm import Session

from hostel.models.admin import Admin
from hostel.models.student import Student
from hostel.config.roles import Role
from hostel.utils.ids import parse_uuid
from hostel.utils.security import TokenType, create_token, decode_token, hash_password, verify_password

ACCOUNT_ADMIN = "admin"
ACCOUNT_STUDENT = "student"


def authenticate_admin(db: Session, username: str, password: str) -> Optional[Admin]:
    """
    Authenticate a staff account with username and password

    Args:
        db: Database session
        username: Account username
        password: Plain text password

    Returns:
        Admin object if authentication successful, None otherwise
    """
    admin = db.query(Admin).filter(Admin.username == username).first()

    if not admin or not admin.is_active:
        return None

    if not verify_password(password, admin.password_hash):
        return None

    admin.last_login = datetime.utcnow()
    db.commit()

    return admin


def authenticate_student(db: Session, roll_number: str, password: str) -> Optional[Student]:
    """
    Authenticate a student with roll number and password

    Returns:
        Student object if authentication successful, None otherwise
    """
    student = db.query(Student).filter(Student.roll_number == roll_number).first()

    if not student or not student.is_active:
        return None

    if not verify_password(password, student.password_hash):
        return None

    student.last_login = datetime.utcnow()
    db.commit()

    return student


def _claims(account: Union[Admin, Student]) -> Tuple[str, str, str]:
    if isinstance(account, Admin):
        return str(account.id), ACCOUNT_ADMIN, account.role_value
    return str(account.id), ACCOUNT_STUDENT, Role.STUDENT.value


def create_account_tokens(account: Union[Admin, Student]) -> Tuple[str, str]:
    """
    Create access and refresh tokens for an account

    Returns:
        Tuple of (access_token, refresh_token)
    """
    account_id, kind, role = _claims(account)
    access_token = create_token(account_id, kind, TokenType.ACCESS, role=role)
    refresh_token = create_token(account_id, kind, TokenType.REFRESH)
    return access_token, refresh_token


def decode_access_token(token: str) -> Optional[dict]:
    """
    Decode and validate an access token

    Returns:
        Decoded payload or None if invalid
    """
    return decode_token(token, TokenType.ACCESS)


def refresh_access_token(db: Session, refresh_token: str) -> Optional[str]:
    """
    Create a new access token from a refresh token

    Returns:
        New access token or None if invalid
    """
    payload = decode_token(refresh_token, TokenType.REFRESH)

    if payload is None:
        return None

    model = Admin if payload.get("kind") == ACCOUNT_ADMIN else Student
    account = db.query(model).filter(model.id == parse_uuid(payload.get("sub"))).first()

    if not account or not account.is_active:
        return None

    account_id, kind, role = _claims(account)
    return create_token(account_id, kind, TokenType.ACCESS, role=role)


def change_password(db: Session, account: Union[Admin, Student], current_password: str, new_password: str) -> bool:
    """
    Change an account's password and clear the forced-change flag

    Returns:
        False when the current password does not match
    """
    if not verify_password(current_password, account.password_hash):
        return False

    account.password_hash = hash_password(new_password)
    account.requires_password_change = False
    db.commit()
    return True
