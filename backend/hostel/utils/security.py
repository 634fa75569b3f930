"""
Password hashing, account tokens and one-time codes

Tokens carry the account id (``sub``), the account kind (``admin`` for
staff, ``student``) and the token type. Access tokens also carry the role.
"""
from datetime import datetime, timedelta
from typing import Optional, Dict, Any
import enum
import secrets

from jose import JWTError, jwt
from passlib.context import CryptContext

from hostel.config import settings

# Password hashing context
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


class TokenType(str, enum.Enum):
    ACCESS = "access"
    REFRESH = "refresh"


def hash_password(password: str) -> str:
    """
    Hash a password using bcrypt

    Args:
        password: Plain text password (for new students, the roll number)

    Returns:
        Hashed password
    """
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: Optional[str]) -> bool:
    """Check a password against a stored hash; accounts without one never match"""
    if not hashed_password:
        return False
    return pwd_context.verify(plain_password, hashed_password)


def _expiry(token_type: TokenType, expires_delta: Optional[timedelta]) -> datetime:
    if expires_delta is None:
        minutes = (
            settings.ACCESS_TOKEN_EXPIRE_MINUTES
            if token_type == TokenType.ACCESS
            else settings.REFRESH_TOKEN_EXPIRE_MINUTES
        )
        expires_delta = timedelta(minutes=minutes)
    return datetime.utcnow() + expires_delta


def create_token(
    account_id: str,
    kind: str,
    token_type: TokenType = TokenType.ACCESS,
    role: Optional[str] = None,
    expires_delta: Optional[timedelta] = None,
) -> str:
    """
    Create a signed JWT for an account

    Args:
        account_id: Admin or student id
        kind: Account kind, "admin" or "student"
        token_type: Access or refresh
        role: Role claim, only written into access tokens
        expires_delta: Overrides the configured lifetime

    Returns:
        Encoded JWT token
    """
    claims: Dict[str, Any] = {
        "sub": str(account_id),
        "kind": kind,
        "type": token_type.value,
        "exp": _expiry(token_type, expires_delta),
    }
    if role and token_type == TokenType.ACCESS:
        claims["role"] = role

    return jwt.encode(claims, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_token(token: str, expected_type: TokenType) -> Optional[Dict[str, Any]]:
    """
    Decode a JWT and check its type

    Returns:
        Decoded claims, or None when the token is invalid, expired or of
        the wrong type
    """
    try:
        claims = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError:
        return None

    if claims.get("type") != expected_type.value:
        return None
    return claims


def generate_otp(digits: int = 6) -> str:
    """Numeric one-time code, zero padded"""
    return f"{secrets.randbelow(10 ** digits):0{digits}d}"


def otp_matches(expected: Optional[str], supplied: str) -> bool:
    if not expected:
        return False
    return secrets.compare_digest(expected, supplied)
