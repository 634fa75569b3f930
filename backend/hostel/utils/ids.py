"""
Identifier helpers
"""
import uuid
from typing import Optional


def parse_uuid(value) -> Optional[uuid.UUID]:
    """Parse a UUID from a token claim or query string, None when malformed"""
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except (TypeError, ValueError):
        return None
