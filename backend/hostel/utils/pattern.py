"""
Client route pattern matching
"""
from typing import Dict, Optional


def match_path(pattern: str, path: str) -> Optional[Dict[str, str]]:
    """
    Match a route pattern against a concrete path.

    ``:name`` captures one segment; a trailing ``*`` matches the prefix itself
    or anything below it. Returns the captured params, or None on no match.
    """
    path = "/" + path.strip("/") if path.strip("/") else "/"

    if pattern.endswith("*"):
        prefix = pattern[:-1].rstrip("/") or "/"
        if prefix == "/":
            return {}
        pattern_parts = prefix.strip("/").split("/")
        path_parts = path.strip("/").split("/") if path.strip("/") else []
        if len(path_parts) < len(pattern_parts):
            return None
        path_parts = path_parts[:len(pattern_parts)]
    else:
        pattern_parts = pattern.strip("/").split("/") if pattern.strip("/") else []
        path_parts = path.strip("/").split("/") if path.strip("/") else []
        if len(pattern_parts) != len(path_parts):
            return None

    params: Dict[str, str] = {}
    for expected, actual in zip(pattern_parts, path_parts):
        if expected.startswith(":"):
            if not actual:
                return None
            params[expected[1:]] = actual
        elif expected != actual:
            return None
    return params
