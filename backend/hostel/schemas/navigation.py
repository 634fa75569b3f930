"""Schemas for route and section resolution."""
from typing import Dict, List, Optional
from pydantic import BaseModel


class SectionResponse(BaseModel):
    section_name: str
    allowed: bool
    access_level: Optional[str] = None
    title: Optional[str] = None
    message: Optional[str] = None


class RouteDecisionResponse(BaseModel):
    path: str
    action: str
    target: Optional[str] = None
    from_path: Optional[str] = None
    reason: Optional[str] = None
    params: Dict[str, str] = {}
    section: Optional[SectionResponse] = None


class SectionListResponse(BaseModel):
    sections: List[SectionResponse]
    access_levels: Dict[str, str]
