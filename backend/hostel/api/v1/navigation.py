"""
Navigation API: route guard and section guard decisions for clients
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.security import HTTPAuthorizationCredentials

from hostel.dependencies import CurrentUser, get_current_staff, get_optional_user, optional_security
from hostel.schemas.navigation import RouteDecisionResponse, SectionListResponse, SectionResponse
from hostel.services import navigation_service, permission_service

router = APIRouter()


def _section_response(section) -> Optional[SectionResponse]:
    if section is None:
        return None
    return SectionResponse(
        section_name=section.section_name,
        allowed=section.allowed,
        access_level=section.access_level.value if section.access_level else None,
        title=section.title,
        message=section.message,
    )


@router.get("/resolve", response_model=RouteDecisionResponse)
async def resolve(
    path: str = Query(..., min_length=1),
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(optional_security),
    current_user: Optional[CurrentUser] = Depends(get_optional_user),
):
    """
    Resolve a client path against the route table for the bearer.
    The token is optional; an invalid token counts as logged out.
    """
    token = credentials.credentials if credentials and current_user else None
    decision = navigation_service.resolve_path(
        path,
        token=token,
        user=current_user,
        requires_password_change=bool(current_user and current_user.requires_password_change),
    )
    return RouteDecisionResponse(
        path=path,
        action=decision.action.value,
        target=decision.target,
        from_path=decision.from_path,
        reason=decision.reason,
        params=decision.params,
        section=_section_response(decision.section),
    )


@router.get("/sections", response_model=SectionListResponse)
async def sections(current_user: CurrentUser = Depends(get_current_staff)):
    """Admin dashboard sections with their guard outcome for the current account"""
    return SectionListResponse(
        sections=[_section_response(s) for s in navigation_service.dashboard_sections(current_user)],
        access_levels={k: v.value for k, v in permission_service.all_access_levels(current_user).items()},
    )
