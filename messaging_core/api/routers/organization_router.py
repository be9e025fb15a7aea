# =============================================================================
# File: messaging_core/api/routers/organization_router.py
# Description: Organization endpoints. Members read an organization and its
#              listings; admins manage its members.
# =============================================================================

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, status

from messaging_core.api.dependencies import (
    PageParams,
    get_group_mediator,
    get_meeting_mediator,
    get_organization_mediator,
    get_team_mediator,
    page_body,
    require_entity_admin,
    require_entity_member,
)
from messaging_core.api.models.user_api_models import AddUsersRequest, CreateOrganizationRequest
from messaging_core.mediators.group_mediator import GroupMediator
from messaging_core.mediators.meeting_mediator import MeetingMediator
from messaging_core.mediators.organization_mediator import OrganizationMediator
from messaging_core.mediators.team_mediator import TeamMediator
from messaging_core.security.jwt_auth import get_current_user, get_path_user

log = logging.getLogger("messaging_core.api.organizations")

router = APIRouter(tags=["organizations"])


# =============================================================================
# Organizations of a user
# =============================================================================

@router.post("/users/{user_id}/organizations", status_code=status.HTTP_201_CREATED)
async def create_organization(
    request: CreateOrganizationRequest,
    user_id: Annotated[str, Depends(get_path_user)],
    organization_mediator: OrganizationMediator = Depends(get_organization_mediator),
):
    """Create an organization; the caller becomes its admin."""
    organization = await organization_mediator.create_organization(request.name, user_id)
    return {"organization": organization}


@router.get("/users/{user_id}/organizations")
async def get_user_organizations(
    user_id: Annotated[str, Depends(get_path_user)],
    page: PageParams = Depends(),
    organization_mediator: OrganizationMediator = Depends(get_organization_mediator),
):
    organizations = await organization_mediator.get_organizations_by_user_id(
        user_id, limit=page.limit, exclusive_start_key=page.exclusive_start_key
    )
    return page_body("organizations", organizations)


# =============================================================================
# Organization
# =============================================================================

@router.get("/organizations/{organization_id}")
async def get_organization(
    organization_id: str,
    current_user_id: Annotated[str, Depends(get_current_user)],
    organization_mediator: OrganizationMediator = Depends(get_organization_mediator),
):
    await require_entity_member(organization_mediator, organization_id, current_user_id)
    return {"organization": await organization_mediator.get_organization(organization_id)}


@router.post("/organizations/{organization_id}/users")
async def add_organization_users(
    organization_id: str,
    request: AddUsersRequest,
    current_user_id: Annotated[str, Depends(get_current_user)],
    organization_mediator: OrganizationMediator = Depends(get_organization_mediator),
):
    """
    Add every listed user, creating email / phone users on first contact.

    Each input lands in successes or failures; the request itself succeeds.
    """
    await require_entity_admin(organization_mediator, organization_id, current_user_id)
    result = await organization_mediator.add_users(organization_id, request.users)
    return {
        "successes": [user.to_json_dict() for user in result.successes],
        "failures": [identifier.to_json_dict() for identifier in result.failures],
    }


@router.get("/organizations/{organization_id}/users")
async def get_organization_users(
    organization_id: str,
    current_user_id: Annotated[str, Depends(get_current_user)],
    page: PageParams = Depends(),
    organization_mediator: OrganizationMediator = Depends(get_organization_mediator),
):
    await require_entity_member(organization_mediator, organization_id, current_user_id)
    users = await organization_mediator.get_users(
        organization_id, limit=page.limit, exclusive_start_key=page.exclusive_start_key
    )
    return page_body("users", users)


@router.delete("/organizations/{organization_id}/users/{user_id}")
async def remove_organization_user(
    organization_id: str,
    user_id: str,
    current_user_id: Annotated[str, Depends(get_current_user)],
    organization_mediator: OrganizationMediator = Depends(get_organization_mediator),
):
    """Admins remove anyone; members may remove themselves."""
    if user_id != current_user_id:
        await require_entity_admin(organization_mediator, organization_id, current_user_id)
    await organization_mediator.remove_user(organization_id, user_id)
    return {"message": "User removed from organization"}


# =============================================================================
# Organization listings
# =============================================================================

@router.get("/organizations/{organization_id}/groups")
async def get_organization_groups(
    organization_id: str,
    current_user_id: Annotated[str, Depends(get_current_user)],
    page: PageParams = Depends(),
    organization_mediator: OrganizationMediator = Depends(get_organization_mediator),
    group_mediator: GroupMediator = Depends(get_group_mediator),
):
    await require_entity_member(organization_mediator, organization_id, current_user_id)
    groups = await group_mediator.get_groups_by_organization_id(
        organization_id, limit=page.limit, exclusive_start_key=page.exclusive_start_key
    )
    return page_body("groups", groups)


@router.get("/organizations/{organization_id}/meetings")
async def get_organization_meetings(
    organization_id: str,
    current_user_id: Annotated[str, Depends(get_current_user)],
    page: PageParams = Depends(),
    organization_mediator: OrganizationMediator = Depends(get_organization_mediator),
    meeting_mediator: MeetingMediator = Depends(get_meeting_mediator),
):
    await require_entity_member(organization_mediator, organization_id, current_user_id)
    meetings = await meeting_mediator.get_meetings_by_organization_id(
        organization_id, limit=page.limit, exclusive_start_key=page.exclusive_start_key
    )
    return page_body("meetings", meetings)


@router.get("/organizations/{organization_id}/teams")
async def get_organization_teams(
    organization_id: str,
    current_user_id: Annotated[str, Depends(get_current_user)],
    page: PageParams = Depends(),
    organization_mediator: OrganizationMediator = Depends(get_organization_mediator),
    team_mediator: TeamMediator = Depends(get_team_mediator),
):
    await require_entity_member(organization_mediator, organization_id, current_user_id)
    teams = await team_mediator.get_teams_by_organization_id(
        organization_id, limit=page.limit, exclusive_start_key=page.exclusive_start_key
    )
    return page_body("teams", teams)
