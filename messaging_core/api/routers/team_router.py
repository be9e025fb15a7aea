# =============================================================================
# File: messaging_core/api/routers/team_router.py
# Description: Team endpoints. Members read a team and its listings;
#              admins manage its members.
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
from messaging_core.api.models.user_api_models import AddUsersRequest, CreateTeamRequest
from messaging_core.mediators.group_mediator import GroupMediator
from messaging_core.mediators.meeting_mediator import MeetingMediator
from messaging_core.mediators.organization_mediator import OrganizationMediator
from messaging_core.mediators.team_mediator import TeamMediator
from messaging_core.security.jwt_auth import get_current_user, get_path_user

log = logging.getLogger("messaging_core.api.teams")

router = APIRouter(tags=["teams"])


@router.post("/users/{user_id}/teams", status_code=status.HTTP_201_CREATED)
async def create_team(
    request: CreateTeamRequest,
    user_id: Annotated[str, Depends(get_path_user)],
    organization_mediator: OrganizationMediator = Depends(get_organization_mediator),
    team_mediator: TeamMediator = Depends(get_team_mediator),
):
    """Create a team, optionally inside one of the caller's organizations."""
    if request.organization_id:
        await require_entity_member(organization_mediator, request.organization_id, user_id)
    team = await team_mediator.create_team(request.name, user_id, organization_id=request.organization_id)
    return {"team": team}


@router.get("/users/{user_id}/teams")
async def get_user_teams(
    user_id: Annotated[str, Depends(get_path_user)],
    page: PageParams = Depends(),
    team_mediator: TeamMediator = Depends(get_team_mediator),
):
    teams = await team_mediator.get_teams_by_user_id(
        user_id, limit=page.limit, exclusive_start_key=page.exclusive_start_key
    )
    return page_body("teams", teams)


@router.get("/teams/{team_id}")
async def get_team(
    team_id: str,
    current_user_id: Annotated[str, Depends(get_current_user)],
    team_mediator: TeamMediator = Depends(get_team_mediator),
):
    await require_entity_member(team_mediator, team_id, current_user_id)
    return {"team": await team_mediator.get_team(team_id)}


@router.post("/teams/{team_id}/users")
async def add_team_users(
    team_id: str,
    request: AddUsersRequest,
    current_user_id: Annotated[str, Depends(get_current_user)],
    team_mediator: TeamMediator = Depends(get_team_mediator),
):
    await require_entity_admin(team_mediator, team_id, current_user_id)
    result = await team_mediator.add_users(team_id, request.users)
    return {
        "successes": [user.to_json_dict() for user in result.successes],
        "failures": [identifier.to_json_dict() for identifier in result.failures],
    }


@router.get("/teams/{team_id}/users")
async def get_team_users(
    team_id: str,
    current_user_id: Annotated[str, Depends(get_current_user)],
    page: PageParams = Depends(),
    team_mediator: TeamMediator = Depends(get_team_mediator),
):
    await require_entity_member(team_mediator, team_id, current_user_id)
    users = await team_mediator.get_users(team_id, limit=page.limit, exclusive_start_key=page.exclusive_start_key)
    return page_body("users", users)


@router.delete("/teams/{team_id}/users/{user_id}")
async def remove_team_user(
    team_id: str,
    user_id: str,
    current_user_id: Annotated[str, Depends(get_current_user)],
    team_mediator: TeamMediator = Depends(get_team_mediator),
):
    if user_id != current_user_id:
        await require_entity_admin(team_mediator, team_id, current_user_id)
    await team_mediator.remove_user(team_id, user_id)
    return {"message": "User removed from team"}


@router.get("/teams/{team_id}/groups")
async def get_team_groups(
    team_id: str,
    current_user_id: Annotated[str, Depends(get_current_user)],
    page: PageParams = Depends(),
    team_mediator: TeamMediator = Depends(get_team_mediator),
    group_mediator: GroupMediator = Depends(get_group_mediator),
):
    await require_entity_member(team_mediator, team_id, current_user_id)
    groups = await group_mediator.get_groups_by_team_id(
        team_id, limit=page.limit, exclusive_start_key=page.exclusive_start_key
    )
    return page_body("groups", groups)


@router.get("/teams/{team_id}/meetings")
async def get_team_meetings(
    team_id: str,
    current_user_id: Annotated[str, Depends(get_current_user)],
    page: PageParams = Depends(),
    team_mediator: TeamMediator = Depends(get_team_mediator),
    meeting_mediator: MeetingMediator = Depends(get_meeting_mediator),
):
    await require_entity_member(team_mediator, team_id, current_user_id)
    meetings = await meeting_mediator.get_meetings_by_team_id(
        team_id, limit=page.limit, exclusive_start_key=page.exclusive_start_key
    )
    return page_body("meetings", meetings)
