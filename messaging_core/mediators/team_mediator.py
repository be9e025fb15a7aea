# =============================================================================
# File: messaging_core/mediators/team_mediator.py
# Description: Teams - creation with an admin membership, lookup, members,
#              a user's teams and an organization's teams
# =============================================================================

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from messaging_core.conversation.enums import MembershipType, Role
from messaging_core.infra.persistence.dynamodb.base_dynamo_repo import Page
from messaging_core.infra.storage.s3_url_provider import S3UrlProvider
from messaging_core.mediators.membership_mediator import BaseEntityMembershipMediator
from messaging_core.services.membership_service import MembershipService
from messaging_core.services.team_service import TeamService
from messaging_core.services.user_service import UserService

log = logging.getLogger("messaging_core.mediators.team")


class TeamMediator(BaseEntityMembershipMediator):
    membership_type = MembershipType.TEAM

    def __init__(
        self,
        team_service: TeamService,
        membership_service: MembershipService,
        user_service: UserService,
        url_provider: S3UrlProvider,
    ):
        super().__init__(membership_service, user_service, url_provider)
        self.team_service = team_service

    async def create_team(
        self,
        name: str,
        created_by: str,
        organization_id: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Create the team with its creator as admin."""
        try:
            team = await self.team_service.create_team(name, created_by, organization_id=organization_id)
            membership = await self.membership_service.create_membership(
                team.id, created_by, MembershipType.TEAM, Role.ADMIN
            )
            data = team.to_json_dict()
            data["role"] = membership.role.value
            return data
        except Exception as e:
            log.error(
                f"Error in create_team: {e}",
                extra={"created_by": created_by, "organization_id": organization_id},
                exc_info=True,
            )
            raise

    async def get_team(self, team_id: str) -> Dict[str, Any]:
        team = await self.team_service.get_team(team_id)
        return team.to_json_dict()

    async def get_teams_by_user_id(
        self,
        user_id: str,
        limit: Optional[int] = None,
        exclusive_start_key: Optional[str] = None,
    ) -> Page[Dict[str, Any]]:
        page = await self.membership_service.get_memberships_by_user_id(
            user_id, MembershipType.TEAM, limit=limit, exclusive_start_key=exclusive_start_key
        )
        teams = await self.team_service.get_teams([membership.entity_id for membership in page.items])
        roles = {membership.entity_id: membership.role for membership in page.items}

        items = []
        for team in teams:
            data = team.to_json_dict()
            data["role"] = roles[team.id].value
            items.append(data)
        return Page(items=items, last_evaluated_key=page.last_evaluated_key)

    async def get_teams_by_organization_id(
        self,
        organization_id: str,
        limit: Optional[int] = None,
        exclusive_start_key: Optional[str] = None,
    ) -> Page[Dict[str, Any]]:
        page = await self.team_service.get_teams_by_organization_id(
            organization_id, limit=limit, exclusive_start_key=exclusive_start_key
        )
        return Page(items=[team.to_json_dict() for team in page.items], last_evaluated_key=page.last_evaluated_key)
