# =============================================================================
# File: messaging_core/services/team_service.py
# Description: Team domain service
# =============================================================================

from __future__ import annotations

import logging
from typing import List, Optional, Sequence

from messaging_core.conversation.ids import new_team_id
from messaging_core.conversation.models import Team
from messaging_core.infra.persistence.dynamodb.base_dynamo_repo import Page
from messaging_core.infra.persistence.dynamodb.team_repo import TeamRepository
from messaging_core.utils.datetime_utils import now_iso

log = logging.getLogger("messaging_core.services.team")


class TeamService:

    def __init__(self, team_repo: TeamRepository):
        self.team_repo = team_repo

    async def create_team(self, name: str, created_by: str, organization_id: Optional[str] = None) -> Team:
        team = Team(
            id=new_team_id(),
            name=name,
            created_by=created_by,
            created_at=now_iso(),
            organization_id=organization_id,
        )
        await self.team_repo.create_team(team)
        log.info(f"Team {team.id} created by {created_by}")
        return team

    async def get_team(self, team_id: str) -> Team:
        return await self.team_repo.get_team(team_id)

    async def get_teams(self, team_ids: Sequence[str]) -> List[Team]:
        return await self.team_repo.get_teams(team_ids)

    async def get_teams_by_organization_id(
        self,
        organization_id: str,
        limit: Optional[int] = None,
        exclusive_start_key: Optional[str] = None,
    ) -> Page[Team]:
        return await self.team_repo.get_teams_by_organization_id(
            organization_id, limit=limit, exclusive_start_key=exclusive_start_key
        )
