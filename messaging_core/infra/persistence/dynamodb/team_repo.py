# =============================================================================
# File: messaging_core/infra/persistence/dynamodb/team_repo.py
# Description: Team rows
# =============================================================================

from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence

from messaging_core.conversation.enums import EntityType, KeyPrefix
from messaging_core.conversation.exceptions import TeamNotFoundError
from messaging_core.conversation.models import Team
from messaging_core.infra.persistence.dynamodb.base_dynamo_repo import (
    BaseDynamoRepository,
    Page,
    cleanse,
)


def team_item(team: Team) -> Dict[str, Any]:
    item: Dict[str, Any] = {
        "pk": team.id,
        "sk": team.id,
        "entityType": EntityType.TEAM.value,
        **team.to_item(),
    }
    if team.organization_id:
        item["gsi1pk"] = team.organization_id
        item["gsi1sk"] = f"{KeyPrefix.TEAM.value}{team.created_at}"
    return item


class TeamRepository(BaseDynamoRepository):
    """
    pk = sk = team id.

    gsi1: teams of an organization, newest first. Shares the partition with
    the organization's groups and meetings, told apart by sort key prefix.
    """

    async def create_team(self, team: Team) -> Team:
        await self._put(team_item(team), condition_expression="attribute_not_exists(pk)")
        return team

    async def get_team(self, team_id: str) -> Team:
        item = await self._get(team_id, team_id)
        if item is None:
            raise TeamNotFoundError(team_id)
        return Team.model_validate(cleanse(item))

    async def get_teams(self, team_ids: Sequence[str]) -> List[Team]:
        unique_ids = list(dict.fromkeys(team_ids))
        items = await self._batch_get([{"pk": tid, "sk": tid} for tid in unique_ids])
        by_id = {item["pk"]: Team.model_validate(cleanse(item)) for item in items}
        return [by_id[tid] for tid in unique_ids if tid in by_id]

    async def get_teams_by_organization_id(
        self,
        organization_id: str,
        limit: Optional[int] = None,
        exclusive_start_key: Optional[str] = None,
    ) -> Page[Team]:
        page = await self._query(
            index_name=self.config.gsi_one_name,
            key_condition_expression="#gsi1pk = :gsi1pk AND begins_with(#gsi1sk, :prefix)",
            names={"#gsi1pk": "gsi1pk", "#gsi1sk": "gsi1sk"},
            values={":gsi1pk": organization_id, ":prefix": KeyPrefix.TEAM.value},
            scan_index_forward=False,
            limit=limit or self.config.default_page_size,
            exclusive_start_key=exclusive_start_key,
        )
        return Page(
            items=[Team.model_validate(cleanse(item)) for item in page.items],
            last_evaluated_key=page.last_evaluated_key,
        )
