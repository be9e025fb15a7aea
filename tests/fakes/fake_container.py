# =============================================================================
# File: tests/fakes/fake_container.py
# Description: The application object graph wired to in-memory fakes
# =============================================================================

from __future__ import annotations

from typing import Optional

from messaging_core.config.dynamodb_config import DynamoDBConfig
from messaging_core.config.sns_config import SnsConfig
from messaging_core.core.container import Container
from messaging_core.infra.search.search_repo import SearchRepository

from tests.fakes.fake_infra import FakeDynamoDBClient, FakeSearchClient, FakeSnsPublisher, FakeUrlProvider
from tests.fakes.fake_repositories import (
    FakeConversationRepository,
    FakeMembershipRepository,
    FakeMessageRepository,
    FakeOrganizationRepository,
    FakePendingMessageRepository,
    FakeRelationshipRepository,
    FakeTeamRepository,
    FakeUniquePropertyRepository,
    FakeUserRepository,
)


class FakeContainer(Container):
    """
    Real services, mediators, processors and dispatchers over fake storage.

    Usage:
        container = FakeContainer()
        group = await container.group_mediator.create_group(...)
        assert container.relationship_repo.rows
    """

    def __init__(
        self,
        dynamodb_config: Optional[DynamoDBConfig] = None,
        sns_config: Optional[SnsConfig] = None,
    ):
        super().__init__(
            dynamodb_client=FakeDynamoDBClient(),
            sns_publisher=FakeSnsPublisher(),
            url_provider=FakeUrlProvider(),
            search_client=FakeSearchClient(),
            dynamodb_config=dynamodb_config or DynamoDBConfig(),
            sns_config=sns_config or SnsConfig(),
        )

    def _build_repositories(self) -> None:
        self.relationship_repo = FakeRelationshipRepository()
        self.conversation_repo = FakeConversationRepository(self.relationship_repo)
        self.pending_message_repo = FakePendingMessageRepository()
        self.message_repo = FakeMessageRepository(self.pending_message_repo)
        self.unique_property_repo = FakeUniquePropertyRepository()
        self.user_repo = FakeUserRepository(self.unique_property_repo)
        self.organization_repo = FakeOrganizationRepository()
        self.membership_repo = FakeMembershipRepository()
        self.team_repo = FakeTeamRepository()
        self.search_repo = SearchRepository(self.search_client)
