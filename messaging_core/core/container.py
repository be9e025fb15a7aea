# =============================================================================
# File: messaging_core/core/container.py
# Description: Object graph for one process - infrastructure clients,
#              repositories, services, mediators and event dispatchers.
#              Shared by the HTTP app and the event handlers.
# =============================================================================

from __future__ import annotations

import asyncio
import logging
from typing import Optional

from messaging_core.config.dynamodb_config import DynamoDBConfig, get_dynamodb_config
from messaging_core.config.sns_config import SnsConfig, get_sns_config
from messaging_core.infra.messaging.sns_publisher import SnsPublisher
from messaging_core.infra.persistence.dynamodb.conversation_repo import ConversationRepository
from messaging_core.infra.persistence.dynamodb.dynamodb_client import DynamoDBClient
from messaging_core.infra.persistence.dynamodb.membership_repo import MembershipRepository
from messaging_core.infra.persistence.dynamodb.message_repo import MessageRepository
from messaging_core.infra.persistence.dynamodb.organization_repo import OrganizationRepository
from messaging_core.infra.persistence.dynamodb.pending_message_repo import PendingMessageRepository
from messaging_core.infra.persistence.dynamodb.relationship_repo import RelationshipRepository
from messaging_core.infra.persistence.dynamodb.team_repo import TeamRepository
from messaging_core.infra.persistence.dynamodb.unique_property_repo import UniquePropertyRepository
from messaging_core.infra.persistence.dynamodb.user_repo import UserRepository
from messaging_core.infra.search.opensearch_client import OpenSearchClient
from messaging_core.infra.search.search_repo import SearchRepository
from messaging_core.infra.storage.s3_url_provider import S3UrlProvider
from messaging_core.mediators.conversation_mediator import ConversationMediator
from messaging_core.mediators.friendship_mediator import FriendshipMediator
from messaging_core.mediators.group_mediator import GroupMediator
from messaging_core.mediators.meeting_mediator import MeetingMediator
from messaging_core.mediators.message_mediator import MessageMediator
from messaging_core.mediators.organization_mediator import OrganizationMediator
from messaging_core.mediators.team_mediator import TeamMediator
from messaging_core.mediators.user_mediator import UserMediator
from messaging_core.notifications.sns_services import NotificationServices
from messaging_core.processors.controllers import DynamoStreamController, SnsEventController
from messaging_core.processors.conversation_processors import (
    GroupCreatedDynamoProcessor,
    MeetingCreatedDynamoProcessor,
    UserAddedToGroupDynamoProcessor,
    UserAddedToMeetingDynamoProcessor,
    UserRemovedFromGroupDynamoProcessor,
    UserRemovedFromMeetingDynamoProcessor,
)
from messaging_core.processors.friendship_processors import (
    UserAddedAsFriendDynamoProcessor,
    UserRemovedAsFriendDynamoProcessor,
)
from messaging_core.processors.message_processors import (
    FriendMessageCreatedDynamoProcessor,
    FriendMessageUpdatedDynamoProcessor,
    GroupMessageCreatedDynamoProcessor,
    GroupMessageUpdatedDynamoProcessor,
    MeetingMessageCreatedDynamoProcessor,
    MeetingMessageUpdatedDynamoProcessor,
)
from messaging_core.processors.search_sync_processor import SearchSyncDynamoProcessor
from messaging_core.processors.sns_processors import (
    BillingPlanUpdatedSnsProcessor,
    ExternalProviderUserSignedUpSnsProcessor,
    MessageTranscodedSnsProcessor,
    MessageTranscribedSnsProcessor,
)
from messaging_core.services.conversation_service import ConversationService
from messaging_core.services.message_service import MessageService
from messaging_core.services.membership_service import MembershipService
from messaging_core.services.organization_service import OrganizationService
from messaging_core.services.relationship_service import ConversationUserRelationshipService
from messaging_core.services.team_service import TeamService
from messaging_core.services.user_service import UserService

log = logging.getLogger("messaging_core.container")


class Container:
    """
    Wires every component from its collaborators.

    Infrastructure clients are created here and released by close(); every
    other object is plain and stateless.
    """

    def __init__(
        self,
        dynamodb_client: Optional[DynamoDBClient] = None,
        sns_publisher: Optional[SnsPublisher] = None,
        url_provider: Optional[S3UrlProvider] = None,
        search_client: Optional[OpenSearchClient] = None,
        dynamodb_config: Optional[DynamoDBConfig] = None,
        sns_config: Optional[SnsConfig] = None,
    ):
        self.dynamodb_config = dynamodb_config or get_dynamodb_config()
        self.sns_config = sns_config or get_sns_config()

        # Infrastructure
        self.dynamodb_client = dynamodb_client or DynamoDBClient(self.dynamodb_config)
        self.sns_publisher = sns_publisher or SnsPublisher(self.sns_config)
        self.url_provider = url_provider or S3UrlProvider()
        self.search_client = search_client or OpenSearchClient()

        self._build_repositories()

        # Domain services
        self.relationship_service = ConversationUserRelationshipService(self.relationship_repo)
        self.conversation_service = ConversationService(self.conversation_repo, self.relationship_service)
        self.message_service = MessageService(
            self.message_repo, self.pending_message_repo, self.relationship_service
        )
        self.user_service = UserService(self.user_repo, self.unique_property_repo)
        self.organization_service = OrganizationService(self.organization_repo)
        self.membership_service = MembershipService(self.membership_repo)
        self.team_service = TeamService(self.team_repo)

        # Mediators
        self.user_mediator = UserMediator(self.user_service, self.url_provider)
        self.friendship_mediator = FriendshipMediator(
            self.conversation_service, self.relationship_service, self.user_service, self.url_provider
        )
        self.group_mediator = GroupMediator(
            self.conversation_service, self.relationship_service, self.user_service, self.url_provider
        )
        self.meeting_mediator = MeetingMediator(
            self.conversation_service, self.relationship_service, self.user_service, self.url_provider
        )
        self.message_mediator = MessageMediator(
            self.message_service,
            self.conversation_service,
            self.relationship_service,
            self.user_service,
            self.search_repo,
            self.url_provider,
        )
        self.conversation_mediator = ConversationMediator(
            self.conversation_service,
            self.relationship_service,
            self.message_service,
            self.user_service,
            self.search_repo,
            self.url_provider,
        )

        self.organization_mediator = OrganizationMediator(
            self.organization_service, self.membership_service, self.user_service, self.url_provider
        )
        self.team_mediator = TeamMediator(
            self.team_service, self.membership_service, self.user_service, self.url_provider
        )

        self.notifications = NotificationServices(self.sns_publisher, self.sns_config)

        self.dynamo_stream_controller = self._build_dynamo_stream_controller()
        self.sns_event_controller = self._build_sns_event_controller()

    def _build_repositories(self) -> None:
        self.conversation_repo = ConversationRepository(self.dynamodb_client, self.dynamodb_config)
        self.relationship_repo = RelationshipRepository(self.dynamodb_client, self.dynamodb_config)
        self.message_repo = MessageRepository(self.dynamodb_client, self.dynamodb_config)
        self.pending_message_repo = PendingMessageRepository(self.dynamodb_client, self.dynamodb_config)
        self.user_repo = UserRepository(self.dynamodb_client, self.dynamodb_config)
        self.unique_property_repo = UniquePropertyRepository(self.dynamodb_client, self.dynamodb_config)
        self.organization_repo = OrganizationRepository(self.dynamodb_client, self.dynamodb_config)
        self.membership_repo = MembershipRepository(self.dynamodb_client, self.dynamodb_config)
        self.team_repo = TeamRepository(self.dynamodb_client, self.dynamodb_config)
        self.search_repo = SearchRepository(self.search_client)

    def _build_dynamo_stream_controller(self) -> DynamoStreamController:
        n = self.notifications
        config = self.dynamodb_config
        return DynamoStreamController([
            GroupCreatedDynamoProcessor(n.group_created, self.group_mediator, config),
            MeetingCreatedDynamoProcessor(n.meeting_created, self.meeting_mediator, config),
            UserAddedToGroupDynamoProcessor(n.user_added_to_group, self.group_mediator, self.user_mediator, config),
            UserRemovedFromGroupDynamoProcessor(
                n.user_removed_from_group, self.group_mediator, self.user_mediator, config
            ),
            UserAddedToMeetingDynamoProcessor(
                n.user_added_to_meeting, self.meeting_mediator, self.user_mediator, config
            ),
            UserRemovedFromMeetingDynamoProcessor(
                n.user_removed_from_meeting, self.meeting_mediator, self.user_mediator, config
            ),
            UserAddedAsFriendDynamoProcessor(n.user_added_as_friend, self.user_mediator, config),
            UserRemovedAsFriendDynamoProcessor(n.user_removed_as_friend, self.user_mediator, config),
            FriendMessageCreatedDynamoProcessor(
                n.friend_message_created, self.message_mediator, self.user_mediator,
                search_repo=self.search_repo, config=config,
            ),
            GroupMessageCreatedDynamoProcessor(
                n.group_message_created, self.message_mediator, self.user_mediator, self.group_mediator,
                search_repo=self.search_repo, config=config,
            ),
            MeetingMessageCreatedDynamoProcessor(
                n.meeting_message_created, self.message_mediator, self.user_mediator, self.meeting_mediator,
                search_repo=self.search_repo, config=config,
            ),
            FriendMessageUpdatedDynamoProcessor(
                n.friend_message_updated, self.message_mediator, self.user_mediator, config=config,
            ),
            GroupMessageUpdatedDynamoProcessor(
                n.group_message_updated, self.message_mediator, self.user_mediator, self.group_mediator,
                config=config,
            ),
            MeetingMessageUpdatedDynamoProcessor(
                n.meeting_message_updated, self.message_mediator, self.user_mediator, self.meeting_mediator,
                config=config,
            ),
            SearchSyncDynamoProcessor(self.search_repo, config),
        ])

    def _build_sns_event_controller(self) -> SnsEventController:
        return SnsEventController([
            MessageTranscribedSnsProcessor(self.message_service, self.relationship_service, self.sns_config),
            MessageTranscodedSnsProcessor(self.message_service, self.sns_config),
            ExternalProviderUserSignedUpSnsProcessor(self.user_service, self.sns_config),
            BillingPlanUpdatedSnsProcessor(self.organization_service, self.sns_config),
        ])

    async def close(self) -> None:
        results = await asyncio.gather(
            self.dynamodb_client.close(),
            self.sns_publisher.close(),
            self.url_provider.close(),
            self.search_client.close(),
            return_exceptions=True,
        )
        for result in results:
            if isinstance(result, BaseException):
                log.error(f"Error closing infrastructure client: {result}")
        log.info("Container closed")
