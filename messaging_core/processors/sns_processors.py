# =============================================================================
# File: messaging_core/processors/sns_processors.py
# Description: Processors for inbound SNS topics - media pipeline results,
#              external sign-ups and billing changes
# =============================================================================

from __future__ import annotations

import logging
from typing import Optional

from messaging_core.config.sns_config import SnsConfig
from messaging_core.conversation.enums import BillingPlan, MessageMimeType, UniquePropertyKind
from messaging_core.conversation.exceptions import PendingMessageNotFoundError
from messaging_core.conversation.ids import message_id_from_pending, pending_message_id
from messaging_core.processors.base import BaseSnsProcessor
from messaging_core.processors.records import SnsRecord
from messaging_core.services.message_service import MessageService
from messaging_core.services.organization_service import OrganizationService
from messaging_core.services.relationship_service import ConversationUserRelationshipService
from messaging_core.services.user_service import UserService

log = logging.getLogger("messaging_core.processors.sns")


class MessageTranscribedSnsProcessor(BaseSnsProcessor):
    """
    {messageId, transcript}: convert the pending message and fan it out to
    the members' relationship rows.

    Redelivery is safe. A message that was already converted is fanned out
    again from its stored seenAt, which rewrites the same values.
    """

    topic_field = "message_transcribed_topic_arn"

    def __init__(
        self,
        message_service: MessageService,
        relationship_service: ConversationUserRelationshipService,
        config: Optional[SnsConfig] = None,
    ):
        super().__init__(config)
        self.message_service = message_service
        self.relationship_service = relationship_service

    def _supports(self, record: SnsRecord) -> bool:
        return super()._supports(record) and isinstance(record.message.get("messageId"), str)

    async def _process(self, record: SnsRecord) -> None:
        message_id = message_id_from_pending(record.message["messageId"])
        try:
            message, converted = await self.message_service.convert_pending_to_message(
                pending_message_id(message_id), transcript=record.message.get("transcript")
            )
        except PendingMessageNotFoundError:
            log.warning(f"Transcription for unknown message {message_id}, nothing to convert")
            return

        await self.relationship_service.on_message_created(message)
        log.info(f"Message {message_id} transcribed (converted={converted})")


class MessageTranscodedSnsProcessor(BaseSnsProcessor):
    """{key, messageId, newMimeType}: record the transcoded media type."""

    topic_field = "message_transcoded_topic_arn"

    def __init__(self, message_service: MessageService, config: Optional[SnsConfig] = None):
        super().__init__(config)
        self.message_service = message_service

    def _supports(self, record: SnsRecord) -> bool:
        return (
            super()._supports(record)
            and isinstance(record.message.get("messageId"), str)
            and record.message.get("newMimeType") in {mime_type.value for mime_type in MessageMimeType}
        )

    async def _process(self, record: SnsRecord) -> None:
        message_id = message_id_from_pending(record.message["messageId"])
        mime_type = MessageMimeType(record.message["newMimeType"])
        try:
            await self.message_service.update_pending_message_mime_type(pending_message_id(message_id), mime_type)
        except PendingMessageNotFoundError:
            # Transcription won the race
            await self.message_service.update_message(message_id, mime_type=mime_type)
        log.info(f"Message {message_id} transcoded to {mime_type.value}")


class ExternalProviderUserSignedUpSnsProcessor(BaseSnsProcessor):
    """{email}: make sure a user exists for the address."""

    topic_field = "external_provider_user_signed_up_topic_arn"

    def __init__(self, user_service: UserService, config: Optional[SnsConfig] = None):
        super().__init__(config)
        self.user_service = user_service

    def _supports(self, record: SnsRecord) -> bool:
        return super()._supports(record) and isinstance(record.message.get("email"), str)

    async def _process(self, record: SnsRecord) -> None:
        user = await self.user_service.get_or_create_user(UniquePropertyKind.EMAIL, record.message["email"])
        log.info(f"External sign-up resolved to {user.id}")


class BillingPlanUpdatedSnsProcessor(BaseSnsProcessor):
    """{organizationId, billingPlan}"""

    topic_field = "billing_plan_updated_topic_arn"

    def __init__(self, organization_service: OrganizationService, config: Optional[SnsConfig] = None):
        super().__init__(config)
        self.organization_service = organization_service

    def _supports(self, record: SnsRecord) -> bool:
        return (
            super()._supports(record)
            and isinstance(record.message.get("organizationId"), str)
            and record.message.get("billingPlan") in {plan.value for plan in BillingPlan}
        )

    async def _process(self, record: SnsRecord) -> None:
        await self.organization_service.update_billing_plan(
            record.message["organizationId"], BillingPlan(record.message["billingPlan"])
        )
