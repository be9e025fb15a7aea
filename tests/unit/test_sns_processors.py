# =============================================================================
# File: tests/unit/test_sns_processors.py
# Description: Inbound SNS topics - transcription, transcoding, external
#              sign-ups and billing plan changes
# =============================================================================

from messaging_core.conversation.enums import BillingPlan, MessageMimeType, UniquePropertyKind
from messaging_core.conversation.value_objects import UserIdentifier

from tests.fakes import event_builders


async def deliver_sns(container, topic_arn, message) -> int:
    event = event_builders.sns_event(event_builders.sns_record(topic_arn, message))
    return await container.sns_event_controller.handle_event(event)


async def pending_group_message(container, create_user, mime_type=MessageMimeType.AUDIO_MP3):
    admin = await create_user("admin@example.com")
    group = await container.conversation_service.create_group(admin.id, "Crew")
    result = await container.group_mediator.add_users(group.id, [UserIdentifier(email="b@example.com")])
    view = await container.message_mediator.create_group_message(group.id, admin.id, mime_type)
    return admin, result.successes[0], group, view["id"]


class TestMessageTranscribed:

    async def test_converts_and_fans_out(self, container, create_user):
        admin, member, group, message_id = await pending_group_message(container, create_user)
        topic = container.sns_config.message_transcribed_topic_arn

        processed = await deliver_sns(container, topic, {"messageId": message_id, "transcript": "hello"})

        assert processed == 1
        message = container.message_repo.messages[message_id]
        assert message.transcript == "hello"
        assert message.seen_at[member.id] is None
        assert container.relationship_repo.rows[(group.id, member.id)].unread_messages == {message_id}
        assert container.relationship_repo.rows[(group.id, admin.id)].unread_messages == set()
        assert container.relationship_repo.rows[(group.id, admin.id)].recent_message_id == message_id

    async def test_redelivery_does_not_duplicate(self, container, create_user):
        _, member, group, message_id = await pending_group_message(container, create_user)
        topic = container.sns_config.message_transcribed_topic_arn
        await deliver_sns(container, topic, {"messageId": message_id, "transcript": "hello"})
        first = container.message_repo.messages[message_id].model_copy(deep=True)

        await deliver_sns(container, topic, {"messageId": message_id, "transcript": "hello again"})

        assert container.message_repo.messages == {message_id: first}
        assert container.relationship_repo.rows[(group.id, member.id)].unread_messages == {message_id}

    async def test_replayed_older_transcription_keeps_newer_recency(self, container, create_user):
        admin, member, group, first_id = await pending_group_message(container, create_user)
        topic = container.sns_config.message_transcribed_topic_arn
        await deliver_sns(container, topic, {"messageId": first_id, "transcript": "first"})
        container.message_repo.messages[first_id].created_at = "2000-01-01T00:00:00.000Z"
        second = await container.message_mediator.create_group_message(group.id, admin.id, MessageMimeType.AUDIO_MP3)
        await deliver_sns(container, topic, {"messageId": second["id"], "transcript": "second"})
        row = container.relationship_repo.rows[(group.id, member.id)]

        await deliver_sns(container, topic, {"messageId": first_id, "transcript": "first"})

        assert row.recent_message_id == second["id"]
        assert row.updated_at == container.message_repo.messages[second["id"]].created_at
        assert row.unread_messages == {first_id, second["id"]}

    async def test_pending_id_is_accepted(self, container, create_user):
        _, _, _, message_id = await pending_group_message(container, create_user)

        await deliver_sns(
            container, container.sns_config.message_transcribed_topic_arn, {"messageId": f"pending-{message_id}"}
        )

        assert message_id in container.message_repo.messages

    async def test_unknown_message_is_dropped(self, container):
        processed = await deliver_sns(
            container, container.sns_config.message_transcribed_topic_arn, {"messageId": "message-unknown"}
        )

        assert processed == 1
        assert container.message_repo.messages == {}

    async def test_missing_message_id_unsupported(self, container):
        processed = await deliver_sns(container, container.sns_config.message_transcribed_topic_arn, {"transcript": "x"})

        assert processed == 0


class TestMessageTranscoded:

    async def test_updates_pending_before_conversion(self, container, create_user):
        _, _, _, message_id = await pending_group_message(container, create_user, MessageMimeType.VIDEO_WEBM)

        await deliver_sns(container, container.sns_config.message_transcoded_topic_arn, {
            "key": f"convo/{message_id}", "messageId": message_id, "newMimeType": "video/mp4",
        })

        pending = container.pending_message_repo.pending_messages[f"pending-{message_id}"]
        assert pending.mime_type == MessageMimeType.VIDEO_MP4

    async def test_updates_message_after_conversion(self, container, create_user):
        _, _, _, message_id = await pending_group_message(container, create_user, MessageMimeType.VIDEO_WEBM)
        await container.message_service.convert_pending_to_message(f"pending-{message_id}")

        await deliver_sns(container, container.sns_config.message_transcoded_topic_arn, {
            "messageId": message_id, "newMimeType": "video/mp4",
        })

        assert container.message_repo.messages[message_id].mime_type == MessageMimeType.VIDEO_MP4

    async def test_unknown_mime_type_unsupported(self, container):
        processed = await deliver_sns(container, container.sns_config.message_transcoded_topic_arn, {
            "messageId": "message-1", "newMimeType": "image/gif",
        })

        assert processed == 0


class TestExternalProviderUserSignedUp:

    async def test_creates_user_once(self, container):
        topic = container.sns_config.external_provider_user_signed_up_topic_arn

        await deliver_sns(container, topic, {"email": "signup@example.com"})
        await deliver_sns(container, topic, {"email": "SignUp@example.com"})

        assert len(container.user_repo.users) == 1
        user = await container.user_service.get_user_by_unique_property(UniquePropertyKind.EMAIL, "signup@example.com")
        assert user.email == "signup@example.com"


class TestBillingPlanUpdated:

    async def test_sets_plan(self, container, create_user):
        owner = await create_user("owner@example.com")
        organization = await container.organization_service.create_organization("Acme", owner.id)

        processed = await deliver_sns(container, container.sns_config.billing_plan_updated_topic_arn, {
            "organizationId": organization.id, "billingPlan": "paid",
        })

        assert processed == 1
        assert container.organization_repo.organizations[organization.id].billing_plan == BillingPlan.PAID

    async def test_invalid_plan_unsupported(self, container):
        processed = await deliver_sns(container, container.sns_config.billing_plan_updated_topic_arn, {
            "organizationId": "organization-1", "billingPlan": "platinum",
        })

        assert processed == 0


async def test_unknown_topic_is_ignored(container):
    assert await deliver_sns(container, "arn:aws:sns:us-east-1:000000000000:Unrelated", {"messageId": "x"}) == 0

