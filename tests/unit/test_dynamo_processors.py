# =============================================================================
# File: tests/unit/test_dynamo_processors.py
# Description: Table stream processors - record support and the payloads
#              they publish
# =============================================================================

import pytest

from messaging_core.conversation.enums import ConversationType, MessageMimeType
from messaging_core.conversation.value_objects import UserIdentifier
from messaging_core.infra.persistence.dynamodb.conversation_repo import conversation_item
from messaging_core.infra.persistence.dynamodb.message_repo import message_item
from messaging_core.infra.persistence.dynamodb.relationship_repo import relationship_item
from messaging_core.infra.persistence.dynamodb.user_repo import user_item
from messaging_core.processors.message_processors import FriendMessageCreatedDynamoProcessor
from messaging_core.processors.records import DynamoStreamRecord

from tests.fakes import event_builders


async def stream(container, *records) -> int:
    return await container.dynamo_stream_controller.handle_event(event_builders.dynamo_stream_event(*records))


async def group_with_member(container, create_user):
    admin = await create_user("admin@example.com")
    group = await container.conversation_service.create_group(admin.id, "Crew")
    result = await container.group_mediator.add_users(group.id, [UserIdentifier(email="b@example.com")])
    return admin, result.successes[0], group


class TestRecordSupport:

    def test_other_tables_are_ignored(self, container):
        record = DynamoStreamRecord(
            table_name="some-other-table",
            event_name="INSERT",
            new_image={"entityType": "GroupConversation", "id": "convo-group-1"},
        )

        assert not any(p.determine_record_support(record) for p in container.dynamo_stream_controller.processors)

    def test_empty_record_supported_by_nobody(self, container):
        record = DynamoStreamRecord.empty()

        assert not any(p.determine_record_support(record) for p in container.dynamo_stream_controller.processors)

    def test_message_processor_requires_matching_type(self, container):
        record = DynamoStreamRecord(
            table_name=container.dynamodb_config.core_table_name,
            event_name="INSERT",
            new_image={"entityType": "Message", "id": "message-1", "conversationType": "group"},
        )
        supporting = [
            type(p).__name__ for p in container.dynamo_stream_controller.processors
            if p.determine_record_support(record)
        ]

        assert supporting == ["GroupMessageCreatedDynamoProcessor"]

    def test_created_message_processor_needs_search_repo(self, container):
        with pytest.raises(ValueError):
            FriendMessageCreatedDynamoProcessor(
                container.notifications.friend_message_created,
                container.message_mediator,
                container.user_mediator,
                search_repo=None,
                config=container.dynamodb_config,
            )


class TestGroupProcessors:

    async def test_group_created_publishes_group_and_members(self, container, create_user):
        admin = await create_user("admin@example.com")
        group = await container.conversation_service.create_group(admin.id, "Crew")

        processed = await stream(container, event_builders.insert(conversation_item(group)))

        # GroupCreated plus search sync
        assert processed == 2
        [payload] = container.sns_publisher.messages_for(container.sns_config.group_created_topic_arn)
        assert payload["group"]["id"] == group.id
        assert payload["group"]["image"].endswith(f"/GroupConversation/{group.id}")
        assert payload["groupMemberIds"] == [admin.id]
        assert container.search_client.document("group", group.id)["name"] == "Crew"

    async def test_user_added_lists_current_members(self, container, create_user):
        admin, member, group = await group_with_member(container, create_user)
        row = container.relationship_repo.rows[(group.id, member.id)]

        processed = await stream(container, event_builders.insert(relationship_item(row)))

        assert processed == 1
        [payload] = container.sns_publisher.messages_for(container.sns_config.user_added_to_group_topic_arn)
        assert payload["user"]["id"] == member.id
        assert payload["group"]["id"] == group.id
        assert sorted(payload["groupMemberIds"]) == sorted([admin.id, member.id])

    async def test_user_removed_excludes_removed_user(self, container, create_user):
        admin, member, group = await group_with_member(container, create_user)
        row = container.relationship_repo.rows[(group.id, member.id)]
        await container.group_mediator.remove_user(group.id, member.id)

        await stream(container, event_builders.remove(relationship_item(row)))

        [payload] = container.sns_publisher.messages_for(container.sns_config.user_removed_from_group_topic_arn)
        assert payload["user"]["id"] == member.id
        assert payload["groupMemberIds"] == [admin.id]

    async def test_relationship_modify_publishes_nothing(self, container, create_user):
        _, member, group = await group_with_member(container, create_user)
        row = container.relationship_repo.rows[(group.id, member.id)]

        processed = await stream(container, event_builders.modify(relationship_item(row), relationship_item(row)))

        assert processed == 0
        assert container.sns_publisher.published == []


class TestMeetingProcessors:

    async def test_meeting_created_and_member_added(self, container, create_user):
        admin = await create_user("admin@example.com")
        meeting = await container.conversation_service.create_meeting(admin.id, "Sync", "2024-06-01T09:00:00.000Z")
        result = await container.meeting_mediator.add_users(meeting.id, [UserIdentifier(email="b@example.com")])
        row = container.relationship_repo.rows[(meeting.id, result.successes[0].id)]

        await stream(
            container,
            event_builders.insert(conversation_item(meeting)),
            event_builders.insert(relationship_item(row)),
        )

        [created] = container.sns_publisher.messages_for(container.sns_config.meeting_created_topic_arn)
        [added] = container.sns_publisher.messages_for(container.sns_config.user_added_to_meeting_topic_arn)
        assert created["meeting"]["dueDate"] == "2024-06-01T09:00:00.000Z"
        assert len(created["meetingMemberIds"]) == 2
        assert added["user"]["email"] == "b@example.com"


class TestFriendProcessors:

    async def test_friend_added_payload_in_member_order(self, container, create_user):
        first = await create_user("first@example.com")
        second = await create_user("second@example.com")
        conversation = await container.conversation_service.create_friend_conversation(second.id, first.id)

        processed = await stream(container, event_builders.insert(conversation_item(conversation)))

        assert processed == 1
        [payload] = container.sns_publisher.messages_for(container.sns_config.user_added_as_friend_topic_arn)
        assert [payload["userA"]["id"], payload["userB"]["id"]] == conversation.member_ids

    async def test_friend_removed_uses_old_image(self, container, create_user):
        first = await create_user("first@example.com")
        second = await create_user("second@example.com")
        conversation = await container.conversation_service.create_friend_conversation(first.id, second.id)
        await container.friendship_mediator.remove_friend(first.id, second.id)

        await stream(container, event_builders.remove(conversation_item(conversation)))

        [payload] = container.sns_publisher.messages_for(container.sns_config.user_removed_as_friend_topic_arn)
        assert {payload["userA"]["id"], payload["userB"]["id"]} == {first.id, second.id}


class TestMessageProcessors:

    async def send(self, container, conversation_id, conversation_type, from_):
        pending = await container.message_service.create_pending_message(
            conversation_id, conversation_type, from_, MessageMimeType.AUDIO_MP3, title="Notes"
        )
        message, _ = await container.message_service.convert_pending_to_message(pending.id, transcript="see you")
        return message

    async def test_group_message_created_publishes_and_indexes(self, container, create_user):
        admin, member, group = await group_with_member(container, create_user)
        message = await self.send(container, group.id, ConversationType.GROUP, admin.id)

        processed = await stream(container, event_builders.insert(message_item(message)))

        assert processed == 1
        [payload] = container.sns_publisher.messages_for(container.sns_config.group_message_created_topic_arn)
        assert payload["to"]["id"] == group.id
        assert payload["from"]["id"] == admin.id
        assert payload["message"]["id"] == message.id
        assert payload["message"]["fetchUrl"].endswith(f"/{group.id}/{message.id}")
        assert sorted(payload["groupMemberIds"]) == sorted([admin.id, member.id])
        document = container.search_client.document("message", message.id)
        assert document["transcript"] == "see you"
        assert document["conversationId"] == group.id

    async def test_friend_message_updated_goes_to_friend(self, container, create_user):
        sender = await create_user("sender@example.com")
        friend = await create_user("friend@example.com")
        conversation = await container.conversation_service.create_friend_conversation(sender.id, friend.id)
        message = await self.send(container, conversation.id, ConversationType.FRIEND, sender.id)

        processed = await stream(container, event_builders.modify(message_item(message), message_item(message)))

        assert processed == 1
        [payload] = container.sns_publisher.messages_for(container.sns_config.friend_message_updated_topic_arn)
        assert payload["to"]["id"] == friend.id
        assert "groupMemberIds" not in payload
        assert container.search_client.document("message", message.id) is None

    async def test_publish_failure_still_indexes_then_raises(self, container, create_user):
        admin, _, group = await group_with_member(container, create_user)
        message = await self.send(container, group.id, ConversationType.GROUP, admin.id)
        container.sns_publisher.configure_failure("publish", RuntimeError("sns down"))

        with pytest.raises(RuntimeError, match="sns down"):
            await stream(container, event_builders.insert(message_item(message)))

        assert container.search_client.document("message", message.id) is not None


class TestSearchSync:

    async def test_user_indexed_then_removed(self, container, create_user):
        user = await create_user("ada@example.com", real_name="Ada Lovelace")

        await stream(container, event_builders.insert(user_item(user)))
        assert container.search_client.document("user", user.id)["realName"] == "Ada Lovelace"

        await stream(container, event_builders.remove(user_item(user)))
        assert container.search_client.document("user", user.id) is None

    async def test_meeting_update_reindexed(self, container, create_user):
        admin = await create_user("admin@example.com")
        meeting = await container.conversation_service.create_meeting(admin.id, "Sync", "2024-06-01T09:00:00.000Z")
        renamed = meeting.model_copy(update={"name": "Weekly sync"})

        processed = await stream(container, event_builders.modify(conversation_item(meeting), conversation_item(renamed)))

        assert processed == 1
        assert container.search_client.document("meeting", meeting.id)["name"] == "Weekly sync"
