# =============================================================================
# File: tests/unit/test_infra_helpers.py
# Description: Key, paging and error helpers shared by the repositories,
#              plus conditional writes against a stub table and the search
#              request sent for message search
# =============================================================================

import json
from types import SimpleNamespace

import httpx
import pytest
from botocore.exceptions import ClientError

from messaging_core.common.exceptions.exceptions import BadRequestError
from messaging_core.config.search_config import SearchConfig
from messaging_core.conversation.enums import (
    ConversationType,
    EntityType,
    ImageMimeType,
    MessageMimeType,
    Role,
    UniquePropertyKind,
)
from messaging_core.conversation.exceptions import UniquePropertyTakenError, UserAlreadyExistsError
from messaging_core.conversation.ids import friend_id_from_conversation_id, friend_conversation_id
from messaging_core.conversation.models import ConversationUserRelationship, Message, UniquePropertyEntry, User
from messaging_core.infra.persistence.dynamodb.base_dynamo_repo import (
    decode_exclusive_start_key,
    encode_exclusive_start_key,
    is_conditional_failure,
)
from messaging_core.infra.persistence.dynamodb.message_repo import message_item
from messaging_core.infra.persistence.dynamodb.relationship_repo import RelationshipRepository, relationship_item
from messaging_core.infra.persistence.dynamodb.user_repo import UserRepository
from messaging_core.infra.search.opensearch_client import OpenSearchClient
from messaging_core.infra.search.search_repo import SearchRepository, decode_search_key, encode_search_key
from messaging_core.infra.storage.s3_url_provider import image_file_key, message_file_key


def client_error(code: str, reasons=None) -> ClientError:
    response = {"Error": {"Code": code, "Message": code}}
    if reasons is not None:
        response["CancellationReasons"] = [{"Code": reason} for reason in reasons]
    return ClientError(response, "PutItem")


class TestExclusiveStartKey:

    def test_round_trip(self):
        key = {"pk": "convo-group-1", "sk": "user-1"}

        assert decode_exclusive_start_key(encode_exclusive_start_key(key)) == key

    def test_absent_key(self):
        assert encode_exclusive_start_key(None) is None
        assert decode_exclusive_start_key(None) is None

    def test_garbage_is_bad_request(self):
        with pytest.raises(BadRequestError):
            decode_exclusive_start_key("%%%not-base64%%%")

    def test_search_key_garbage_is_bad_request(self):
        assert decode_search_key(encode_search_key(40)) == 40
        with pytest.raises(BadRequestError):
            decode_search_key("bm90IGpzb24=")


class TestConditionalFailures:

    @pytest.mark.parametrize("code,expected", [
        ("ConditionalCheckFailedException", True),
        ("ProvisionedThroughputExceededException", False),
    ])
    def test_codes(self, code, expected):
        assert is_conditional_failure(client_error(code)) is expected

    @pytest.mark.parametrize("reasons,expected", [
        (["None", "ConditionalCheckFailed"], True),
        (["TransactionConflict", "None"], False),
        (["ThrottlingError"], False),
        ([], False),
    ])
    def test_cancelled_transaction_needs_a_failed_condition(self, reasons, expected):
        error = client_error("TransactionCanceledException", reasons)
        assert is_conditional_failure(error) is expected


class StubTable:
    """
    One relationship row. Updates carrying :updatedAt fail their condition
    when the stored updatedAt is newer, as DynamoDB would.
    """

    def __init__(self, item):
        self.item = item
        self.updates = []

    async def update_item(self, **kwargs):
        self.updates.append(kwargs)
        values = kwargs.get("ExpressionAttributeValues", {})
        if ":updatedAt" in values:
            if self.item["updatedAt"] > values[":updatedAt"]:
                raise client_error("ConditionalCheckFailedException")
            self.item.update(updatedAt=values[":updatedAt"], recentMessageId=values[":messageId"])
        else:
            self.item.setdefault("unreadMessages", set()).update(values[":messageIds"])
        return {"Attributes": dict(self.item)}

    async def get_item(self, Key):
        return {"Item": dict(self.item)}


class StubDynamoClient:
    """Stands in for DynamoDBClient; transactions are cancelled with the given reasons."""

    def __init__(self, table=None, reasons=None):
        self.config = SimpleNamespace(core_table_name="core", default_page_size=20)
        self.table = table
        self.reasons = reasons

    async def get_table(self):
        return self.table

    async def get_client(self):
        return self

    async def transact_write_items(self, TransactItems):
        raise client_error("TransactionCanceledException", self.reasons)


class TestCreateUserCancellation:

    def _create(self, reasons):
        repo = UserRepository(StubDynamoClient(reasons=reasons))
        user = User(id="user-1", created_at="2024-01-01T00:00:00Z", email="a@example.com", username="alice")
        entries = [
            UniquePropertyEntry(property=UniquePropertyKind.EMAIL, value="a@example.com", user_id="user-1"),
            UniquePropertyEntry(property=UniquePropertyKind.USERNAME, value="alice", user_id="user-1"),
        ]
        return repo.create_user(user, entries)

    async def test_taken_property_is_named(self):
        with pytest.raises(UniquePropertyTakenError) as excinfo:
            await self._create(["None", "None", "ConditionalCheckFailed"])
        assert excinfo.value.kind == "username"

    async def test_existing_user(self):
        with pytest.raises(UserAlreadyExistsError):
            await self._create(["ConditionalCheckFailed", "None", "None"])

    async def test_conflict_is_not_reported_as_taken(self):
        with pytest.raises(ClientError):
            await self._create(["TransactionConflict", "None", "None"])


class TestAddMessageToRelationship:

    @pytest.fixture
    def table(self):
        relationship = ConversationUserRelationship(
            conversation_id="convo-group-1",
            user_id="user-b",
            type=ConversationType.GROUP,
            role=Role.USER,
            updated_at="2024-05-01T10:05:00.000Z",
            recent_message_id="message-2",
        )
        return StubTable(relationship_item(relationship))

    @pytest.fixture
    def repo(self, table):
        return RelationshipRepository(StubDynamoClient(table=table))

    async def test_newer_message_resurfaces(self, repo, table):
        row = await repo.add_message_to_relationship(
            "convo-group-1", "user-b", ConversationType.GROUP, "message-3", "2024-05-01T10:10:00.000Z"
        )

        assert row.recent_message_id == "message-3"
        assert row.unread_messages == {"message-3"}
        assert table.updates[1]["ExpressionAttributeValues"][":gsi1sk"] == "time-2024-05-01T10:10:00.000Z"

    async def test_older_message_is_unread_but_keeps_recency(self, repo, table):
        row = await repo.add_message_to_relationship(
            "convo-group-1", "user-b", ConversationType.GROUP, "message-1", "2024-05-01T10:00:00.000Z"
        )

        assert row.recent_message_id == "message-2"
        assert row.updated_at == "2024-05-01T10:05:00.000Z"
        assert row.unread_messages == {"message-1"}
        add_unread, resurface = table.updates
        assert "ConditionExpression" in add_unread and ":updatedAt" not in add_unread["ExpressionAttributeValues"]
        assert "#updatedAt <= :updatedAt" in resurface["ConditionExpression"]

    async def test_older_message_from_sender_returns_current_row(self, repo, table):
        row = await repo.add_message_to_relationship(
            "convo-group-1", "user-b", ConversationType.GROUP, "message-1", "2024-05-01T10:00:00.000Z", sender=True
        )

        assert len(table.updates) == 1
        assert row.recent_message_id == "message-2"
        assert row.unread_messages == set()


class TestMessageSearch:

    def search_repo(self, captured, total=3):
        def handler(request: httpx.Request) -> httpx.Response:
            captured.append(request)
            return httpx.Response(200, json={"hits": {"total": {"value": total}, "hits": [{"_id": "message-2"}]}})

        http = httpx.AsyncClient(base_url="http://search.test", transport=httpx.MockTransport(handler))
        return SearchRepository(OpenSearchClient(http_client=http, config=SearchConfig()))

    async def test_query_filters_on_conversations(self):
        captured = []
        repo = self.search_repo(captured)

        page = await repo.get_message_ids_by_search_term("budget", ["convo-group-1", "convo-group-2"], limit=1)

        body = json.loads(captured[0].content)
        assert captured[0].url.path == "/message/_search"
        assert body["query"]["bool"]["must"][0]["multi_match"]["fields"] == ["transcript", "title"]
        assert body["query"]["bool"]["filter"] == [
            {"terms": {"conversationId.keyword": ["convo-group-1", "convo-group-2"]}}
        ]
        assert body["size"] == 1
        assert page.items == ["message-2"]
        assert decode_search_key(page.last_evaluated_key) == 1

    async def test_no_conversations_means_no_request(self):
        captured = []
        repo = self.search_repo(captured)

        page = await repo.get_message_ids_by_search_term("budget", [])

        assert page.items == []
        assert captured == []


class TestItems:

    def test_reply_indexed_under_parent(self):
        reply = Message(
            id="reply-1",
            conversation_id="convo-group-1",
            conversation_type=ConversationType.GROUP,
            from_="user-a",
            created_at="2024-05-01T10:00:00.000Z",
            mime_type=MessageMimeType.AUDIO_MP3,
            seen_at={"user-a": "2024-05-01T10:00:00.000Z"},
            reply_to="message-1",
        )

        item = message_item(reply)

        assert item["gsi1pk"] == "reply_to-message-1"
        assert item["gsi1sk"] == "message_created-2024-05-01T10:00:00.000Z"
        assert item["from"] == "user-a"

    def test_meeting_relationship_has_due_date_index(self):
        relationship = ConversationUserRelationship(
            conversation_id="convo-meeting-1",
            user_id="user-a",
            type=ConversationType.MEETING,
            role=Role.USER,
            updated_at="2024-05-01T10:00:00.000Z",
            due_date="2024-06-01T09:00:00.000Z",
        )

        item = relationship_item(relationship)

        assert item["gsi1sk"] == "time-2024-05-01T10:00:00.000Z"
        assert item["gsi2sk"] == "time-convo-meeting-2024-05-01T10:00:00.000Z"
        assert item["gsi3sk"] == "dueDate-2024-06-01T09:00:00.000Z"
        assert "unreadMessages" not in item

    def test_file_keys(self):
        assert message_file_key("convo-group-1", "message-1", MessageMimeType.VIDEO_WEBM) == "convo-group-1/message-1.webm"
        assert image_file_key(EntityType.USER, "user-1", ImageMimeType.JPEG) == "User/user-1.jpeg"


class TestFriendIds:

    def test_other_member_recovered(self):
        conversation_id = friend_conversation_id("user-b", "user-a")

        assert conversation_id == "convo-friend-user-a-user-b"
        assert friend_id_from_conversation_id(conversation_id, "user-a") == "user-b"
        assert friend_id_from_conversation_id(conversation_id, "user-b") == "user-a"
