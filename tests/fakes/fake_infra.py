# =============================================================================
# File: tests/fakes/fake_infra.py
# Description: Fakes for the infrastructure clients - SNS publisher, S3
#              presigned URL provider, OpenSearch client and DynamoDB client
# =============================================================================

from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence, Tuple

from messaging_core.config.search_config import SearchConfig
from messaging_core.conversation.enums import EntityType, ImageMimeType, MessageMimeType

from tests.fakes.fake_repositories import CallRecord


class FakeClientBase:
    """Call tracking, failure injection and a close() that records itself."""

    def __init__(self):
        self._calls: List[CallRecord] = []
        self._should_fail: Dict[str, Exception] = {}
        self.closed = False

    def configure_failure(self, method: str, error: Exception) -> None:
        self._should_fail[method] = error

    def clear_failures(self) -> None:
        self._should_fail.clear()

    def was_called(self, method: str) -> bool:
        return any(c.method == method for c in self._calls)

    def get_call_count(self, method: str) -> int:
        return sum(1 for c in self._calls if c.method == method)

    def get_calls(self, method: str) -> List[CallRecord]:
        return [c for c in self._calls if c.method == method]

    async def close(self) -> None:
        self.closed = True

    def _record_call(self, method: str, *args, **kwargs) -> None:
        self._calls.append(CallRecord(method=method, args=args, kwargs=kwargs))

    def _check_failure(self, method: str) -> None:
        if method in self._should_fail:
            raise self._should_fail[method]


class FakeDynamoDBClient(FakeClientBase):
    """Stands in for the table client; the fake repositories never touch it."""


class FakeSnsPublisher(FakeClientBase):
    """
    Records every publish instead of calling SNS.

    Usage:
        publisher = FakeSnsPublisher()
        ...
        assert publisher.messages_for(config.group_created_topic_arn) == [...]
    """

    def __init__(self):
        super().__init__()
        self.published: List[Tuple[str, Dict[str, Any]]] = []

    async def publish(self, topic_arn: str, message: Dict[str, Any]) -> str:
        self._record_call("publish", topic_arn, message)
        self._check_failure("publish")
        self.published.append((topic_arn, message))
        return f"sns-message-{len(self.published)}"

    def messages_for(self, topic_arn: str) -> List[Dict[str, Any]]:
        return [message for arn, message in self.published if arn == topic_arn]


class FakeUrlProvider(FakeClientBase):
    """Deterministic presigned URLs."""

    async def get_message_signed_url(
        self,
        conversation_id: str,
        message_id: str,
        mime_type: MessageMimeType,
        operation: str,
    ) -> str:
        self._record_call("get_message_signed_url", conversation_id, message_id, mime_type, operation)
        return f"https://messages.example.test/{operation}/{conversation_id}/{message_id}"

    async def get_image_signed_url(
        self,
        entity_type: EntityType,
        entity_id: str,
        mime_type: Optional[ImageMimeType],
        operation: str,
    ) -> str:
        self._record_call("get_image_signed_url", entity_type, entity_id, mime_type, operation)
        return f"https://images.example.test/{operation}/{entity_type.value}/{entity_id}"


class FakeSearchClient(FakeClientBase):
    """
    In-memory document store behind the OpenSearchClient interface.

    search_ids matches the term as a case-insensitive substring of the
    requested fields; filter_terms match exactly.
    """

    def __init__(self, config: Optional[SearchConfig] = None):
        super().__init__()
        self.config = config or SearchConfig()
        self.documents: Dict[str, Dict[str, Dict[str, Any]]] = {}

    async def index_document(self, index: str, document_id: str, document: Dict[str, Any]) -> None:
        self._record_call("index_document", index, document_id, document)
        self._check_failure("index_document")
        self.documents.setdefault(index, {})[document_id] = document

    async def delete_document(self, index: str, document_id: str) -> None:
        self._record_call("delete_document", index, document_id)
        self._check_failure("delete_document")
        self.documents.get(index, {}).pop(document_id, None)

    async def search_ids(
        self,
        indexes: Sequence[str],
        search_term: str,
        fields: Sequence[str],
        restrict_to_ids: Optional[Sequence[str]] = None,
        offset: int = 0,
        size: int = 25,
        filter_terms: Optional[Dict[str, Sequence[str]]] = None,
    ) -> Tuple[List[str], int]:
        self._record_call(
            "search_ids", list(indexes), search_term, restrict_to_ids=restrict_to_ids, filter_terms=filter_terms
        )
        term = search_term.lower()
        allowed = set(restrict_to_ids) if restrict_to_ids is not None else None
        filters = {field: set(values) for field, values in (filter_terms or {}).items()}

        matches: List[str] = []
        for index in indexes:
            for document_id, document in sorted(self.documents.get(index, {}).items()):
                if allowed is not None and document_id not in allowed:
                    continue
                if any(document.get(field) not in values for field, values in filters.items()):
                    continue
                if any(term in str(document.get(field) or "").lower() for field in fields):
                    matches.append(document_id)
        return matches[offset:offset + size], len(matches)

    def document(self, index: str, document_id: str) -> Optional[Dict[str, Any]]:
        return self.documents.get(index, {}).get(document_id)
