# =============================================================================
# File: tests/unit/test_controllers.py
# Description: Event dispatch - record parsing, processor fan-out and
#              aggregated failures
# =============================================================================

import logging

import pytest

from messaging_core.processors.base import BaseProcessor
from messaging_core.processors.controllers import DynamoStreamController, SnsEventController
from messaging_core.processors.records import DynamoStreamRecord, SnsRecord

from tests.fakes import event_builders


class RecordingProcessor(BaseProcessor):
    """Supports everything with a non-empty event name / topic; optionally fails."""

    def __init__(self, error=None):
        self.error = error
        self.records = []

    def _supports(self, record) -> bool:
        return bool(getattr(record, "event_name", None) or getattr(record, "topic_arn", None))

    async def _process(self, record) -> None:
        self.records.append(record)
        if self.error:
            raise self.error


class ExplodingSupportProcessor(BaseProcessor):

    def _supports(self, record) -> bool:
        return record.new_image["missing"]

    async def _process(self, record) -> None:
        raise AssertionError("never called")


class TestDynamoStreamController:

    def test_to_record_unmarshalls_images(self):
        raw = event_builders.insert({"id": "user-1", "entityType": "User", "tags": {"a"}})

        record = DynamoStreamController([]).to_record(raw)

        assert record.table_name == "messaging-core"
        assert record.event_name == "INSERT"
        assert record.new_image == {"id": "user-1", "entityType": "User", "tags": {"a"}}
        assert record.old_image == {}

    @pytest.mark.parametrize("raw", [
        {},
        {"eventName": "INSERT"},
        {"eventName": "INSERT", "eventSourceARN": "not-an-arn"},
        {"eventName": "INSERT", "eventSourceARN": "arn:aws:dynamodb:us-east-1:1:table/t/stream/x",
         "dynamodb": {"NewImage": {"id": {"BOGUS": "x"}}}},
    ])
    def test_malformed_record_becomes_empty(self, raw):
        assert DynamoStreamController([]).to_record(raw) == DynamoStreamRecord.empty()

    async def test_counts_supported_calls(self):
        first, second = RecordingProcessor(), RecordingProcessor()
        controller = DynamoStreamController([first, second])
        event = event_builders.dynamo_stream_event(
            event_builders.insert({"id": "a"}),
            event_builders.remove({"id": "b"}),
        )

        assert await controller.handle_event(event) == 4
        assert [r.event_name for r in first.records] == ["INSERT", "REMOVE"]

    async def test_no_records_no_calls(self):
        assert await DynamoStreamController([RecordingProcessor()]).handle_event({}) == 0

    async def test_failures_reported_after_all_calls(self, caplog):
        healthy = RecordingProcessor()
        failing = RecordingProcessor(error=RuntimeError("boom"))
        controller = DynamoStreamController([failing, healthy])
        event = event_builders.dynamo_stream_event(
            event_builders.insert({"id": "a"}),
            event_builders.insert({"id": "b"}),
        )

        with caplog.at_level(logging.ERROR):
            with pytest.raises(RuntimeError, match="boom"):
                await controller.handle_event(event)

        assert len(healthy.records) == 2
        assert "Error calling 2 of 4 processor services." in caplog.text
        assert "Error in process_record: boom" in caplog.text

    def test_support_check_never_raises(self):
        processor = ExplodingSupportProcessor()

        assert processor.determine_record_support(DynamoStreamRecord(new_image={})) is False


class TestSnsEventController:

    def test_to_record_decodes_json_body(self):
        raw = event_builders.sns_record("arn:topic", {"messageId": "message-1"})

        assert SnsEventController.to_record(raw) == SnsRecord(topic_arn="arn:topic", message={"messageId": "message-1"})

    @pytest.mark.parametrize("raw", [
        {},
        {"Sns": {"TopicArn": "arn:topic"}},
        event_builders.sns_record("arn:topic", "not json"),
        event_builders.sns_record("arn:topic", "[1, 2]"),
    ])
    def test_malformed_record_becomes_empty(self, raw):
        assert SnsEventController.to_record(raw) == SnsRecord.empty()

    async def test_malformed_records_reach_no_processor(self):
        processor = RecordingProcessor()
        event = event_builders.sns_event(event_builders.sns_record("arn:topic", "not json"))

        assert await SnsEventController([processor]).handle_event(event) == 0
        assert processor.records == []
