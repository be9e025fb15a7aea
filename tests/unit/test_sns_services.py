# =============================================================================
# File: tests/unit/test_sns_services.py
# Description: Outbound notification services
# =============================================================================

import pytest

from messaging_core.config.sns_config import SnsConfig
from messaging_core.notifications.sns_services import GroupCreatedSnsService, NotificationServices

from tests.fakes.fake_infra import FakeSnsPublisher


@pytest.fixture
def publisher() -> FakeSnsPublisher:
    return FakeSnsPublisher()


class TestSnsServices:

    async def test_publishes_to_its_topic(self, publisher):
        config = SnsConfig(group_created_topic_arn="arn:aws:sns:eu-west-1:1:Groups")
        service = GroupCreatedSnsService(publisher, config)

        message_id = await service.send_message({"group": {"id": "convo-group-1"}, "groupMemberIds": ["user-a"]})

        assert message_id == "sns-message-1"
        assert publisher.published == [
            ("arn:aws:sns:eu-west-1:1:Groups", {"group": {"id": "convo-group-1"}, "groupMemberIds": ["user-a"]}),
        ]

    async def test_transport_error_is_raised(self, publisher):
        publisher.configure_failure("publish", ConnectionError("unreachable"))
        service = GroupCreatedSnsService(publisher, SnsConfig())

        with pytest.raises(ConnectionError):
            await service.send_message({"group": {}, "groupMemberIds": []})

    def test_every_topic_has_a_distinct_service(self, publisher):
        services = NotificationServices(publisher, SnsConfig())

        topics = [service.topic_arn for service in vars(services).values()]

        assert len(topics) == 14
        assert len(set(topics)) == 14
