import typing as t

import pytest

from clubify_checkout.exceptions import ValidationError
from clubify_checkout.modules import NotificationRepository
from tests.conftest import FakeGateway


@pytest.fixture
def notifications(deps: dict[str, t.Any]) -> NotificationRepository:
    return NotificationRepository.build(**deps)


@pytest.mark.unit
class TestNotificationRepository:
    @pytest.mark.asyncio
    async def test_create_rejects_unknown_channel(
        self, notifications: NotificationRepository, gateway: FakeGateway
    ) -> None:
        with pytest.raises(ValidationError) as exc_info:
            await notifications.create(
                {"type": "welcome", "recipient": "ana@example.com", "channel": "fax"}
            )

        assert exc_info.value.fields == ["channel"]
        assert gateway.calls == []

    @pytest.mark.asyncio
    async def test_find_by_recipient(
        self, notifications: NotificationRepository, gateway: FakeGateway
    ) -> None:
        gateway.reply(200, {"data": {"items": [{"id": "n1"}]}})

        result = await notifications.find_by_recipient("ana@example.com", limit=5)

        assert result == [{"id": "n1"}]
        assert gateway.last.params == {
            "recipient": "ana@example.com",
            "limit": 5,
            "offset": None,
        }

    @pytest.mark.asyncio
    async def test_mark_as_read(
        self, notifications: NotificationRepository, gateway: FakeGateway
    ) -> None:
        gateway.reply(204)

        assert await notifications.mark_as_read("n1") == {}
        assert gateway.last.method == "PATCH"
        assert gateway.last.uri == "notifications/n1/read"

    @pytest.mark.asyncio
    async def test_delivery_stats_are_cached(
        self, notifications: NotificationRepository, gateway: FakeGateway
    ) -> None:
        gateway.reply(200, {"data": {"sent": 10, "failed": 1}})

        first = await notifications.get_delivery_stats({"channel": "email"})
        second = await notifications.get_delivery_stats({"channel": "email"})

        assert first == second == {"sent": 10, "failed": 1}
        assert len(gateway.calls) == 1
        assert gateway.last.uri == "notifications/delivery-stats"
