"""
Tests for WebhookReconciler

Delete-all-then-recreate against a fake monday.com client.
"""

import logging

import pytest

from relay.common.board_client import BoardAPIError

from conftest import FakeBoardClient


TARGET = "https://relay.example.com/monday/webhook?sig=s3cret"


class TestBuildWebhookUrl:
    def test_secret_in_query_string(self):
        from relay.sync.reconciler import build_webhook_url

        url = build_webhook_url("https://relay.example.com/", "/monday/webhook", "s3cret")
        assert url == TARGET

    def test_secret_is_encoded(self):
        from relay.sync.reconciler import build_webhook_url

        url = build_webhook_url("https://x.io", "/monday/webhook", "a b&c")
        assert url == "https://x.io/monday/webhook?sig=a+b%26c"


class TestReconcile:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("count", [0, 1, 5])
    async def test_deletes_every_webhook_and_creates_tracked(self, count):
        from relay.sync.reconciler import WebhookReconciler

        webhooks = [
            {"id": str(i), "event": "change_column_value", "board_id": 1, "config": None}
            for i in range(count)
        ]
        client = FakeBoardClient(webhooks=webhooks)

        report = await WebhookReconciler(client).reconcile(
            1, TARGET, ("create_item", "create_update")
        )

        assert client.deleted == [str(i) for i in range(count)]
        assert [c["event"] for c in client.created] == ["create_item", "create_update"]
        assert all(c["url"] == TARGET for c in client.created)
        assert all(c["boardId"] == "1" for c in client.created)
        assert report.found == count
        assert report.ok

    @pytest.mark.asyncio
    async def test_list_transport_failure_treated_as_empty(self, caplog):
        from relay.sync.reconciler import WebhookReconciler

        client = FakeBoardClient(list_error=BoardAPIError("boom"))
        with caplog.at_level(logging.WARNING, logger="relay.sync.reconciler"):
            report = await WebhookReconciler(client).reconcile(1, TARGET)

        assert report.found == 0
        assert client.deleted == []
        assert len(client.created) == 2
        assert "Could not fetch existing webhooks" in caplog.text

    @pytest.mark.asyncio
    async def test_permission_error_treated_as_empty(self):
        from relay.sync.reconciler import WebhookReconciler

        client = FakeBoardClient(list_errors_payload=True)
        report = await WebhookReconciler(client).reconcile(1, TARGET)

        assert report.found == 0
        assert report.created == ["create_item", "create_update"]

    @pytest.mark.asyncio
    async def test_failed_delete_does_not_stop_others(self):
        from relay.sync.reconciler import WebhookReconciler

        webhooks = [{"id": "1"}, {"id": "2"}, {"id": "3"}]
        client = FakeBoardClient(webhooks=webhooks, fail_delete=("2",))
        report = await WebhookReconciler(client).reconcile(1, TARGET)

        assert client.deleted == ["1", "3"]
        assert report.delete_failed == ["2"]
        assert report.created == ["create_item", "create_update"]
        assert not report.ok

    @pytest.mark.asyncio
    async def test_failed_create_does_not_block_other_event(self):
        from relay.sync.reconciler import WebhookReconciler

        client = FakeBoardClient(fail_create=("create_item",))
        report = await WebhookReconciler(client).reconcile(1, TARGET)

        assert report.create_failed == ["create_item"]
        assert report.created == ["create_update"]
        assert report.summary()["create_failed"] == ["create_item"]
