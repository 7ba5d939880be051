"""Shared fakes for relay tests."""

import asyncio
from typing import Any, Dict, List, Optional

import pytest

from relay.common.board_client import BoardClient, BoardAPIError
from relay.sync.poster import ChatPoster, ChatPostError


class FakePoster(ChatPoster):
    """Records posts and hands out increasing ts values without calling Slack."""

    def __init__(self, fail: bool = False, delay: bool = False):
        self.fail = fail
        self.delay = delay
        self.posts: List[dict] = []

    async def post_message(
        self,
        channel: str,
        text: str,
        thread_ts: Optional[str] = None,
    ) -> str:
        if self.delay:
            # Suspension point, like a real network call
            await asyncio.sleep(0.01)
        if self.fail:
            raise ChatPostError("chat.postMessage failed: channel_not_found")
        ts = f"1700000000.{len(self.posts) + 1:06d}"
        self.posts.append({"channel": channel, "text": text, "thread_ts": thread_ts, "ts": ts})
        return ts


@pytest.fixture
def poster():
    return FakePoster()


class FakeBoardClient(BoardClient):
    """Fake monday.com client that records calls instead of sending them."""

    def __init__(
        self,
        webhooks: Optional[List[Dict[str, Any]]] = None,
        list_error: Optional[Exception] = None,
        list_errors_payload: bool = False,
        fail_delete: tuple = (),
        fail_create: tuple = (),
    ):
        # Skip real __init__ to avoid building an HTTP client
        self._webhooks = webhooks or []
        self._list_error = list_error
        self._list_errors_payload = list_errors_payload
        self._fail_delete = fail_delete
        self._fail_create = fail_create
        self.deleted: List[str] = []
        self.created: List[Dict[str, Any]] = []

    async def close(self):
        pass

    async def execute(self, query: str, variables=None) -> Dict[str, Any]:
        variables = variables or {}
        if "webhooks(board_id" in query:
            if self._list_error:
                raise self._list_error
            if self._list_errors_payload:
                return {"data": {"webhooks": None}, "errors": [{"message": "no permission"}]}
            return {"data": {"webhooks": self._webhooks}}

        if "delete_webhook" in query:
            if variables["id"] in self._fail_delete:
                raise BoardAPIError("delete failed")
            self.deleted.append(variables["id"])
            return {"data": {"delete_webhook": {"id": variables["id"]}}}

        if "create_webhook" in query:
            if variables["event"] in self._fail_create:
                return {"data": {"create_webhook": None}, "errors": [{"message": "nope"}]}
            self.created.append(variables)
            return {"data": {"create_webhook": {"id": str(100 + len(self.created))}}}

        raise AssertionError(f"unexpected query: {query}")
