"""
Tests for BoardClient

Uses httpx.MockTransport so no request leaves the process.
"""

import json
import logging

import httpx
import pytest


def make_client(handler):
    from relay.common.board_client import BoardClient

    http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return BoardClient(api_token="monday-token", http_client=http_client)


class TestExecute:
    @pytest.mark.asyncio
    async def test_posts_query_with_headers(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["headers"] = request.headers
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"data": {"me": {"id": 1}}})

        client = make_client(handler)
        result = await client.execute("query { me { id } }", {"a": 1})
        await client.close()

        assert result == {"data": {"me": {"id": 1}}}
        assert seen["url"] == "https://api.monday.com/v2"
        assert seen["headers"]["Authorization"] == "monday-token"
        assert seen["headers"]["API-Version"] == "2024-10"
        assert seen["body"] == {"query": "query { me { id } }", "variables": {"a": 1}}

    @pytest.mark.asyncio
    async def test_application_errors_logged_and_returned(self, caplog):
        body = {"data": None, "errors": [{"message": "Permission denied"}]}

        def handler(request):
            return httpx.Response(200, json=body)

        client = make_client(handler)
        with caplog.at_level(logging.ERROR, logger="relay.common.board_client"):
            result = await client.execute("query { webhooks(board_id: 1) { id } }")

        assert result == body
        assert "Permission denied" in caplog.text

    @pytest.mark.asyncio
    async def test_http_error_status_raises(self):
        from relay.common.board_client import BoardAPIError

        def handler(request):
            return httpx.Response(401, text="Unauthorized")

        client = make_client(handler)
        with pytest.raises(BoardAPIError, match="401"):
            await client.execute("query { me { id } }")

    @pytest.mark.asyncio
    async def test_transport_failure_raises(self):
        from relay.common.board_client import BoardAPIError

        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        client = make_client(handler)
        with pytest.raises(BoardAPIError, match="request failed"):
            await client.execute("query { me { id } }")

    @pytest.mark.asyncio
    async def test_non_json_body_raises(self):
        from relay.common.board_client import BoardAPIError

        def handler(request):
            return httpx.Response(200, text="<html>maintenance</html>")

        client = make_client(handler)
        with pytest.raises(BoardAPIError, match="non-JSON"):
            await client.execute("query { me { id } }")
