"""
monday.com API Client

Thin async wrapper over the monday.com GraphQL endpoint. Every call is a POST
of {"query", "variables"} to a single URL; callers build the queries.
"""

import json
import logging
from typing import Dict, Any, Optional

import httpx

from .config import MONDAY_API_URL, MONDAY_API_VERSION

logger = logging.getLogger("relay.common.board_client")


class BoardAPIError(Exception):
    """Error communicating with the monday.com API."""
    pass


class BoardClient:
    """
    Async client for the monday.com GraphQL API.

    The httpx client is created lazily on first use so the object can be
    built outside a running event loop.

    Usage:
        client = BoardClient(api_token="...")
        result = await client.execute("query { me { id } }")
        await client.close()
    """

    def __init__(
        self,
        api_token: str,
        api_url: str = MONDAY_API_URL,
        api_version: str = MONDAY_API_VERSION,
        timeout: float = 30.0,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Initialize monday.com client.

        Args:
            api_token: Personal or app API token (sent as Authorization)
            api_url: GraphQL endpoint
            api_version: Value of the API-Version header
            timeout: Request timeout in seconds
            http_client: Pre-built httpx client (tests inject a MockTransport)
        """
        self.api_url = api_url
        self.api_version = api_version
        self.timeout = timeout
        self._api_token = api_token
        self._client = http_client

    @property
    def headers(self) -> Dict[str, str]:
        return {
            "Authorization": self._api_token,
            "Content-Type": "application/json",
            "API-Version": self.api_version,
        }

    def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=httpx.Timeout(self.timeout))
        return self._client

    async def close(self):
        """Close the underlying HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def execute(
        self,
        query: str,
        variables: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """
        Run a GraphQL query or mutation.

        Application-level errors (an "errors" array in a 200 response) are
        logged and returned as-is; callers decide whether they are fatal.

        Args:
            query: GraphQL document
            variables: GraphQL variables

        Returns:
            Decoded response body ({"data": ..., "errors": ...})

        Raises:
            BoardAPIError: on transport failure, non-2xx status or a
                non-JSON response body
        """
        client = self._ensure_client()
        try:
            response = await client.post(
                self.api_url,
                json={"query": query, "variables": variables or {}},
                headers=self.headers,
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.error(
                "monday.com API request failed: %s %s",
                e.response.status_code, e.response.text,
            )
            raise BoardAPIError(
                f"monday.com API returned HTTP {e.response.status_code}"
            ) from e
        except httpx.HTTPError as e:
            logger.error("monday.com API request failed: %s", e)
            raise BoardAPIError(f"monday.com API request failed: {e}") from e

        try:
            result = response.json()
        except ValueError as e:
            raise BoardAPIError("monday.com API returned a non-JSON body") from e

        if isinstance(result, dict) and result.get("errors"):
            logger.error(
                "monday.com API errors: %s", json.dumps(result["errors"], indent=2)
            )

        return result
