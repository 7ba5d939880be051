"""
Chat Poster

The relay's only outbound Slack capability: post a message, optionally into
a thread, and get back the posted message's ts.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Optional

import aiohttp
from slack_sdk.errors import SlackApiError, SlackClientError
from slack_sdk.web.async_client import AsyncWebClient

logger = logging.getLogger("relay.sync.poster")


class ChatPostError(Exception):
    """Posting a message to Slack failed."""
    pass


class ChatPoster(ABC):
    """Post-message capability used by the inbound handlers"""

    @abstractmethod
    async def post_message(
        self,
        channel: str,
        text: str,
        thread_ts: Optional[str] = None,
    ) -> str:
        """
        Post a message.

        Args:
            channel: Channel id
            text: Message text (Slack mrkdwn)
            thread_ts: Root message ts when replying in a thread

        Returns:
            ts of the posted message

        Raises:
            ChatPostError: if Slack is unreachable or rejects the call
        """
        pass


class SlackPoster(ChatPoster):
    """ChatPoster backed by slack_sdk's AsyncWebClient"""

    def __init__(self, bot_token: str = "", client: Optional[AsyncWebClient] = None):
        self._client = client or AsyncWebClient(token=bot_token)

    async def post_message(
        self,
        channel: str,
        text: str,
        thread_ts: Optional[str] = None,
    ) -> str:
        kwargs = {"channel": channel, "text": text}
        if thread_ts:
            kwargs["thread_ts"] = thread_ts

        try:
            response = await self._client.chat_postMessage(**kwargs)
        except SlackApiError as e:
            error = e.response.get("error") if e.response is not None else None
            logger.error("Slack chat.postMessage failed in %s: %s", channel, error or e)
            raise ChatPostError(f"chat.postMessage failed: {error or e}") from e
        except (SlackClientError, aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.error("Slack chat.postMessage request failed in %s: %s", channel, e)
            raise ChatPostError(f"chat.postMessage request failed: {e}") from e

        ts = response.get("ts")
        if not ts:
            raise ChatPostError("chat.postMessage returned no ts")
        return ts
