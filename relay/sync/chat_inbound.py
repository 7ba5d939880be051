"""
Inbound Chat Handler

Reacts to Slack messages in the NAR channel:
- "ping" gets a health-check reply
- a new top-level message gets an acknowledgement in its thread
- thread replies are only logged, so the bot never answers its own thread

Replies are fire-and-forget: a failed post is logged and dropped.
"""

import logging
from enum import Enum

from .handlers.base import ChatEvent
from .poster import ChatPoster, ChatPostError
from .templates import HEALTH_REPLY, PREVIEW_LENGTH, render_ack

logger = logging.getLogger("relay.sync.chat")

# The only subtype that still counts as a human message
ALLOWED_SUBTYPES = ("thread_broadcast",)


class ChatAction(str, Enum):
    """What the handler did with an event"""
    IGNORED = "ignored"
    PONG = "pong"
    ACKNOWLEDGED = "acknowledged"
    OBSERVED = "observed"
    FAILED = "failed"


def is_ping(text: str) -> bool:
    return (text or "").strip().lower() == "ping"


class InboundChatHandler:
    """Filters Slack message events and posts replies"""

    def __init__(
        self,
        poster: ChatPoster,
        channel_id: str,
        restrict_to_channel: bool = True,
    ):
        self._poster = poster
        self._channel_id = channel_id
        self._restrict_to_channel = restrict_to_channel

    def should_process(self, event: ChatEvent) -> bool:
        """Skip bot messages, system subtypes and other channels"""
        if event.bot_id:
            return False
        if event.subtype and event.subtype not in ALLOWED_SUBTYPES:
            return False
        if self._restrict_to_channel and event.channel != self._channel_id:
            return False
        return True

    async def handle(self, event: ChatEvent) -> ChatAction:
        if not self.should_process(event):
            return ChatAction.IGNORED

        logger.info(
            "slack message channel=%s ts=%s thread_ts=%s text=%r",
            event.channel, event.ts, event.thread_ts,
            (event.text or "")[:PREVIEW_LENGTH],
        )

        if is_ping(event.text):
            return await self._reply(event, HEALTH_REPLY, ChatAction.PONG)

        if event.is_thread_reply:
            return ChatAction.OBSERVED

        return await self._reply(event, render_ack(event.text), ChatAction.ACKNOWLEDGED)

    async def _reply(self, event: ChatEvent, text: str, action: ChatAction) -> ChatAction:
        try:
            await self._poster.post_message(event.channel, text, thread_ts=event.anchor_ts)
        except ChatPostError as e:
            logger.error("Slack reply to %s failed: %s", event.ts, e)
            return ChatAction.FAILED
        return action
