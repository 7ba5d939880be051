"""
Slack Handler

Authenticates Slack Events API deliveries and decodes message events into
ChatEvents. Filtering (bots, channel, threads) is InboundChatHandler's job.
"""

import hmac
import hashlib
import time
from typing import Optional, Dict, Any

from .base import BaseHandler, ChatEvent

# Slack rejects requests older than this; so do we
MAX_REQUEST_AGE_SECONDS = 300


class SlackHandler(BaseHandler):
    """
    Handler for Slack Events API webhooks.

    Decodes:
    - message events (including subtypes, which are passed through)

    Ignores:
    - url_verification handshakes (see get_challenge)
    - Any other event type
    """

    def __init__(self, signing_secret: str = ""):
        """
        Initialize Slack handler.

        Args:
            signing_secret: Slack signing secret for verification
        """
        super().__init__("slack")
        self._signing_secret = signing_secret

    async def parse_event(self, raw_data: Dict[str, Any]) -> Optional[ChatEvent]:
        """
        Parse Slack event envelope into a ChatEvent.

        Args:
            raw_data: Raw Slack payload

        Returns:
            ChatEvent or None if the payload is not a message event
        """
        if raw_data.get("type") != "event_callback":
            return None

        event = raw_data.get("event") or {}
        if event.get("type") != "message":
            return None

        channel = event.get("channel", "")
        ts = event.get("ts", "")
        if not channel or not ts:
            return None

        return ChatEvent(
            channel=channel,
            ts=ts,
            text=event.get("text") or "",
            user=event.get("user"),
            thread_ts=event.get("thread_ts"),
            bot_id=event.get("bot_id"),
            subtype=event.get("subtype"),
            raw_data=event,
        )

    def verify_signature(
        self,
        body: bytes,
        signature: str,
        timestamp: str
    ) -> bool:
        """
        Verify Slack request signature (v0 HMAC-SHA256 scheme).

        Args:
            body: Raw request body
            signature: X-Slack-Signature header
            timestamp: X-Slack-Request-Timestamp header

        Returns:
            True if signature is valid
        """
        if not self._signing_secret:
            # Skip verification if no secret configured
            return True

        if not signature or not timestamp:
            return False

        try:
            ts = int(timestamp)
        except ValueError:
            return False
        if abs(time.time() - ts) > MAX_REQUEST_AGE_SECONDS:
            return False

        sig_basestring = b"v0:" + timestamp.encode("utf-8") + b":" + body
        expected_sig = "v0=" + hmac.new(
            self._signing_secret.encode("utf-8"),
            sig_basestring,
            hashlib.sha256
        ).hexdigest()

        return hmac.compare_digest(expected_sig, signature)

    def is_url_verification(self, raw_data: Dict[str, Any]) -> bool:
        """Check if request is URL verification"""
        return raw_data.get("type") == "url_verification"

    def get_challenge(self, raw_data: Dict[str, Any]) -> Optional[str]:
        """Get challenge for URL verification"""
        if self.is_url_verification(raw_data):
            return raw_data.get("challenge")
        return None
