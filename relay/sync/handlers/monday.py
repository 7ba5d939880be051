"""
monday.com Handler

Authenticates monday.com webhook deliveries and decodes their "event" object
into BoardEvents.

monday.com has renamed payload fields over time, so every value is read
through an ordered list of candidate keys (first non-empty wins) with a fixed
default at the end.
"""

import hmac
import logging
from typing import Optional, Dict, Any

from .base import BaseHandler, BoardEvent, BoardEventKind, first_present

logger = logging.getLogger("relay.sync.monday")

ITEM_CREATED_TYPES = ("create_item", "create_pulse")
UPDATE_CREATED_TYPES = ("create_update",)

# Webhook event names registered on the board at startup
TRACKED_EVENTS = ("create_item", "create_update")

ITEM_ID_KEYS = ("pulseId", "itemId")
ITEM_NAME_KEYS = ("pulseName", "pulse_name")
UPDATE_TEXT_KEYS = ("textBody", "body")

DEFAULT_ITEM_NAME = "New NAR item"
DEFAULT_UPDATE_TEXT = "(no text)"


class MondayHandler(BaseHandler):
    """
    Handler for monday.com board webhooks.

    monday.com does not sign deliveries; the relay registers its webhook URL
    with a shared secret in the "sig" query parameter and checks it here.
    """

    def __init__(self, webhook_secret: str):
        """
        Initialize monday.com handler.

        Args:
            webhook_secret: Shared secret embedded in the registered URL
        """
        super().__init__("monday")
        self._webhook_secret = webhook_secret

    def verify_signature(
        self,
        body: bytes,
        signature: str,
        timestamp: str = ""
    ) -> bool:
        """
        Compare the "sig" query parameter with the shared secret.

        Args:
            body: Raw request body (unused, the secret is not an HMAC)
            signature: Value of the "sig" query parameter
            timestamp: Unused, kept for BaseHandler interface compatibility

        Returns:
            True if the secret matches
        """
        if not signature or not self._webhook_secret:
            return False
        return hmac.compare_digest(
            signature.encode("utf-8"), self._webhook_secret.encode("utf-8")
        )

    def get_challenge(self, raw_data: Dict[str, Any]) -> Optional[Any]:
        """Challenge token from monday.com's subscription handshake"""
        challenge = raw_data.get("challenge")
        return challenge if challenge else None

    async def parse_event(self, raw_data: Dict[str, Any]) -> Optional[BoardEvent]:
        """
        Parse the webhook's event object.

        Args:
            raw_data: Decoded request body

        Returns:
            BoardEvent, or None when the payload has no event object
        """
        event = raw_data.get("event")
        if not isinstance(event, dict):
            return None

        event_type = str(event.get("type", ""))
        item_id = first_present([event], ITEM_ID_KEYS)
        item_id = str(item_id) if item_id is not None else None

        if event_type in ITEM_CREATED_TYPES:
            name = first_present([event, raw_data], ITEM_NAME_KEYS, DEFAULT_ITEM_NAME)
            return BoardEvent(
                kind=BoardEventKind.ITEM_CREATED,
                event_type=event_type,
                item_id=item_id,
                text=str(name),
                raw_data=raw_data,
            )

        if event_type in UPDATE_CREATED_TYPES:
            body = first_present([event], UPDATE_TEXT_KEYS, DEFAULT_UPDATE_TEXT)
            return BoardEvent(
                kind=BoardEventKind.UPDATE_CREATED,
                event_type=event_type,
                item_id=item_id,
                text=str(body),
                raw_data=raw_data,
            )

        logger.debug("Ignoring monday.com event type %r", event_type)
        return BoardEvent(
            kind=BoardEventKind.OTHER,
            event_type=event_type,
            item_id=item_id,
            raw_data=raw_data,
        )
