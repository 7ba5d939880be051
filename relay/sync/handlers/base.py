"""
Base Handler

Abstract base class for source-specific event handlers, plus the decoded
event formats the relay works with.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Dict, Any, Sequence


@dataclass
class ChatEvent:
    """
    A decoded Slack message event.

    thread_ts is set only for messages posted inside an existing thread.
    """
    channel: str
    ts: str
    text: str = ""
    user: Optional[str] = None
    thread_ts: Optional[str] = None
    bot_id: Optional[str] = None
    subtype: Optional[str] = None
    raw_data: Optional[Dict[str, Any]] = None

    @property
    def is_thread_reply(self) -> bool:
        return bool(self.thread_ts) and self.thread_ts != self.ts

    @property
    def anchor_ts(self) -> str:
        """Thread a reply to this message belongs in"""
        return self.thread_ts or self.ts


class BoardEventKind(str, Enum):
    """Board webhook events the relay acts on"""
    ITEM_CREATED = "item_created"
    UPDATE_CREATED = "update_created"
    OTHER = "other"


@dataclass
class BoardEvent:
    """
    A decoded monday.com webhook event.

    text is the item name for ITEM_CREATED and the update body for
    UPDATE_CREATED.
    """
    kind: BoardEventKind
    event_type: str
    item_id: Optional[str] = None
    text: str = ""
    raw_data: Optional[Dict[str, Any]] = None


def first_present(
    sources: Sequence[Dict[str, Any]],
    keys: Sequence[str],
    default: Any = None,
) -> Any:
    """
    First non-empty value among keys, searched source by source.

    Each source is a plain dict; sources are tried in order, and within a
    source keys are tried in order. None and "" count as absent.
    """
    for source in sources:
        if not isinstance(source, dict):
            continue
        for key in keys:
            value = source.get(key)
            if value is not None and value != "":
                return value
    return default


class BaseHandler(ABC):
    """
    Abstract base class for source handlers.

    Each handler must implement:
    - parse_event: Convert a raw payload to a decoded event
    - verify_signature: Authenticate a delivery
    """

    def __init__(self, source_name: str):
        """
        Initialize handler.

        Args:
            source_name: Name of the source (e.g., "slack", "monday")
        """
        self.source_name = source_name

    @abstractmethod
    async def parse_event(self, raw_data: Dict[str, Any]) -> Optional[Any]:
        """
        Parse raw event data.

        Args:
            raw_data: Raw payload from the source

        Returns:
            Decoded event or None if the payload carries nothing to act on
        """
        pass

    @abstractmethod
    def verify_signature(
        self,
        body: bytes,
        signature: str,
        timestamp: str
    ) -> bool:
        """
        Verify the webhook signature.

        Args:
            body: Raw request body
            signature: Signature from headers or query string
            timestamp: Timestamp from headers

        Returns:
            True if signature is valid
        """
        pass

    def get_challenge(self, raw_data: Dict[str, Any]) -> Optional[str]:
        """
        Subscription handshake token, if this payload is a handshake.

        Override in subclass for source-specific handshakes.
        """
        return None
