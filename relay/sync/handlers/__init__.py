"""
Source Handlers

Handlers for the two event sources. Each authenticates a delivery and
decodes it into the relay's event format.

Available Handlers:
- SlackHandler: Slack Events API deliveries -> ChatEvent
- MondayHandler: monday.com board webhooks -> BoardEvent
"""

from .base import (
    BaseHandler,
    BoardEvent,
    BoardEventKind,
    ChatEvent,
    first_present,
)
from .monday import MondayHandler, TRACKED_EVENTS
from .slack import SlackHandler

__all__ = [
    "BaseHandler",
    "BoardEvent",
    "BoardEventKind",
    "ChatEvent",
    "first_present",
    "MondayHandler",
    "SlackHandler",
    "TRACKED_EVENTS",
]
