"""
Relay Sync

Board <-> chat synchronization: webhook reconciliation on startup and the
inbound handlers for monday.com and Slack deliveries.

Key Components:
- WebhookReconciler: delete-all-then-recreate webhook setup
- InboundBoardHandler: monday.com webhook state machine
- InboundChatHandler: Slack message filtering and replies
- SlackPoster: post-message capability
"""

from .board_inbound import InboundBoardHandler, BoardResponse
from .chat_inbound import InboundChatHandler, ChatAction
from .poster import ChatPoster, ChatPostError, SlackPoster
from .reconciler import WebhookReconciler, ReconcileReport, build_webhook_url

__all__ = [
    "InboundBoardHandler",
    "BoardResponse",
    "InboundChatHandler",
    "ChatAction",
    "ChatPoster",
    "ChatPostError",
    "SlackPoster",
    "WebhookReconciler",
    "ReconcileReport",
    "build_webhook_url",
]
