"""
NAR Relay

Keeps the NAR Slack channel in step with the NAR monday.com board.

Flow:
- monday.com item created  -> announcement message in the channel (thread root)
- monday.com update posted -> threaded reply under that item's announcement
- Slack message in channel -> acknowledgement reply (board write path reserved)

Usage:
    from relay.common import load_config, BoardClient, CorrelationStore
    from relay.sync import WebhookReconciler, InboundBoardHandler, InboundChatHandler
    from relay.sync.server import create_app, run_server
"""

__version__ = "0.1.0"
