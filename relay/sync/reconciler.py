"""
Webhook Reconciler

Brings the board's webhook registrations in line with this process at
startup:

1. List every webhook registered on the board
2. Delete all of them, whatever their event or target
3. Create one webhook per tracked event pointing at our public URL

There is no diffing: the relay cannot tell whether an existing registration
still reaches a live process (the public URL may have changed), so it starts
from a clean slate. Every step is best-effort; a failure is logged and the
remaining steps still run.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence
from urllib.parse import urlencode

from ..common.board_client import BoardClient, BoardAPIError
from .handlers.monday import TRACKED_EVENTS

logger = logging.getLogger("relay.sync.reconciler")

LIST_WEBHOOKS_QUERY = """
query ($boardId: ID!) {
  webhooks(board_id: $boardId) { id event board_id config }
}
"""

DELETE_WEBHOOK_MUTATION = """
mutation ($id: ID!) {
  delete_webhook(id: $id) { id board_id }
}
"""

CREATE_WEBHOOK_MUTATION = """
mutation ($boardId: ID!, $url: String!, $event: WebhookEventType!) {
  create_webhook(board_id: $boardId, url: $url, event: $event) { id board_id }
}
"""


@dataclass
class WebhookRegistration:
    """A webhook as reported by monday.com"""
    id: str
    event: str = ""
    board_id: Optional[str] = None
    config: Optional[Any] = None

    @classmethod
    def from_api(cls, raw: Dict[str, Any]) -> "WebhookRegistration":
        return cls(
            id=str(raw.get("id")),
            event=raw.get("event") or "",
            board_id=str(raw["board_id"]) if raw.get("board_id") is not None else None,
            config=raw.get("config"),
        )


@dataclass
class ReconcileReport:
    """Outcome of one reconciliation pass"""
    found: int = 0
    deleted: List[str] = field(default_factory=list)
    delete_failed: List[str] = field(default_factory=list)
    created: List[str] = field(default_factory=list)
    create_failed: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.delete_failed and not self.create_failed

    def summary(self) -> Dict[str, Any]:
        return {
            "found": self.found,
            "deleted": len(self.deleted),
            "delete_failed": len(self.delete_failed),
            "created": list(self.created),
            "create_failed": list(self.create_failed),
        }


def build_webhook_url(public_url: str, path: str, secret: str) -> str:
    """Public webhook URL with the shared secret as the "sig" parameter"""
    return f"{public_url.rstrip('/')}{path}?{urlencode({'sig': secret})}"


class WebhookReconciler:
    """Delete-all-then-recreate webhook setup for one board"""

    def __init__(self, client: BoardClient):
        self._client = client

    async def list_webhooks(self, board_id) -> List[WebhookRegistration]:
        """
        Webhooks currently registered on the board.

        A failed query (no permission, network error) yields an empty list.
        """
        try:
            result = await self._client.execute(
                LIST_WEBHOOKS_QUERY, {"boardId": str(board_id)}
            )
        except BoardAPIError as e:
            logger.warning("Could not fetch existing webhooks: %s", e)
            return []

        webhooks = (result.get("data") or {}).get("webhooks")
        if webhooks is None:
            logger.warning(
                "Could not fetch existing webhooks (might not have permissions)"
            )
            return []

        return [WebhookRegistration.from_api(w) for w in webhooks if w]

    async def delete_webhook(self, webhook_id: str) -> bool:
        try:
            result = await self._client.execute(
                DELETE_WEBHOOK_MUTATION, {"id": str(webhook_id)}
            )
        except BoardAPIError as e:
            logger.error("Failed to delete webhook %s: %s", webhook_id, e)
            return False

        if not (result.get("data") or {}).get("delete_webhook"):
            logger.error("Failed to delete webhook %s", webhook_id)
            return False

        logger.info("Deleted webhook %s", webhook_id)
        return True

    async def create_webhook(self, board_id, target_url: str, event: str) -> Optional[str]:
        """
        Register one webhook.

        Returns:
            The new webhook's id, or None on failure
        """
        try:
            result = await self._client.execute(
                CREATE_WEBHOOK_MUTATION,
                {"boardId": str(board_id), "url": target_url, "event": event},
            )
        except BoardAPIError as e:
            logger.error("Error creating %s webhook: %s", event, e)
            return None

        created = (result.get("data") or {}).get("create_webhook")
        if not created:
            logger.error("Failed to create %s webhook", event)
            return None

        webhook_id = str(created.get("id"))
        logger.info("%s webhook created: %s", event, webhook_id)
        return webhook_id

    async def reconcile(
        self,
        board_id,
        target_url: str,
        tracked_events: Sequence[str] = TRACKED_EVENTS,
    ) -> ReconcileReport:
        """
        Replace every webhook on the board with one per tracked event.

        Args:
            board_id: monday.com board id
            target_url: URL monday.com should deliver to (secret included)
            tracked_events: monday.com webhook event names to register

        Returns:
            ReconcileReport describing what was deleted and created
        """
        report = ReconcileReport()

        existing = await self.list_webhooks(board_id)
        report.found = len(existing)
        logger.info("Found %d existing webhooks on board %s", len(existing), board_id)

        for webhook in existing:
            if await self.delete_webhook(webhook.id):
                report.deleted.append(webhook.id)
            else:
                report.delete_failed.append(webhook.id)
        if existing:
            logger.info("Deleted %d of %d webhooks", len(report.deleted), len(existing))

        for event in tracked_events:
            if await self.create_webhook(board_id, target_url, event):
                report.created.append(event)
            else:
                report.create_failed.append(event)

        return report
