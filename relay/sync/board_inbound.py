"""
Inbound Board Handler

Processes one monday.com webhook delivery. Steps run in a fixed order and
each may end the request:

1. Authenticate  - "sig" must equal the shared secret        -> 403
2. Challenge     - echo monday.com's handshake token         -> 200 JSON
3. Validate      - payload must carry an event object        -> 400
4. Classify      - item created / update created / other
5. Respond       - 200 "ok", or 500 if posting to Slack failed

monday.com retries deliveries that fail; the relay never retries itself.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from ..common.correlation import CorrelationStore
from .handlers.base import BoardEvent, BoardEventKind
from .handlers.monday import MondayHandler
from .poster import ChatPoster, ChatPostError
from .templates import item_link, render_item_created, render_update

logger = logging.getLogger("relay.sync.board")


@dataclass
class BoardResponse:
    """HTTP answer to a board webhook delivery"""
    status_code: int
    body: Any = "ok"
    is_json: bool = False

    @classmethod
    def text(cls, status_code: int, body: str) -> "BoardResponse":
        return cls(status_code=status_code, body=body)

    @classmethod
    def json(cls, body: Dict[str, Any]) -> "BoardResponse":
        return cls(status_code=200, body=body, is_json=True)


OK = BoardResponse.text(200, "ok")
FORBIDDEN = BoardResponse.text(403, "Forbidden")
NO_EVENT = BoardResponse.text(400, "No event found")
INTERNAL_ERROR = BoardResponse.text(500, "Internal error")


class InboundBoardHandler:
    """
    Drives the correlation store and Slack from board webhooks.

    Item announcements are reserved in the store before the Slack call, so
    a redelivery that arrives while the first post is in flight is treated
    as a duplicate instead of announcing the item twice.
    """

    def __init__(
        self,
        monday: MondayHandler,
        store: CorrelationStore,
        poster: ChatPoster,
        channel_id: str,
        board_id,
        account_url: str,
    ):
        """
        Args:
            monday: Decoder/authenticator for monday.com payloads
            store: Item -> thread table
            poster: Slack post-message capability
            channel_id: Channel announcements go to
            board_id: Board the deep links point at
            account_url: monday.com account base URL for deep links
        """
        self._monday = monday
        self._store = store
        self._poster = poster
        self._channel_id = channel_id
        self._board_id = board_id
        self._account_url = account_url

    async def handle(
        self,
        sig: Optional[str],
        payload: Optional[Dict[str, Any]],
        body: bytes = b"",
    ) -> BoardResponse:
        """
        Run the delivery through authenticate -> challenge -> validate ->
        classify.

        Args:
            sig: "sig" query parameter
            payload: Decoded JSON body (None if it could not be decoded)
            body: Raw request body

        Returns:
            BoardResponse for the server to render
        """
        if not self._monday.verify_signature(body, sig or ""):
            logger.warning("monday.com webhook: invalid signature")
            return FORBIDDEN

        payload = payload if isinstance(payload, dict) else {}

        challenge = self._monday.get_challenge(payload)
        if challenge:
            logger.info("monday.com webhook challenge received")
            return BoardResponse.json({"challenge": challenge})

        event = await self._monday.parse_event(payload)
        if event is None:
            logger.error("Missing event in monday.com webhook payload")
            return NO_EVENT

        try:
            if event.kind == BoardEventKind.ITEM_CREATED:
                await self._on_item_created(event)
            elif event.kind == BoardEventKind.UPDATE_CREATED:
                await self._on_update_created(event)
        except ChatPostError as e:
            logger.error(
                "Error processing monday.com %s event for item %s: %s",
                event.event_type, event.item_id, e,
            )
            return INTERNAL_ERROR

        return OK

    async def _on_item_created(self, event: BoardEvent) -> None:
        item_id = event.item_id
        if item_id is None:
            logger.warning("monday.com %s event without an item id", event.event_type)
            return

        if not self._store.reserve(item_id):
            logger.info("Item %s already processed, skipping duplicate", item_id)
            return

        logger.info("monday.com item created: %s - %s", item_id, event.text)
        text = render_item_created(
            name=event.text,
            item_id=item_id,
            link=item_link(self._account_url, self._board_id, item_id),
        )
        # Any failure, cancellation included, must free the reservation so a
        # redelivery can announce the item
        try:
            thread_ts = await self._poster.post_message(self._channel_id, text)
        except BaseException:
            self._store.release(item_id)
            raise

        self._store.fill(item_id, thread_ts)
        logger.info("Mapped item %s -> thread %s", item_id, thread_ts)

    async def _on_update_created(self, event: BoardEvent) -> None:
        item_id = event.item_id
        logger.info("monday.com update on item %s", item_id)

        thread_ts = self._store.lookup(item_id) if item_id is not None else None
        if thread_ts is None:
            logger.warning("No Slack thread found for item %s", item_id)
            return

        await self._poster.post_message(
            self._channel_id, render_update(event.text), thread_ts=thread_ts
        )
