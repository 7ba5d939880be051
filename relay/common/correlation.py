"""
Correlation Store

In-memory mapping from monday.com item id to the Slack thread (the ts of the
announcement message) that discusses it. Lives for the lifetime of the
process; nothing is persisted.

Invariants:
- At most one entry per item id.
- Once a thread ts is stored for an item it is never replaced.

None of the methods await, so each call is atomic with respect to other
coroutines on the same event loop. InboundBoardHandler relies on this:
it reserves an item before posting to Slack and fills in the thread ts after,
so two deliveries of the same item cannot both announce it.
"""

from typing import Dict, Optional, Union

ItemId = Union[str, int]

_PENDING = object()


def _key(item_id: ItemId) -> str:
    # monday.com sends ids as ints in some payloads and strings in others
    return str(item_id)


class CorrelationStore:
    """Item id -> thread ts table, first create wins."""

    def __init__(self):
        self._threads: Dict[str, object] = {}

    def try_create(self, item_id: ItemId, thread_ts: str) -> bool:
        """
        Store the thread for an item if the item is unknown.

        Returns:
            True if the mapping was stored, False if the item was already
            mapped or reserved (nothing changes in that case)
        """
        key = _key(item_id)
        if key in self._threads:
            return False
        self._threads[key] = thread_ts
        return True

    def lookup(self, item_id: ItemId) -> Optional[str]:
        """Thread ts for an item, or None if unknown or still reserved"""
        value = self._threads.get(_key(item_id))
        if value is None or value is _PENDING:
            return None
        return value

    def reserve(self, item_id: ItemId) -> bool:
        """
        Claim an item before its thread exists.

        Returns:
            True if the caller now owns the item and must fill() or
            release() it
        """
        key = _key(item_id)
        if key in self._threads:
            return False
        self._threads[key] = _PENDING
        return True

    def fill(self, item_id: ItemId, thread_ts: str) -> None:
        """
        Replace a reservation with the real thread ts.

        Raises:
            ValueError: if the item already has a thread
        """
        key = _key(item_id)
        current = self._threads.get(key, _PENDING)
        if current is not _PENDING:
            raise ValueError(f"item {key} is already mapped to thread {current}")
        self._threads[key] = thread_ts

    def release(self, item_id: ItemId) -> None:
        """Drop a reservation; filled entries are left alone"""
        key = _key(item_id)
        if self._threads.get(key) is _PENDING:
            del self._threads[key]

    def is_reserved(self, item_id: ItemId) -> bool:
        return self._threads.get(_key(item_id)) is _PENDING

    def __contains__(self, item_id: ItemId) -> bool:
        return _key(item_id) in self._threads

    def __len__(self) -> int:
        return len(self._threads)
