"""In-process TTL cache of recently seen webhook delivery ids.

GitHub redelivers a webhook (same ``X-GitHub-Delivery`` id) when the first
attempt timed out or was retried by hand. Deliveries seen inside the TTL
window are acknowledged but not routed a second time.
"""

import logging

from cachetools import TTLCache  # type: ignore[import-untyped]

logger = logging.getLogger(__name__)


class RecentDeliveries:
    """Bounded, expiring set of delivery ids."""

    def __init__(self, maxsize: int = 1024, ttl: float = 600.0):
        self._seen: TTLCache = TTLCache(maxsize=maxsize, ttl=ttl)

    def check_and_mark(self, delivery_id: str | None) -> bool:
        """Record *delivery_id*; return True if it was already seen.

        Deliveries without an id are never treated as duplicates.
        """
        if not delivery_id:
            return False
        if delivery_id in self._seen:
            logger.debug(f"Duplicate delivery {delivery_id}")
            return True
        self._seen[delivery_id] = True
        return False

    def forget(self, delivery_id: str | None) -> None:
        """Allow *delivery_id* to be processed again."""
        if delivery_id:
            self._seen.pop(delivery_id, None)

    def __contains__(self, delivery_id: str) -> bool:
        return delivery_id in self._seen

    @property
    def size(self) -> int:
        return len(self._seen)
