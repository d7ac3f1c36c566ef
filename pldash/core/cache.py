import logging
import time
from typing import Any, Callable, Dict, Optional

logger = logging.getLogger(__name__)


class TTLCache:
    """
    In-process read-through cache for upstream responses.

    One instance is created per process and handed to repositories. Entries
    expire after their TTL and are evicted when read. There is no locking:
    concurrent writers to the same key simply overwrite each other.
    """

    def __init__(self, default_ttl: float = 300, clock: Callable[[], float] = time.time):
        self.default_ttl = default_ttl
        self._clock = clock
        self._entries: Dict[str, Dict[str, Any]] = {}

    def get(self, key: str) -> Optional[Any]:
        entry = self._entries.get(key)
        if entry is None:
            logger.info(f"Cache MISS for key: {key[:32]}...")
            return None
        if self._clock() >= entry["expires_at"]:
            self._entries.pop(key, None)
            logger.info(f"Cache EXPIRED for key: {key[:32]}...")
            return None
        logger.info(f"Cache HIT for key: {key[:32]}...")
        return entry["data"]

    def put(self, key: str, value: Any, ttl: Optional[float] = None) -> None:
        ttl = self.default_ttl if ttl is None else ttl
        self._entries[key] = {
            "data": value,
            "expires_at": self._clock() + ttl,
        }
        logger.info(f"Cache SET for key: {key[:32]}... (total cached items: {len(self._entries)})")

    def delete(self, key: str) -> None:
        self._entries.pop(key, None)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
