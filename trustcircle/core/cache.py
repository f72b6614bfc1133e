# trustcircle/core/cache.py
import logging
import threading
import time
from typing import Any, Callable, Dict, Optional, Tuple

from trustcircle.core.settings import settings

logger = logging.getLogger(__name__)


# In-process TTL cache; expiry is checked lazily on read, there is no sweeper.
# Swap for a networked backend by implementing the same get/set/invalidate trio.
class TTLCache:
    def __init__(self, ttl_seconds: float = 60, clock: Callable[[], float] = time.monotonic):
        self.ttl = ttl_seconds
        self._clock = clock
        self._lock = threading.Lock()
        self.store: Dict[str, Tuple[float, Any]] = {}
        # Bumped by invalidate; a read-through fill that saw an older value is dropped
        self._generations: Dict[str, int] = {}

    def get(self, key: str) -> Tuple[Optional[Any], bool]:
        value, found, _ = self.lookup(key)
        return value, found

    def lookup(self, key: str) -> Tuple[Optional[Any], bool, int]:
        """Like get, plus the key's generation to hand back to set on a miss."""
        with self._lock:
            generation = self._generations.get(key, 0)
            entry = self.store.get(key)
            if entry is None:
                return None, False, generation
            inserted_at, value = entry
            if self._clock() - inserted_at > self.ttl:
                self.store.pop(key, None)
                return None, False, generation
            return value, True, generation

    def set(self, key: str, value: Any, generation: Optional[int] = None) -> bool:
        """Stores value. With a generation, only if no invalidate happened since that lookup."""
        with self._lock:
            if generation is not None and self._generations.get(key, 0) != generation:
                logger.debug(f"Dropped fill for {key}: invalidated since lookup")
                return False
            self.store[key] = (self._clock(), value)
            return True

    def invalidate(self, key: str) -> None:
        with self._lock:
            self.store.pop(key, None)
            self._generations[key] = self._generations.get(key, 0) + 1

    def __len__(self) -> int:
        with self._lock:
            return len(self.store)


def circle_key(circle_id: int) -> str:
    return f"{circle_id}"


def membership_key(circle_id: int, user_id: int) -> str:
    return f"{circle_id}-{user_id}"


membership_cache = TTLCache(ttl_seconds=settings.cache_ttl_seconds)
