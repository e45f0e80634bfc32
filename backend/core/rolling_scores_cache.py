"""
Per-user cache of rolling scores.

Rolling scores are recomputed on a cache miss or once an entry is older than
the TTL. Saving or deleting a workout must call invalidate() for that user;
an invalidated entry is dropped whole and recomputed on the next read.

The cache is an explicit object owned by the application (app.state), so each
test can build a fresh one.
"""
from typing import Callable, Dict, Optional, Tuple
import logging
import threading
import time

from backend.core.rolling_score_service import RollingScoreService
from domain.models import RollingScoresResult

logger = logging.getLogger(__name__)


DEFAULT_TTL_SECONDS = 300


class RollingScoresCache:
    """
    TTL cache in front of RollingScoreService.

    Usage:
        >>> cache = RollingScoresCache(service, ttl_seconds=300)
        >>> scores = cache.get("user-123")
        >>> cache.invalidate("user-123")
    """

    def __init__(
        self,
        service: RollingScoreService,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.service = service
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: Dict[str, Tuple[float, RollingScoresResult]] = {}
        # Bumped by invalidate(); results computed under an older value are not stored
        self._generations: Dict[str, int] = {}
        self._epoch = 0
        self._lock = threading.Lock()

    def get(self, user_id: str, force: bool = False) -> RollingScoresResult:
        """Return cached scores, recalculating when missing, stale or forced."""
        if not force:
            cached = self.peek(user_id)
            if cached is not None:
                return cached

        with self._lock:
            generation = self._generation(user_id)

        result = self.service.calculate(user_id)
        with self._lock:
            if self._generation(user_id) == generation:
                self._entries[user_id] = (self._clock(), result)
            else:
                logger.debug(f"Rolling scores for {user_id} invalidated during calculation; not cached")
        return result

    def peek(self, user_id: str) -> Optional[RollingScoresResult]:
        """Return a fresh cached result without recalculating."""
        with self._lock:
            entry = self._entries.get(user_id)
            if entry is None:
                return None
            stored_at, result = entry
            if self._clock() - stored_at >= self.ttl_seconds:
                del self._entries[user_id]
                return None
            return result

    def invalidate(self, user_id: Optional[str] = None) -> None:
        """Drop one user's entry, or every entry when user_id is None."""
        with self._lock:
            if user_id is None:
                self._entries.clear()
                self._epoch += 1
            else:
                self._entries.pop(user_id, None)
                self._generations[user_id] = self._generations.get(user_id, 0) + 1
        logger.debug(f"Invalidated rolling scores cache for {user_id or 'all users'}")

    def _generation(self, user_id: str) -> Tuple[int, int]:
        return self._epoch, self._generations.get(user_id, 0)
