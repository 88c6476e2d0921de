"""TTL cache in front of a role grant source."""

import logging
import time
from collections import OrderedDict
from collections.abc import Callable

from accessgate.application.ports import RoleGrantSource

logger = logging.getLogger(__name__)


class CachedRoleGrantSource:
    """Caches role permission sets per user for ``ttl_seconds``.

    At most ``max_size`` users are kept; the least recently used entry is
    evicted first and stale entries are dropped when found. Call
    ``invalidate(user_id)`` after role membership changes; stale sets
    otherwise live until the TTL runs out.
    """

    def __init__(
        self,
        source: RoleGrantSource,
        ttl_seconds: float = 300.0,
        clock: Callable[[], float] = time.monotonic,
        max_size: int = 10000,
    ) -> None:
        if max_size <= 0:
            raise ValueError("max_size must be positive")
        self._source = source
        self._ttl = ttl_seconds
        self._clock = clock
        self._max_size = max_size
        self._cache: OrderedDict[str, tuple[float, frozenset[str]]] = OrderedDict()

    def __len__(self) -> int:
        return len(self._cache)

    async def role_permissions(self, user_id: str) -> set[str]:
        now = self._clock()
        cached = self._cache.get(user_id)
        if cached:
            if now - cached[0] < self._ttl:
                self._cache.move_to_end(user_id)
                return set(cached[1])
            del self._cache[user_id]

        codes = frozenset(await self._source.role_permissions(user_id))
        self._cache[user_id] = (now, codes)
        self._cache.move_to_end(user_id)
        self._evict(now)
        logger.debug("Cached %d role permission(s) for user %s", len(codes), user_id)
        return set(codes)

    def invalidate(self, user_id: str) -> None:
        self._cache.pop(user_id, None)

    def clear(self) -> None:
        self._cache.clear()

    def _evict(self, now: float) -> None:
        # Least recently used first: drop expired entries, then trim to max_size.
        while self._cache:
            oldest_user, (stored_at, _) = next(iter(self._cache.items()))
            if now - stored_at < self._ttl and len(self._cache) <= self._max_size:
                break
            del self._cache[oldest_user]
