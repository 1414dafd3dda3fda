"""
Recommendation cache with request coalescing.

Holds recommendation responses per location in memory with a TTL and makes
sure at most one production (generation call) runs per location at a time.
Concurrent callers for the same location wait on the in-flight production and
all receive its outcome, success or failure.
"""
import time
from concurrent.futures import Future
from threading import Lock
from typing import Callable, Dict, Optional, Tuple

from cropsync.config import CACHE_TTL_SECONDS
from cropsync.models import RecommendationResponse
from cropsync.utils.logger import logger


class RecommendationCache:
    """
    In-memory TTL cache keyed by location name (case-sensitive, as given).

    Expired entries are treated as absent and evicted by the read that finds
    them. A single lock guards the entry map and the in-flight map so that
    check-and-evict and check-and-register are atomic with respect to each other.
    """

    def __init__(self, ttl_seconds: float = CACHE_TTL_SECONDS, clock: Callable[[], float] = time.time):
        """
        Args:
            ttl_seconds: Time-to-live for cache entries (default 30 minutes)
            clock: Time source returning seconds, injectable for tests
        """
        self._ttl = ttl_seconds
        self._clock = clock
        self._entries: Dict[str, Tuple[RecommendationResponse, float]] = {}
        self._in_flight: Dict[str, Future] = {}
        self._lock = Lock()
        self._hits = 0
        self._misses = 0

    @property
    def ttl_seconds(self) -> float:
        return self._ttl

    def _live_entry(self, key: str) -> Optional[RecommendationResponse]:
        """Caller must hold the lock."""
        entry = self._entries.get(key)
        if entry is None:
            return None
        value, inserted_at = entry
        age = self._clock() - inserted_at
        if age > self._ttl:
            del self._entries[key]
            logger.info(f"Recommendation Cache: expired for {key} ({round(age / 60)} minutes old)")
            return None
        return value

    def get(self, key: str) -> Optional[RecommendationResponse]:
        """Return the live entry for key, or None if absent or expired."""
        with self._lock:
            value = self._live_entry(key)
            if value is None:
                self._misses += 1
                return None
            self._hits += 1
            logger.debug(f"Recommendation Cache: hit for {key} (hits: {self._hits}, misses: {self._misses})")
            return value

    def put(self, key: str, response: RecommendationResponse):
        """Store a response, overwriting any existing entry and resetting its age."""
        with self._lock:
            self._entries[key] = (response, self._clock())
        logger.info(f"Recommendation Cache: cached recommendations for {key}")

    def invalidate(self, key: str):
        with self._lock:
            self._entries.pop(key, None)
        logger.info(f"Recommendation Cache: cleared {key}")

    def invalidate_all(self):
        with self._lock:
            self._entries.clear()
        logger.info("Recommendation Cache: cleared all entries")

    def resolve(
        self,
        key: str,
        producer: Callable[[], RecommendationResponse],
        use_cache: bool = True,
    ) -> RecommendationResponse:
        """
        Produce the value for key, coalescing concurrent callers.

        If a production for key is in flight, wait for it and return its result
        (or raise its exception). Otherwise run producer in the calling thread.
        The in-flight marker is always released, so a later call gets a fresh
        attempt after a failure.

        Args:
            key: Location name
            producer: Zero-argument callable producing the response
            use_cache: Return a live cache entry instead of producing, checked
                atomically with the in-flight registration
        """
        with self._lock:
            if use_cache:
                cached = self._live_entry(key)
                if cached is not None:
                    return cached
            future = self._in_flight.get(key)
            owner = future is None
            if owner:
                future = Future()
                self._in_flight[key] = future

        if not owner:
            logger.info(f"Recommendation Cache: request already in progress for {key}, waiting")
            return future.result()

        try:
            result = producer()
        except BaseException as e:
            future.set_exception(e)
            raise
        else:
            future.set_result(result)
            return result
        finally:
            with self._lock:
                if self._in_flight.get(key) is future:
                    del self._in_flight[key]

    def in_flight(self, key: str) -> bool:
        with self._lock:
            return key in self._in_flight

    def stats(self) -> dict:
        """Return cache statistics."""
        with self._lock:
            total = self._hits + self._misses
            hit_rate = (self._hits / total * 100) if total > 0 else 0
            return {
                'size': len(self._entries),
                'locations': list(self._entries.keys()),
                'in_flight': list(self._in_flight.keys()),
                'ttl_seconds': self._ttl,
                'hits': self._hits,
                'misses': self._misses,
                'hit_rate': f"{hit_rate:.1f}%",
            }
