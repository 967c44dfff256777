"""
Size- and time-bounded caches for the solver pipeline.

Every tier is its own TTLCache instance so tiers expire independently; a
SolverCaches bundle is built explicitly and handed to the engine.
"""
from __future__ import annotations
import threading
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Callable, Generic, Optional, TypeVar

V = TypeVar("V")

MINUTE = 60
HOUR = 60 * MINUTE


@dataclass
class CacheEntry(Generic[V]):
    key: str
    value: V
    inserted_at: float
    ttl: float
    last_access: float

    def expired(self, now: float) -> bool:
        return now - self.inserted_at >= self.ttl


class TTLCache(Generic[V]):
    """LRU cache with a per-entry TTL.

    Reads always update recency. With `refresh_on_get` a read also restarts
    the entry's TTL countdown.
    """

    def __init__(
        self,
        capacity: int,
        ttl: float,
        *,
        refresh_on_get: bool = False,
        clock: Callable[[], float] = time.monotonic,
    ):
        if capacity < 1:
            raise ValueError("capacity must be positive")
        self.capacity = capacity
        self.ttl = ttl
        self.refresh_on_get = refresh_on_get
        self._clock = clock
        self._entries: OrderedDict[str, CacheEntry[V]] = OrderedDict()
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[V]:
        with self._lock:
            entry = self._live(key)
            if entry is None:
                return None
            now = self._clock()
            entry.last_access = now
            if self.refresh_on_get:
                entry.inserted_at = now
            self._entries.move_to_end(key)
            return entry.value

    def peek(self, key: str) -> Optional[V]:
        """Like get() but without touching recency or TTL."""
        with self._lock:
            entry = self._live(key)
            return entry.value if entry else None

    def set(self, key: str, value: V) -> None:
        with self._lock:
            now = self._clock()
            self._entries.pop(key, None)
            self._entries[key] = CacheEntry(key, value, now, self.ttl, now)
            while len(self._entries) > self.capacity:
                self._entries.popitem(last=False)

    def delete(self, key: str) -> bool:
        with self._lock:
            return self._entries.pop(key, None) is not None

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __contains__(self, key: str) -> bool:
        return self.peek(key) is not None

    def __len__(self) -> int:
        with self._lock:
            self._purge()
            return len(self._entries)

    def _live(self, key: str) -> Optional[CacheEntry[V]]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if entry.expired(self._clock()):
            del self._entries[key]
            return None
        return entry

    def _purge(self) -> None:
        now = self._clock()
        for key in [k for k, e in self._entries.items() if e.expired(now)]:
            del self._entries[key]


# ──────────────────────────────
#  Pipeline tiers
# ──────────────────────────────
@dataclass
class SolverCaches:
    player: TTLCache            # raw player text
    preprocessed: TTLCache      # synthesized module source
    solvers: TTLCache           # SolverPair
    in_flight: TTLCache         # asyncio.Task per pending download
    sts: TTLCache               # signature timestamp

    @classmethod
    def create(cls, *, clock: Callable[[], float] = time.monotonic) -> "SolverCaches":
        return cls(
            player=TTLCache(300, HOUR, clock=clock),
            preprocessed=TTLCache(300, HOUR, clock=clock),
            solvers=TTLCache(150, 24 * HOUR, refresh_on_get=True, clock=clock),
            in_flight=TTLCache(500, 5 * MINUTE, clock=clock),
            sts=TTLCache(300, 24 * HOUR, clock=clock),
        )

    def tiers(self) -> dict[str, TTLCache]:
        return {
            "player": self.player,
            "preprocessed": self.preprocessed,
            "solvers": self.solvers,
            "in_flight": self.in_flight,
            "sts": self.sts,
        }

    def stats(self) -> dict[str, dict[str, int]]:
        return {name: {"size": len(c), "max": c.capacity} for name, c in self.tiers().items()}

    def clear(self) -> None:
        for cache in self.tiers().values():
            cache.clear()
