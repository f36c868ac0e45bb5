"""Time-to-live bookkeeping for one cached collection."""

import time
from dataclasses import dataclass, field
from typing import Callable, Generic, Optional, TypeVar

T = TypeVar("T")

Clock = Callable[[], float]

# Monotonic so that wall-clock adjustments never make a cache look fresh.
default_clock: Clock = time.monotonic


@dataclass
class CachedCollection(Generic[T]):
    ttl: float
    items: list[T] = field(default_factory=list)
    fetched_at: Optional[float] = None

    def age(self, now: float) -> Optional[float]:
        if self.fetched_at is None:
            return None
        return now - self.fetched_at

    def is_warm(self, now: float) -> bool:
        """A cold (never fetched) or stale (age >= ttl) collection is a miss."""
        age = self.age(now)
        return age is not None and age < self.ttl

    def store(self, items: list[T], now: float) -> None:
        self.items = list(items)
        self.fetched_at = now

    def invalidate(self) -> None:
        self.fetched_at = None

    def reset(self) -> None:
        self.items = []
        self.fetched_at = None
