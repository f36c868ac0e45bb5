"""Generic cache-coherent repository.

One ``Repository`` holds, per scope (usually a user id or a language code),
the latest known collection of entities, when it was fetched, and at most one
in-flight fetch. Concurrent callers that miss the cache share that fetch
instead of issuing their own. Local changes are applied optimistically and
rolled back when the backend rejects them.

All state lives on the event loop thread. ``get`` checks for an in-flight
fetch and registers a new one without awaiting in between, so two callers
can never both start a fetch for the same scope.
"""

import asyncio
from dataclasses import dataclass, field
from enum import Enum
from typing import Awaitable, Callable, Generic, Optional, TypeVar

from .cache import CachedCollection, Clock, default_clock
from .delta import Delta, KeyFunc, Remove, apply_delta, default_key, replace_by_key, revert_delta
from ..errors import RemoteFetchError, RemoteMutationError, RepositoryClearedError
from ..utils.logger import get_logger

logger = get_logger("repository")

T = TypeVar("T")

FetchFunc = Callable[[str], Awaitable[list]]
MutateFunc = Callable[[str, Delta], Awaitable[Optional[object]]]
Observer = Callable[[str, list], None]


class ErrorPolicy(str, Enum):
    """What a failed fetch does to the collection already on screen."""

    KEEP_STALE = "keep_stale"
    SHOW_EMPTY = "show_empty"


class OrderingPolicy(str, Enum):
    """Whether a fetch result may overwrite local changes made while it ran."""

    COMPLETION_ORDER = "completion_order"
    LATEST_WINS = "latest_wins"


@dataclass
class RepositoryPolicy:
    error_policy: ErrorPolicy = ErrorPolicy.KEEP_STALE
    ordering: OrderingPolicy = OrderingPolicy.COMPLETION_ORDER
    # Some collections are never legitimately empty once loaded.
    empty_is_miss: bool = False


@dataclass
class ScopeStats:
    scope: str
    count: int
    age: Optional[float]
    valid: bool
    loading: bool


@dataclass
class CacheStats:
    repository: str
    scopes: list[ScopeStats] = field(default_factory=list)

    @property
    def total_items(self) -> int:
        return sum(s.count for s in self.scopes)


class Repository(Generic[T]):
    def __init__(
        self,
        name: str,
        fetch: FetchFunc,
        ttl: float,
        mutate: Optional[MutateFunc] = None,
        key: KeyFunc = default_key,
        policy: Optional[RepositoryPolicy] = None,
        clock: Clock = default_clock,
        transform: Optional[Callable[[list], list]] = None,
    ):
        if ttl <= 0:
            raise ValueError(f"ttl must be positive, got {ttl}")
        self.name = name
        self.ttl = ttl
        self.policy = policy or RepositoryPolicy()
        self._fetch = fetch
        self._mutate = mutate
        self._key = key
        self._clock = clock
        self._transform = transform

        self._entries: dict[str, CachedCollection[T]] = {}
        self._in_flight: dict[str, asyncio.Task] = {}
        self._loading: set[str] = set()
        self._errors: dict[str, BaseException] = {}
        self._generations: dict[str, int] = {}
        self._clear_epochs: dict[str, int] = {}
        self._observers: list[Observer] = []

        logger.info(f"{name} repository initialized (ttl={ttl:.0f}s)")

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get(self, scope: str, force_refresh: bool = False) -> list[T]:
        """Return the collection for ``scope``, fetching only on a miss.

        Raises:
            RemoteFetchError: the backend call failed.
            RepositoryClearedError: ``clear`` ran while this caller was waiting.
        """
        entry = self._entry(scope)
        if not force_refresh and self._is_hit(entry):
            logger.debug(
                f"Using cached {self.name} for '{scope}': {len(entry.items)} items "
                f"(age: {entry.age(self._clock()):.0f}s)"
            )
            return list(entry.items)

        task = self._in_flight.get(scope)
        if task is not None:
            logger.debug(f"Joining in-flight {self.name} fetch for '{scope}'")
        else:
            generation = self._bump(scope)
            task = asyncio.ensure_future(self._load(scope, generation))
            self._in_flight[scope] = task

        return await self._join(scope, task)

    async def refresh(self, scope: str, clear_timestamp: bool = True) -> list[T]:
        logger.info(f"Force refreshing {self.name} for '{scope}'")
        if clear_timestamp:
            self._entry(scope).invalidate()
        return await self.get(scope, force_refresh=True)

    def items(self, scope: str) -> list[T]:
        """Currently held items; never triggers a fetch."""
        entry = self._entries.get(scope)
        return list(entry.items) if entry is not None else []

    def find(self, scope: str, item_id: str) -> Optional[T]:
        for item in self.items(scope):
            if self._key(item) == item_id:
                return item
        return None

    def is_loading(self, scope: str) -> bool:
        return scope in self._loading

    def last_error(self, scope: str) -> Optional[BaseException]:
        return self._errors.get(scope)

    def is_cache_valid(self, scope: str) -> bool:
        entry = self._entries.get(scope)
        return entry is not None and self._is_hit(entry)

    def cache_age(self, scope: str) -> Optional[float]:
        entry = self._entries.get(scope)
        return entry.age(self._clock()) if entry is not None else None

    def stats(self) -> CacheStats:
        stats = CacheStats(repository=self.name)
        for scope, entry in sorted(self._entries.items()):
            stats.scopes.append(
                ScopeStats(
                    scope=scope,
                    count=len(entry.items),
                    age=entry.age(self._clock()),
                    valid=self._is_hit(entry),
                    loading=scope in self._loading,
                )
            )
        return stats

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def mutate_optimistically(self, scope: str, delta: Delta) -> Optional[T]:
        """Apply ``delta`` locally, then confirm it with the backend.

        The local change is visible to readers and observers before the first
        suspension point. If the backend call fails only this delta's item is
        reverted, so changes that landed while the call was pending survive.
        With no concurrent writers the collection ends up as it was before.

        If ``clear`` ran while the call was pending nothing is written back,
        neither the rollback nor the backend's copy.

        Returns:
            The effective item: the backend's copy when it returns one,
            otherwise the optimistic item (``None`` for removals).
        """
        if self._mutate is None:
            raise TypeError(f"{self.name} repository has no remote mutation")

        snapshot = self.items(scope)
        optimistic, effective = apply_delta(snapshot, delta, self._key)
        self._write(scope, optimistic)
        clear_epoch = self._clear_epochs.get(scope, 0)
        logger.debug(f"Optimistic {type(delta).__name__} applied to {self.name} for '{scope}'")

        try:
            confirmed = await self._mutate(scope, delta)
        except asyncio.CancelledError:
            self._rollback(scope, snapshot, delta, clear_epoch)
            raise
        except Exception as e:
            self._rollback(scope, snapshot, delta, clear_epoch)
            logger.error(f"{self.name} change failed for '{scope}': {e}")
            raise RemoteMutationError(self.name, scope, e) from e

        if confirmed is not None and not isinstance(delta, Remove):
            if self._clear_epochs.get(scope, 0) != clear_epoch:
                logger.debug(f"{self.name} cache for '{scope}' was cleared, dropping confirmed record")
                return confirmed
            # The backend may assign its own id to an inserted record.
            optimistic_id = self._key(effective) if effective is not None else None
            self._write(scope, replace_by_key(self.items(scope), confirmed, self._key, optimistic_id))
            return confirmed
        return effective

    def apply_local(self, scope: str, delta: Delta, mark_fresh: bool = False) -> Optional[T]:
        """Apply a change the backend already knows about (no remote call)."""
        updated, effective = apply_delta(self.items(scope), delta, self._key)
        self._write(scope, updated)
        if mark_fresh:
            self._entry(scope).fetched_at = self._clock()
        return effective

    def invalidate(self, scope: str) -> None:
        """Make the next ``get`` miss while keeping the displayed items."""
        entry = self._entries.get(scope)
        if entry is not None:
            entry.invalidate()
            logger.debug(f"{self.name} cache invalidated for '{scope}'")

    def clear(self, scope: Optional[str] = None) -> None:
        """Forget cached items and cancel in-flight fetches.

        Used on sign-out so one account's data never leaks into the next.
        """
        scopes = [scope] if scope is not None else list(set(self._entries) | set(self._in_flight))
        for target in scopes:
            self._clear_epochs[target] = self._clear_epochs.get(target, 0) + 1
            task = self._in_flight.pop(target, None)
            if task is not None and not task.done():
                task.cancel()
            self._loading.discard(target)
            self._errors.pop(target, None)
            entry = self._entries.get(target)
            if entry is not None:
                had_items = bool(entry.items)
                entry.reset()
                self._bump(target)
                if had_items:
                    self._publish(target, [])
        if scope is None:
            self._entries.clear()
        logger.info(f"{self.name} cache cleared" + (f" for '{scope}'" if scope is not None else ""))

    # ------------------------------------------------------------------
    # Observers
    # ------------------------------------------------------------------

    def subscribe(self, observer: Observer) -> Callable[[], None]:
        self._observers.append(observer)

        def unsubscribe() -> None:
            if observer in self._observers:
                self._observers.remove(observer)

        return unsubscribe

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _entry(self, scope: str) -> CachedCollection[T]:
        entry = self._entries.get(scope)
        if entry is None:
            entry = CachedCollection(ttl=self.ttl)
            self._entries[scope] = entry
        return entry

    def _is_hit(self, entry: CachedCollection[T]) -> bool:
        if not entry.is_warm(self._clock()):
            return False
        return not (self.policy.empty_is_miss and not entry.items)

    def _bump(self, scope: str) -> int:
        generation = self._generations.get(scope, 0) + 1
        self._generations[scope] = generation
        return generation

    def _write(self, scope: str, items: list[T]) -> None:
        self._entry(scope).items = list(items)
        self._bump(scope)
        self._publish(scope, items)

    def _rollback(self, scope: str, snapshot: list[T], delta: Delta, clear_epoch: int) -> None:
        if self._clear_epochs.get(scope, 0) != clear_epoch:
            logger.info(f"{self.name} cache for '{scope}' was cleared, skipping rollback")
            return
        self._write(scope, revert_delta(self.items(scope), snapshot, delta, self._key))
        logger.debug(f"{self.name} {type(delta).__name__} rolled back for '{scope}'")

    def _publish(self, scope: str, items: list[T]) -> None:
        for observer in list(self._observers):
            try:
                observer(scope, list(items))
            except Exception:
                logger.exception(f"{self.name} observer failed for '{scope}'")

    async def _join(self, scope: str, task: asyncio.Task) -> list[T]:
        # Shielded so one impatient caller cannot cancel the fetch for everyone.
        try:
            return list(await asyncio.shield(task))
        except asyncio.CancelledError:
            if task.cancelled():
                raise RepositoryClearedError(self.name, scope) from None
            raise

    async def _load(self, scope: str, generation: int) -> list[T]:
        logger.info(f"Fetching {self.name} from backend for '{scope}'")
        self._loading.add(scope)
        self._errors.pop(scope, None)
        try:
            fetched = list(await self._fetch(scope))
        except asyncio.CancelledError:
            raise
        except Exception as e:
            self._errors[scope] = e
            logger.error(f"Failed to fetch {self.name} for '{scope}': {e}")
            if self.policy.error_policy is ErrorPolicy.SHOW_EMPTY:
                # Nothing fresh is on screen any more, so the next get must fetch.
                entry = self._entry(scope)
                had_items = bool(entry.items)
                entry.reset()
                self._bump(scope)
                if had_items:
                    self._publish(scope, [])
            raise RemoteFetchError(self.name, scope, e) from e
        finally:
            self._loading.discard(scope)
            if self._in_flight.get(scope) is asyncio.current_task():
                del self._in_flight[scope]

        if self._transform is not None:
            fetched = self._transform(fetched)

        if (
            self.policy.ordering is OrderingPolicy.LATEST_WINS
            and self._generations.get(scope) != generation
        ):
            logger.warning(
                f"Discarding {self.name} fetch for '{scope}': the collection changed while it was loading"
            )
            return fetched

        self._entry(scope).store(fetched, self._clock())
        self._publish(scope, fetched)
        logger.debug(f"{self.name} cached for '{scope}': {len(fetched)} items")
        return fetched


__all__ = [
    "Repository",
    "RepositoryPolicy",
    "ErrorPolicy",
    "OrderingPolicy",
    "CacheStats",
    "ScopeStats",
]
