"""Local changes that can be applied to a cached collection.

``apply_delta`` never mutates its input, which is what lets a repository keep
the previous list around as a rollback snapshot.
"""

from dataclasses import dataclass
from typing import Any, Callable, Generic, Optional, TypeVar, Union

T = TypeVar("T")

KeyFunc = Callable[[Any], str]


def default_key(item: Any) -> str:
    return item.id


@dataclass(frozen=True)
class Insert(Generic[T]):
    item: T
    # None appends; 0 puts the item first (newest-first collections).
    position: Optional[int] = 0


@dataclass(frozen=True)
class Update(Generic[T]):
    item: T


@dataclass(frozen=True)
class Remove:
    item_id: str


Delta = Union[Insert, Update, Remove]


def apply_delta(items: list[T], delta: Delta, key: KeyFunc = default_key) -> tuple[list[T], Optional[T]]:
    """Apply ``delta`` to a copy of ``items``.

    Returns:
        The new list and the effective item (``None`` for removals).
    """
    result = list(items)

    if isinstance(delta, Insert):
        item_id = key(delta.item)
        for existing in result:
            if key(existing) == item_id:
                return result, existing
        if delta.position is None:
            result.append(delta.item)
        else:
            result.insert(delta.position, delta.item)
        return result, delta.item

    if isinstance(delta, Update):
        item_id = key(delta.item)
        for index, existing in enumerate(result):
            if key(existing) == item_id:
                result[index] = delta.item
                break
        return result, delta.item

    if isinstance(delta, Remove):
        return [item for item in result if key(item) != delta.item_id], None

    raise TypeError(f"Unsupported delta: {delta!r}")


def replace_by_key(items: list[T], item: T, key: KeyFunc = default_key, item_id: Optional[str] = None) -> list[T]:
    """Swap in ``item`` wherever an element keyed ``item_id`` (default: the item's own key) sits."""
    target = key(item) if item_id is None else item_id
    return [item if key(existing) == target else existing for existing in items]


def revert_delta(current: list[T], before: list[T], delta: Delta, key: KeyFunc = default_key) -> list[T]:
    """Undo only ``delta``'s own item in ``current``.

    ``before`` is the list the delta was applied to. Changes other writers
    made to ``current`` in the meantime are kept.
    """
    if isinstance(delta, Insert):
        item_id = key(delta.item)
        if any(key(existing) == item_id for existing in before):
            return list(current)
        return [item for item in current if key(item) != item_id]

    if isinstance(delta, Update):
        item_id = key(delta.item)
        for previous in before:
            if key(previous) == item_id:
                return replace_by_key(current, previous, key)
        return list(current)

    if isinstance(delta, Remove):
        result = list(current)
        if any(key(existing) == delta.item_id for existing in result):
            return result
        for index, previous in enumerate(before):
            if key(previous) == delta.item_id:
                result.insert(min(index, len(result)), previous)
                break
        return result

    raise TypeError(f"Unsupported delta: {delta!r}")
