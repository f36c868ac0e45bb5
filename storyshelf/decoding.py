"""Tolerant decoding helpers for backend records.

The backend schema drifted over time: a logical field may live under one of
several historical keys, or be missing on old documents. Each such field is
declared as an ordered list of extractors; the first one that yields a value
wins and a default covers the rest. Keep the per-field lists next to the
model that uses them so every fallback is documented in one place.
"""

from datetime import datetime, timezone
from typing import Any, Callable, Iterable, Optional, TypeVar

from .errors import DecodingError
from .utils.logger import get_logger

logger = get_logger("decoding")

T = TypeVar("T")

Extractor = Callable[[dict], Any]

_MISSING = object()


def key(name: str, of_type: Optional[type] = None) -> Extractor:
    """Read ``payload[name]``, optionally only when it has the expected type."""

    def extract(payload: dict) -> Any:
        value = payload.get(name)
        if value is None:
            return None
        if of_type is not None and not isinstance(value, of_type):
            return None
        return value

    return extract


def nested(outer: str, inner: str, of_type: Optional[type] = None) -> Extractor:
    """Read ``payload[outer][inner]`` when ``outer`` is an object."""

    def extract(payload: dict) -> Any:
        container = payload.get(outer)
        if not isinstance(container, dict):
            return None
        return key(inner, of_type)(container)

    return extract


def first_of(payload: dict, *extractors: Extractor, default: Any = _MISSING) -> Any:
    """Evaluate ``extractors`` in priority order and return the first hit.

    Raises:
        DecodingError: nothing matched and no default was given.
    """
    for extract in extractors:
        value = extract(payload)
        if value is not None:
            return value
    if default is _MISSING:
        raise DecodingError(f"No value found in {sorted(payload)}")
    return default


def require(payload: dict, name: str, of_type: Optional[type] = None) -> Any:
    value = key(name, of_type)(payload)
    if value is None:
        raise DecodingError(f"Missing required field '{name}'")
    return value


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse the timestamp shapes the backend has used.

    Accepts a Firestore ``{"_seconds": n}`` object (or ``seconds``), an ISO
    8601 string with or without fractional seconds, or epoch seconds.
    Returns an aware UTC datetime, or ``None`` when the value is unusable.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if isinstance(value, dict):
        seconds = value.get("_seconds", value.get("seconds"))
        if isinstance(seconds, (int, float)) and not isinstance(seconds, bool):
            return datetime.fromtimestamp(seconds, tz=timezone.utc)
        return None
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return datetime.fromtimestamp(value, tz=timezone.utc)
    if isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)
    return None


def timestamp(name: str) -> Extractor:
    def extract(payload: dict) -> Any:
        return parse_timestamp(payload.get(name))

    return extract


def decode_many(rows: Iterable[Any], decoder: Callable[[dict], T], label: str = "record") -> list[T]:
    """Decode a list of rows, skipping the ones that cannot be decoded."""
    decoded = []
    skipped = 0
    for index, row in enumerate(rows):
        if not isinstance(row, dict):
            logger.warning(f"Skipping invalid {label} at index {index}: not an object")
            skipped += 1
            continue
        try:
            decoded.append(decoder(row))
        except (DecodingError, ValueError, TypeError) as e:
            logger.warning(f"Skipping invalid {label} at index {index}: {e}")
            skipped += 1
    if skipped:
        logger.warning(f"Filtered out {skipped} invalid {label} rows")
    return decoded
