from .base import (
    CacheStats,
    ErrorPolicy,
    OrderingPolicy,
    Repository,
    RepositoryPolicy,
    ScopeStats,
)
from .cache import CachedCollection
from .delta import Delta, Insert, Remove, Update, apply_delta

__all__ = [
    "CacheStats",
    "ErrorPolicy",
    "OrderingPolicy",
    "Repository",
    "RepositoryPolicy",
    "ScopeStats",
    "CachedCollection",
    "Delta",
    "Insert",
    "Remove",
    "Update",
    "apply_delta",
]
