"""In-memory time-expiring cache."""

from .cache import DEFAULT_TTL_SECONDS, Cache, CacheEntry, Clock, ExpirationPolicy, to_seconds

__all__ = [
    "Cache",
    "CacheEntry",
    "Clock",
    "ExpirationPolicy",
    "DEFAULT_TTL_SECONDS",
    "to_seconds",
]
