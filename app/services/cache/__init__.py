"""
Cache services package.

- lookup_cache: bounded in-process cache used by the purchase engine
"""

from app.services.cache.lookup_cache import LookupCache


__all__ = [
    "LookupCache",
]
