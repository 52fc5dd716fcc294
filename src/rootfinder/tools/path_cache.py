"""
Lookup cache for the Finder.

Results are keyed by (scope, query, reversed) and remember which roots
produced them. ``clear`` drops everything and runs when a root is added;
``invalidate_root`` drops only the entries a removed root contributed to.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterator, Optional, Tuple


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CacheEntry:
    """
    A cached lookup result.

    Attributes:
        result: Raw path (find-one) or tuple of raw paths (find-all)
        used: Roots that produced the result, in probe order
        kinds: Whether each matched path is a directory, in result order
    """
    result: Any
    used: Tuple[str, ...]
    kinds: Tuple[bool, ...] = ()


class PathCache:
    """In-memory cache of Finder lookups, owned by a single Finder."""

    def __init__(self):
        self._entries: Dict[str, CacheEntry] = {}

    @staticmethod
    def make_key(scope: str, name: str, reversed: bool) -> str:
        """
        Generate a cache key.

        Args:
            scope: ``one::<kind>`` or ``all::<kind>``
            name: Group-qualified query name
            reversed: Whether roots were probed in reverse order

        Returns:
            Cache key string
        """
        key = f"{scope}::{name}"
        if reversed:
            key += "::reversed"
        return key

    def get(self, scope: str, name: str, reversed: bool) -> Optional[CacheEntry]:
        """Return the cached entry, or None on a miss."""
        return self._entries.get(self.make_key(scope, name, reversed))

    def store(self, scope: str, name: str, reversed: bool, result: Any, used=(), kinds=()) -> CacheEntry:
        """Cache a lookup result together with the roots it came from."""
        entry = CacheEntry(result=result, used=tuple(used), kinds=tuple(kinds))
        self._entries[self.make_key(scope, name, reversed)] = entry
        return entry

    def clear(self) -> None:
        """Drop every cached entry."""
        if self._entries:
            logger.debug(f"Clearing {len(self._entries)} cached lookups")
        self._entries = {}

    def invalidate_root(self, root: str) -> int:
        """
        Drop the entries that were produced using ``root``.

        Args:
            root: Normalized root path

        Returns:
            Number of entries removed
        """
        stale = [key for key, entry in self._entries.items() if root in entry.used]
        for key in stale:
            del self._entries[key]
        if stale:
            logger.debug(f"Invalidated {len(stale)} cached lookups for root {root}")
        return len(stale)

    def keys(self) -> Iterator[str]:
        return iter(list(self._entries))

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)
