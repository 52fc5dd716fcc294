"""
Search root registry for rootfinder.

Roots are canonical directory paths (symlinks resolved, one trailing
separator) kept in named groups. Within a group, roots keep their first
registration order and never appear twice.
"""

import os
import logging
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from ..errors import InvalidRoot
from ..models.search_query import DEFAULT_GROUP
from .path_cache import PathCache


logger = logging.getLogger(__name__)


def canonicalize(path: str) -> str:
    """
    Resolve ``path`` to its canonical directory form.

    Args:
        path: Directory path, relative or absolute, ``~`` allowed

    Returns:
        Absolute path with symlinks resolved and a single trailing separator

    Raises:
        InvalidRoot: If the path does not exist or is not a directory
    """
    if not path or not str(path).strip():
        raise InvalidRoot("Root path cannot be empty", path)

    text = str(path)
    stripped = text.rstrip('/\\') or text
    try:
        resolved = Path(stripped).expanduser().resolve(strict=True)
    except (OSError, RuntimeError) as e:
        raise InvalidRoot(f"Location does not exist: {path}", path) from e

    if not resolved.is_dir():
        raise InvalidRoot(f"Location is not a directory: {path}", path)

    return os.path.join(str(resolved), '')


class SearchRootRegistry:
    """
    Ordered, grouped collection of search roots.

    The registry shares a PathCache with its Finder and keeps it honest:
    adding roots clears it, removing a root invalidates only the entries
    that root produced.

    Args:
        cache: Cache to invalidate on changes
        containment_root: Optional directory every root must live under
    """

    def __init__(self, cache: Optional[PathCache] = None, containment_root: Optional[str] = None):
        self.cache = cache if cache is not None else PathCache()
        self._groups: Dict[str, Dict[str, str]] = {}
        self._containment_root: Optional[str] = None
        if containment_root:
            self.set_containment_root(containment_root)

    @property
    def containment_root(self) -> Optional[str]:
        return self._containment_root

    def set_containment_root(self, path: str) -> None:
        """
        Restrict all future roots to live under ``path``.

        Raises:
            InvalidRoot: If ``path`` does not exist
        """
        self._containment_root = canonicalize(path)
        logger.info(f"Containment root set to {self._containment_root}")

    def normalize(self, path: str) -> str:
        """
        Canonicalize a root and enforce the containment restriction.

        Raises:
            InvalidRoot: If the root does not exist or lies outside the containment root
        """
        root = canonicalize(path)
        if self._containment_root and not root.startswith(self._containment_root):
            raise InvalidRoot(
                f"Cannot access path outside: {self._containment_root}. Trying to access: {root}",
                path
            )
        return root

    def add_root(self, path: str, group: str = DEFAULT_GROUP, clear_cache: bool = True) -> str:
        """
        Register a root under ``group``.

        Re-adding an existing root keeps its position.

        Returns:
            The normalized root
        """
        root = self.normalize(path)
        roots = self._groups.setdefault(group, {})
        if root not in roots:
            roots[root] = root
            logger.info(f"Added root {root} to group '{group}'")

        if clear_cache:
            self.cache.clear()
        return root

    def add_roots(self, paths: Iterable[str], group: str = DEFAULT_GROUP, clear_cache: bool = True) -> List[str]:
        """Register several roots in order."""
        added = [self.add_root(path, group, clear_cache=False) for path in paths]
        if clear_cache:
            self.cache.clear()
        return added

    def remove_root(self, path: str, group: str = DEFAULT_GROUP, clear_cache: bool = True) -> bool:
        """
        Unregister a root from ``group``.

        Only the cache entries this root produced are invalidated.

        Returns:
            True if the root was registered and has been removed
        """
        try:
            root = self.normalize(path)
        except InvalidRoot:
            # The directory may have vanished since it was registered
            text = str(path).rstrip('/\\') or str(path)
            root = os.path.join(os.path.abspath(os.path.expanduser(text)), '')

        roots = self._groups.get(group)
        if not roots or root not in roots:
            return False

        del roots[root]
        logger.info(f"Removed root {root} from group '{group}'")

        if clear_cache:
            self.cache.invalidate_root(root)
        return True

    def remove_roots(self, paths: Iterable[str], group: str = DEFAULT_GROUP, clear_cache: bool = True) -> int:
        """Unregister several roots; returns how many were removed."""
        return sum(1 for path in paths if self.remove_root(path, group, clear_cache))

    def set_roots(self, paths: Iterable[str], group: str = DEFAULT_GROUP, clear_cache: bool = True) -> List[str]:
        """
        Replace every root of ``group``.

        All paths are validated before the group is touched, so a bad
        path leaves the previous roots in place.
        """
        normalized = [self.normalize(path) for path in paths]
        self._groups[group] = {root: root for root in normalized}
        logger.info(f"Replaced roots of group '{group}' ({len(self._groups[group])} roots)")

        if clear_cache:
            self.cache.clear()
        return list(self._groups[group])

    def get_roots(self, group: str = DEFAULT_GROUP) -> List[str]:
        """Return the roots of ``group`` in registration order."""
        return list(self._groups.get(group, {}))

    def list_groups(self) -> List[str]:
        """Return group names in first-insertion order."""
        return list(self._groups)

    def has_group(self, group: str) -> bool:
        return group in self._groups

    def __len__(self) -> int:
        return sum(len(roots) for roots in self._groups.values())
