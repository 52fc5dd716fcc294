"""
Multi-root path resolution for rootfinder.

The Finder resolves a relative name against an ordered group of search
roots, the way layered configuration, theme or plugin directories
override one another. Results are cached per (scope, query, reversed)
and invalidated when the roots change.

Example:
    finder = Finder(default_extension='json')
    finder.set_roots(['/themes/dark', '/themes/base'], group='theme')
    finder.find_file('theme::config')   # first root that has config.json
"""

import os
import logging
from typing import Any, Iterable, List, Optional, Tuple, Union

from ..models.entries import EntryKind
from ..models.search_query import DEFAULT_GROUP, SearchQuery
from .handlers import PathMaterializer, materializer_for
from .path_cache import CacheEntry, PathCache
from .registry import SearchRootRegistry


logger = logging.getLogger(__name__)

DEFAULT_EXTENSION = 'py'


class Finder:
    """
    Resolves names across registered search roots, with caching.

    Args:
        paths: Roots to register in the default group
        default_extension: Extension appended to extension-less file queries
        root: Optional containment root every search root must live under
        return_handlers: Return handlers instead of raw paths by default
    """

    def __init__(self, paths: Optional[Iterable[str]] = None, default_extension: Optional[str] = None,
                 root: Optional[str] = None, return_handlers: bool = False):
        self.cache = PathCache()
        self.registry = SearchRootRegistry(self.cache, containment_root=root)
        self.default_extension = DEFAULT_EXTENSION
        self.return_handlers = return_handlers

        if default_extension:
            self.set_default_extension(default_extension)

        if paths:
            self.registry.add_roots(paths, clear_cache=False)

    # Registry delegation

    def set_default_extension(self, extension: str) -> None:
        self.default_extension = extension.lstrip('.')

    def get_root(self) -> Optional[str]:
        return self.registry.containment_root

    def set_root(self, root: str) -> None:
        """Restrict future search roots to live under ``root``."""
        self.registry.set_containment_root(root)

    def add_path(self, path: str, clear_cache: bool = True, group: str = DEFAULT_GROUP) -> str:
        return self.registry.add_root(path, group, clear_cache)

    def add_paths(self, paths: Iterable[str], clear_cache: bool = True, group: str = DEFAULT_GROUP) -> List[str]:
        return self.registry.add_roots(paths, group, clear_cache)

    def remove_path(self, path: str, clear_cache: bool = True, group: str = DEFAULT_GROUP) -> bool:
        return self.registry.remove_root(path, group, clear_cache)

    def remove_paths(self, paths: Iterable[str], clear_cache: bool = True, group: str = DEFAULT_GROUP) -> int:
        return self.registry.remove_roots(paths, group, clear_cache)

    def set_paths(self, paths: Iterable[str], clear_cache: bool = True, group: str = DEFAULT_GROUP) -> List[str]:
        return self.registry.set_roots(paths, group, clear_cache)

    def get_paths(self, group: str = DEFAULT_GROUP) -> List[str]:
        return self.registry.get_roots(group)

    def get_groups(self) -> List[str]:
        return self.registry.list_groups()

    # Same operations under registry naming
    add_root = add_path
    remove_root = remove_path
    set_roots = set_paths
    list_groups = get_groups

    # Cache maintenance

    def clear_cache(self) -> None:
        self.cache.clear()

    def remove_path_cache(self, path: str) -> int:
        """Invalidate the cached lookups a (normalized) root contributed to."""
        return self.cache.invalidate_root(os.path.join(path.rstrip('/\\') or path, ''))

    def cached(self, scope: str, name: str, reversed: bool = False) -> Optional[CacheEntry]:
        return self.cache.get(scope, name, reversed)

    # Resolution

    def resolve(self, name: str, all: bool = False, reload: bool = False, reversed: bool = False,
                entry_kind: Union[EntryKind, str] = EntryKind.ALL, as_handlers: Optional[bool] = None,
                materializer: Optional[PathMaterializer] = None) -> Any:
        """
        Resolve ``name`` against the registered roots.

        Args:
            name: Relative name or subpath, optionally ``group::name``
            all: Return every match instead of the first one
            reload: Ignore any cached result
            reversed: Probe roots from last-registered to first
            entry_kind: Accept ``file``, ``dir`` or ``all``
            as_handlers: Materialize handlers; None uses ``return_handlers``
            materializer: Explicit materializer, overrides ``as_handlers``

        Returns:
            For a single lookup the first match or None; for ``all=True`` a
            tuple of matches (empty if nothing matched or the group is unknown)
        """
        query = SearchQuery(
            text=name,
            entry_kind=entry_kind,
            find_all=all,
            reversed=reversed,
            reload=reload,
            as_handlers=as_handlers,
            default_extension=self.default_extension
        )
        if materializer is None:
            materializer = materializer_for(self.return_handlers if as_handlers is None else as_handlers)

        empty = () if all else None

        if not self.registry.has_group(query.group):
            logger.debug(f"Unknown group '{query.group}' for query {name!r}")
            return empty

        if not reload:
            entry = self.cache.get(query.scope, query.cache_name, reversed)
            if entry is not None:
                logger.debug(f"Cache hit for {query}")
                return self._materialize(entry, materializer, all)

        found, used = self._probe(query)
        if not found:
            logger.debug(f"No match for {query}")
            return empty

        paths = tuple(path for path, _ in found)
        kinds = tuple(is_dir for _, is_dir in found)
        entry = self.cache.store(query.scope, query.cache_name, reversed,
                                 paths if all else paths[0], used, kinds)
        return self._materialize(entry, materializer, all)

    def _probe(self, query: SearchQuery) -> Tuple[List[Tuple[str, bool]], List[str]]:
        """Probe each root of the query's group; returns (matches, roots used)."""
        roots = self.registry.get_roots(query.group)
        if query.reversed:
            roots = list(reversed(roots))

        found: List[Tuple[str, bool]] = []
        used: List[str] = []
        for root in roots:
            candidate = root + query.name if query.name else root
            if query.entry_kind.allows_files() and os.path.isfile(candidate):
                found.append((candidate, False))
            elif query.entry_kind.allows_dirs() and os.path.isdir(candidate):
                found.append((candidate, True))
            else:
                continue

            used.append(root)
            logger.debug(f"Matched {candidate} in root {root}")
            if not query.find_all:
                break

        return found, used

    @staticmethod
    def _materialize(entry: CacheEntry, materializer: PathMaterializer, all: bool) -> Any:
        if not materializer.wraps:
            return entry.result
        if all:
            return tuple(materializer(path, is_dir) for path, is_dir in zip(entry.result, entry.kinds))
        return materializer(entry.result, entry.kinds[0])

    # Convenience lookups

    def find(self, name: str, reload: bool = False, reversed: bool = False,
             entry_kind: Union[EntryKind, str] = EntryKind.ALL, as_handlers: Optional[bool] = None) -> Any:
        """Find the first file or directory named ``name``."""
        return self.resolve(name, False, reload, reversed, entry_kind, as_handlers)

    def find_file(self, name: str, reload: bool = False, reversed: bool = False,
                  as_handlers: Optional[bool] = None) -> Any:
        return self.resolve(name, False, reload, reversed, EntryKind.FILE, as_handlers)

    def find_dir(self, name: str, reload: bool = False, reversed: bool = False,
                 as_handlers: Optional[bool] = None) -> Any:
        return self.resolve(name, False, reload, reversed, EntryKind.DIR, as_handlers)

    def find_reversed(self, name: str, reload: bool = False,
                      entry_kind: Union[EntryKind, str] = EntryKind.ALL, as_handlers: Optional[bool] = None) -> Any:
        return self.resolve(name, False, reload, True, entry_kind, as_handlers)

    def find_file_reversed(self, name: str, reload: bool = False, as_handlers: Optional[bool] = None) -> Any:
        return self.resolve(name, False, reload, True, EntryKind.FILE, as_handlers)

    def find_dir_reversed(self, name: str, reload: bool = False, as_handlers: Optional[bool] = None) -> Any:
        return self.resolve(name, False, reload, True, EntryKind.DIR, as_handlers)

    def find_all(self, name: str, reload: bool = False, reversed: bool = False,
                 entry_kind: Union[EntryKind, str] = EntryKind.ALL, as_handlers: Optional[bool] = None) -> Tuple:
        """Find every file or directory named ``name``, one per root."""
        return self.resolve(name, True, reload, reversed, entry_kind, as_handlers)

    def find_all_files(self, name: str, reload: bool = False, reversed: bool = False,
                       as_handlers: Optional[bool] = None) -> Tuple:
        return self.resolve(name, True, reload, reversed, EntryKind.FILE, as_handlers)

    def find_all_dirs(self, name: str, reload: bool = False, reversed: bool = False,
                      as_handlers: Optional[bool] = None) -> Tuple:
        return self.resolve(name, True, reload, reversed, EntryKind.DIR, as_handlers)

    def find_all_reversed(self, name: str, reload: bool = False,
                          entry_kind: Union[EntryKind, str] = EntryKind.ALL,
                          as_handlers: Optional[bool] = None) -> Tuple:
        return self.resolve(name, True, reload, True, entry_kind, as_handlers)

    def find_all_files_reversed(self, name: str, reload: bool = False, as_handlers: Optional[bool] = None) -> Tuple:
        return self.resolve(name, True, reload, True, EntryKind.FILE, as_handlers)

    def find_all_dirs_reversed(self, name: str, reload: bool = False, as_handlers: Optional[bool] = None) -> Tuple:
        return self.resolve(name, True, reload, True, EntryKind.DIR, as_handlers)

    def __str__(self) -> str:
        parts = [f"Groups: {len(self.get_groups())}", f"Roots: {len(self.registry)}"]
        parts.append(f"Cached lookups: {len(self.cache)}")
        parts.append(f"Default extension: .{self.default_extension}")
        return " | ".join(parts)
