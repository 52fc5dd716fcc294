"""
Recursive filtered directory listing for rootfinder.

The lister enumerates one directory level, filters the entries through a
PathFilter and expands sub-directories up to a depth limit. The result is
an ordered list of FileEntry / DirEntry values.
"""

import os
import fnmatch
import logging
from typing import Callable, FrozenSet, List, Optional, Union

from ..errors import MissingPath, UnreadablePath
from ..models.entries import DirEntry, EntryKind, FileEntry, ListingEntry
from .handlers import PathMaterializer, materializer_for
from .path_filter import PathFilter, RuleSpec


logger = logging.getLogger(__name__)

Depth = Union[int, bool]
FilterSpec = Union[PathFilter, RuleSpec, Callable[[PathFilter], object], None]


def glob_entries(directory: str, pattern: str = '*') -> List[str]:
    """
    List the entries of ``directory`` whose name matches ``pattern``.

    Unlike ``glob.glob`` this includes hidden entries and reports
    permission problems instead of silently returning nothing.

    Args:
        directory: Directory to enumerate
        pattern: fnmatch-style pattern applied to entry names

    Returns:
        Full paths of the matching entries, sorted by name

    Raises:
        UnreadablePath: If the directory cannot be read
    """
    try:
        with os.scandir(directory) as it:
            names = sorted(entry.name for entry in it if fnmatch.fnmatchcase(entry.name, pattern))
    except PermissionError as e:
        raise UnreadablePath(f"Cannot read directory {directory}: {e}", directory) from e
    except (FileNotFoundError, NotADirectoryError):
        logger.debug(f"Nothing to list at {directory}")
        return []

    return [os.path.join(directory, name) for name in names]


class TreeLister:
    """
    Lists directory trees with filtering and optional handler materialization.

    The lister holds no state between calls; filters are resolved per call.
    """

    def list_contents(self, root: Optional[str], filter: FilterSpec = None, depth: Depth = 0,
                      entry_kind: Union[EntryKind, str] = EntryKind.ALL, as_handlers: bool = False,
                      materializer: Optional[PathMaterializer] = None) -> List[ListingEntry]:
        """
        List the contents of ``root``.

        Args:
            root: Directory to list
            filter: A PathFilter, a list/mapping of rule strings, or a callback
                that populates an empty PathFilter
            depth: Number of sub-directory levels to expand below ``root``;
                0 lists immediate children only, True expands to the leaves
            entry_kind: ``file``, ``dir`` or ``all``
            as_handlers: Return handlers instead of raw paths; directories are
                then wrapped, not expanded
            materializer: Explicit materializer, overrides ``as_handlers``

        Returns:
            Ordered list of FileEntry and DirEntry values

        Raises:
            MissingPath: If ``root`` is not set
            UnreadablePath: If a directory in the tree cannot be read
        """
        if root is None or not os.fspath(root):
            raise MissingPath("The required path is not set")

        directory = os.fspath(root)
        directory = directory.rstrip('/\\') or directory
        kind = EntryKind.coerce(entry_kind)
        depth = self._validate_depth(depth)
        path_filter = PathFilter.resolve(filter)
        if materializer is None:
            materializer = materializer_for(as_handlers)

        logger.debug(f"Listing {directory} (kind={kind.value}, depth={depth})")
        return self._list(directory, path_filter, depth, kind, materializer,
                          frozenset([os.path.realpath(directory)]))

    @staticmethod
    def _validate_depth(depth: Depth) -> Depth:
        if depth is True:
            return True
        if depth is False or depth is None:
            return 0
        depth = int(depth)
        if depth < 0:
            raise ValueError(f"Listing depth must be >= 0 or True, got {depth}")
        return depth

    @staticmethod
    def file_pattern(kind: EntryKind, pattern: str = '*') -> str:
        """File-only listings match extensioned names (``*.*``)."""
        if kind is EntryKind.FILE and not os.path.splitext(pattern)[1]:
            pattern += '.*'
        return pattern

    def _list(self, directory: str, path_filter: PathFilter, depth: Depth, kind: EntryKind,
              materializer: PathMaterializer, ancestors: FrozenSet[str]) -> List[ListingEntry]:
        file_pattern = self.file_pattern(kind)
        contents = path_filter.filter(glob_entries(directory))

        if depth is True:
            child_depth = True
        else:
            child_depth = depth - 1 if depth else 0
        can_expand = (depth is True or depth > 0) and not materializer.wraps

        formatted: List[ListingEntry] = []
        for item in contents:
            if path_filter.is_correct_type(EntryKind.DIR, item):
                real = os.path.realpath(item)
                expand = can_expand and real not in ancestors
                if can_expand and not expand:
                    logger.debug(f"Not expanding {item}: directory loop")

                if not kind.allows_dirs() and not expand:
                    continue

                children = ()
                if expand:
                    children = tuple(self._list(item, path_filter, child_depth, kind,
                                                materializer, ancestors | {real}))
                formatted.append(DirEntry(path=item, value=materializer.directory(item),
                                          children=children, expanded=expand))

            elif kind.allows_files():
                if not fnmatch.fnmatchcase(os.path.basename(item), file_pattern):
                    continue
                formatted.append(FileEntry(path=item, value=materializer.file(item)))

        return formatted


def list_contents(root: Optional[str], filter: FilterSpec = None, depth: Depth = 0,
                  entry_kind: Union[EntryKind, str] = EntryKind.ALL, as_handlers: bool = False) -> List[ListingEntry]:
    """
    Convenience function to list a directory tree.

    See ``TreeLister.list_contents``.
    """
    return TreeLister().list_contents(root, filter=filter, depth=depth,
                                      entry_kind=entry_kind, as_handlers=as_handlers)
