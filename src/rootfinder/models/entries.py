"""
Entry kinds and listing entry types for rootfinder.

A listing is an ordered sequence of ``FileEntry`` and ``DirEntry`` values.
Files are flat entries; directories carry their own (possibly empty)
children, so the nesting of the tree is explicit and ordering is kept.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterator, List, Tuple, Union


class EntryKind(Enum):
    """Kind of filesystem entry a lookup or listing applies to."""
    FILE = "file"
    DIR = "dir"
    ALL = "all"

    @classmethod
    def coerce(cls, value: Union["EntryKind", str, None]) -> "EntryKind":
        """Convert a string (or None) to an EntryKind."""
        if value is None:
            return cls.ALL
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            raise ValueError(f"Invalid entry kind: {value}")

    def allows_files(self) -> bool:
        return self is not EntryKind.DIR

    def allows_dirs(self) -> bool:
        return self is not EntryKind.FILE


@dataclass(frozen=True)
class FileEntry:
    """
    A file found during a listing.

    Attributes:
        path: Absolute path of the file
        value: What the caller asked for, the raw path or a FileHandler
    """
    path: str
    value: Any

    @property
    def is_dir(self) -> bool:
        return False


@dataclass(frozen=True)
class DirEntry:
    """
    A directory found during a listing.

    Attributes:
        path: Absolute path of the directory
        value: The raw path or a DirectoryHandler
        children: Sub-listing of the directory (empty when not expanded)
        expanded: Whether the directory was recursed into
    """
    path: str
    value: Any
    children: Tuple[Union["FileEntry", "DirEntry"], ...] = field(default_factory=tuple)
    expanded: bool = False

    @property
    def is_dir(self) -> bool:
        return True


ListingEntry = Union[FileEntry, DirEntry]


def iter_entries(entries: List[ListingEntry]) -> Iterator[ListingEntry]:
    """Walk a listing depth-first, yielding every entry in order."""
    for entry in entries:
        yield entry
        if isinstance(entry, DirEntry):
            yield from iter_entries(list(entry.children))


def iter_files(entries: List[ListingEntry]) -> Iterator[str]:
    """Yield the path of every file in a listing, nested ones included."""
    for entry in iter_entries(entries):
        if isinstance(entry, FileEntry):
            yield entry.path


def to_nested(entries: List[ListingEntry]) -> Dict[str, Any]:
    """
    Convert a listing to plain dictionaries.

    Returns:
        Dictionary with ``files`` (list of paths) and ``dirs`` (mapping of
        directory path to its own nested dictionary).
    """
    files = []
    dirs = {}
    for entry in entries:
        if isinstance(entry, DirEntry):
            dirs[entry.path] = to_nested(list(entry.children))
        else:
            files.append(entry.path)
    return {'files': files, 'dirs': dirs}
