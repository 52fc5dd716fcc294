"""
rootfinder - Core Package

Resolves names across layered search roots (configuration, theme or plugin
directories) with cached lookups, and lists directory trees through
composable path filters.
"""

from .errors import FinderError, InvalidRoot, MissingPath, UnreadablePath, LockFailed
from .models.entries import EntryKind, FileEntry, DirEntry
from .tools.finder import Finder
from .tools.path_filter import PathFilter
from .tools.tree_lister import TreeLister, list_contents

__version__ = "0.1.0"
__author__ = "rootfinder Team"

__all__ = [
    'Finder',
    'TreeLister',
    'PathFilter',
    'EntryKind',
    'FileEntry',
    'DirEntry',
    'list_contents',
    'FinderError',
    'InvalidRoot',
    'MissingPath',
    'UnreadablePath',
    'LockFailed'
]
