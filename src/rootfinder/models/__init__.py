"""
Data models for rootfinder.

This module contains the core data structures used throughout the system.
"""

from .entries import EntryKind, FileEntry, DirEntry, iter_entries, iter_files, to_nested
from .search_query import SearchQuery, DEFAULT_GROUP

__all__ = [
    'EntryKind',
    'FileEntry',
    'DirEntry',
    'iter_entries',
    'iter_files',
    'to_nested',
    'SearchQuery',
    'DEFAULT_GROUP'
]
