"""
Search query data model for rootfinder.

A query names a file or directory relative to the registered roots, for
example ``config``, ``views/index.html`` or ``theme::config``. This module
normalizes that text into the group, the probe name and the cache scope
used by the Finder.
"""

import os
from typing import Optional, Any, Dict
from pydantic import BaseModel, Field, field_validator

from .entries import EntryKind


DEFAULT_GROUP = "__DEFAULT__"
GROUP_DELIMITER = "::"


class SearchQuery(BaseModel):
    """
    Represents a single resolve request against the registered roots.

    Attributes:
        text: Query text with leading/trailing separators removed
        group: Root group to search (taken from ``group::name`` if present)
        name: Relative name probed under each root, default extension applied
        entry_kind: Whether to accept files, directories or both
        find_all: Collect every match instead of stopping at the first
        reversed: Probe roots in reverse registration order
        reload: Bypass the cache for this lookup
        as_handlers: Materialize handlers instead of raw paths (None = finder default)
        default_extension: Extension appended to extension-less file queries
    """

    text: str = Field(..., description="Query text, optionally prefixed with 'group::'")
    group: str = Field(DEFAULT_GROUP, description="Root group to search")
    name: str = Field("", description="Relative name probed under each root")
    entry_kind: EntryKind = Field(EntryKind.ALL, description="Accepted entry kind")
    find_all: bool = Field(False, description="Collect every match")
    reversed: bool = Field(False, description="Probe roots in reverse order")
    reload: bool = Field(False, description="Bypass the cache")
    as_handlers: Optional[bool] = Field(None, description="Materialize handlers")
    default_extension: Optional[str] = Field(None, description="Default file extension")

    @field_validator('text')
    @classmethod
    def validate_text(cls, v: str) -> str:
        """Strip leading and trailing path separators."""
        return v.strip('/\\')

    @field_validator('entry_kind', mode='before')
    @classmethod
    def validate_entry_kind(cls, v) -> EntryKind:
        """Validate and convert entry kind to enum."""
        return EntryKind.coerce(v)

    @field_validator('default_extension')
    @classmethod
    def validate_default_extension(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        return v.lstrip('.') or None

    def model_post_init(self, __context) -> None:
        """Split off the group and apply the default extension."""
        name = self.text
        if GROUP_DELIMITER in name:
            group, name = name.split(GROUP_DELIMITER, 1)
            self.group = group
            name = name.strip('/\\')

        if self.entry_kind is not EntryKind.DIR:
            name = self.normalize_file_name(name, self.default_extension)

        self.name = name

    @staticmethod
    def normalize_file_name(name: str, extension: Optional[str]) -> str:
        """
        Append ``extension`` to ``name`` unless it already has one.

        A dot anywhere in the basename counts as an extension, so dotfiles
        such as ``.env`` are left alone.
        """
        if not extension or not name:
            return name
        if '.' in os.path.basename(name):
            return name
        return f"{name}.{extension}"

    @property
    def scope(self) -> str:
        """Cache scope: find-one or find-all, crossed with the entry kind."""
        mode = 'all' if self.find_all else 'one'
        return f"{mode}::{self.entry_kind.value}"

    @property
    def cache_name(self) -> str:
        """Name used in cache keys; includes the group so groups never alias."""
        return f"{self.group}{GROUP_DELIMITER}{self.name}"

    def to_dict(self) -> Dict[str, Any]:
        """Convert the query to a dictionary representation."""
        data = self.model_dump()
        data['entry_kind'] = self.entry_kind.value
        return data

    def __str__(self) -> str:
        parts = [f"Query: '{self.name}'", f"Group: {self.group}", f"Kind: {self.entry_kind.value}"]
        if self.find_all:
            parts.append("all")
        if self.reversed:
            parts.append("reversed")
        return " | ".join(parts)
