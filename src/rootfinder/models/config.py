"""
Configuration data models for rootfinder.

This module defines the structures loaded from a rootfinder YAML file:
search root groups, the default extension, the containment root and the
defaults used for directory listings.
"""

import os
import re
from typing import Dict, List, Optional, Any, Union
from pathlib import Path
from pydantic import BaseModel, Field, field_validator

from .entries import EntryKind
from .search_query import DEFAULT_GROUP


class ListingConfig(BaseModel):
    """
    Default settings for directory listings.

    Attributes:
        depth: Sub-directory levels to expand (True for unlimited)
        entry_kind: Entry kind to list (file, dir or all)
        block_hidden: Whether hidden entries are filtered out
        extensions: File extensions to require (any of them)
        rules: Extra filter rules (``!`` prefix negates)
    """

    depth: Union[bool, int] = Field(0, description="Sub-directory levels to expand")
    entry_kind: EntryKind = Field(EntryKind.ALL, description="Entry kind to list")
    block_hidden: bool = Field(False, description="Filter out hidden entries")
    extensions: List[str] = Field(default_factory=list, description="Required file extensions")
    rules: List[str] = Field(default_factory=list, description="Extra filter rules")

    @field_validator('depth')
    @classmethod
    def validate_depth(cls, v: Union[bool, int]) -> Union[bool, int]:
        """Depth is a non-negative integer or True."""
        if v is True or v is False:
            return True if v else 0
        if v < 0:
            raise ValueError(f"Listing depth must be >= 0 or true, got {v}")
        return v

    @field_validator('entry_kind', mode='before')
    @classmethod
    def validate_entry_kind(cls, v) -> EntryKind:
        """Validate and convert entry kind to enum."""
        return EntryKind.coerce(v)

    @field_validator('extensions')
    @classmethod
    def validate_extensions(cls, v: List[str]) -> List[str]:
        """Normalize extensions (no leading dot, lower case)."""
        return [ext.strip().lstrip('.').lower() for ext in v if ext and ext.strip()]

    def build_filter(self):
        """
        Build the PathFilter described by this section.

        Several extensions are combined into one alternation rule, since
        every rule in a filter must hold.
        """
        from ..tools.path_filter import PathFilter

        path_filter = PathFilter.from_rules(self.rules)
        if self.extensions:
            alternatives = '|'.join(re.escape(ext) for ext in self.extensions)
            path_filter.add_rule(rf'\.(?:{alternatives})$', True, EntryKind.FILE)
        if self.block_hidden:
            path_filter.block_hidden()
        return path_filter

    def list_contents(self, root: str, as_handlers: bool = False) -> List[Any]:
        """
        List ``root`` with this section's depth, entry kind and filter.

        See ``TreeLister.list_contents`` for the result format and errors.
        """
        from ..tools.tree_lister import TreeLister

        return TreeLister().list_contents(root, filter=self.build_filter(), depth=self.depth,
                                          entry_kind=self.entry_kind, as_handlers=as_handlers)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        data = self.model_dump()
        data['entry_kind'] = self.entry_kind.value
        return data


class FinderConfig(BaseModel):
    """
    Main configuration class for rootfinder.

    Attributes:
        groups: Group name to ordered list of root directories
        default_extension: Extension appended to extension-less file queries
        return_handlers: Whether lookups return handlers by default
        containment_root: Optional directory all roots must live under
        listing: Default listing settings
    """

    groups: Dict[str, List[str]] = Field(default_factory=dict, description="Root groups")
    default_extension: str = Field("py", min_length=1, description="Default file extension")
    return_handlers: bool = Field(False, description="Return handlers by default")
    containment_root: Optional[str] = Field(None, description="Directory all roots must live under")
    listing: ListingConfig = Field(default_factory=ListingConfig, description="Default listing settings")

    @field_validator('groups', mode='before')
    @classmethod
    def validate_groups(cls, v) -> Dict[str, List[str]]:
        """Accept a plain list of roots as the default group."""
        if v is None:
            return {}
        if isinstance(v, (list, tuple)):
            return {DEFAULT_GROUP: list(v)}
        return v

    @field_validator('groups')
    @classmethod
    def normalize_groups(cls, v: Dict[str, List[str]]) -> Dict[str, List[str]]:
        """Expand ``~`` in roots and drop blank entries."""
        normalized = {}
        for group, roots in v.items():
            if not group or '::' in group:
                raise ValueError(f"Invalid group name: {group!r}")
            normalized[group] = [
                str(Path(root).expanduser()) for root in roots if root and str(root).strip()
            ]
        return normalized

    @field_validator('default_extension')
    @classmethod
    def validate_default_extension(cls, v: str) -> str:
        ext = v.strip().lstrip('.')
        if not ext:
            raise ValueError("Default extension cannot be empty")
        return ext

    @field_validator('containment_root')
    @classmethod
    def validate_containment_root(cls, v: Optional[str]) -> Optional[str]:
        if v is None or not v.strip():
            return None
        return str(Path(v).expanduser())

    def resolve_relative(self, base_dir: Union[str, Path]) -> 'FinderConfig':
        """Return a copy with relative roots anchored at ``base_dir``."""
        base = Path(base_dir)

        def anchor(path: str) -> str:
            return path if os.path.isabs(path) else str(base / path)

        groups = {group: [anchor(root) for root in roots] for group, roots in self.groups.items()}
        containment = anchor(self.containment_root) if self.containment_root else None
        return self.model_copy(update={'groups': groups, 'containment_root': containment})

    def get_roots(self, group: str = DEFAULT_GROUP) -> List[str]:
        return list(self.groups.get(group, []))

    def all_roots(self) -> List[str]:
        return [root for roots in self.groups.values() for root in roots]

    def validate_configuration(self) -> List[str]:
        """
        Check the configuration against the filesystem.

        Returns:
            List of warning messages (empty if everything looks fine)
        """
        warnings = []

        if not self.groups:
            warnings.append("No search roots configured")

        for group, roots in self.groups.items():
            if not roots:
                warnings.append(f"Group '{group}' has no roots")
            if len(set(roots)) != len(roots):
                warnings.append(f"Group '{group}' lists the same root more than once")
            for root in roots:
                if not os.path.isdir(root):
                    warnings.append(f"Root directory does not exist: {root}")

        if self.containment_root:
            if not os.path.isdir(self.containment_root):
                warnings.append(f"Containment root does not exist: {self.containment_root}")
            else:
                prefix = os.path.join(os.path.realpath(self.containment_root), '')
                for root in self.all_roots():
                    if os.path.isdir(root) and not os.path.join(os.path.realpath(root), '').startswith(prefix):
                        warnings.append(f"Root {root} lies outside containment root {self.containment_root}")

        return warnings

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary representation."""
        data = self.model_dump()
        data['listing'] = self.listing.to_dict()
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'FinderConfig':
        """Create configuration from dictionary representation."""
        return cls.model_validate(data)

    def __str__(self) -> str:
        """String representation of the configuration."""
        parts = [f"Groups: {len(self.groups)}"]
        parts.append(f"Roots: {len(self.all_roots())}")
        parts.append(f"Default extension: .{self.default_extension}")
        if self.containment_root:
            parts.append(f"Contained in: {self.containment_root}")
        return " | ".join(parts)

