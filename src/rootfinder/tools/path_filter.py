"""
Rule-based path filter for rootfinder listings.

A PathFilter accumulates FilterRule entries. A candidate passes the filter
only when it satisfies every rule; a rule scoped to one entry kind is
vacuously satisfied by entries of the other kind.
"""

import os
import re
import logging
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Mapping, Optional, Pattern, Union

from ..models.entries import EntryKind


logger = logging.getLogger(__name__)

HIDDEN_PATTERN = r'(?:^|[\\/])\.[^\\/]*$'

RuleSpec = Union[Iterable[str], Mapping[str, Optional[str]]]


@dataclass(frozen=True)
class FilterRule:
    """
    A single inclusion or exclusion rule.

    Attributes:
        pattern: Compiled regex searched in the candidate path
        expected: Whether the regex must match (True) or must not (False)
        kind: Entry kind the rule applies to, None for any
    """
    pattern: Pattern
    expected: bool = True
    kind: Optional[EntryKind] = None

    def applies_to(self, kind: EntryKind) -> bool:
        return self.kind is None or self.kind is kind

    def matches(self, path: str) -> bool:
        return bool(self.pattern.search(path.rstrip('/\\'))) == self.expected


class PathFilter:
    """
    Filter for filesystem entries, built from regex rules.

    Entry kinds are looked up once per path and memoized for the lifetime
    of a ``filter`` call, so a listing never stats the same path twice.
    """

    def __init__(self, rules: Optional[List[FilterRule]] = None):
        self.rules: List[FilterRule] = list(rules or [])
        self._kind_cache: Dict[str, EntryKind] = {}

    def kind_of(self, path: str) -> EntryKind:
        """Return the memoized kind of ``path`` (anything not a directory is a file)."""
        kind = self._kind_cache.get(path)
        if kind is None:
            kind = EntryKind.DIR if os.path.isdir(path) else EntryKind.FILE
            self._kind_cache[path] = kind
        return kind

    def is_correct_type(self, kind: Union[EntryKind, str, None], path: str) -> bool:
        """
        Check whether ``path`` is of the given kind.

        Args:
            kind: Expected kind; None (or ALL) matches any path
            path: Path to check

        Returns:
            True if the rule kind is unspecified or equals the path's kind
        """
        if kind is None:
            return True
        kind = EntryKind.coerce(kind)
        if kind is EntryKind.ALL:
            return True
        return self.kind_of(path) is kind

    def passes(self, path: str) -> bool:
        """Check a single path against every rule."""
        for rule in self.rules:
            if rule.kind is not None and not self.is_correct_type(rule.kind, path):
                continue
            if not rule.matches(path):
                return False
        return True

    def filter(self, contents: Iterable[str]) -> List[str]:
        """
        Filter a batch of filesystem entries.

        Args:
            contents: Candidate paths

        Returns:
            The candidates that pass every rule, in their original order
        """
        self._kind_cache = {}
        return [item for item in contents if self.passes(item)]

    def add_rule(self, pattern: Union[str, Pattern], expected: bool = True,
                 kind: Union[EntryKind, str, None] = None) -> 'PathFilter':
        """
        Add a rule.

        Args:
            pattern: Regex searched in the candidate path
            expected: Whether the regex must match
            kind: Restrict the rule to files or directories

        Returns:
            The filter itself, for chaining
        """
        if isinstance(pattern, str):
            try:
                pattern = re.compile(pattern)
            except re.error as e:
                raise ValueError(f"Invalid filter pattern '{pattern}': {e}") from e

        rule_kind = None if kind is None else EntryKind.coerce(kind)
        if rule_kind is EntryKind.ALL:
            rule_kind = None

        self.rules.append(FilterRule(pattern=pattern, expected=expected, kind=rule_kind))
        return self

    def require_extension(self, extension: str) -> 'PathFilter':
        """Only accept files ending in ``.extension``."""
        return self.add_rule(self._extension_pattern(extension), True, EntryKind.FILE)

    def block_extension(self, extension: str) -> 'PathFilter':
        """Reject files ending in ``.extension``."""
        return self.add_rule(self._extension_pattern(extension), False, EntryKind.FILE)

    def block_hidden(self, kind: Union[EntryKind, str, None] = None) -> 'PathFilter':
        """Reject entries whose basename starts with a dot."""
        return self.add_rule(HIDDEN_PATTERN, False, kind)

    def only_hidden(self, kind: Union[EntryKind, str, None] = None) -> 'PathFilter':
        """Accept only entries whose basename starts with a dot."""
        return self.add_rule(HIDDEN_PATTERN, True, kind)

    @staticmethod
    def _extension_pattern(extension: str) -> str:
        return r'\.' + re.escape(extension.lstrip('.')) + '$'

    @classmethod
    def from_rules(cls, rules: RuleSpec) -> 'PathFilter':
        """
        Build a filter from declarative rule strings.

        ``rules`` is either a list of patterns, or a mapping of pattern to
        entry kind. A leading ``!`` on a pattern negates it.
        """
        path_filter = cls()
        if isinstance(rules, Mapping):
            items = list(rules.items())
        else:
            items = [(rule, None) for rule in rules]

        for pattern, kind in items:
            expected = True
            if pattern.startswith('!'):
                pattern = pattern[1:]
                expected = False
            path_filter.add_rule(pattern, expected, kind)

        return path_filter

    @classmethod
    def configure(cls, callback: Callable[['PathFilter'], object]) -> 'PathFilter':
        """Create an empty filter and let ``callback`` populate it."""
        path_filter = cls()
        callback(path_filter)
        return path_filter

    @classmethod
    def resolve(cls, value: Union['PathFilter', RuleSpec, Callable, None]) -> 'PathFilter':
        """Turn any accepted filter form into a single PathFilter instance."""
        if value is None:
            return cls()
        if isinstance(value, PathFilter):
            return value
        if callable(value):
            return cls.configure(value)
        if isinstance(value, str):
            return cls.from_rules([value])
        return cls.from_rules(value)

    def __len__(self) -> int:
        return len(self.rules)

    def __repr__(self) -> str:
        return f"PathFilter(rules={len(self.rules)})"
