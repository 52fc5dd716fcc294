"""
Unit tests for the search root registry.

Tests canonicalization, grouping, ordering, containment and the cache
invalidation performed on add/remove/replace.
"""

import os
import tempfile
import shutil
import pytest

from rootfinder.errors import InvalidRoot
from rootfinder.models.search_query import DEFAULT_GROUP
from rootfinder.tools.path_cache import PathCache
from rootfinder.tools.registry import SearchRootRegistry, canonicalize


class TestSearchRootRegistry:
    """Test cases for SearchRootRegistry."""

    def setup_method(self):
        """Set up test fixtures."""
        self.temp_dir = os.path.realpath(tempfile.mkdtemp())
        for name in ("a", "b", "c", os.path.join("a", "nested")):
            os.mkdir(os.path.join(self.temp_dir, name))
        with open(os.path.join(self.temp_dir, "file.txt"), "w") as f:
            f.write("not a directory")

        self.cache = PathCache()
        self.registry = SearchRootRegistry(self.cache)

    def teardown_method(self):
        """Clean up test fixtures."""
        if os.path.exists(self.temp_dir):
            shutil.rmtree(self.temp_dir)

    def _dir(self, *parts):
        return os.path.join(self.temp_dir, *parts)

    def _root(self, *parts):
        return os.path.join(self.temp_dir, *parts, "")

    def test_canonicalize_adds_single_trailing_separator(self):
        """Test root normalization."""
        assert canonicalize(self._dir("a") + "//") == self._root("a")
        assert canonicalize(self._dir("a", "..", "b")) == self._root("b")

    def test_canonicalize_resolves_symlinks(self):
        """Test that symlinked roots are stored by their target."""
        link = self._dir("link")
        os.symlink(self._dir("a"), link)
        assert canonicalize(link) == self._root("a")

    def test_canonicalize_rejects_missing_and_files(self):
        """Test that only existing directories are accepted."""
        with pytest.raises(InvalidRoot, match="does not exist"):
            canonicalize(self._dir("missing"))
        with pytest.raises(InvalidRoot, match="not a directory"):
            canonicalize(self._dir("file.txt"))
        with pytest.raises(InvalidRoot):
            canonicalize("")

    def test_add_root_default_group(self):
        """Test adding roots to the default group."""
        self.registry.add_root(self._dir("a"))
        self.registry.add_root(self._dir("b"))

        assert self.registry.get_roots() == [self._root("a"), self._root("b")]
        assert self.registry.list_groups() == [DEFAULT_GROUP]

    def test_re_adding_keeps_position(self):
        """Test that re-adding a root neither duplicates nor reorders it."""
        self.registry.add_roots([self._dir("a"), self._dir("b")])
        self.registry.add_root(self._dir("a") + "/")

        assert self.registry.get_roots() == [self._root("a"), self._root("b")]
        assert len(self.registry) == 2

    def test_groups_in_first_insertion_order(self):
        """Test group listing order."""
        self.registry.add_root(self._dir("a"), group="theme")
        self.registry.add_root(self._dir("b"))
        self.registry.add_root(self._dir("c"), group="theme")

        assert self.registry.list_groups() == ["theme", DEFAULT_GROUP]
        assert self.registry.get_roots("theme") == [self._root("a"), self._root("c")]
        assert self.registry.get_roots("unknown") == []

    def test_add_root_clears_cache(self):
        """Test conservative invalidation on add."""
        self.cache.store("one::all", "x", False, "/r/x", ["/r/"])
        self.registry.add_root(self._dir("a"))
        assert len(self.cache) == 0

    def test_add_root_without_clearing_cache(self):
        """Test that clear_cache=False keeps the cache."""
        self.cache.store("one::all", "x", False, "/r/x", ["/r/"])
        self.registry.add_root(self._dir("a"), clear_cache=False)
        assert len(self.cache) == 1

    def test_remove_root_invalidates_selectively(self):
        """Test that removing a root drops only the entries it produced."""
        self.registry.add_roots([self._dir("a"), self._dir("b")])
        self.cache.store("one::all", "x", False, self._dir("a", "x"), [self._root("a")])
        self.cache.store("one::all", "y", False, self._dir("b", "y"), [self._root("b")])

        assert self.registry.remove_root(self._dir("a"))

        assert self.registry.get_roots() == [self._root("b")]
        assert self.cache.get("one::all", "x", False) is None
        assert self.cache.get("one::all", "y", False) is not None

    def test_remove_unregistered_root(self):
        """Test removing a root that is not registered."""
        self.registry.add_root(self._dir("a"))
        assert not self.registry.remove_root(self._dir("b"))
        assert not self.registry.remove_root(self._dir("a"), group="other")

    def test_remove_vanished_root(self):
        """Test removing a root whose directory was deleted."""
        self.registry.add_root(self._dir("c"))
        os.rmdir(self._dir("c"))

        assert self.registry.remove_root(self._dir("c"))
        assert self.registry.get_roots() == []

    def test_remove_roots_counts(self):
        """Test bulk removal."""
        self.registry.add_roots([self._dir("a"), self._dir("b")])
        assert self.registry.remove_roots([self._dir("a"), self._dir("c")]) == 1

    def test_set_roots_replaces_group(self):
        """Test atomic replacement of a group."""
        self.registry.add_roots([self._dir("a"), self._dir("b")], group="g")
        self.cache.store("one::all", "x", False, "/r/x", ["/r/"])

        roots = self.registry.set_roots([self._dir("c"), self._dir("a")], group="g")

        assert roots == [self._root("c"), self._root("a")]
        assert self.registry.get_roots("g") == roots
        assert len(self.cache) == 0

    def test_set_roots_is_atomic(self):
        """Test that a bad path leaves the previous roots untouched."""
        self.registry.add_roots([self._dir("a")], group="g")

        with pytest.raises(InvalidRoot):
            self.registry.set_roots([self._dir("b"), self._dir("missing")], group="g")

        assert self.registry.get_roots("g") == [self._root("a")]


class TestContainment:
    """Test cases for the containment root restriction."""

    def setup_method(self):
        """Set up test fixtures."""
        self.temp_dir = os.path.realpath(tempfile.mkdtemp())
        self.allowed = os.path.join(self.temp_dir, "allowed")
        self.sibling = os.path.join(self.temp_dir, "allowed_sibling")
        os.makedirs(os.path.join(self.allowed, "inner"))
        os.makedirs(self.sibling)
        self.registry = SearchRootRegistry()

    def teardown_method(self):
        """Clean up test fixtures."""
        if os.path.exists(self.temp_dir):
            shutil.rmtree(self.temp_dir)

    def test_missing_containment_root(self):
        """Test that the containment root must exist."""
        with pytest.raises(InvalidRoot):
            self.registry.set_containment_root(os.path.join(self.temp_dir, "missing"))

    def test_roots_inside_are_accepted(self):
        """Test adding the containment root itself and a descendant."""
        self.registry.set_containment_root(self.allowed)

        self.registry.add_root(self.allowed)
        self.registry.add_root(os.path.join(self.allowed, "inner"))

        assert len(self.registry) == 2
        assert self.registry.containment_root == os.path.join(self.allowed, "")

    def test_roots_outside_are_rejected(self):
        """Test that roots outside the containment root fail."""
        self.registry.set_containment_root(self.allowed)

        with pytest.raises(InvalidRoot, match="Cannot access path outside"):
            self.registry.add_root(self.temp_dir)

    def test_prefix_sibling_is_rejected(self):
        """Test that a sibling sharing a name prefix is outside."""
        self.registry.set_containment_root(self.allowed)

        with pytest.raises(InvalidRoot):
            self.registry.add_root(self.sibling)

    def test_constructor_containment(self):
        """Test passing the containment root to the constructor."""
        registry = SearchRootRegistry(containment_root=self.allowed)
        with pytest.raises(InvalidRoot):
            registry.add_root(self.sibling)
