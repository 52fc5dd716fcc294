"""
Unit tests for the Finder lookup cache.
"""

from rootfinder.tools.path_cache import PathCache, CacheEntry


class TestPathCache:
    """Test cases for PathCache."""

    def test_make_key(self):
        """Test cache key layout."""
        assert PathCache.make_key("one::file", "theme::config.json", False) == "one::file::theme::config.json"
        assert PathCache.make_key("all::dir", "__DEFAULT__::views", True) == "all::dir::__DEFAULT__::views::reversed"

    def test_store_and_get(self):
        """Test storing and retrieving an entry."""
        cache = PathCache()
        entry = cache.store("one::all", "g::a.py", False, "/r1/a.py", ["/r1/"], [False])

        assert isinstance(entry, CacheEntry)
        assert cache.get("one::all", "g::a.py", False) is entry
        assert entry.used == ("/r1/",)
        assert entry.kinds == (False,)
        assert len(cache) == 1

    def test_reversed_is_part_of_key(self):
        """Test that forward and reversed lookups are cached separately."""
        cache = PathCache()
        cache.store("one::all", "g::a.py", False, "/r1/a.py", ["/r1/"])

        assert cache.get("one::all", "g::a.py", True) is None

    def test_clear(self):
        """Test dropping every entry."""
        cache = PathCache()
        cache.store("one::all", "a", False, "/r1/a", ["/r1/"])
        cache.store("all::all", "a", False, ("/r1/a", "/r2/a"), ["/r1/", "/r2/"])

        cache.clear()
        assert len(cache) == 0

    def test_invalidate_root_is_selective(self):
        """Test that only entries produced by the root are dropped."""
        cache = PathCache()
        cache.store("one::all", "a", False, "/r1/a", ["/r1/"])
        cache.store("one::all", "b", False, "/r2/b", ["/r2/"])
        cache.store("all::all", "c", False, ("/r1/c", "/r2/c"), ["/r1/", "/r2/"])

        removed = cache.invalidate_root("/r1/")

        assert removed == 2
        assert cache.get("one::all", "a", False) is None
        assert cache.get("all::all", "c", False) is None
        assert cache.get("one::all", "b", False) is not None

    def test_invalidate_unknown_root(self):
        """Test that invalidating an unused root changes nothing."""
        cache = PathCache()
        cache.store("one::all", "a", False, "/r1/a", ["/r1/"])

        assert cache.invalidate_root("/elsewhere/") == 0
        assert "one::all::a" in cache
        assert list(cache.keys()) == ["one::all::a"]
