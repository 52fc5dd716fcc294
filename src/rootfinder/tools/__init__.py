"""
Lookup and listing tools for rootfinder.

This module contains the search root registry, the lookup cache, the
Finder built on both, and the filtered tree lister with its handlers.
"""
