"""Utility functions for meshsculpt."""

from meshsculpt.utilities._cache import KeyedCache

__all__ = [
    "KeyedCache",
]
