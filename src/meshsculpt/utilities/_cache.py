"""Explicit single-entry memoization keyed on a parameter subset."""

import logging
from typing import Any, Callable, Hashable

logger = logging.getLogger(__name__)

_MISSING = object()


class KeyedCache:
    """Remembers one value together with the key it was computed for.

    A lookup with the same key returns the stored value; any other key recomputes
    and replaces it. This mirrors memoizing a pipeline stage on exactly the inputs
    it depends on.

    Example:
        >>> cache = KeyedCache()
        >>> cache.get_or_compute(("level", 2), lambda: expensive(2))
    """

    def __init__(self):
        self._key: Any = _MISSING
        self._value: Any = None
        self.hits = 0
        self.misses = 0

    def get_or_compute(self, key: Hashable, compute: Callable[[], Any]) -> Any:
        if self._key is not _MISSING and self._key == key:
            self.hits += 1
            logger.debug("Cache hit for key %r", key)
            return self._value

        self.misses += 1
        value = compute()
        self._key = key
        self._value = value
        return value

    def clear(self) -> None:
        self._key = _MISSING
        self._value = None

    @property
    def key(self) -> Any:
        """The key of the stored value, or None when empty."""
        return None if self._key is _MISSING else self._key
