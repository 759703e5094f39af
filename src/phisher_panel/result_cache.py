"""
Session cache of analysis results.

Keys are the exact URL strings the user submitted; no normalization is applied
beyond what input validation already did. The cache is bounded and evicts the
least recently used entry once ``capacity`` is reached.
"""

from collections import OrderedDict
from typing import Optional

from .models import AnalysisResult


DEFAULT_CAPACITY = 256


class ResultCache:
    """Bounded LRU map of URL to the last AnalysisResult for it."""

    def __init__(self, capacity: int = DEFAULT_CAPACITY) -> None:
        if capacity < 1:
            raise ValueError(f"capacity must be positive, got {capacity}")
        self._capacity = capacity
        self._entries: OrderedDict[str, AnalysisResult] = OrderedDict()

    def get(self, url: str) -> Optional[AnalysisResult]:
        result = self._entries.get(url)
        if result is not None:
            self._entries.move_to_end(url)
        return result

    def put(self, url: str, result: AnalysisResult) -> None:
        self._entries[url] = result
        self._entries.move_to_end(url)
        while len(self._entries) > self._capacity:
            self._entries.popitem(last=False)

    def clear(self) -> None:
        self._entries.clear()

    def __contains__(self, url: object) -> bool:
        return url in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def capacity(self) -> int:
        return self._capacity

    def keys(self) -> list[str]:
        """Keys from least to most recently used."""
        return list(self._entries)
