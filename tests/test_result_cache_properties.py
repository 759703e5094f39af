"""
Property-based tests for the session result cache and session lifecycle.
"""

import tempfile
from pathlib import Path

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from phisher_panel.enums import View
from phisher_panel.models import AnalysisResult
from phisher_panel.result_cache import ResultCache
from phisher_panel.session import PanelSession
from phisher_panel.stats import StatsTracker
from phisher_panel.storage import KeyValueStore


url_strategy = st.builds(
    lambda host, path: f"https://{host}.example/{path}",
    st.text(alphabet="abcdefghij", min_size=1, max_size=4),
    st.text(alphabet="xyz", max_size=3),
)


def _result(url: str, score: int = 0) -> AnalysisResult:
    return AnalysisResult(url=url, is_phishing=False, risk_score=score)


class TestResultCacheProperty:
    """Bounded LRU semantics."""

    @given(
        capacity=st.integers(min_value=1, max_value=8),
        urls=st.lists(url_strategy, max_size=40),
    )
    @settings(max_examples=200)
    def test_matches_reference_lru(self, capacity: int, urls: list[str]) -> None:
        """
        Property: after any sequence of puts the cache holds exactly the
        ``capacity`` most recently inserted distinct URLs.
        """
        cache = ResultCache(capacity)
        reference: list[str] = []
        for url in urls:
            cache.put(url, _result(url))
            if url in reference:
                reference.remove(url)
            reference.append(url)
            reference = reference[-capacity:]

        assert cache.keys() == reference
        assert len(cache) <= capacity

    @given(urls=st.lists(url_strategy, min_size=3, max_size=3, unique=True))
    @settings(max_examples=50)
    def test_get_refreshes_recency(self, urls: list[str]) -> None:
        first, second, third = urls
        cache = ResultCache(2)
        cache.put(first, _result(first))
        cache.put(second, _result(second))

        assert cache.get(first) is not None
        cache.put(third, _result(third))

        assert first in cache
        assert second not in cache
        assert third in cache

    @given(url=url_strategy, scores=st.lists(st.integers(0, 100), min_size=1, max_size=5))
    @settings(max_examples=50)
    def test_last_write_wins(self, url: str, scores: list[int]) -> None:
        cache = ResultCache()
        for score in scores:
            cache.put(url, _result(url, score))
        assert cache.get(url).risk_score == scores[-1]
        assert len(cache) == 1

    def test_keys_are_exact_strings(self) -> None:
        cache = ResultCache()
        cache.put("https://example.com", _result("https://example.com"))
        assert cache.get("https://example.com/") is None
        assert cache.get("HTTPS://EXAMPLE.COM") is None

    def test_capacity_must_be_positive(self) -> None:
        with pytest.raises(ValueError):
            ResultCache(0)


class TestPanelSession:
    """A session owns the per-load state and drops it when closed."""

    def test_close_drops_cache_and_view(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            stats = StatsTracker(KeyValueStore(Path(tmpdir) / "local.json", "secret"))
            session = PanelSession(stats, cache_capacity=4)
            session.cache.put("https://a.test/", _result("https://a.test/"))
            session.current_view = View.MAIN

            session.close()

            assert session.closed
            assert len(session.cache) == 0
            assert session.pending == {}
            assert session.current_view is None

    def test_sessions_get_distinct_ids(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            stats = StatsTracker(KeyValueStore(Path(tmpdir) / "local.json", "secret"))
            first = PanelSession(stats)
            second = PanelSession(stats)
            assert first.session_id != second.session_id
            assert first.stats is second.stats
            assert first.cache.capacity == 256
