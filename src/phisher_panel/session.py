"""
Per-panel-lifetime state.

A PanelSession is created when the panel loads and closed when it reloads or
closes. It owns everything that must not outlive one load: the result cache,
the in-flight request map and the identity of the mounted view.
"""

import asyncio
import itertools
from typing import Optional

from .enums import View
from .models import AnalysisResult
from .result_cache import ResultCache
from .stats import StatsTracker


_session_ids = itertools.count(1)


class PanelSession:
    """Session context shared by the navigator, controller and managers."""

    def __init__(
        self,
        stats: StatsTracker,
        cache_capacity: int = 256,
    ) -> None:
        self.session_id = next(_session_ids)
        self.cache = ResultCache(cache_capacity)
        self.stats = stats
        self.pending: dict[str, asyncio.Future[AnalysisResult]] = {}
        self.current_view: Optional[View] = None
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        """
        End the session.

        In-flight requests are not cancelled; their results simply land in a
        cache nobody reads any more.
        """
        self._closed = True
        self.cache.clear()
        self.pending.clear()
        self.current_view = None

    def __repr__(self) -> str:
        view = self.current_view.value if self.current_view else None
        return f"PanelSession(id={self.session_id}, view={view!r}, closed={self._closed})"
