"""
Running counters of performed checks.

Counters only ever grow. They are persisted after every update; a storage
fault is logged and the in-memory counters keep working.
"""

from typing import Optional

from .audit_logger import AuditLogger
from .exceptions import PersistenceError
from .models import AnalysisResult, Stats
from .risk import SAFE_THRESHOLD
from .storage import STATS_KEY, KeyValueStore


class StatsTracker:
    """Maintains totalChecks, threatsBlocked and safeUrls."""

    def __init__(
        self,
        store: KeyValueStore,
        logger: Optional[AuditLogger] = None,
    ) -> None:
        self._store = store
        self._logger = logger
        self._stats = Stats()

    def load(self) -> Stats:
        """Load persisted counters, keeping zeroes on failure."""
        try:
            raw = self._store.get(STATS_KEY)
        except PersistenceError as e:
            if self._logger:
                self._logger.warn(
                    "StatsTracker",
                    "Failed to load stats, starting from zero",
                    {"error_message": str(e)},
                )
            return self.stats

        if isinstance(raw, dict):
            loaded = Stats.from_dict(raw)
            # Never move backwards if counters were bumped before the load
            self._stats = Stats(
                total_checks=max(self._stats.total_checks, loaded.total_checks),
                threats_blocked=max(self._stats.threats_blocked, loaded.threats_blocked),
                safe_urls=max(self._stats.safe_urls, loaded.safe_urls),
            )
        return self.stats

    def record(self, result: AnalysisResult) -> Stats:
        """
        Count a freshly analysed result.

        totalChecks always grows; threatsBlocked grows for phishing results;
        safeUrls grows for non-phishing results scoring below the safe threshold.
        """
        self._stats.total_checks += 1
        if result.is_phishing:
            self._stats.threats_blocked += 1
        elif result.risk_score < SAFE_THRESHOLD:
            self._stats.safe_urls += 1

        self._persist()
        return self.stats

    def _persist(self) -> None:
        try:
            self._store.set(STATS_KEY, self._stats.to_dict())
        except PersistenceError as e:
            if self._logger:
                self._logger.warn(
                    "StatsTracker",
                    "Failed to save stats",
                    {"error_message": str(e)},
                )

    @property
    def stats(self) -> Stats:
        return Stats(
            total_checks=self._stats.total_checks,
            threats_blocked=self._stats.threats_blocked,
            safe_urls=self._stats.safe_urls,
        )
