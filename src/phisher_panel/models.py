"""
Data models for the phisher panel.

This module defines the analysis result produced by the remote service,
the durable counters and preferences, and the history records shown in
the history view.
"""

import math
from dataclasses import dataclass, field
from typing import Any, Optional

from .enums import Sensitivity, Theme


def _as_optional_float(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def _as_int(value: Any, default: int = 0) -> int:
    if isinstance(value, bool):
        return int(value)
    number = _as_optional_float(value)
    return default if number is None else int(round(number))


@dataclass
class AnalysisResult:
    """Outcome of a remote URL analysis."""

    url: str
    is_phishing: bool
    risk_score: int  # 0-100
    confidence: Optional[float] = None  # 0-100, may be absent
    threats: list[str] = field(default_factory=list)
    description: Optional[str] = None
    recommendation: Optional[str] = None
    created_at: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict, url: str = "", strict: bool = True) -> "AnalysisResult":
        """
        Build a result from the service's camelCase JSON payload.

        Args:
            data: Decoded JSON object
            url: URL to use when the payload does not echo it back
            strict: Reject a riskScore of infinity or NaN instead of
                treating it as absent

        Raises:
            ValueError: If the payload is not a JSON object, or (strict only)
                its riskScore is not a finite number
        """
        if not isinstance(data, dict):
            raise ValueError(f"Expected JSON object, got {type(data).__name__}")

        score = data.get("riskScore")
        if strict and isinstance(score, float) and not math.isfinite(score):
            raise ValueError(f"riskScore is not a finite number: {score!r}")

        threats = data.get("threats") or []
        if not isinstance(threats, list):
            threats = [threats]

        return cls(
            url=str(data.get("url") or url),
            is_phishing=bool(data.get("isPhishing", False)),
            risk_score=max(0, min(100, _as_int(score))),
            confidence=_as_optional_float(data.get("confidence")),
            threats=[str(t) for t in threats],
            description=data.get("description") or None,
            recommendation=data.get("recommendation") or None,
            created_at=data.get("createdAt") or None,
        )

    def to_dict(self) -> dict:
        return {
            "url": self.url,
            "isPhishing": self.is_phishing,
            "riskScore": self.risk_score,
            "confidence": self.confidence,
            "threats": list(self.threats),
            "description": self.description,
            "recommendation": self.recommendation,
            "createdAt": self.created_at,
        }


@dataclass
class HistoryRecord:
    """A past analysis as stored by the remote service."""

    url: str
    is_phishing: bool
    risk_score: int
    confidence: Optional[float]
    threats: list[str]
    description: Optional[str]
    created_at: Optional[str]
    record_id: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict) -> "HistoryRecord":
        result = AnalysisResult.from_dict(data, strict=False)
        record_id = data.get("id") or data.get("_id")
        return cls(
            url=result.url,
            is_phishing=result.is_phishing,
            risk_score=result.risk_score,
            confidence=result.confidence,
            threats=result.threats,
            description=result.description,
            created_at=result.created_at,
            record_id=str(record_id) if record_id is not None else None,
        )


@dataclass
class Stats:
    """Running counters, durable across sessions."""

    total_checks: int = 0
    threats_blocked: int = 0
    safe_urls: int = 0

    @classmethod
    def from_dict(cls, data: dict) -> "Stats":
        return cls(
            total_checks=max(0, _as_int(data.get("totalChecks"))),
            threats_blocked=max(0, _as_int(data.get("threatsBlocked"))),
            safe_urls=max(0, _as_int(data.get("safeUrls"))),
        )

    def to_dict(self) -> dict:
        return {
            "totalChecks": self.total_checks,
            "threatsBlocked": self.threats_blocked,
            "safeUrls": self.safe_urls,
        }


@dataclass
class Settings:
    """User preferences stored in the sync area."""

    detection_sensitivity: Sensitivity = Sensitivity.BALANCED
    real_time_protection: bool = True
    auto_block_threats: bool = False
    theme: Theme = Theme.DARK

    @classmethod
    def from_dict(cls, data: dict) -> "Settings":
        defaults = cls()
        try:
            sensitivity = Sensitivity(data.get("detectionSensitivity"))
        except ValueError:
            sensitivity = defaults.detection_sensitivity
        try:
            theme = Theme(data.get("theme"))
        except ValueError:
            theme = defaults.theme
        return cls(
            detection_sensitivity=sensitivity,
            real_time_protection=bool(
                data.get("realTimeProtection", defaults.real_time_protection)
            ),
            auto_block_threats=bool(
                data.get("autoBlockThreats", defaults.auto_block_threats)
            ),
            theme=theme,
        )

    def to_dict(self) -> dict:
        return {
            "detectionSensitivity": self.detection_sensitivity.value,
            "realTimeProtection": self.real_time_protection,
            "autoBlockThreats": self.auto_block_threats,
            "theme": self.theme.value,
        }
