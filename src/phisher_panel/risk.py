"""
Risk presentation rules.

The remote service is the source of truth for the risk score; this module
only turns a score and a phishing flag into the buckets, wording and display
values the panel shows.
"""

import math
import random
from datetime import datetime
from typing import Optional

from .enums import RiskLevel
from .i18n import get_message
from .models import AnalysisResult


SAFE_THRESHOLD = 30
DANGER_THRESHOLD = 70

HISTORY_URL_MAX_LENGTH = 45


def risk_level(score: int) -> RiskLevel:
    """
    Bucket a risk score.

    Returns:
        SAFE for [0, 30), WARNING for [30, 70), DANGER for [70, 100]
    """
    if score >= DANGER_THRESHOLD:
        return RiskLevel.DANGER
    if score >= SAFE_THRESHOLD:
        return RiskLevel.WARNING
    return RiskLevel.SAFE


def result_title(result: AnalysisResult, language: str = "en") -> str:
    """
    Headline for a rendered result.

    The phishing flag wins over the score, so a low-scoring phishing result is
    still titled as a threat.
    """
    if result.is_phishing:
        return get_message("result.threat_detected", language)
    if result.risk_score > SAFE_THRESHOLD:
        return get_message("result.suspicious", language)
    return get_message("result.safe", language)


def result_description(result: AnalysisResult, language: str = "en") -> str:
    return result.description or get_message("result.default_description", language)


def result_recommendation(result: AnalysisResult, language: str = "en") -> str:
    if result.recommendation:
        return result.recommendation
    if result.is_phishing:
        return get_message("recommendation.danger", language)
    if result.risk_score > SAFE_THRESHOLD:
        return get_message("recommendation.warning", language)
    return get_message("recommendation.safe", language)


def confidence_percent(confidence: Optional[float]) -> Optional[int]:
    """
    Normalise a confidence value to a 0-100 integer.

    Values in (0, 1] are read as fractions, larger values as percentages.
    """
    if confidence is None or math.isnan(confidence) or confidence <= 0:
        return None
    if confidence <= 1:
        confidence = confidence * 100
    return int(round(min(confidence, 100)))


def display_confidence(
    confidence: Optional[float],
    rng: Optional[random.Random] = None,
) -> int:
    """Confidence to show for a result; missing values get a cosmetic 85-94."""
    percent = confidence_percent(confidence)
    if percent is not None:
        return percent
    return (rng or random).randint(85, 94)


def history_risk_class(score: int) -> str:
    level = risk_level(score)
    return {
        RiskLevel.SAFE: "risk-low",
        RiskLevel.WARNING: "risk-medium",
        RiskLevel.DANGER: "risk-high",
    }[level]


def truncate_url(url: str, max_length: int = HISTORY_URL_MAX_LENGTH) -> str:
    if len(url) <= max_length:
        return url
    return url[: max_length - 3] + "..."


def format_timestamp(iso_timestamp: Optional[str], language: str = "en") -> str:
    """
    Format an ISO timestamp for display.

    Args:
        iso_timestamp: ISO 8601 timestamp string
        language: 'de' for German, 'en' for English

    Returns:
        Formatted timestamp string, or the input if it can't be parsed
    """
    if not iso_timestamp:
        return ""
    try:
        dt = datetime.fromisoformat(iso_timestamp.replace("Z", "+00:00"))
    except (ValueError, AttributeError):
        return iso_timestamp

    if language == "de":
        return dt.strftime("%d.%m.%Y, %H:%M Uhr")
    return dt.strftime("%b %d, %Y, %I:%M %p")
