"""
Enumeration types for the phisher panel.

These enums provide type-safe constants for views, risk buckets, user
preferences and error codes throughout the panel.
"""

from enum import Enum


class View(Enum):
    """Mutually exclusive screens occupying the panel's root container."""

    MAIN = "main"
    SETTINGS = "settings"
    WHITELIST = "whitelist"
    BLACKLIST = "blacklist"
    HISTORY = "history"


class AnalysisState(Enum):
    """States of a single analyze-URL request."""

    IDLE = "idle"
    VALIDATING = "validating"
    CACHE_HIT = "cache_hit"
    REQUESTING = "requesting"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class RiskLevel(Enum):
    """Risk bucket derived from a risk score."""

    SAFE = "safe"
    WARNING = "warning"
    DANGER = "danger"


class Sensitivity(Enum):
    """Detection sensitivity sent with every analyze request."""

    STRICT = "strict"
    BALANCED = "balanced"
    RELAXED = "relaxed"


class Theme(Enum):
    """Panel colour theme."""

    DARK = "dark"
    LIGHT = "light"


class HistoryFilter(Enum):
    """History list filter."""

    ALL = "all"
    THREATS = "threats"


class ExportFormat(Enum):
    """History export formats."""

    CSV = "csv"
    JSON = "json"


class LogLevel(Enum):
    """Logging severity levels."""

    DEBUG = "debug"
    INFO = "info"
    WARN = "warn"
    ERROR = "error"


class DomainValidationErrorCode(Enum):
    """Error codes for domain validation failures."""

    EMPTY_INPUT = "empty_input"
    FORBIDDEN_CHARS = "forbidden_chars"
    INVALID_LABEL = "invalid_label"
    INVALID_TLD = "invalid_tld"
    IDNA_ERROR = "idna_error"


class NetworkErrorCode(Enum):
    """Error codes for remote service calls."""

    NETWORK_ERROR = "network_error"
    TIMEOUT = "timeout"
    HTTP_ERROR = "http_error"
    PARSE_ERROR = "parse_error"
