"""
Structured audit log for the panel.

Entries go to a stream as JSON lines, as readable text, or both. The panel
logs under a component name ("RemoteServiceClient", "AnalysisController",
"WhitelistManager", ...) so a single stream can be filtered per component.
Secrets and the per-installation user id never reach the stream.
"""

import json
import sys
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional, TextIO

from phisher_panel.enums import LogLevel


LEVEL_ORDER = (LogLevel.DEBUG, LogLevel.INFO, LogLevel.WARN, LogLevel.ERROR)

OUTPUT_FORMATS = ("json", "text", "both")


@dataclass
class LogEntry:
    timestamp: str
    level: LogLevel
    component: str
    message: str
    data: dict = field(default_factory=dict)

    def as_json(self) -> str:
        return json.dumps(
            {
                "timestamp": self.timestamp,
                "level": self.level.value,
                "component": self.component,
                "message": self.message,
                "data": self.data,
            },
            ensure_ascii=False,
            default=str,
        )

    def as_text(self) -> str:
        line = f"[{self.timestamp}] {self.level.value.upper()} [{self.component}] {self.message}"
        if self.data:
            line += " " + json.dumps(self.data, ensure_ascii=False, default=str)
        return line


class AuditLogger:
    """
    Level-filtered structured logger used by every panel component.

    Entries are kept in memory as well as written, which lets tests and the
    CLI's verbose mode inspect what happened during a session.
    """

    # Substrings of keys whose values are replaced before output
    SENSITIVE_KEYS = frozenset({
        'secret', 'hmac', 'token', 'password', 'api_key', 'authorization',
        'credential', 'cookie', 'signature', 'userid', 'user_id',
    })

    MASK_VALUE = "***MASKED***"

    def __init__(
        self,
        output_format: str = "text",
        output_stream: Optional[TextIO] = None,
        min_level: LogLevel = LogLevel.INFO,
    ):
        """
        Args:
            output_format: 'json', 'text' or 'both' (JSON line first)
            output_stream: Where entries are written, sys.stderr by default
            min_level: Entries below this level are dropped entirely
        """
        if output_format not in OUTPUT_FORMATS:
            raise ValueError(f"Invalid output_format: {output_format}")

        self._output_format = output_format
        self._stream = output_stream or sys.stderr
        self._threshold = LEVEL_ORDER.index(min_level)
        self._entries: list[LogEntry] = []

    @classmethod
    def from_config(cls, level: str, output_format: str) -> "AuditLogger":
        """Build a logger from LoggingConfig strings; unknown levels mean info."""
        try:
            min_level = LogLevel(level.lower())
        except ValueError:
            min_level = LogLevel.INFO
        return cls(output_format=output_format, min_level=min_level)

    @property
    def output_format(self) -> str:
        return self._output_format

    @property
    def entries(self) -> list[LogEntry]:
        return list(self._entries)

    def clear_entries(self) -> None:
        self._entries.clear()

    def log(
        self,
        level: LogLevel,
        component: str,
        message: str,
        data: Optional[dict] = None,
    ) -> Optional[LogEntry]:
        """
        Record an entry and write it in the configured format(s).

        Returns:
            The stored entry, or None when the level is below the threshold
        """
        if LEVEL_ORDER.index(level) < self._threshold:
            return None

        entry = LogEntry(
            timestamp=datetime.now(timezone.utc).isoformat(),
            level=level,
            component=component,
            message=message,
            data=self.mask_sensitive_data(data or {}),
        )
        self._entries.append(entry)

        if self._output_format != "text":
            self._stream.write(entry.as_json() + "\n")
        if self._output_format != "json":
            self._stream.write(entry.as_text() + "\n")
        self._stream.flush()
        return entry

    def debug(self, component: str, message: str, data: Optional[dict] = None) -> None:
        self.log(LogLevel.DEBUG, component, message, data)

    def info(self, component: str, message: str, data: Optional[dict] = None) -> None:
        self.log(LogLevel.INFO, component, message, data)

    def warn(self, component: str, message: str, data: Optional[dict] = None) -> None:
        self.log(LogLevel.WARN, component, message, data)

    def log_error(
        self,
        component: str,
        message: str,
        error: Optional[Exception] = None,
        request_url: Optional[str] = None,
        response_status_code: Optional[int] = None,
        additional_data: Optional[dict] = None,
    ) -> Optional[LogEntry]:
        """
        Log a failure together with what is known about its cause.

        Panel errors contribute their ``code``; a network error's HTTP status
        is used when no explicit ``response_status_code`` is given.

        Args:
            component: Component reporting the failure
            message: Short description of what failed
            error: The exception that caused it, if any
            request_url: Request path or URL involved
            response_status_code: HTTP status of the failed response
            additional_data: Extra context merged into the entry data
        """
        data = dict(additional_data or {})

        if error is not None:
            data["error_message"] = str(error)
            data["error_type"] = type(error).__name__
            code = getattr(error, "code", None)
            if code is not None:
                data["error_code"] = code
            if response_status_code is None:
                response_status_code = getattr(error, "status_code", None)

        if request_url is not None:
            data["request_url"] = request_url
        if response_status_code is not None:
            data["response_status_code"] = response_status_code

        return self.log(LogLevel.ERROR, component, message, data)

    def mask_sensitive_data(self, data: dict) -> dict:
        """Return a copy of ``data`` with sensitive values replaced at any depth."""
        if not isinstance(data, dict):
            return data
        return {
            key: self.MASK_VALUE if self._is_sensitive(key) else self._mask_value(value)
            for key, value in data.items()
        }

    def _is_sensitive(self, key: Any) -> bool:
        lowered = str(key).lower()
        return any(pattern in lowered for pattern in self.SENSITIVE_KEYS)

    def _mask_value(self, value: Any) -> Any:
        if isinstance(value, dict):
            return self.mask_sensitive_data(value)
        if isinstance(value, (list, tuple)):
            return [self._mask_value(item) for item in value]
        return value
