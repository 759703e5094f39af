"""
Exception classes for the phisher panel.

All exceptions inherit from PanelError and provide structured
error information with codes, messages, and optional details.
"""

from typing import Optional


class PanelError(Exception):
    """Base exception for all panel errors."""

    def __init__(
        self,
        code: str,
        message: str,
        details: Optional[dict] = None,
    ) -> None:
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(code={self.code!r}, message={self.message!r})"

    def to_dict(self) -> dict:
        """Convert exception to dictionary for serialization."""
        return {
            "error_type": self.__class__.__name__,
            "code": self.code,
            "message": self.message,
            "details": self.details,
        }


class InvalidInputError(PanelError):
    """Raised when the URL input is empty."""

    pass


class InvalidUrlError(PanelError):
    """Raised when the input is not an absolute http(s) URL."""

    pass


class TemplateLoadError(PanelError):
    """Raised when a template resource is missing or unreadable."""

    pass


class TemplateStructureError(PanelError):
    """Raised when rendered markup does not have a single root element."""

    pass


class NetworkError(PanelError):
    """Raised on transport failures, timeouts and non-2xx responses."""

    @property
    def status_code(self) -> Optional[int]:
        return self.details.get("status_code")


class ValidationError(PanelError):
    """Raised when a domain entry fails local validation."""

    pass


class PersistenceError(PanelError):
    """Raised when durable storage cannot be read or written."""

    pass


class TamperingError(PersistenceError):
    """Raised when HMAC validation fails, indicating data tampering."""

    pass


class AnalysisFailedError(PanelError):
    """Generic user-facing failure of an analyze request."""

    pass
