"""
Phisher Panel - Headless phishing URL analysis panel.

This package provides an interactive, template-driven panel for submitting
URLs to a remote analysis service, managing trusted and blocked domains and
browsing past analyses, usable from scripts, tests and the command line.
"""

__version__ = "0.1.0"
__author__ = "Phisher Panel Team"

from phisher_panel.exceptions import (
    PanelError,
    InvalidInputError,
    InvalidUrlError,
    TemplateLoadError,
    TemplateStructureError,
    NetworkError,
    ValidationError,
    PersistenceError,
    TamperingError,
    AnalysisFailedError,
)
from phisher_panel.enums import (
    View,
    AnalysisState,
    RiskLevel,
    Sensitivity,
    Theme,
    HistoryFilter,
    ExportFormat,
    LogLevel,
    DomainValidationErrorCode,
    NetworkErrorCode,
)
from phisher_panel.config import (
    ApiConfig,
    StorageConfig,
    CacheConfig,
    LoggingConfig,
    PanelConfig,
    apply_env_overrides,
)
from phisher_panel.models import (
    AnalysisResult,
    HistoryRecord,
    Stats,
    Settings,
)
from phisher_panel.domain_validator import (
    DomainValidator,
    DomainValidationResult,
    DomainValidationError,
)
from phisher_panel.audit_logger import (
    AuditLogger,
    LogEntry,
)
from phisher_panel.storage import (
    KeyValueStore,
)
from phisher_panel.preferences import (
    Preferences,
)
from phisher_panel.stats import (
    StatsTracker,
)
from phisher_panel.risk import (
    SAFE_THRESHOLD,
    DANGER_THRESHOLD,
    risk_level,
)
from phisher_panel.i18n import (
    get_message,
    get_missing_translations,
    TRANSLATIONS,
    SUPPORTED_LANGUAGES,
)
from phisher_panel.templates import (
    TemplateStore,
    interpolate,
)
from phisher_panel.result_cache import (
    ResultCache,
)
from phisher_panel.remote_client import (
    RemoteServiceClient,
    SimulatedBackend,
)
from phisher_panel.session import (
    PanelSession,
)
from phisher_panel.panel import (
    PanelDocument,
    ListenerScope,
    ListenerRegistry,
    Event,
)
from phisher_panel.controller import (
    AnalysisController,
    validate_url,
)
from phisher_panel.managers import (
    SettingsManager,
    WhitelistManager,
    BlacklistManager,
    HistoryManager,
)
from phisher_panel.navigator import (
    ViewNavigator,
)
from phisher_panel.app import (
    PhisherPanel,
)
from phisher_panel.cli import (
    main as cli_main,
    create_parser,
    create_default_config,
    load_config_from_file,
    save_config_to_file,
)

__all__ = [
    # Exceptions
    "PanelError",
    "InvalidInputError",
    "InvalidUrlError",
    "TemplateLoadError",
    "TemplateStructureError",
    "NetworkError",
    "ValidationError",
    "PersistenceError",
    "TamperingError",
    "AnalysisFailedError",
    # Enums
    "View",
    "AnalysisState",
    "RiskLevel",
    "Sensitivity",
    "Theme",
    "HistoryFilter",
    "ExportFormat",
    "LogLevel",
    "DomainValidationErrorCode",
    "NetworkErrorCode",
    # Configuration
    "ApiConfig",
    "StorageConfig",
    "CacheConfig",
    "LoggingConfig",
    "PanelConfig",
    "apply_env_overrides",
    # Models
    "AnalysisResult",
    "HistoryRecord",
    "Stats",
    "Settings",
    # Domain Validator
    "DomainValidator",
    "DomainValidationResult",
    "DomainValidationError",
    # Audit Logger
    "AuditLogger",
    "LogEntry",
    # Storage
    "KeyValueStore",
    "Preferences",
    "StatsTracker",
    # Risk
    "SAFE_THRESHOLD",
    "DANGER_THRESHOLD",
    "risk_level",
    # I18n
    "get_message",
    "get_missing_translations",
    "TRANSLATIONS",
    "SUPPORTED_LANGUAGES",
    # Templates
    "TemplateStore",
    "interpolate",
    # Remote service
    "RemoteServiceClient",
    "SimulatedBackend",
    "ResultCache",
    "PanelSession",
    # Panel
    "PanelDocument",
    "ListenerScope",
    "ListenerRegistry",
    "Event",
    "AnalysisController",
    "validate_url",
    "SettingsManager",
    "WhitelistManager",
    "BlacklistManager",
    "HistoryManager",
    "ViewNavigator",
    "PhisherPanel",
    # CLI
    "cli_main",
    "create_parser",
    "create_default_config",
    "load_config_from_file",
    "save_config_to_file",
]
