"""
Configuration dataclasses for the phisher panel.

This module defines all configuration structures used throughout the panel,
including the remote service endpoint, durable storage, result caching and
logging, plus environment overrides read from a ``.env`` file.
"""

import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv


DEFAULT_API_URL = "https://phisher-backend-97nn.onrender.com"
DEFAULT_STATE_DIR = Path.home() / ".phisher_panel"


@dataclass
class ApiConfig:
    """Remote analysis service configuration."""

    base_url: str = DEFAULT_API_URL
    list_prefix: str = "/api/v1"  # whitelist, blacklist and history endpoints
    timeout_seconds: float = 15.0
    user_agent: str = "PhisherPanel/0.1"


@dataclass
class StorageConfig:
    """Durable local state configuration."""

    state_dir: Path = DEFAULT_STATE_DIR
    hmac_secret: str = "default-secret-change-me"

    @property
    def local_file(self) -> Path:
        return self.state_dir / "local.json"

    @property
    def sync_file(self) -> Path:
        return self.state_dir / "sync.json"


@dataclass
class CacheConfig:
    """Result cache configuration."""

    capacity: int = 256


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: str = "info"
    output_format: str = "text"  # 'json', 'text', 'both'


@dataclass
class PanelConfig:
    """Main panel configuration combining all sub-configurations."""

    api: ApiConfig = field(default_factory=ApiConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    cache: CacheConfig = field(default_factory=CacheConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    language: str = "en"  # 'en' or 'de'
    simulation_mode: bool = False
    downloads_dir: Path = field(default_factory=lambda: Path.home() / "Downloads")
    report_url: str = "https://github.com/Alkyones/Phisher-Extension/issues/new"
    help_url: str = "https://github.com/Alkyones/Phisher-Extension"


def _float_env(name: str, default: float) -> float:
    try:
        return float(os.getenv(name, str(default)))
    except ValueError:
        return default


def apply_env_overrides(
    config: PanelConfig,
    env_file: Optional[Path] = None,
) -> PanelConfig:
    """
    Return a copy of ``config`` with values taken from the environment.

    A ``.env`` file is loaded first (without overriding variables that are
    already set), then the ``PHISHER_*`` variables are applied.

    Args:
        config: Base configuration
        env_file: Optional explicit path to a ``.env`` file

    Returns:
        New PanelConfig with overrides applied
    """
    load_dotenv(dotenv_path=env_file)

    api = config.api
    storage = config.storage
    language = config.language

    base_url = os.getenv("PHISHER_API_URL", "").strip()
    if base_url:
        api = replace(api, base_url=base_url.rstrip("/"))
    if os.getenv("PHISHER_TIMEOUT"):
        api = replace(api, timeout_seconds=_float_env("PHISHER_TIMEOUT", api.timeout_seconds))

    state_dir = os.getenv("PHISHER_STATE_DIR", "").strip()
    if state_dir:
        storage = replace(storage, state_dir=Path(state_dir).expanduser())
    secret = os.getenv("PHISHER_HMAC_SECRET", "").strip()
    if secret:
        storage = replace(storage, hmac_secret=secret)

    env_language = (os.getenv("PHISHER_LANGUAGE", "") or "").strip().lower()
    if env_language in ("en", "de"):
        language = env_language

    return replace(config, api=api, storage=storage, language=language)
