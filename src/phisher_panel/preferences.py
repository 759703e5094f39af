"""
User preferences and installation identity.

Settings and theme live in the ``sync`` storage area, the user id in the
``local`` area. Reads never fail: storage faults are logged and defaults are
returned so the panel stays usable.
"""

import uuid
from typing import Optional

from .audit_logger import AuditLogger
from .enums import Theme
from .exceptions import PersistenceError
from .models import Settings
from .storage import SETTINGS_KEY, THEME_KEY, USER_ID_KEY, KeyValueStore


class Preferences:
    """Loads and saves Settings, Theme and the UserId."""

    def __init__(
        self,
        local_store: KeyValueStore,
        sync_store: KeyValueStore,
        logger: Optional[AuditLogger] = None,
    ) -> None:
        self._local = local_store
        self._sync = sync_store
        self._logger = logger
        self._user_id: Optional[str] = None

    def load_settings(self) -> Settings:
        try:
            raw = self._sync.get(SETTINGS_KEY)
        except PersistenceError as e:
            self._warn("Failed to load settings, using defaults", e)
            return Settings()
        if not isinstance(raw, dict):
            return Settings()
        return Settings.from_dict(raw)

    def save_settings(self, settings: Settings) -> None:
        try:
            self._sync.set(SETTINGS_KEY, settings.to_dict())
        except PersistenceError as e:
            self._warn("Failed to save settings", e)

    def load_theme(self) -> Theme:
        try:
            raw = self._sync.get(THEME_KEY)
        except PersistenceError as e:
            self._warn("Failed to load theme, using dark", e)
            return Theme.DARK
        try:
            return Theme(raw) if raw else Theme.DARK
        except ValueError:
            return Theme.DARK

    def save_theme(self, theme: Theme) -> None:
        try:
            self._sync.set(THEME_KEY, theme.value)
        except PersistenceError as e:
            self._warn("Failed to save theme", e)

    def get_user_id(self) -> str:
        """
        Return the stable installation id, generating it on first use.

        A freshly generated id that cannot be persisted is still kept for the
        lifetime of this object so that calls within a session agree.
        """
        if self._user_id is not None:
            return self._user_id

        try:
            stored = self._local.get(USER_ID_KEY)
        except PersistenceError as e:
            self._warn("Failed to read user id", e)
            stored = None

        if stored:
            self._user_id = str(stored)
            return self._user_id

        self._user_id = str(uuid.uuid4())
        try:
            self._local.set(USER_ID_KEY, self._user_id)
        except PersistenceError as e:
            self._warn("Failed to persist new user id", e)
        return self._user_id

    def _warn(self, message: str, error: Exception) -> None:
        if self._logger:
            self._logger.warn(
                "Preferences",
                message,
                {"error_type": type(error).__name__, "error_message": str(error)},
            )
