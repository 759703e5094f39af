"""
Durable key/value storage for panel state.

Each storage area (``local`` for stats and the user id, ``sync`` for
preferences) is a JSON file holding namespaced keys. The whole item map is
protected with an HMAC so that edited or corrupted files are detected and
callers can fall back to their defaults.
"""

import hashlib
import hmac
import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

from .exceptions import PersistenceError, TamperingError


KEY_PREFIX = "phisher."

STATS_KEY = KEY_PREFIX + "stats"
USER_ID_KEY = KEY_PREFIX + "userId"
SETTINGS_KEY = KEY_PREFIX + "settings"
THEME_KEY = KEY_PREFIX + "theme"


class KeyValueStore:
    """
    Persistent key/value storage with HMAC protection.

    Items are loaded lazily on first access and kept in memory; every
    ``set`` rewrites the file with a fresh HMAC.
    """

    VERSION = 1

    def __init__(self, file_path: Path, hmac_secret: str, area: str = "local") -> None:
        """
        Initialize the store.

        Args:
            file_path: Path to the backing JSON file
            hmac_secret: Secret key for HMAC computation
            area: Name of the storage area, used in error details
        """
        self._file_path = file_path
        self._hmac_secret = hmac_secret.encode("utf-8")
        self._area = area
        self._items: Optional[dict[str, Any]] = None

    def load(self) -> dict[str, Any]:
        """
        Load items from file and validate HMAC.

        Returns:
            The stored items, or an empty mapping if the file doesn't exist

        Raises:
            TamperingError: If HMAC validation fails
            PersistenceError: If the file cannot be read or parsed
        """
        if not self._file_path.exists():
            self._items = {}
            return {}

        try:
            with open(self._file_path, "r", encoding="utf-8") as f:
                raw_data = json.load(f)
        except json.JSONDecodeError as e:
            raise PersistenceError(
                code="parse_error",
                message=f"Failed to parse {self._area} storage: {e}",
                details={"file_path": str(self._file_path)},
            )
        except OSError as e:
            raise PersistenceError(
                code="io_error",
                message=f"Failed to read {self._area} storage: {e}",
                details={"file_path": str(self._file_path)},
            )

        if not isinstance(raw_data, dict) or not isinstance(raw_data.get("items", {}), dict):
            raise PersistenceError(
                code="parse_error",
                message=f"Unexpected layout in {self._area} storage",
                details={"file_path": str(self._file_path)},
            )

        stored_hmac = raw_data.get("hmac", "")
        computed_hmac = self.compute_hmac({
            "version": raw_data.get("version"),
            "items": raw_data.get("items", {}),
            "updated_at": raw_data.get("updated_at"),
        })

        if not hmac.compare_digest(str(stored_hmac), computed_hmac):
            raise TamperingError(
                code="hmac_mismatch",
                message=f"HMAC validation failed for {self._area} storage",
                details={"file_path": str(self._file_path)},
            )

        self._items = dict(raw_data.get("items", {}))
        return dict(self._items)

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get a stored value.

        Raises:
            PersistenceError: If the backing file is unreadable or tampered with
        """
        if self._items is None:
            self.load()
        return self._items.get(key, default)

    def set(self, key: str, value: Any) -> None:
        """
        Store a value and write the area to disk.

        Raises:
            PersistenceError: If the file cannot be written
        """
        if self._items is None:
            try:
                self.load()
            except PersistenceError:
                # Unreadable state is replaced rather than merged
                self._items = {}
        self._items[key] = value
        self._save()

    def remove(self, key: str) -> None:
        if self._items is None:
            self.load()
        if self._items.pop(key, None) is not None:
            self._save()

    def _save(self) -> None:
        now = datetime.now(timezone.utc).isoformat()
        payload = {
            "version": self.VERSION,
            "items": self._items,
            "updated_at": now,
        }
        payload["hmac"] = self.compute_hmac(payload)

        try:
            self._file_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self._file_path, "w", encoding="utf-8") as f:
                json.dump(payload, f, indent=2, sort_keys=True)
        except (OSError, TypeError) as e:
            raise PersistenceError(
                code="io_error",
                message=f"Failed to write {self._area} storage: {e}",
                details={"file_path": str(self._file_path)},
            )

    def compute_hmac(self, data: dict) -> str:
        """
        Compute HMAC-SHA256 over serialized data.

        Args:
            data: Dictionary to compute HMAC over

        Returns:
            Hexadecimal HMAC string
        """
        serialized = json.dumps(data, sort_keys=True, separators=(",", ":"))
        return hmac.new(
            self._hmac_secret,
            serialized.encode("utf-8"),
            hashlib.sha256,
        ).hexdigest()

    @property
    def area(self) -> str:
        return self._area

    @property
    def file_path(self) -> Path:
        return self._file_path
