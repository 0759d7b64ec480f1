"""
Stillness - Key-value stores

String-keyed get/set stores holding the daily counter and the last used
session. The engine only relies on the KeyValueStore protocol.
"""

import json
import logging
import os
from pathlib import Path
from typing import Dict, Optional, Protocol

from .exceptions import StorageError

logger = logging.getLogger(__name__)


class KeyValueStore(Protocol):
    def get(self, key: str) -> Optional[str]:
        ...

    def set(self, key: str, value: str) -> None:
        ...


class MemoryStore:
    """In-process store, lost when the process exits"""

    def __init__(self, data: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(data or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = str(value)

    def __contains__(self, key: str) -> bool:
        return key in self._data


def default_state_path() -> Path:
    """$XDG_CONFIG_HOME/stillness/state.json (~/.config by default)"""
    base = os.environ.get("XDG_CONFIG_HOME") or Path.home() / ".config"
    return Path(base) / "stillness" / "state.json"


class JsonFileStore:
    """
    Store backed by a small JSON object on disk

    Every set() rewrites the whole file. Read and write failures are
    raised as StorageError.
    """

    def __init__(self, path: Optional[Path] = None):
        self.path = Path(path) if path else default_state_path()

    def _load(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError) as e:
            raise StorageError(f"Cannot read {self.path}: {e}") from e
        if not isinstance(data, dict):
            raise StorageError(f"{self.path} does not hold a JSON object")
        return data

    def get(self, key: str) -> Optional[str]:
        value = self._load().get(key)
        return None if value is None else str(value)

    def set(self, key: str, value: str) -> None:
        data = self._load()
        data[key] = str(value)
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(json.dumps(data, indent=2), encoding="utf-8")
        except OSError as e:
            raise StorageError(f"Cannot write {self.path}: {e}") from e
        logger.debug("Stored %s=%s in %s", key, value, self.path)
