"""
Stillness
Ambient breathing-practice overlay for display glasses
"""

from .config import DEFAULT_SESSIONS, PracticeConfig, SessionConfig
from .engine import StillnessEngine
from .events import Event, Intent, classify
from .glasses import Glasses, ScanResult
from .storage import JsonFileStore, MemoryStore
from .exceptions import (
    StillnessError,
    ConnectionError,
    DeviceNotFoundError,
    CommandError,
    TimeoutError,
    StartupError,
    StorageError
)

__version__ = "0.1.0"
__all__ = [
    "StillnessEngine",
    "PracticeConfig",
    "SessionConfig",
    "DEFAULT_SESSIONS",
    "Event",
    "Intent",
    "classify",
    "Glasses",
    "ScanResult",
    "JsonFileStore",
    "MemoryStore",
    "StillnessError",
    "ConnectionError",
    "DeviceNotFoundError",
    "CommandError",
    "TimeoutError",
    "StartupError",
    "StorageError"
]
