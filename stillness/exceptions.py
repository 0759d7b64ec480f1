"""
Stillness - Exceptions
"""


class StillnessError(Exception):
    """Base exception for Stillness"""
    pass


class ConnectionError(StillnessError):
    """Failed to connect to the display device"""
    pass


class DeviceNotFoundError(StillnessError):
    """No display device found"""
    pass


class CommandError(StillnessError):
    """Failed to send a command to the display device"""
    pass


class TimeoutError(StillnessError):
    """Operation timed out"""
    pass


class StartupError(StillnessError):
    """The renderer refused the initial page; the overlay cannot start"""
    pass


class StorageError(StillnessError):
    """Key-value store could not be read or written"""
    pass
