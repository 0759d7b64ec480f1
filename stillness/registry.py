"""
Stillness - Session registry
"""

from typing import Iterator, Sequence

from .config import DEFAULT_SESSIONS, SessionConfig


class SessionRegistry:
    """
    Ordered, cyclic list of breathing sessions with a current selection

    The index always stays within range; stepping past either end wraps.
    """

    def __init__(self, sessions: Sequence[SessionConfig] = DEFAULT_SESSIONS, index: int = 0):
        if not sessions:
            raise ValueError("Session registry needs at least one session")
        self._sessions = tuple(sessions)
        self._index = self.wrap(index)

    def __len__(self) -> int:
        return len(self._sessions)

    def __iter__(self) -> Iterator[SessionConfig]:
        return iter(self._sessions)

    def __getitem__(self, index: int) -> SessionConfig:
        return self._sessions[self.wrap(index)]

    @property
    def index(self) -> int:
        return self._index

    @property
    def current(self) -> SessionConfig:
        return self._sessions[self._index]

    def wrap(self, index: int) -> int:
        """Map any integer onto a valid index"""
        return int(index) % len(self._sessions)

    def select(self, index: int) -> int:
        """Make a (wrapped) index current and return it"""
        self._index = self.wrap(index)
        return self._index

    def step(self, direction: int) -> int:
        """Move forward (+1) or back (-1) cyclically and return the new index"""
        return self.select(self._index + direction)
