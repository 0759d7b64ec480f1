"""
Shared fixtures: a hand-advanced clock, a recording renderer and an
engine wired to both.
"""

import pytest

from stillness import MemoryStore, PracticeConfig, StillnessEngine

TODAY = "2026-10-19"


class FakeTime:
    """Wall clock that only moves when told to"""

    def __init__(self, start: float = 1_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingRenderer:
    """Renderer double that records every call"""

    def __init__(self):
        self.created = []
        self.rebuilt = []
        self.texts = []
        self.shutdowns = 0
        self.create_result = 0
        self.create_error = None
        self.rebuild_error = None
        self.update_error = None

    async def create_page(self, page):
        if self.create_error:
            raise self.create_error
        self.created.append(page)
        return self.create_result

    async def rebuild_page(self, page):
        if self.rebuild_error:
            raise self.rebuild_error
        self.rebuilt.append(page)

    async def update_text(self, region_id, region_name, content):
        if self.update_error:
            raise self.update_error
        self.texts.append((region_id, region_name, content))

    async def shutdown(self):
        self.shutdowns += 1

    @property
    def pages(self):
        return self.created + self.rebuilt

    def texts_for(self, region_name):
        return [content for _, name, content in self.texts if name == region_name]


class BrokenStore:
    """Store whose every call fails"""

    def get(self, key):
        raise OSError("store unavailable")

    def set(self, key, value):
        raise OSError("store unavailable")


@pytest.fixture
def fake_time():
    return FakeTime()


@pytest.fixture
def renderer():
    return RecordingRenderer()


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def quiet_config():
    """Timers effectively parked so tests drive ticks and fades by hand"""
    return PracticeConfig(
        tick_interval=3600,
        fade_poll_interval=3600,
        switch_settle_delay=0,
        header_fade_dwell=0,
        frame_fade_dwell=0,
    )


@pytest.fixture
def engine(renderer, store, quiet_config, fake_time):
    return StillnessEngine(
        renderer, store, quiet_config, now=fake_time, today=lambda: TODAY
    )
