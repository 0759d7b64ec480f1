"""
Stillness - Hierarchy fade

The longer a run lasts, the less chrome is shown. Each faded element
(header, frame) steps Normal -> Dim -> Off once per running session,
always on an inhale boundary of the breath cycle.
"""

import asyncio
import logging
from enum import IntEnum
from typing import Any, Awaitable, Callable, Optional

logger = logging.getLogger(__name__)


class SingleFlight:
    """
    Non-reentrant guard that drops work instead of queueing it

    Usage:
        guard = SingleFlight("switch")
        ran = await guard.run(do_switch, +1)   # False if already busy
    """

    def __init__(self, name: str):
        self.name = name
        self._lock = asyncio.Lock()

    @property
    def busy(self) -> bool:
        return self._lock.locked()

    async def run(self, fn: Callable[..., Awaitable[Any]], *args) -> bool:
        """
        Run fn(*args) under the guard

        Returns:
            True if fn ran, False if the guard was busy and fn was dropped
        """
        # An unlocked asyncio.Lock is taken without suspending, so the
        # check and the acquire happen in the same task step.
        if self._lock.locked():
            logger.debug("%s busy, dropped", self.name)
            return False
        async with self._lock:
            await fn(*args)
        return True


class FadeStage(IntEnum):
    NORMAL = 0
    DIM = 1
    OFF = 2


RenderFn = Callable[[], Awaitable[None]]
CheckFn = Callable[["HierarchyFade"], Awaitable[bool]]


class HierarchyFade:
    """
    Fade state and watcher for one element

    The watcher polls a check function at a short interval rather than
    waiting on a single deadline, because the trigger follows the breath
    cycle clock, which stops in the background and restarts on switch.
    """

    def __init__(self, name: str, after_cycles: int, dwell: float, poll_interval: float = 0.06):
        """
        Args:
            name: Element name, for logging
            after_cycles: Full breath cycles before the element may fade
            dwell: Seconds spent in Dim before going Off
            poll_interval: Seconds between watcher checks
        """
        self.name = name
        self.after_cycles = after_cycles
        self.dwell = dwell
        self.poll_interval = poll_interval
        self.stage = FadeStage.NORMAL
        self._flight = SingleFlight(f"{name} fade")
        self._watcher: Optional[asyncio.Task] = None

    @property
    def is_off(self) -> bool:
        return self.stage >= FadeStage.OFF

    @property
    def in_flight(self) -> bool:
        return self._flight.busy

    @property
    def watching(self) -> bool:
        return self._watcher is not None and not self._watcher.done()

    def is_due(self, cycle_index: int, t_in_cycle: int) -> bool:
        """True on an inhale boundary at or past the cycle threshold"""
        if self.is_off:
            return False
        return cycle_index >= self.after_cycles and t_in_cycle == 0

    def reset(self) -> None:
        """Back to Normal; retires the watcher"""
        self.cancel()
        if self.stage != FadeStage.NORMAL:
            logger.debug("%s fade reset", self.name)
        self.stage = FadeStage.NORMAL

    def _advance(self, stage: FadeStage) -> None:
        if stage > self.stage:
            logger.debug("%s fade %s -> %s", self.name, self.stage.name, stage.name)
            self.stage = stage

    async def fade_out(self, render: RenderFn) -> bool:
        """
        Run Dim, dwell, Off, rendering after each stage change

        Returns:
            False if a fade for this element was already animating
        """
        return await self._flight.run(self._sequence, render)

    async def _sequence(self, render: RenderFn) -> None:
        self._advance(FadeStage.DIM)
        await asyncio.shield(render())
        await asyncio.sleep(self.dwell)
        self._advance(FadeStage.OFF)
        await asyncio.shield(render())

    # -------------------------------------------------------------------------
    # Watcher
    # -------------------------------------------------------------------------

    def watch(self, check: CheckFn) -> None:
        """
        (Re)start the watcher

        check(fade) is awaited every poll interval and returns True once
        it has run the fade; the watcher then retires.
        """
        self.cancel()
        self._watcher = asyncio.create_task(self._watch(check), name=f"{self.name}-fade-watcher")

    def cancel(self) -> None:
        """Tear down the watcher (no-op if none is running)"""
        watcher, self._watcher = self._watcher, None
        if watcher is not None and watcher is not asyncio.current_task():
            watcher.cancel()

    async def _watch(self, check: CheckFn) -> None:
        while not self.is_off:
            await asyncio.sleep(self.poll_interval)
            if await check(self):
                break
        logger.debug("%s fade watcher retired", self.name)
