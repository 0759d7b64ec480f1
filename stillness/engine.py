"""
Stillness - Practice engine

Top-level state machine of the overlay:

    Collapsed --tap--> Expanded/Running --tap--> Collapsed
    Expanded/Running --swipe--> Expanded/Running (next/previous session)
    Expanded/Running --foreground exit--> Expanded/Paused
    Expanded/Paused --foreground enter--> Expanded/Running

Everything runs on one asyncio loop. Besides the event consumer there
are three timer-driven tasks while a session runs: the per-second tick
renderer and the header and frame fade watchers. Shared render state is
protected by drop-if-busy guards, so overlapping triggers are debounced
rather than queued.
"""

import asyncio
import logging
import signal
import time
from typing import Any, Callable, List, Optional, Protocol, Sequence, Set

from . import config as cfg
from .accumulator import AccumulationGuard, PracticeStore, today_key
from .breath import PhaseWhisper, breath_frame, breath_text, neutral_text
from .clock import Clock
from .config import DEFAULT_SESSIONS, PracticeConfig, SessionConfig
from .display import Display, Renderer, collapsed_page, expanded_page, header_text
from .events import Event, Intent, classify
from .fade import HierarchyFade, SingleFlight
from .registry import SessionRegistry
from .state import PracticeState
from .storage import KeyValueStore, MemoryStore

logger = logging.getLogger(__name__)

# Termination requests that should bank the running session first
STOP_SIGNALS = tuple(
    getattr(signal, name) for name in ("SIGTERM", "SIGHUP") if hasattr(signal, name)
)


class EventSource(Protocol):
    def on_event(self, callback: Callable[[Any], None]) -> Callable[[], None]:
        """Register callback for raw events; returns an unsubscribe callable"""
        ...


class StillnessEngine:
    """
    Breathing-practice overlay driven by device events

    Usage:
        engine = StillnessEngine(renderer, store)
        await engine.start()          # collapsed badge on screen
        engine.attach(glasses)        # raw events -> engine.feed()
        await engine.wait_stopped()
        ...
        await engine.stop()           # commits time, tears down
    """

    def __init__(
        self,
        renderer: Renderer,
        store: Optional[KeyValueStore] = None,
        config: Optional[PracticeConfig] = None,
        sessions: Sequence[SessionConfig] = DEFAULT_SESSIONS,
        now: Callable[[], float] = time.time,
        today: Callable[[], str] = today_key,
    ):
        """
        Args:
            renderer: Display device (see display.Renderer)
            store: Key-value store for the daily total and last session
            config: Timing and threshold knobs
            sessions: Breathing sessions, in swipe order
            now: Wall-clock source in seconds
            today: Calendar day key source
        """
        self.config = config or PracticeConfig()
        self._now = now
        self.display = Display(renderer)
        self.store = PracticeStore(store if store is not None else MemoryStore(), today)
        self.guard = AccumulationGuard(self.store)

        c = self.config
        self.state = PracticeState(
            registry=SessionRegistry(sessions),
            header_fade=HierarchyFade(
                "header", c.header_fade_after_cycles, c.header_fade_dwell, c.fade_poll_interval
            ),
            frame_fade=HierarchyFade(
                "frame", c.frame_fade_after_cycles, c.frame_fade_dwell, c.fade_poll_interval
            ),
            whisper=PhaseWhisper(c.phase_whisper_cycles, c.phase_label_duration),
            daily=self.store.load_daily(),
        )

        self._render_guard = SingleFlight("render")
        self._switch_guard = SingleFlight("session switch")
        self._events: "asyncio.Queue[Event]" = asyncio.Queue()
        self._consumer: Optional[asyncio.Task] = None
        self._tick_task: Optional[asyncio.Task] = None
        self._switch_tasks: Set[asyncio.Task] = set()
        self._unsubscribe: Optional[Callable[[], None]] = None
        self._stopped = asyncio.Event()
        self._signals: List[int] = []
        self._stop_task: Optional[asyncio.Task] = None

    @property
    def session(self) -> SessionConfig:
        return self.state.registry.current

    @property
    def switching(self) -> bool:
        return self._switch_guard.busy

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    async def start(self) -> None:
        """
        Restore persisted values and show the collapsed badge

        Raises:
            StartupError: If the renderer refuses the first page
        """
        state = self.state
        state.daily = self.store.load_daily()
        state.registry.select(self.store.load_session_index(len(state.registry)))
        state.expanded = False
        state.running = False
        state.foreground = True
        state.clock = None
        state.reset_hierarchy()

        self.display.ready = False
        self.display.reset_cache()
        await self._rebuild()

        if self._consumer is None:
            self._consumer = asyncio.create_task(self._consume(), name="stillness-events")
        logger.info(
            "Started on %s, %ds today", self.session, state.accumulated_seconds_today
        )

    def attach(self, source: EventSource) -> None:
        """Subscribe to a raw event source; stop() unsubscribes"""
        self.detach()
        self._unsubscribe = source.on_event(self.feed)

    def detach(self) -> None:
        unsubscribe, self._unsubscribe = self._unsubscribe, None
        if unsubscribe is not None:
            unsubscribe()

    async def stop(self) -> None:
        """Commit time, cancel timers, unsubscribe and shut the page down"""
        state = self.state
        self.guard.commit(state, "stop")
        if state.exiting:
            return
        state.exiting = True
        self._remove_signal_handlers()

        state.header_fade.cancel()
        state.frame_fade.cancel()
        self._stop_tick()
        for task in list(self._switch_tasks):
            task.cancel()
        self.detach()
        if self._consumer is not None and self._consumer is not asyncio.current_task():
            self._consumer.cancel()
        self._consumer = None

        await self.display.shutdown()
        self._stopped.set()
        logger.info("Stopped, %ds today", state.accumulated_seconds_today)

    def on_visibility_hidden(self) -> int:
        """Host is hiding the overlay; bank the running session's time"""
        return self.guard.commit(self.state, "visibility")

    def stop_on_signals(self, signals: Sequence[int] = STOP_SIGNALS) -> List[int]:
        """
        Run stop() when the process is asked to terminate

        Returns:
            The signals a handler was installed for (none on loops
            without signal support, such as on Windows)
        """
        loop = asyncio.get_running_loop()
        for sig in signals:
            try:
                loop.add_signal_handler(sig, self._stop_soon, sig)
            except NotImplementedError:
                logger.debug("No loop signal handlers here; %s not watched", sig)
                break
            self._signals.append(sig)
        return list(self._signals)

    def _stop_soon(self, sig: int) -> None:
        logger.info("Received %s, stopping", signal.Signals(sig).name)
        if self._stop_task is None:
            self._stop_task = asyncio.ensure_future(self.stop())

    def _remove_signal_handlers(self) -> None:
        loop = asyncio.get_running_loop()
        for sig in self._signals:
            loop.remove_signal_handler(sig)
        self._signals.clear()

    async def wait_stopped(self) -> None:
        await self._stopped.wait()

    # -------------------------------------------------------------------------
    # Events
    # -------------------------------------------------------------------------

    def feed(self, payload: Any) -> Optional[Event]:
        """Classify a raw event and queue it for the consumer"""
        event = classify(payload, self.config.tap_codes)
        if event is None:
            logger.debug("Ignoring unreadable event %r", payload)
            return None
        self._events.put_nowait(event)
        return event

    async def drain(self) -> None:
        """Wait until every queued event has been handled"""
        await self._events.join()

    async def _consume(self) -> None:
        while True:
            event = await self._events.get()
            try:
                await self.handle(event)
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.exception("Handling %s failed", event)
            finally:
                self._events.task_done()

    async def handle(self, event: Event) -> None:
        """Apply one classified event to the state machine"""
        state = self.state
        logger.debug("%s in %s", event.intent.value, state.mode.value)

        if event.intent is Intent.FOREGROUND_EXIT:
            self._enter_background()
            return
        if event.intent is Intent.FOREGROUND_ENTER:
            self._enter_foreground()
            return

        if not state.foreground:
            return
        if self.config.debug_input:
            await self._show_debug(event.code)
        if state.exiting or not event.is_gesture:
            return

        if event.intent in (Intent.SWIPE_UP, Intent.SWIPE_DOWN):
            if state.expanded:
                self._request_switch(-1 if event.intent is Intent.SWIPE_UP else 1)
            return

        await self._on_tap()

    def _enter_background(self) -> None:
        state = self.state
        state.foreground = False
        if state.expanded and state.running:
            state.clock.freeze()
            logger.debug("Paused at %ds", state.clock.frozen_seconds)

    def _enter_foreground(self) -> None:
        state = self.state
        state.foreground = True
        if state.expanded and state.running:
            state.clock.resume(self.session.total)
            logger.debug("Resumed at %ds", state.clock.elapsed_session())

    # -------------------------------------------------------------------------
    # Tap: expand / collapse
    # -------------------------------------------------------------------------

    async def _on_tap(self) -> None:
        state = self.state
        if not state.expanded:
            await self._expand()
        elif state.running:
            await self._collapse()
        else:
            logger.warning("Expanded but not running; resetting to collapsed")
            self._teardown()
            await self._rebuild()

    async def _expand(self) -> None:
        state = self.state
        state.expanded = True
        state.running = True
        state.reset_hierarchy()
        state.clock = Clock(self._now)
        state.clock.start()
        self.guard.arm(state)
        logger.info("Practice started: %s", self.session)

        await self._rebuild()
        self._start_tick()
        self._arm_watchers()

    async def _collapse(self) -> None:
        self.guard.commit(self.state, "tap-collapse")
        self._teardown()
        await self._rebuild()

    def _teardown(self) -> None:
        state = self.state
        state.running = False
        state.expanded = False
        state.clock = None
        state.accumulation_armed = False
        state.header_fade.reset()
        state.frame_fade.reset()
        self._stop_tick()

    # -------------------------------------------------------------------------
    # Session switch
    # -------------------------------------------------------------------------

    def _request_switch(self, direction: int) -> None:
        task = asyncio.create_task(self.switch_session(direction), name="stillness-switch")
        self._switch_tasks.add(task)
        task.add_done_callback(self._switch_done)

    def _switch_done(self, task: asyncio.Task) -> None:
        self._switch_tasks.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.error("Session switch failed", exc_info=task.exception())

    async def switch_session(self, direction: int) -> bool:
        """
        Move to the next (+1) or previous (-1) session

        Returns:
            False if not running or another switch was still in progress
        """
        state = self.state
        if state.exiting or not (state.expanded and state.running):
            return False
        return await self._switch_guard.run(self._switch, direction)

    async def _switch(self, direction: int) -> None:
        state = self.state

        # hand-off cue: the outgoing pattern, not animating
        await self.display.push_text(cfg.BREATH_ID, cfg.BREATH_NAME, neutral_text(self.session))
        if not state.running:
            return

        index = state.registry.step(direction)
        self.store.save_session_index(index)
        state.reset_hierarchy()
        state.clock.restart_cycle()
        logger.info("Switched to %s", self.session)

        await self._rebuild()
        await asyncio.sleep(self.config.switch_settle_delay)
        if not state.running:
            return
        await self._push_breath()
        self._arm_watchers()

    # -------------------------------------------------------------------------
    # Tick renderer
    # -------------------------------------------------------------------------

    def _start_tick(self) -> None:
        self._stop_tick()
        self._tick_task = asyncio.create_task(self._tick_loop(), name="stillness-tick")

    def _stop_tick(self) -> None:
        task, self._tick_task = self._tick_task, None
        if task is not None and task is not asyncio.current_task():
            task.cancel()

    async def _tick_loop(self) -> None:
        while True:
            await asyncio.sleep(self.config.tick_interval)
            await self.render_tick()

    async def render_tick(self) -> bool:
        """
        Push the live breath row and header

        Returns:
            False if skipped (not active, switching, or a render in flight)
        """
        if not self.state.active or self.switching:
            return False
        return await self._render_guard.run(self._push_live)

    async def _push_live(self) -> None:
        await self._push_breath()
        if not self.state.header_fade.is_off:
            await self.display.push_text(cfg.HEADER_ID, cfg.HEADER_NAME, self._header_text())

    # -------------------------------------------------------------------------
    # Hierarchy fade
    # -------------------------------------------------------------------------

    def _arm_watchers(self) -> None:
        self.state.header_fade.watch(self.check_fade)
        self.state.frame_fade.watch(self.check_fade)

    async def check_fade(self, fade: HierarchyFade) -> bool:
        """
        One watcher poll: fade the element out if it is due right now

        Returns:
            True once the fade sequence has run
        """
        state = self.state
        if not state.active or fade.is_off or fade.in_flight:
            return False
        if self.switching or self._render_guard.busy:
            return False

        frame = breath_frame(state.clock.elapsed_cycle(), self.session)
        if frame is None or not fade.is_due(frame.cycle_index, frame.t_in_cycle):
            return False

        logger.debug("%s fade due at cycle %d", fade.name, frame.cycle_index)
        return await self._render_guard.run(fade.fade_out, self._rebuild)

    # -------------------------------------------------------------------------
    # Rendering
    # -------------------------------------------------------------------------

    def _cycle_seconds(self) -> int:
        clock = self.state.clock
        return clock.elapsed_cycle() if clock is not None else 0

    def _header_text(self) -> str:
        state = self.state
        # once committed, the run's time is already in today's total
        live = 0
        if state.clock is not None and state.accumulation_armed:
            live = state.clock.elapsed_session()
        cycle_index = self._cycle_seconds() // self.session.total
        debug = ""
        if self.config.debug_input and self._now() < state.debug_until:
            debug = state.debug_text
        return header_text(
            self.session,
            state.accumulated_seconds_today + live,
            show_hint=cycle_index < self.config.header_hint_cycles,
            debug_text=debug,
        )

    def _breath_text(self) -> str:
        return breath_text(self._cycle_seconds(), self.session, self.state.whisper, self._now())

    async def _push_breath(self) -> None:
        await self.display.push_text(cfg.BREATH_ID, cfg.BREATH_NAME, self._breath_text())

    async def _rebuild(self) -> None:
        """Rebuild the full page for the current mode and push its text"""
        state = self.state
        debug = self.config.debug_input

        if not state.expanded:
            page = collapsed_page(state.accumulated_seconds_today, debug)
            await self.display.show(page)
            await self.display.push_text(
                cfg.BADGE_ID, cfg.BADGE_NAME, page.region(cfg.BADGE_ID).content
            )
            return

        header = self._header_text()
        breath = self._breath_text()
        page = expanded_page(
            header, breath, state.header_fade.stage, state.frame_fade.stage, debug
        )
        await self.display.show(page)
        if not state.header_fade.is_off:
            await self.display.push_text(cfg.HEADER_ID, cfg.HEADER_NAME, header)
        await self.display.push_text(cfg.BREATH_ID, cfg.BREATH_NAME, breath)

    async def _show_debug(self, code: int) -> None:
        state = self.state
        state.debug_text = f"evt:{code}"
        state.debug_until = self._now() + self.config.debug_label_duration
        if state.expanded and not state.header_fade.is_off:
            await self.display.push_text(cfg.HEADER_ID, cfg.HEADER_NAME, self._header_text())
        else:
            await self.display.push_text(cfg.DEBUG_ID, cfg.DEBUG_NAME, state.debug_text)
