"""Tests for the hierarchy fade and the drop-if-busy guard"""

import asyncio

import pytest

from stillness.fade import FadeStage, HierarchyFade, SingleFlight


class TestSingleFlight:

    @pytest.mark.asyncio
    async def test_drops_while_busy(self):
        guard = SingleFlight("test")
        release = asyncio.Event()
        ran = []

        async def work(tag):
            ran.append(tag)
            await release.wait()

        first = asyncio.create_task(guard.run(work, "first"))
        await asyncio.sleep(0)
        assert guard.busy
        assert await guard.run(work, "second") is False

        release.set()
        assert await first is True
        assert ran == ["first"]
        assert not guard.busy

    @pytest.mark.asyncio
    async def test_released_after_error(self):
        guard = SingleFlight("test")

        async def boom():
            raise RuntimeError("boom")

        with pytest.raises(RuntimeError):
            await guard.run(boom)
        assert not guard.busy


class TestHierarchyFade:

    def test_due_only_on_boundary_past_threshold(self):
        fade = HierarchyFade("header", after_cycles=2, dwell=0)
        assert not fade.is_due(1, 0)
        assert not fade.is_due(2, 3)
        assert fade.is_due(2, 0)
        assert fade.is_due(5, 0)

    @pytest.mark.asyncio
    async def test_sequence_steps_dim_then_off(self):
        fade = HierarchyFade("header", after_cycles=2, dwell=0)
        seen = []

        async def render():
            seen.append(fade.stage)

        assert await fade.fade_out(render)
        assert seen == [FadeStage.DIM, FadeStage.OFF]
        assert fade.is_off
        assert not fade.is_due(9, 0)

    @pytest.mark.asyncio
    async def test_second_sequence_dropped_while_animating(self):
        fade = HierarchyFade("frame", after_cycles=4, dwell=0.05)
        renders = []

        async def render():
            renders.append(fade.stage)

        first = asyncio.create_task(fade.fade_out(render))
        await asyncio.sleep(0.01)
        assert fade.in_flight
        assert await fade.fade_out(render) is False
        assert await first is True
        assert renders == [FadeStage.DIM, FadeStage.OFF]

    @pytest.mark.asyncio
    async def test_watcher_retires_after_fading(self):
        fade = HierarchyFade("header", after_cycles=0, dwell=0, poll_interval=0.001)
        polls = []

        async def render():
            pass

        async def check(f):
            polls.append(f.stage)
            if len(polls) < 3:
                return False
            return await f.fade_out(render)

        fade.watch(check)
        for _ in range(200):
            if not fade.watching:
                break
            await asyncio.sleep(0.005)

        assert not fade.watching
        assert fade.stage is FadeStage.OFF
        assert len(polls) == 3

    @pytest.mark.asyncio
    async def test_reset_cancels_watcher(self):
        fade = HierarchyFade("header", after_cycles=0, dwell=0, poll_interval=10)

        async def check(f):
            return False

        fade.watch(check)
        assert fade.watching
        fade.stage = FadeStage.DIM
        fade.reset()
        assert fade.stage is FadeStage.NORMAL
        assert not fade.watching
