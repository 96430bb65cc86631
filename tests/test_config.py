"""Tests for configuration and the loop-backed scheduler."""

import asyncio

import pytest

from controllable_future import (
    LoopScheduler,
    get_default_scheduler,
    reset_all,
    set_default_scheduler,
)


class TestDefaultScheduler:
    """Test the process-wide default scheduler setting."""

    def test_unset_by_default(self):
        """Test no default scheduler is configured initially."""
        assert get_default_scheduler() is None

    def test_set_and_reset(self, fake_scheduler):
        """Test setting and resetting the default."""
        set_default_scheduler(fake_scheduler)
        assert get_default_scheduler() is fake_scheduler

        reset_all()
        assert get_default_scheduler() is None


class TestLoopScheduler:
    """Test scheduling timers on the event loop."""

    @pytest.mark.anyio
    async def test_running_loop(self):
        """Test callbacks run on the running loop after the delay."""
        fired = asyncio.Event()
        scheduler = LoopScheduler()

        scheduler.call_later(0.01, fired.set)

        await asyncio.wait_for(fired.wait(), timeout=1.0)
        assert scheduler.loop is asyncio.get_running_loop()

    @pytest.mark.anyio
    async def test_cancel(self):
        """Test a cancelled timer never fires."""
        calls = []
        scheduler = LoopScheduler(asyncio.get_running_loop())

        handle = scheduler.call_later(0.01, calls.append, "fired")
        handle.cancel()
        await asyncio.sleep(0.03)

        assert calls == []

    def test_no_running_loop(self):
        """Test an unbound scheduler needs a running loop."""
        with pytest.raises(RuntimeError):
            LoopScheduler().loop
