"""pytest configuration and fixtures for controllable future tests."""

import asyncio

import pytest

from controllable_future import config


class FakeTimer:
    """Timer handle returned by FakeScheduler."""

    def __init__(self, when, callback, args):
        self.when = when
        self.callback = callback
        self.args = args
        self.cancelled = False
        self.fired = False

    def cancel(self):
        self.cancelled = True


class FakeScheduler:
    """Manually advanced clock implementing the Scheduler protocol."""

    def __init__(self):
        self.now = 0.0
        self.timers = []

    def call_later(self, delay, callback, *args):
        timer = FakeTimer(self.now + delay, callback, args)
        self.timers.append(timer)
        return timer

    def advance(self, seconds):
        """Move the clock forward, firing due timers synchronously."""
        self.now += seconds
        for timer in sorted(self.timers, key=lambda t: t.when):
            if timer.when <= self.now and not timer.cancelled and not timer.fired:
                timer.fired = True
                timer.callback(*timer.args)


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def fake_scheduler():
    return FakeScheduler()


@pytest.fixture(autouse=True)
def reset_config():
    """Start every test without a default scheduler."""
    config.reset_all()
    yield
    config.reset_all()


@pytest.fixture
async def loop_errors():
    """Collect messages reported to the running loop's exception handler."""
    loop = asyncio.get_running_loop()
    errors = []
    previous = loop.get_exception_handler()
    loop.set_exception_handler(lambda _, context: errors.append(context["message"]))
    yield errors
    loop.set_exception_handler(previous)
