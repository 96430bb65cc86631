"""Timer collaborators used to race futures against a deadline."""
import asyncio
import logging
from typing import Any, Callable, Optional, Protocol

logger = logging.getLogger(__name__)


class TimerHandle(Protocol):
    """A pending timer that can be cancelled."""

    def cancel(self) -> None:
        ...


class Scheduler(Protocol):
    """
    Runs a callback once after a delay.

    An asyncio event loop satisfies this protocol directly.
    """

    def call_later(self, delay: float, callback: Callable[..., Any], *args: Any) -> TimerHandle:
        ...


class LoopScheduler:
    """Scheduler backed by an asyncio event loop."""

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        self._loop = loop

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        """The bound loop, or the running one if none was given."""
        if self._loop is not None:
            return self._loop
        return asyncio.get_running_loop()

    def call_later(self, delay: float, callback: Callable[..., Any], *args: Any) -> asyncio.TimerHandle:
        logger.debug("Scheduling timer in %.3fs", delay)
        return self.loop.call_later(delay, callback, *args)
