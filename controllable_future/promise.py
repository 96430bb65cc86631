"""Controllable future implementation for Python."""
import asyncio
import inspect
import logging
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Generic, Iterable, Optional, TypeVar, Union

from . import config
from .scheduler import LoopScheduler, Scheduler

T = TypeVar('T')
U = TypeVar('U')

Resolver = Callable[[Any], None]
Rejecter = Callable[[BaseException], None]
Initializer = Callable[[Resolver, Rejecter], None]

logger = logging.getLogger(__name__)


class UnexpectedSettlementError(RuntimeError):
    """Raised when a future is settled before its settlement functions are wired."""


def resolve_unexpected(value: Any) -> None:
    raise UnexpectedSettlementError("Unexpected error: resolve called on an uninitialized future")


def reject_unexpected(reason: BaseException) -> None:
    raise UnexpectedSettlementError("Unexpected error: reject called on an uninitialized future")


def _transfer_outcome(source: asyncio.Future, target: asyncio.Future) -> None:
    """Copy the outcome of a finished future onto target, unless target is already done."""
    if target.done():
        return
    if source.cancelled():
        target.cancel()
        return
    exception = source.exception()
    if exception is not None:
        target.set_exception(exception)
    else:
        target.set_result(source.result())


def _mark_handled(future: asyncio.Future) -> None:
    """Retrieve a finished future's exception so asyncio does not report it."""
    if not future.cancelled():
        future.exception()


async def _run_handler(handler: Callable[[], Any]) -> Any:
    result = handler()
    if inspect.isawaitable(result):
        result = await result
    return result


def _as_future(awaitable: Awaitable, loop: Optional[asyncio.AbstractEventLoop] = None) -> asyncio.Future:
    if isinstance(awaitable, ControllableFuture):
        return awaitable.promise
    return asyncio.ensure_future(awaitable, loop=loop)


class ControllableFuture(Generic[T]):
    """
    A single-shot future that can be settled by whoever holds it.

    The first call to resolve() or reject() wins; every later settlement
    attempt is silently ignored. Instances are awaitable and any number of
    awaiters observe the same outcome.

    Examples:
        future = ControllableFuture()
        loop.call_soon(future.resolve, 42)
        assert await future == 42

        # Settle from inside an initializer, like a native promise
        future = ControllableFuture(lambda resolve, reject: resolve("ready"))

        # Fall back to a default if nothing arrives within a second
        value = await future.race_with_timeout(lambda: "default", 1.0)
    """

    # Replaced per instance once the underlying future exists
    resolve = staticmethod(resolve_unexpected)
    reject = staticmethod(reject_unexpected)

    def __init__(
        self,
        init: Optional[Initializer] = None,
        *,
        scheduler: Optional[Scheduler] = None,
        loop: Optional[asyncio.AbstractEventLoop] = None,
    ):
        """
        Create a pending future.

        Args:
            init: Optional callable receiving (resolve, reject). If it raises,
                the future is rejected with the exception.
            scheduler: Timer source for race_with_timeout on this future
            loop: Event loop owning the future (default: the current loop)
        """
        self.created_at = datetime.now(timezone.utc)
        self.scheduler = scheduler
        self._future: asyncio.Future = asyncio.Future(loop=loop)
        self.resolve = self._resolve
        self.reject = self._reject

        if init is not None:
            try:
                init(self.resolve, self.reject)
            except Exception as e:
                self.reject(e)

    def __await__(self):
        return self._future.__await__()

    def __repr__(self) -> str:
        if not self._future.done():
            state = "pending"
        elif self._future.cancelled():
            state = "cancelled"
        elif self._future.exception() is not None:
            state = "rejected"
        else:
            state = "fulfilled"
        return f"<ControllableFuture {state} created_at={self.created_at.isoformat()}>"

    @property
    def promise(self) -> asyncio.Future:
        """Get the underlying future."""
        return self._future

    @property
    def value(self) -> Optional[T]:
        """Get the fulfilled value, or None while pending or after a failure."""
        if not self._future.done() or self._future.cancelled():
            return None
        if self._future.exception() is not None:
            return None
        return self._future.result()

    def done(self) -> bool:
        """Check if the future has settled."""
        return self._future.done()

    def _resolve(self, value: T) -> None:
        if not self._future.done():
            self._future.set_result(value)

    def _reject(self, reason: BaseException) -> None:
        if self._future.done():
            return
        if not isinstance(reason, BaseException):
            raise TypeError(f"reject() expects an exception instance, got {type(reason).__name__}")
        self._future.set_exception(reason)

    def settle_from_callback(self, err: Optional[BaseException] = None, value: Optional[T] = None) -> None:
        """
        Settle from an (err, value) style completion callback.

        A truthy err rejects; anything falsy resolves with value. A falsy
        exception therefore cannot be delivered here; call reject() for that.
        """
        if err:
            self.reject(err)
        else:
            self.resolve(value)

    def _pick_scheduler(self, scheduler: Optional[Scheduler]) -> Scheduler:
        for candidate in (scheduler, self.scheduler, config.get_default_scheduler()):
            if candidate is not None:
                return candidate
        return LoopScheduler(self._future.get_loop())

    async def race_with_timeout(
        self,
        on_timeout: Callable[[], Union[U, Awaitable[U]]],
        timeout: float,
        *,
        scheduler: Optional[Scheduler] = None,
    ) -> Union[T, U]:
        """
        Race this future against a timer.

        If the future settles first its outcome is returned (or raised) and
        on_timeout is never called. Otherwise on_timeout runs exactly once and
        its result, awaited if necessary, is returned; an exception it raises
        propagates. The future itself is never cancelled.

        Args:
            on_timeout: Sync or async callable producing the fallback result
            timeout: Seconds to wait before taking the timeout branch
            scheduler: Timer source overriding the future's and the default
        """
        loop = asyncio.get_running_loop()
        outcome = loop.create_future()
        timed_out = False
        fallback: Optional[asyncio.Task] = None

        def on_settled(future: asyncio.Future) -> None:
            if timed_out:
                # Too late to matter, but still observed
                _mark_handled(future)
                return
            timer.cancel()
            _transfer_outcome(future, outcome)

        def on_fallback_done(task: asyncio.Task) -> None:
            if not task.cancelled() and task.exception() is not None:
                logger.debug("Timeout callback for %r failed: %r", self, task.exception())
            _transfer_outcome(task, outcome)

        def on_timer() -> None:
            nonlocal timed_out, fallback
            if self._future.done():
                # Settled before the deadline; on_settled delivers it
                return
            timed_out = True
            logger.debug("%r still pending after %ss, running timeout callback", self, timeout)
            fallback = loop.create_task(_run_handler(on_timeout))
            fallback.add_done_callback(on_fallback_done)

        timer = self._pick_scheduler(scheduler).call_later(timeout, on_timer)
        self._future.add_done_callback(on_settled)
        try:
            return await outcome
        finally:
            timer.cancel()
            if not timed_out:
                self._future.remove_done_callback(on_settled)
            if fallback is not None and not fallback.done():
                fallback.cancel()

    async def race_with(self, others: Iterable[Awaitable[U]] = ()) -> Union[T, U]:
        """
        Wait for the first of this future and others to settle.

        Returns the winner's value or raises its exception. Losers keep
        running and are not cancelled; their later failures are not
        reported as unhandled. Among contenders that are already
        settled, the earliest in order wins, this future first.
        """
        contenders = [self._future]
        contenders.extend(_as_future(other) for other in others)
        done, _ = await asyncio.wait(contenders, return_when=asyncio.FIRST_COMPLETED)
        winner = next(future for future in contenders if future in done)
        for loser in contenders:
            if loser is not winner:
                loser.add_done_callback(_mark_handled)
        return winner.result()

    @classmethod
    def create_from(
        cls,
        source: Awaitable[T],
        *,
        scheduler: Optional[Scheduler] = None,
        loop: Optional[asyncio.AbstractEventLoop] = None,
    ) -> 'ControllableFuture[T]':
        """
        Wrap an existing awaitable in a controllable future.

        The new future resolves or rejects with the source's outcome, and is
        cancelled if the source is. It can still be settled earlier by hand.
        """
        controllable = cls(scheduler=scheduler, loop=loop)
        source_future = _as_future(source, loop)

        def adopt(future: asyncio.Future) -> None:
            if future.cancelled():
                controllable.promise.cancel()
            elif future.exception() is not None:
                controllable.reject(future.exception())
            else:
                controllable.resolve(future.result())

        source_future.add_done_callback(adopt)
        return controllable
