"""Controllable futures: asyncio futures settled from the outside, with timeout and peer racing."""

from .config import (
    get_default_scheduler,
    reset_all,
    set_default_scheduler,
)
from .promise import (
    ControllableFuture,
    UnexpectedSettlementError,
    reject_unexpected,
    resolve_unexpected,
)
from .scheduler import LoopScheduler, Scheduler, TimerHandle

__all__ = [
    # Futures
    'ControllableFuture',
    'UnexpectedSettlementError',
    'resolve_unexpected',
    'reject_unexpected',

    # Timers
    'Scheduler',
    'TimerHandle',
    'LoopScheduler',

    # Configuration
    'set_default_scheduler',
    'get_default_scheduler',
    'reset_all',
]
