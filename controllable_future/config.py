"""Process-wide defaults for controllable futures."""
from typing import Optional

from .scheduler import Scheduler

# Used by race_with_timeout when neither the call nor the future names one
default_scheduler: Optional[Scheduler] = None

def set_default_scheduler(scheduler: Optional[Scheduler]) -> None:
    """Set the scheduler used when none is given explicitly."""
    global default_scheduler
    default_scheduler = scheduler

def get_default_scheduler() -> Optional[Scheduler]:
    """Get the configured default scheduler (None means the running loop)."""
    return default_scheduler

def reset_all() -> None:
    """Restore every setting to its initial value."""
    global default_scheduler
    default_scheduler = None
