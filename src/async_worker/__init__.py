"""
Async Worker.

Cooperative batch scheduler for single-threaded hosts: queue many small
jobs, run them a budgeted batch per tick between the host's own work.
"""

from .entities import (
    Job,
    SchedulerState,
    Signal,
    EventSnapshot,
    normalize_weight,
    normalize_priority,
)
from .errors import (
    WorkerError,
    InvalidListenerError,
    InvalidSignalError,
    InvalidJobError,
    JobExecutionError,
)
from .config import WorkerConfig, load_config
from .queue_manager import JobQueue
from .throttle import ThrottleAdvisor
from .hosts import HostAdapter, ActivityHost, ManualHost, AsyncioHost
from .ticks import TickScheduler, TickKind
from .events import EventBus, HandlerSlots
from .worker import AsyncWorker

__all__ = [
    # Entities
    "Job",
    "SchedulerState",
    "Signal",
    "EventSnapshot",
    "normalize_weight",
    "normalize_priority",
    # Errors
    "WorkerError",
    "InvalidListenerError",
    "InvalidSignalError",
    "InvalidJobError",
    "JobExecutionError",
    # Config
    "WorkerConfig",
    "load_config",
    # Queue
    "JobQueue",
    # Throttle
    "ThrottleAdvisor",
    # Hosts
    "HostAdapter",
    "ActivityHost",
    "ManualHost",
    "AsyncioHost",
    # Ticks
    "TickScheduler",
    "TickKind",
    # Events
    "EventBus",
    "HandlerSlots",
    # Worker
    "AsyncWorker",
]
