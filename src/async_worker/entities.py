"""
Async Worker Domain Entities.

- Job: Single callable queued for cooperative execution
- SchedulerState: Lifecycle state of a worker
- Signal: Event names listeners can subscribe to
- EventSnapshot: Immutable view of the worker handed to listeners

Weight and priority normalization lives here so that the queue, the
worker and the configuration all clamp values the same way.
"""

import math
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Callable, Mapping, Optional


DEFAULT_WEIGHT = 1.0
DEFAULT_PRIORITY = 0


class SchedulerState(str, Enum):
    """
    Worker lifecycle states.

    - IDLE: Not running (initial state, and after stop/complete/clear)
    - RUNNING: Ticks are being requested and batches executed
    - BROKEN: A listener aborted the run
    - ERROR_HALTED: A job raised; the run halted until restarted
    - COMPLETED: The queue drained (transient, settles in IDLE)
    """

    IDLE = "IDLE"
    RUNNING = "RUNNING"
    BROKEN = "BROKEN"
    ERROR_HALTED = "ERROR_HALTED"
    COMPLETED = "COMPLETED"

    def is_terminal(self) -> bool:
        """Check if the state ends the current run."""
        return self in (
            SchedulerState.BROKEN,
            SchedulerState.ERROR_HALTED,
            SchedulerState.COMPLETED,
        )


class Signal(str, Enum):
    """Event names emitted by the worker."""

    START = "start"
    STOP = "stop"
    BREAK = "break"
    JOB = "job"
    TICK = "tick"
    COMPLETE = "complete"
    ERROR = "error"


def normalize_weight(value: Any) -> float:
    """
    Clamp a job weight into (0, 1].

    Missing, non-numeric, non-finite and out-of-range values count as a
    whole unit of budget.
    """
    if value is None or isinstance(value, bool):
        return DEFAULT_WEIGHT
    try:
        weight = float(value)
    except (TypeError, ValueError):
        return DEFAULT_WEIGHT
    if not math.isfinite(weight) or weight <= 0 or weight > 1:
        return DEFAULT_WEIGHT
    return weight


def normalize_priority(value: Any) -> int:
    """Coerce a priority to int; anything non-numeric becomes 0."""
    if value is None or isinstance(value, bool):
        return DEFAULT_PRIORITY
    if isinstance(value, int):
        return value
    try:
        number = float(value)
    except (TypeError, ValueError):
        return DEFAULT_PRIORITY
    if not math.isfinite(number):
        return DEFAULT_PRIORITY
    return int(number)


@dataclass(frozen=True, eq=False)
class Job:
    """
    Single unit of deferred work.

    Immutable once created. Ordering in the queue is by
    (priority ASC, insertion_order ASC). Jobs compare by identity.
    """

    fn: Callable[..., Any]
    args: tuple = ()
    kwargs: Mapping[str, Any] = field(default_factory=dict)
    weight: float = DEFAULT_WEIGHT
    priority: int = DEFAULT_PRIORITY
    insertion_order: int = 0

    @classmethod
    def create(
        cls,
        fn: Callable[..., Any],
        args: Optional[tuple] = None,
        kwargs: Optional[Mapping[str, Any]] = None,
        weight: Any = None,
        priority: Any = None,
        insertion_order: int = 0,
    ) -> "Job":
        """Create a Job with normalized weight and priority."""
        return cls(
            fn=fn,
            args=tuple(args or ()),
            kwargs=MappingProxyType(dict(kwargs or {})),
            weight=normalize_weight(weight),
            priority=normalize_priority(priority),
            insertion_order=insertion_order,
        )

    @property
    def sort_key(self) -> tuple[int, int]:
        return (self.priority, self.insertion_order)

    def run(self) -> Any:
        """Invoke the callable with its stored arguments."""
        return self.fn(*self.args, **self.kwargs)


@dataclass(frozen=True)
class EventSnapshot:
    """
    Immutable view of the worker at the moment of an emission.

    `data` is the worker's shared dict: listeners may read and write it,
    but nothing else on the snapshot reaches back into the worker.
    """

    event_name: str
    busy: bool
    data: dict
    tick_handle: Any
    jobs_complete: int
    jobs_count: int
    error: Optional[BaseException] = None
