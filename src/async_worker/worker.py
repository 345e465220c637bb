"""
Async Worker - cooperative batch scheduler.

Runs a large queue of small jobs a batch per tick, interleaved with the
host's own work:
- JobQueue (ordered pending jobs)
- ThrottleAdvisor (per-tick budget)
- TickScheduler (next tick from the host)
- EventBus (listeners and prevent-default)

Usage:
    worker = AsyncWorker(host)
    for item in items:
        worker.append(process, args=(item,))
    worker.add_event_listener("complete", on_done)
    worker.start()

Lifecycle:
    IDLE -> start() -> RUNNING
    RUNNING -> tick after stop() -> IDLE (emits stop)
    RUNNING -> listener returns False -> BROKEN (emits break)
    RUNNING -> job raises -> ERROR_HALTED (emits error)
    RUNNING -> queue empty -> COMPLETED (emits complete) -> IDLE
"""

import logging
from typing import Any, Callable, Mapping, Optional, Union

from .config import WorkerConfig
from .entities import EventSnapshot, Job, SchedulerState, Signal
from .errors import InvalidJobError, JobExecutionError
from .events import EventBus, HandlerSlots, Listener
from .hosts import HostAdapter
from .queue_manager import JobQueue
from .throttle import ThrottleAdvisor
from .ticks import TickScheduler


logger = logging.getLogger(__name__)


class AsyncWorker:
    """
    Lifecycle engine of the cooperative scheduler.

    Only queued jobs carry over between runs; the shared `data` dict
    lives as long as the worker.
    """

    def __init__(self, host: HostAdapter, config: Optional[WorkerConfig] = None):
        """
        Initialize AsyncWorker.

        Args:
            host: Host adapter providing ticks and activity state
            config: Tunables (defaults to WorkerConfig())
        """
        self.host = host
        self.config = config if config is not None else WorkerConfig()

        self.queue = JobQueue()
        self.throttle = ThrottleAdvisor(self.config)
        self.ticks = TickScheduler(
            host, self._on_tick, lambda: self.config.fallback_delay_ms
        )
        self.events = EventBus()

        self._state = SchedulerState.IDLE
        self._busy = False
        self._data: dict = {}
        self._jobs_complete = 0
        self._error: Optional[JobExecutionError] = None
        self._activity_subscription: Optional[Any] = None
        self._handlers: Optional[HandlerSlots] = None
        # Bumped by clear(); a tick that sees it change abandons its batch
        self._generation = 0

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def state(self) -> SchedulerState:
        return self._state

    @property
    def busy(self) -> bool:
        return self._busy

    @property
    def data(self) -> dict:
        """Shared dict for jobs and listeners; never reset automatically."""
        return self._data

    @property
    def error(self) -> Optional[JobExecutionError]:
        """Failure that halted the last run, cleared by start() and clear()."""
        return self._error

    @property
    def jobs_complete(self) -> int:
        return self._jobs_complete

    @property
    def jobs_count(self) -> int:
        return self.queue.jobs_count

    @property
    def jobs_pending(self) -> int:
        return len(self.queue)

    @property
    def host_active(self) -> bool:
        return self.host.is_foregrounded()

    @property
    def tick_handle(self) -> Optional[Any]:
        return self.ticks.last_handle

    @property
    def jobs_per_tick(self) -> float:
        return self.config.jobs_per_tick

    @jobs_per_tick.setter
    def jobs_per_tick(self, value: Any) -> None:
        self.config.jobs_per_tick = value

    @property
    def inactive_multiplier(self) -> float:
        return self.config.inactive_multiplier

    @inactive_multiplier.setter
    def inactive_multiplier(self, value: Any) -> None:
        self.config.inactive_multiplier = value

    @property
    def work_on_inactive(self) -> bool:
        return self.config.work_on_inactive

    @work_on_inactive.setter
    def work_on_inactive(self, value: Any) -> None:
        self.config.work_on_inactive = value

    @property
    def handlers(self) -> HandlerSlots:
        """Single-handler slots (`worker.handlers.on_job = fn`)."""
        if self._handlers is None:
            self._handlers = HandlerSlots(self.events)
        return self._handlers

    # =========================================================================
    # Listeners
    # =========================================================================

    def add_event_listener(self, name: Union[str, Signal], callback: Listener) -> None:
        self.events.add_event_listener(name, callback)

    def remove_event_listener(self, name: Union[str, Signal], callback: Listener) -> None:
        self.events.remove_event_listener(name, callback)

    def _emit(self, signal: Signal) -> bool:
        snapshot = EventSnapshot(
            event_name=signal.value,
            busy=self._busy,
            data=self._data,
            tick_handle=self.ticks.last_handle,
            jobs_complete=self._jobs_complete,
            jobs_count=self.queue.jobs_count,
            error=self._error if signal == Signal.ERROR else None,
        )
        return self.events.emit(snapshot)

    # =========================================================================
    # Public Operations
    # =========================================================================

    def append(
        self,
        fn: Callable[..., Any],
        args: Optional[tuple] = None,
        kwargs: Optional[Mapping[str, Any]] = None,
        weight: Any = None,
        priority: Any = None,
    ) -> Job:
        """
        Queue a job. Legal in any state; a running worker sees it on
        its next batch selection.

        Args:
            fn: Callable to run
            args: Positional arguments for fn
            kwargs: Keyword arguments for fn
            weight: Share of the tick budget in (0, 1]; anything else counts as 1
            priority: Lower runs sooner; non-numeric counts as 0

        Returns:
            The queued Job

        Raises:
            InvalidJobError: If fn is not callable
        """
        if not callable(fn):
            raise InvalidJobError(fn)
        return self.queue.create(fn, args=args, kwargs=kwargs, weight=weight, priority=priority)

    def start(self) -> None:
        """Start processing. No-op while already busy."""
        if self._busy:
            return

        self._subscribe()
        self._busy = True
        self._error = None
        self._state = SchedulerState.RUNNING
        logger.info(f"Worker started ({len(self.queue)} jobs pending)")

        try:
            self._emit(Signal.START)
        except Exception:
            logger.error("Start listener raised; worker halted", exc_info=True)
            self._halt(SchedulerState.ERROR_HALTED)
            raise
        self.ticks.request_tick()

    def stop(self) -> None:
        """
        Request a graceful stop.

        The pending tick observes the request, emits `stop` and leaves
        the queue untouched. No-op when not busy.
        """
        if not self._busy:
            return

        self._unsubscribe()
        self._busy = False
        logger.info("Worker stop requested")

    def clear(self) -> None:
        """
        Hard reset: cancel the pending tick, wipe the queue, counters and
        last error. Emits nothing.
        """
        self._generation += 1
        self.ticks.cancel()
        self._unsubscribe()
        self._busy = False
        self._state = SchedulerState.IDLE
        self.queue.clear()
        self._jobs_complete = 0
        self._error = None
        logger.debug("Worker cleared")

    def destroy(self) -> None:
        self.stop()
        self.clear()

    # =========================================================================
    # Tick
    # =========================================================================

    def _on_tick(self) -> None:
        try:
            self._work()
        except Exception:
            logger.error("Listener raised during tick; worker halted", exc_info=True)
            self._halt(SchedulerState.ERROR_HALTED)
            raise

    def _work(self) -> None:
        if not self._busy:
            self.ticks.cancel()
            self._state = SchedulerState.IDLE
            logger.info("Worker stopped")
            self._emit(Signal.STOP)
            return

        generation = self._generation
        budget = self.throttle.budget(self.host_active)
        batch = self.queue.drain_batch(budget)
        logger.debug(f"Tick: {len(batch)} jobs, budget {budget}")

        for index, job in enumerate(batch):
            try:
                job.run()
            except Exception as e:
                if self._cleared_since(generation):
                    logger.debug(f"Job {job} raised after clear(); ignored", exc_info=e)
                    return
                self._fail(job, e, batch[index + 1:])
                return
            if self._cleared_since(generation):
                return

            self._jobs_complete += 1
            prevented = self._emit(Signal.JOB)
            if self._cleared_since(generation):
                return
            if prevented:
                lost = len(batch) - index - 1
                self._break(f"job listener ({lost} drained jobs discarded)")
                return

        prevented = self._emit(Signal.TICK)
        if self._cleared_since(generation):
            return
        if prevented:
            self._break("tick listener")
            return

        if self.queue:
            self.ticks.request_tick()
        else:
            self._complete()

    def _cleared_since(self, generation: int) -> bool:
        if self._generation != generation:
            logger.debug("Batch abandoned: worker cleared during tick")
            return True
        return False

    def _fail(self, job: Job, exc: Exception, remainder: list[Job]) -> None:
        # Failed job first, then the rest of its batch, all ahead of the queue
        self.queue.requeue_front_many([job] + remainder)

        error = JobExecutionError(job, exc)
        error.__cause__ = exc
        self._error = error
        logger.error(f"{error}; worker halted", exc_info=exc)

        self._halt(SchedulerState.ERROR_HALTED)
        self._emit(Signal.ERROR)

    def _break(self, reason: str) -> None:
        logger.info(f"Worker broken by {reason}")
        self._halt(SchedulerState.BROKEN)
        self._emit(Signal.BREAK)

    def _complete(self) -> None:
        logger.info(f"Worker complete ({self._jobs_complete} jobs)")
        self._halt(SchedulerState.COMPLETED)
        self._emit(Signal.COMPLETE)
        self.clear()

    def _halt(self, state: SchedulerState) -> None:
        self.ticks.cancel()
        self._unsubscribe()
        self._busy = False
        self._state = state

    # =========================================================================
    # Host Activity
    # =========================================================================

    def _subscribe(self) -> None:
        if self._activity_subscription is None:
            self._activity_subscription = self.host.on_activity_change(
                self._handle_activity_change
            )

    def _unsubscribe(self) -> None:
        if self._activity_subscription is not None:
            self.host.remove_activity_listener(self._activity_subscription)
            self._activity_subscription = None

    def _handle_activity_change(self) -> None:
        if not self._busy:
            return
        self.ticks.handle_activity_change()
