"""
Worker Test Fixtures.

Base fixtures:
  - ManualHost in the foreground with frame callbacks
  - Worker factory bound to that host
  - Signal recorder

Per-test fixtures:
  - Pre-populated workers for lifecycle tests
"""

from typing import Callable, Iterable, Optional

import pytest

from async_worker import (
    AsyncWorker,
    EventSnapshot,
    ManualHost,
    Signal,
    WorkerConfig,
)


class SignalRecorder:
    """
    Records every emission of the signals it is attached to.

    Listeners return None, so recording never prevents anything.
    """

    def __init__(self):
        self.events: list[EventSnapshot] = []

    def attach(self, worker: AsyncWorker, signals: Optional[Iterable[Signal]] = None) -> "SignalRecorder":
        for signal in signals or Signal:
            worker.add_event_listener(signal, self.events.append)
        return self

    @property
    def names(self) -> list[str]:
        return [event.event_name for event in self.events]

    def of(self, name: str) -> list[EventSnapshot]:
        return [event for event in self.events if event.event_name == name]

    def count(self, name: str) -> int:
        return len(self.of(name))


class CallLog:
    """Job factory whose jobs append their label to a shared list."""

    def __init__(self):
        self.calls: list = []

    def job(self, label) -> Callable[[], None]:
        def run() -> None:
            self.calls.append(label)

        run.__qualname__ = f"job_{label}"
        return run


@pytest.fixture
def host() -> ManualHost:
    """Foregrounded host with frame-aligned callbacks."""
    return ManualHost()


@pytest.fixture
def make_worker(host: ManualHost) -> Callable[..., AsyncWorker]:
    """
    Factory fixture for workers on the shared host.

    Keyword arguments become WorkerConfig fields.
    """

    def _create(**config) -> AsyncWorker:
        return AsyncWorker(host, WorkerConfig(**config))

    return _create


@pytest.fixture
def worker(make_worker) -> AsyncWorker:
    return make_worker()


@pytest.fixture
def recorder() -> SignalRecorder:
    return SignalRecorder()


@pytest.fixture
def call_log() -> CallLog:
    return CallLog()


# =============================================================================
# Assertion Helpers
# =============================================================================


def assert_counters_balanced(worker: AsyncWorker):
    """Every appended job is either complete or still pending."""
    assert worker.jobs_complete + worker.jobs_pending == worker.jobs_count, (
        f"complete={worker.jobs_complete} pending={worker.jobs_pending} "
        f"count={worker.jobs_count}"
    )


def assert_sorted(jobs):
    """Jobs are in non-decreasing (priority, insertion_order)."""
    keys = [job.sort_key for job in jobs]
    assert keys == sorted(keys), f"Queue out of order: {keys}"
