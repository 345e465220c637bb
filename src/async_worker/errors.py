"""
Async worker exceptions.

Misuse that is not destructive (double start, stop while idle, removing
a listener that was never registered) is a silent no-op and has no
exception type here.
"""

from typing import Any, Optional


class WorkerError(Exception):
    """Base exception for all worker errors."""
    pass


class InvalidListenerError(WorkerError):
    """
    Raised when a listener cannot be registered.

    Examples:
    - Unknown signal name
    - Non-callable listener
    """

    def __init__(self, message: str, signal: Optional[str] = None):
        self.signal = signal
        super().__init__(message)


# Name used for the unknown-signal case
InvalidSignalError = InvalidListenerError


class InvalidJobError(WorkerError):
    """Raised when appending something that cannot be called."""

    def __init__(self, value: Any):
        self.value = value
        super().__init__(f"Job must be callable, got {type(value).__name__}")


class JobExecutionError(WorkerError):
    """
    A job raised while executing.

    Never raised out of a tick: it is recorded on the worker's `error`
    property and delivered with the `error` signal. The original
    exception is available as `original` and `__cause__`.
    """

    def __init__(self, job: Any, original: BaseException):
        self.job = job
        self.original = original
        name = getattr(job.fn, "__qualname__", None) or repr(job.fn)
        super().__init__(f"Job {name} failed: {original!r}")
