"""
Host adapters for the Async Worker.

The worker never touches a real event loop directly. It talks to a
HostAdapter that offers:
- a frame-aligned callback (preferred while the host is foregrounded)
- a fixed-delay fallback timer
- the current foreground/background state and change notifications

Two adapters ship here:
- ManualHost: deterministic, driven by hand (tests, simulations, game loops)
- AsyncioHost: backed by an asyncio event loop
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, Optional


logger = logging.getLogger(__name__)


class HostAdapter(ABC):
    """Abstract host collaborator."""

    @property
    def supports_frame_aligned(self) -> bool:
        """Whether schedule_frame_aligned() is available."""
        return True

    @abstractmethod
    def is_foregrounded(self) -> bool:
        ...

    @abstractmethod
    def schedule_frame_aligned(self, fn: Callable[[], None]) -> Any:
        """Run fn on the next frame. Returns a cancellable handle."""
        ...

    @abstractmethod
    def cancel_frame_aligned(self, handle: Any) -> None:
        ...

    @abstractmethod
    def schedule_delayed(self, fn: Callable[[], None], delay_ms: float) -> Any:
        """Run fn after delay_ms. Returns a cancellable handle."""
        ...

    @abstractmethod
    def cancel_delayed(self, handle: Any) -> None:
        ...

    @abstractmethod
    def on_activity_change(self, fn: Callable[[], None]) -> Any:
        """Subscribe to foreground/background changes. Returns a subscription."""
        ...

    @abstractmethod
    def remove_activity_listener(self, subscription: Any) -> None:
        ...


class ActivityHost(HostAdapter):
    """
    Host whose foreground state is flipped by the embedder.

    Keeps the activity listener registry shared by the concrete adapters.
    """

    def __init__(self, foregrounded: bool = True):
        self._foregrounded = foregrounded
        self._activity_listeners: dict[int, Callable[[], None]] = {}
        self._next_subscription = 1

    def is_foregrounded(self) -> bool:
        return self._foregrounded

    def set_foregrounded(self, foregrounded: bool) -> None:
        """Change the foreground state and notify listeners on a real change."""
        foregrounded = bool(foregrounded)
        if foregrounded == self._foregrounded:
            return
        self._foregrounded = foregrounded
        logger.debug(f"Host {'foregrounded' if foregrounded else 'backgrounded'}")
        for listener in list(self._activity_listeners.values()):
            listener()

    def on_activity_change(self, fn: Callable[[], None]) -> int:
        subscription = self._next_subscription
        self._next_subscription += 1
        self._activity_listeners[subscription] = fn
        return subscription

    def remove_activity_listener(self, subscription: Any) -> None:
        self._activity_listeners.pop(subscription, None)

    @property
    def activity_listener_count(self) -> int:
        return len(self._activity_listeners)


class ManualHost(ActivityHost):
    """
    Deterministic host driven by explicit calls.

    - run_frame(): fire every frame callback armed before the call
    - advance(ms): move the clock and fire due timers in due order
    - run_until_idle(): alternate both until nothing is armed

    Handles are positive ints shared across frames and timers.
    """

    def __init__(self, foregrounded: bool = True, frame_aligned: bool = True):
        super().__init__(foregrounded=foregrounded)
        self._frame_aligned = frame_aligned
        self._frames: dict[int, Callable[[], None]] = {}
        self._timers: dict[int, tuple[float, Callable[[], None]]] = {}
        self._next_handle = 1
        self.now_ms = 0.0
        self.frames_run = 0
        self.timers_fired = 0

    @property
    def supports_frame_aligned(self) -> bool:
        return self._frame_aligned

    def _handle(self) -> int:
        handle = self._next_handle
        self._next_handle += 1
        return handle

    # =========================================================================
    # Host interface
    # =========================================================================

    def schedule_frame_aligned(self, fn: Callable[[], None]) -> int:
        if not self._frame_aligned:
            raise RuntimeError("Frame-aligned callbacks are not supported by this host")
        handle = self._handle()
        self._frames[handle] = fn
        return handle

    def cancel_frame_aligned(self, handle: Any) -> None:
        self._frames.pop(handle, None)

    def schedule_delayed(self, fn: Callable[[], None], delay_ms: float) -> int:
        handle = self._handle()
        self._timers[handle] = (self.now_ms + max(delay_ms, 0.0), fn)
        return handle

    def cancel_delayed(self, handle: Any) -> None:
        self._timers.pop(handle, None)

    # =========================================================================
    # Driving
    # =========================================================================

    @property
    def pending_frames(self) -> int:
        return len(self._frames)

    @property
    def pending_timers(self) -> int:
        return len(self._timers)

    def is_idle(self) -> bool:
        return not self._frames and not self._timers

    def run_frame(self) -> int:
        """
        Fire the frame callbacks armed so far.

        Callbacks armed while this frame runs wait for the next frame.

        Returns:
            Number of callbacks fired
        """
        due = list(self._frames.items())
        self._frames.clear()
        for _handle, fn in due:
            fn()
        self.frames_run += 1
        return len(due)

    def advance(self, ms: float) -> int:
        """
        Move the clock forward and fire timers that come due.

        Returns:
            Number of timers fired
        """
        target = self.now_ms + ms
        fired = 0
        while True:
            due = [
                (when, handle)
                for handle, (when, _fn) in self._timers.items()
                if when <= target
            ]
            if not due:
                break
            when, handle = min(due)
            _when, fn = self._timers.pop(handle)
            self.now_ms = when
            fn()
            fired += 1
        self.now_ms = target
        self.timers_fired += fired
        return fired

    def run_until_idle(self, max_steps: int = 10_000) -> int:
        """
        Drive frames and timers until nothing is armed.

        Frames run first; when only timers remain the clock jumps to the
        earliest one.

        Returns:
            Number of steps taken

        Raises:
            RuntimeError: If still busy after max_steps
        """
        steps = 0
        while not self.is_idle():
            if steps >= max_steps:
                raise RuntimeError(f"Host still busy after {max_steps} steps")
            if self._frames:
                self.run_frame()
            else:
                earliest = min(when for when, _fn in self._timers.values())
                self.advance(earliest - self.now_ms)
            steps += 1
        return steps


class AsyncioHost(ActivityHost):
    """
    Host backed by an asyncio event loop.

    Frame-aligned callbacks map to call_soon (or call_later when a frame
    interval is set), fallback timers to call_later. asyncio has no notion
    of visibility, so the embedder reports it with set_foregrounded().
    """

    def __init__(
        self,
        loop: Optional[asyncio.AbstractEventLoop] = None,
        foregrounded: bool = True,
        frame_interval_ms: float = 0.0,
    ):
        super().__init__(foregrounded=foregrounded)
        self._loop = loop
        self.frame_interval_ms = frame_interval_ms

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def schedule_frame_aligned(self, fn: Callable[[], None]) -> asyncio.Handle:
        if self.frame_interval_ms > 0:
            return self.loop.call_later(self.frame_interval_ms / 1000.0, fn)
        return self.loop.call_soon(fn)

    def cancel_frame_aligned(self, handle: Any) -> None:
        handle.cancel()

    def schedule_delayed(self, fn: Callable[[], None], delay_ms: float) -> asyncio.TimerHandle:
        return self.loop.call_later(max(delay_ms, 0.0) / 1000.0, fn)

    def cancel_delayed(self, handle: Any) -> None:
        handle.cancel()
