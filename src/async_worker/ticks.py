"""
Tick Scheduler.

Requests the next invocation of the worker's tick routine from the host:
- frame-aligned callback while the host is foregrounded
- fixed-delay fallback timer otherwise (frame callbacks stall in the
  background, and some hosts have none at all)

At most one tick is outstanding. Arming always cancels the previous
handle first, so a worker can never be ticked twice for one request.
"""

import logging
from enum import Enum
from typing import Any, Callable, Optional

from .config import DEFAULT_FALLBACK_DELAY_MS
from .hosts import HostAdapter


logger = logging.getLogger(__name__)


class TickKind(str, Enum):
    """Which host primitive the outstanding tick is armed on."""

    FRAME = "FRAME"
    DELAYED = "DELAYED"


class TickScheduler:
    """Tracks the single outstanding tick handle for one worker."""

    def __init__(
        self,
        host: HostAdapter,
        callback: Callable[[], None],
        fallback_delay_ms: Callable[[], float] = lambda: DEFAULT_FALLBACK_DELAY_MS,
    ):
        """
        Args:
            host: Host that owns the timers
            callback: Tick routine to invoke
            fallback_delay_ms: Returns the current fallback delay
        """
        self.host = host
        self.callback = callback
        self._fallback_delay_ms = fallback_delay_ms
        self._handle: Optional[Any] = None
        self._kind: Optional[TickKind] = None
        self._last_handle: Optional[Any] = None

    @property
    def handle(self) -> Optional[Any]:
        """Outstanding host handle, or None when nothing is armed."""
        return self._handle

    @property
    def last_handle(self) -> Optional[Any]:
        """Handle of the tick currently running or armed, None after cancel."""
        return self._last_handle

    @property
    def kind(self) -> Optional[TickKind]:
        return self._kind

    @property
    def armed(self) -> bool:
        return self._kind is not None

    def preferred_kind(self) -> TickKind:
        if self.host.supports_frame_aligned and self.host.is_foregrounded():
            return TickKind.FRAME
        return TickKind.DELAYED

    def request_tick(self) -> Any:
        """
        Arm the next tick on the preferred primitive.

        Returns:
            The new host handle
        """
        self.cancel()
        kind = self.preferred_kind()
        if kind == TickKind.FRAME:
            self._handle = self.host.schedule_frame_aligned(self._fire)
        else:
            self._handle = self.host.schedule_delayed(
                self._fire, self._fallback_delay_ms()
            )
        self._kind = kind
        self._last_handle = self._handle
        logger.debug(f"Tick armed ({kind.value}, handle={self._handle})")
        return self._handle

    def cancel(self) -> None:
        """Cancel the outstanding tick, if any."""
        if self._kind == TickKind.FRAME:
            self.host.cancel_frame_aligned(self._handle)
        elif self._kind == TickKind.DELAYED:
            self.host.cancel_delayed(self._handle)
        self._handle = None
        self._kind = None
        self._last_handle = None

    def handle_activity_change(self) -> bool:
        """
        Re-arm a stale tick after the host changed activity.

        A tick waiting on the slow fallback timer moves to a frame
        callback once the host is foregrounded again; a frame callback
        that would stall in the background moves to the fallback timer.

        Returns:
            True if the tick was re-armed
        """
        if not self.armed or self._kind == self.preferred_kind():
            return False
        logger.debug(f"Re-arming stale {self._kind.value} tick")
        self.request_tick()
        return True

    def _fire(self) -> None:
        # The handle is spent once the host calls back
        self._handle = None
        self._kind = None
        self.callback()
