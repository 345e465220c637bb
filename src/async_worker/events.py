"""
Event Bus for the Async Worker.

Multi-listener model: any number of callbacks per signal, invoked
synchronously in registration order with an EventSnapshot. An emission
is "prevented" when any listener returns exactly False; other falsy
return values (None, 0, "") do not count.

HandlerSlots layers the one-handler-per-signal style (`on_job = fn`) on
top of the bus; each slot is just one more registered listener.
"""

import logging
from typing import Any, Callable, Union

from .entities import EventSnapshot, Signal
from .errors import InvalidListenerError


logger = logging.getLogger(__name__)

Listener = Callable[[EventSnapshot], Any]


def _resolve_signal(name: Union[str, Signal]) -> Signal:
    try:
        return Signal(name)
    except ValueError:
        raise InvalidListenerError(f"Unknown signal: {name!r}", signal=str(name)) from None


class EventBus:
    """Registers listeners per signal and delivers snapshots to them."""

    def __init__(self):
        self._listeners: dict[Signal, list[Listener]] = {signal: [] for signal in Signal}

    def add_event_listener(self, name: Union[str, Signal], callback: Listener) -> None:
        """
        Register a listener.

        Raises:
            InvalidListenerError: Unknown signal name or non-callable listener
        """
        signal = _resolve_signal(name)
        if not callable(callback):
            raise InvalidListenerError(
                f"Listener for {signal.value!r} must be callable, "
                f"got {type(callback).__name__}",
                signal=signal.value,
            )
        self._listeners[signal].append(callback)

    def remove_event_listener(self, name: Union[str, Signal], callback: Listener) -> None:
        """
        Unregister the first registration of a listener.

        Removing a listener that is not registered does nothing.

        Raises:
            InvalidListenerError: Unknown signal name
        """
        signal = _resolve_signal(name)
        try:
            self._listeners[signal].remove(callback)
        except ValueError:
            pass

    def has_listeners(self, name: Union[str, Signal]) -> bool:
        return bool(self._listeners[_resolve_signal(name)])

    def listener_count(self, name: Union[str, Signal]) -> int:
        return len(self._listeners[_resolve_signal(name)])

    def emit(self, snapshot: EventSnapshot) -> bool:
        """
        Deliver a snapshot to every listener of its signal.

        All listeners run even after one has prevented. A listener that
        raises stops delivery and the exception propagates.

        Returns:
            True if any listener returned exactly False
        """
        signal = Signal(snapshot.event_name)
        prevented = False
        for listener in list(self._listeners[signal]):
            if listener(snapshot) is False:
                prevented = True
        if prevented:
            logger.debug(f"Signal {signal.value!r} prevented by a listener")
        return prevented


def _noop(event: EventSnapshot) -> None:
    pass


class HandlerSlots:
    """
    One assignable handler per signal: on_start, on_stop, on_break,
    on_job, on_tick, on_complete, on_error.

    Each slot defaults to a no-op. Assigning something that is not
    callable silently reverts the slot to the no-op.
    """

    _SLOTS = {f"on_{signal.value}": signal for signal in Signal}

    def __init__(self, bus: EventBus):
        object.__setattr__(self, "_bus", bus)
        object.__setattr__(self, "_handlers", {name: _noop for name in self._SLOTS})
        for name, signal in self._SLOTS.items():
            bus.add_event_listener(signal, self._dispatcher(name))

    def _dispatcher(self, name: str) -> Listener:
        def dispatch(event: EventSnapshot) -> Any:
            return self._handlers[name](event)

        return dispatch

    def __getattr__(self, name: str) -> Listener:
        handlers = object.__getattribute__(self, "_handlers")
        if name in handlers:
            return handlers[name]
        raise AttributeError(name)

    def __setattr__(self, name: str, value: Any) -> None:
        if name not in self._SLOTS:
            raise AttributeError(f"Unknown handler slot: {name}")
        self._handlers[name] = value if callable(value) else _noop

    def __delattr__(self, name: str) -> None:
        self.__setattr__(name, None)
