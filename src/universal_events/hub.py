"""Named-event hub with optional allow-list and one-shot coordination helpers."""

from __future__ import annotations

import asyncio
import functools
import inspect
from concurrent.futures import Future
from typing import Any, Callable, Dict, FrozenSet, Iterable, List, Optional, Tuple

from pydantic import ValidationError

from .config import DispatchMode, HubSettings
from .exceptions import (
    ConfigurationError,
    EventFailedError,
    InvalidArgumentError,
    UnknownEventError,
)
from .logging import get_logger, log_event

LOGGER = get_logger("hub")

Handler = Callable[[Any], Any]
NodeCallback = Callable[[Any, Any], Any]
SettleCallback = Callable[[bool, Any], None]


def _same_handler(registered: Handler, handler: Handler) -> bool:
    if registered is handler:
        return True
    # Each attribute access creates a new bound method object.
    if inspect.ismethod(registered) and inspect.ismethod(handler):
        return registered.__self__ is handler.__self__ and registered.__func__ is handler.__func__
    return False


class EventHub:
    """Dispatch string-named events to registered handlers.

    Handlers for one emission run in registration order against a snapshot of
    the registry taken when :meth:`emit` starts, so handlers that add or remove
    listeners only affect later emissions. When ``allowed_events`` is given,
    every operation rejects names outside it with :class:`UnknownEventError`.
    """

    def __init__(
        self,
        allowed_events: Optional[Iterable[str]] = None,
        *,
        dispatch_mode: DispatchMode = "immediate",
        loop: Optional[asyncio.AbstractEventLoop] = None,
        settings: Optional[HubSettings] = None,
    ) -> None:
        if isinstance(allowed_events, (str, bytes)):
            raise InvalidArgumentError(
                "Use of a string is probably a typo, should be a set, list or other iterable of names"
            )
        if settings is None:
            try:
                settings = HubSettings(allowed_events=allowed_events, dispatch_mode=dispatch_mode)
            except ValidationError as exc:
                raise ConfigurationError(str(exc)) from exc
        elif allowed_events or dispatch_mode != "immediate":
            raise InvalidArgumentError(
                "Pass allowed_events and dispatch_mode either directly or through settings, not both"
            )

        self._settings = settings
        self._loop = loop
        self._listeners: Dict[str, List[Handler]] = {}

    @classmethod
    def from_settings(
        cls, settings: HubSettings, loop: Optional[asyncio.AbstractEventLoop] = None
    ) -> "EventHub":
        return cls(settings=settings, loop=loop)

    @property
    def allowed_events(self) -> Optional[FrozenSet[str]]:
        return self._settings.allowed_events

    @property
    def dispatch_mode(self) -> DispatchMode:
        return self._settings.dispatch_mode

    def __repr__(self) -> str:
        return (
            f"<EventHub mode={self.dispatch_mode} events={len(self._listeners)} "
            f"restricted={self.allowed_events is not None}>"
        )

    def _check_event_name(self, event_name: Any) -> str:
        if not event_name:
            raise InvalidArgumentError("Event name is required")
        if not isinstance(event_name, str):
            raise InvalidArgumentError(f"Event name must be a string, got {type(event_name).__name__}")
        allowed = self._settings.allowed_events
        if allowed is not None and event_name not in allowed:
            raise UnknownEventError(event_name)
        return event_name

    @staticmethod
    def _check_handler(event_name: str, handler: Any) -> None:
        if not callable(handler):
            raise InvalidArgumentError(f"Handler for {event_name!r} must be callable")

    # Registration -----------------------------------------------------------------

    def add_listener(self, event_name: str, handler: Handler) -> "EventHub":
        """Append ``handler`` to the listeners of ``event_name``."""

        self._check_event_name(event_name)
        self._check_handler(event_name, handler)
        self._listeners.setdefault(event_name, []).append(handler)
        LOGGER.debug("listener added event=%s", event_name, extra={"handlers": len(self._listeners[event_name])})
        return self

    def on(self, event_name: str, handler: Handler) -> "EventHub":
        return self.add_listener(event_name, handler)

    def remove_listener(self, event_name: str, handler: Handler) -> "EventHub":
        """Remove the first registration of ``handler``; unknown handlers are ignored."""

        self._check_event_name(event_name)
        handlers = self._listeners.get(event_name)
        if not handlers:
            return self
        for index, registered in enumerate(handlers):
            if _same_handler(registered, handler):
                del handlers[index]
                LOGGER.debug("listener removed event=%s", event_name, extra={"handlers": len(handlers)})
                break
        if not handlers:
            del self._listeners[event_name]
        return self

    def off(self, event_name: str, handler: Handler) -> "EventHub":
        return self.remove_listener(event_name, handler)

    def once(self, event_name: str, handler: Handler) -> "EventHub":
        """Register ``handler`` for the next emission of ``event_name`` only."""

        self._check_event_name(event_name)
        self._check_handler(event_name, handler)
        fired = False

        @functools.wraps(handler)
        def _once(data: Any = None) -> Any:
            nonlocal fired
            if fired:
                return None
            fired = True
            self.remove_listener(event_name, _once)
            return handler(data)

        return self.add_listener(event_name, _once)

    # Introspection ----------------------------------------------------------------

    def listeners(self, event_name: str) -> Tuple[Handler, ...]:
        self._check_event_name(event_name)
        return tuple(self._listeners.get(event_name, ()))

    def listener_count(self, event_name: str) -> int:
        return len(self.listeners(event_name))

    def event_names(self) -> Tuple[str, ...]:
        return tuple(self._listeners)

    # Dispatch ---------------------------------------------------------------------

    def emit(self, event_name: str, data: Any = None) -> bool:
        """Invoke every handler registered for ``event_name`` with ``data``.

        Returns ``False`` when nothing is listening. Exceptions raised by a
        handler propagate to the caller and the rest of the snapshot is skipped.
        In deferred mode the handlers are queued on the event loop instead and
        their exceptions go to the loop's exception handler.
        """

        self._check_event_name(event_name)
        snapshot = tuple(self._listeners.get(event_name, ()))
        if not snapshot:
            return False
        LOGGER.debug(
            "emit event=%s",
            event_name,
            extra={"handlers": len(snapshot), "mode": self.dispatch_mode},
        )
        if self.dispatch_mode == "deferred":
            loop = self._resolve_loop()
            for handler in snapshot:
                loop.call_soon(handler, data)
            return True
        for handler in snapshot:
            handler(data)
        return True

    def raise_event(self, event_name: str, data: Any = None) -> bool:
        return self.emit(event_name, data)

    def _resolve_loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is not None:
            return self._loop
        try:
            return asyncio.get_running_loop()
        except RuntimeError as exc:
            raise ConfigurationError("Deferred dispatch requires an event loop") from exc

    # One-shot coordination --------------------------------------------------------

    def _race(self, success_event: str, failure_event: str, on_settle: SettleCallback) -> Callable[[], None]:
        """Settle ``on_settle`` once with whichever of the two events fires first.

        Returns a callable that detaches both listeners without settling.
        """

        self._check_event_name(success_event)
        self._check_event_name(failure_event)
        if success_event == failure_event:
            raise InvalidArgumentError(f"Identical event name for success and failure: {failure_event}")

        settled = False

        def _detach() -> None:
            nonlocal settled
            settled = True
            self.remove_listener(success_event, _on_success)
            self.remove_listener(failure_event, _on_failure)

        def _settle(succeeded: bool, data: Any) -> None:
            if settled:
                return
            _detach()
            log_event(
                LOGGER,
                "race:settled",
                {"success_event": success_event, "failure_event": failure_event, "succeeded": succeeded},
            )
            on_settle(succeeded, data)

        def _on_success(data: Any = None) -> None:
            _settle(True, data)

        def _on_failure(data: Any = None) -> None:
            _settle(False, data)

        self.add_listener(success_event, _on_success)
        self.add_listener(failure_event, _on_failure)
        return _detach

    def wait_for(self, success_event: str, failure_event: str) -> "Future[Any]":
        """Return a future resolved by ``success_event`` or rejected by ``failure_event``.

        Failure data that is an exception becomes the future's exception as-is;
        anything else is wrapped in :class:`EventFailedError`. Cancelling the
        future detaches both listeners.
        """

        future: "Future[Any]" = Future()

        def _resolve(succeeded: bool, data: Any) -> None:
            if future.done():
                return
            if succeeded:
                future.set_result(data)
            elif isinstance(data, BaseException):
                future.set_exception(data)
            else:
                future.set_exception(EventFailedError(failure_event, data))

        detach = self._race(success_event, failure_event, _resolve)

        def _on_done(done: "Future[Any]") -> None:
            if done.cancelled():
                detach()

        future.add_done_callback(_on_done)
        return future

    async def wait_for_async(
        self, success_event: str, failure_event: str, timeout: Optional[float] = None
    ) -> Any:
        """Awaitable form of :meth:`wait_for` for asyncio callers."""

        future = asyncio.wrap_future(self.wait_for(success_event, failure_event))
        if timeout is None:
            return await future
        return await asyncio.wait_for(future, timeout)

    def cb_once(self, success_event: str, failure_event: str, callback: NodeCallback) -> "EventHub":
        """Call ``callback(None, data)`` or ``callback(error, None)`` exactly once."""

        self._check_handler(success_event, callback)

        def _deliver(succeeded: bool, data: Any) -> None:
            if succeeded:
                callback(None, data)
            else:
                callback(data, None)

        self._race(success_event, failure_event, _deliver)
        return self


__all__ = ["EventHub", "Handler", "NodeCallback"]
