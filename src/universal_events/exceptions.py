"""Custom exceptions raised by the event hub."""

from __future__ import annotations


class EventHubError(RuntimeError):
    """Base error for all event hub related exceptions."""


class InvalidArgumentError(EventHubError, ValueError):
    """Raised when an event name or constructor argument has the wrong shape."""


class UnknownEventError(EventHubError, LookupError):
    """Raised when an allow-list is configured and the event name is not on it."""

    def __init__(self, event_name: str) -> None:
        super().__init__(f"Unknown event name: {event_name}")
        self.event_name = event_name


class ConfigurationError(EventHubError):
    """Raised when hub settings are invalid or cannot be honoured."""


class EventFailedError(EventHubError):
    """Rejection reason for a wait whose failure event carried non-exception data."""

    def __init__(self, event_name: str, data: object = None) -> None:
        super().__init__(f"Failure event raised: {event_name}")
        self.event_name = event_name
        self.data = data
