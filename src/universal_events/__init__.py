"""Named-event dispatch with optional allow-lists and one-shot waits."""

from .config import HubSettings, build_settings_from_dict
from .exceptions import (
    ConfigurationError,
    EventFailedError,
    EventHubError,
    InvalidArgumentError,
    UnknownEventError,
)
from .hub import EventHub

__all__ = [
    "ConfigurationError",
    "EventFailedError",
    "EventHub",
    "EventHubError",
    "HubSettings",
    "InvalidArgumentError",
    "UnknownEventError",
    "build_settings_from_dict",
]
