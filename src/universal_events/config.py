"""Configuration models for event hubs."""
from __future__ import annotations

from typing import Annotated, Any, Dict, FrozenSet, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .exceptions import ConfigurationError

EventName = Annotated[str, Field(min_length=1)]
DispatchMode = Literal["immediate", "deferred"]


class HubSettings(BaseModel):
    """Settings that fix an :class:`~universal_events.hub.EventHub` at construction."""

    model_config = ConfigDict(frozen=True)

    allowed_events: Optional[FrozenSet[EventName]] = Field(
        default=None,
        description="Legal event names. None means every non-empty name is accepted.",
    )
    dispatch_mode: DispatchMode = Field(
        default="immediate",
        description="'immediate' runs handlers inside emit; 'deferred' queues them on an asyncio loop.",
    )

    @field_validator("allowed_events", mode="before")
    @classmethod
    def _materialize_allowed(cls, value: Any) -> Any:
        if isinstance(value, (str, bytes)):
            raise ValueError("allowed_events must be a collection of names, not a single string")
        if not value:
            return None
        if not isinstance(value, (set, frozenset, list, tuple)):
            try:
                value = list(value)
            except TypeError as exc:
                raise ValueError(f"allowed_events must be iterable, got {type(value).__name__}") from exc
        return value or None

    @field_validator("allowed_events", mode="after")
    @classmethod
    def _collapse_empty(cls, value: Optional[FrozenSet[str]]) -> Optional[FrozenSet[str]]:
        return value or None


def build_settings_from_dict(raw: Dict[str, Any]) -> HubSettings:
    """Utility helper to build :class:`HubSettings` from a plain dictionary."""

    try:
        return HubSettings.model_validate(raw)
    except ValidationError as exc:
        raise ConfigurationError(str(exc)) from exc


__all__ = [
    "DispatchMode",
    "EventName",
    "HubSettings",
    "build_settings_from_dict",
]
