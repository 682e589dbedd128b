"""Event, binding and dispatch models."""

from datetime import UTC, datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator, model_validator

from blueprint_events.core.types import PinType, Value

SYSTEM_CATEGORY = "System"


class SystemEventType(str, Enum):
    """Kinds of system events published by the runtime."""

    INITIALIZE = "OnInitialize"
    SHUTDOWN = "OnShutdown"
    TIMER = "OnTimer"
    ERROR = "OnError"
    WEBHOOK = "OnWebhook"


def _require_identifier(v: str, field_name: str) -> str:
    v = v.strip()
    if not v:
        raise ValueError(f"{field_name} must not be empty")
    return v


def make_binding_id(event_id: str, handler_node_id: str) -> str:
    """Conventional binding ID for a handler node bound to an event."""
    return f"binding-{event_id}-{handler_node_id}"


class EventParameter(BaseModel):
    """Schema for one parameter carried by an event."""

    name: str
    pin_type: PinType
    description: str = ""
    optional: bool = False
    default: Any = None

    model_config = ConfigDict(extra="forbid", frozen=True, arbitrary_types_allowed=True)

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        return _require_identifier(v, "name")


class EventDefinition(BaseModel):
    """A named event and its ordered parameter schema.

    Attributes:
        id: Globally unique event identifier.
        name: Display name. Defaults to the ID.
        description: What the event signals.
        category: Grouping used by editors ("System", "UI", "Custom", ...).
        blueprint_id: Owning blueprint; empty for system events.
        parameters: Ordered parameter schemas.
        created_at: UTC creation time.
    """

    id: str
    name: str = ""
    description: str = ""
    category: str = "Custom"
    blueprint_id: str = ""
    parameters: list[EventParameter] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    model_config = ConfigDict(extra="forbid", frozen=True, arbitrary_types_allowed=True)

    @field_validator("id")
    @classmethod
    def validate_id(cls, v: str) -> str:
        return _require_identifier(v, "id")

    @field_validator("parameters")
    @classmethod
    def validate_unique_parameters(cls, v: list[EventParameter]) -> list[EventParameter]:
        seen: set[str] = set()
        for param in v:
            if param.name in seen:
                raise ValueError(f"duplicate parameter name: {param.name!r}")
            seen.add(param.name)
        return v

    @model_validator(mode="before")
    @classmethod
    def default_name(cls, data: Any) -> Any:
        if isinstance(data, dict) and not data.get("name"):
            data = dict(data)
            data["name"] = data.get("id", "")
        return data

    @property
    def is_system(self) -> bool:
        return not self.blueprint_id

    def get_parameter(self, name: str) -> EventParameter | None:
        for param in self.parameters:
            if param.name == name:
                return param
        return None


class EventBinding(BaseModel):
    """Declares a handler node in a blueprint as a handler for an event.

    Bindings with a higher ``priority`` run earlier. An empty ``id`` is
    replaced with ``binding-<event_id>-<handler_node_id>``.
    """

    id: str = ""
    event_id: str
    handler_node_id: str
    handler_node_type: str = ""
    blueprint_id: str
    priority: int = 0
    enabled: bool = True
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    model_config = ConfigDict(extra="forbid", frozen=True)

    @model_validator(mode="before")
    @classmethod
    def derive_id(cls, data: Any) -> Any:
        if isinstance(data, dict) and not str(data.get("id") or "").strip():
            data = dict(data)
            data["id"] = make_binding_id(
                str(data.get("event_id", "")).strip(),
                str(data.get("handler_node_id", "")).strip(),
            )
        return data

    @field_validator("id", "event_id", "handler_node_id")
    @classmethod
    def validate_identifiers(cls, v: str, info: ValidationInfo) -> str:
        return _require_identifier(v, info.field_name)


class EventDispatchRequest(BaseModel):
    """A request to raise an event with concrete parameter values."""

    event_id: str
    parameters: dict[str, Value] = Field(default_factory=dict)
    source_id: str = ""
    blueprint_id: str = ""
    execution_id: str = ""
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))

    model_config = ConfigDict(extra="forbid", frozen=True, arbitrary_types_allowed=True)


class EventHandlerContext(BaseModel):
    """Per-invocation data delivered to the engine for one handler node.

    ``parameters`` is the handler's own shallow copy of the dispatched map.
    """

    event_id: str
    parameters: dict[str, Value] = Field(default_factory=dict)
    source_id: str = ""
    blueprint_id: str = ""
    execution_id: str = ""
    handler_node_id: str = ""
    binding_id: str = ""
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))

    model_config = ConfigDict(extra="forbid", frozen=True, arbitrary_types_allowed=True)

    def get_parameter(self, name: str) -> Value | None:
        return self.parameters.get(name)
