"""Core components of the blueprint event subsystem.

Types:
    PinType, PinTypes, Value, Pin, DebugInfo: Typed values flowing between nodes.
    EventDefinition, EventParameter: Event schemas.
    EventBinding: A handler node bound to an event at a priority.
    EventDispatchRequest, EventHandlerContext: Dispatch input and per-handler delivery.
    EventManager: Registry, binding table and dispatcher.

Errors:
    EventError and its subclasses, DuplicateBindingWarning.

System events:
    SystemEventType and the stable ``system.*`` IDs.
"""

from blueprint_events.core.errors import (
    BindingIDConflictError,
    DuplicateBindingWarning,
    EventAlreadyExistsError,
    EventError,
    EventNotFoundError,
    HandlerInvocationFailedError,
    HandlerRegistrationFailedError,
    ParameterTypeMismatchError,
    RequiredParameterMissingError,
)
from blueprint_events.core.event import (
    EventBinding,
    EventDefinition,
    EventDispatchRequest,
    EventHandlerContext,
    EventParameter,
    SystemEventType,
    make_binding_id,
)
from blueprint_events.core.manager import EventListener, EventManager, validate_parameters
from blueprint_events.core.system_events import (
    SYSTEM_ERROR,
    SYSTEM_INITIALIZE,
    SYSTEM_SHUTDOWN,
    SYSTEM_TIMER,
    SYSTEM_WEBHOOK,
)
from blueprint_events.core.types import (
    DebugInfo,
    Pin,
    PinType,
    PinTypes,
    Value,
    ValueConversionError,
    get_pin_type,
)

__all__ = [
    "PinType",
    "PinTypes",
    "Value",
    "ValueConversionError",
    "Pin",
    "DebugInfo",
    "get_pin_type",
    "EventParameter",
    "EventDefinition",
    "EventBinding",
    "EventDispatchRequest",
    "EventHandlerContext",
    "SystemEventType",
    "make_binding_id",
    "EventManager",
    "EventListener",
    "validate_parameters",
    "EventError",
    "BindingIDConflictError",
    "EventAlreadyExistsError",
    "EventNotFoundError",
    "RequiredParameterMissingError",
    "ParameterTypeMismatchError",
    "HandlerRegistrationFailedError",
    "HandlerInvocationFailedError",
    "DuplicateBindingWarning",
    "SYSTEM_INITIALIZE",
    "SYSTEM_SHUTDOWN",
    "SYSTEM_TIMER",
    "SYSTEM_ERROR",
    "SYSTEM_WEBHOOK",
]
