"""Blueprint Events - event registry, binding and dispatch for visual-scripting blueprints."""

from blueprint_events.bperrors import (
    BlueprintError,
    ErrorCode,
    ErrorManager,
    ErrorSeverity,
    ErrorType,
    RecoveryManager,
    RecoveryStrategy,
)
from blueprint_events.context import ContextBuilder, ExecutionContext, find_capability
from blueprint_events.controllers import InlineEngineController, ThreadedEngineController
from blueprint_events.core import (
    EventBinding,
    EventDefinition,
    EventDispatchRequest,
    EventError,
    EventHandlerContext,
    EventManager,
    EventParameter,
    PinType,
    PinTypes,
    SystemEventType,
    Value,
)
from blueprint_events.nodes import ClearBindingsNode, EventBindNode, EventDispatcherNode, Node

__version__ = "0.1.0"

__all__ = [
    # Core
    "PinType",
    "PinTypes",
    "Value",
    "EventParameter",
    "EventDefinition",
    "EventBinding",
    "EventDispatchRequest",
    "EventHandlerContext",
    "EventManager",
    "SystemEventType",
    "EventError",
    # Execution contexts
    "ExecutionContext",
    "ContextBuilder",
    "find_capability",
    # Structured errors
    "BlueprintError",
    "ErrorType",
    "ErrorCode",
    "ErrorSeverity",
    "RecoveryStrategy",
    "ErrorManager",
    "RecoveryManager",
    # Nodes
    "Node",
    "EventDispatcherNode",
    "EventBindNode",
    "ClearBindingsNode",
    # Controllers
    "InlineEngineController",
    "ThreadedEngineController",
    # Meta
    "__version__",
]
