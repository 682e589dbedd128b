"""Node execution contexts and their capability layers.

Layers, innermost first:
    DefaultExecutionContext: Identity, inputs, outputs, flows, variables, debug data.
    ErrorAwareContext: Structured error reporting and default-value recovery.
    ActorExecutionContext: Locked mutable state and input-pin activation.
    EventAwareContext: Event dispatch and handler-event access.
    FunctionExecutionContext: Per-invocation internal value store.
    LoopContext: Iteration state and completion signals.

Use ``find_capability(ctx, EventCapability)`` and friends to reach a layer
instead of checking the outer context's type.
"""

from blueprint_events.context.actor import ActorExecutionContext
from blueprint_events.context.base import (
    ContextDecorator,
    DefaultExecutionContext,
    ExecutionContext,
    ExecutionHooks,
)
from blueprint_events.context.builder import ContextBuilder
from blueprint_events.context.capabilities import (
    MAX_UNWRAP_DEPTH,
    ActorCapability,
    ErrorCapability,
    EventCapability,
    FunctionCapability,
    LoopCapability,
    find_capability,
)
from blueprint_events.context.error_aware import ErrorAwareContext
from blueprint_events.context.event_aware import EventAwareContext
from blueprint_events.context.function import FunctionExecutionContext
from blueprint_events.context.loop import LoopContext

__all__ = [
    "ExecutionContext",
    "DefaultExecutionContext",
    "ExecutionHooks",
    "ContextDecorator",
    "ContextBuilder",
    "ErrorAwareContext",
    "EventAwareContext",
    "ActorExecutionContext",
    "FunctionExecutionContext",
    "LoopContext",
    "ErrorCapability",
    "EventCapability",
    "ActorCapability",
    "FunctionCapability",
    "LoopCapability",
    "find_capability",
    "MAX_UNWRAP_DEPTH",
]
