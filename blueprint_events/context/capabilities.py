"""Capability interfaces and the unwrap walk used to find them."""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, TypeVar

from blueprint_events.context.base import ContextDecorator, ExecutionContext
from blueprint_events.core.types import PinType, Value

if TYPE_CHECKING:
    from blueprint_events.bperrors import BlueprintError, ErrorCode, ErrorType
    from blueprint_events.core.errors import EventError
    from blueprint_events.core.event import EventHandlerContext
    from blueprint_events.core.manager import EventManager

MAX_UNWRAP_DEPTH = 10

C = TypeVar("C")


class ErrorCapability(ABC):
    """Structured error reporting and recovery for a node."""

    @abstractmethod
    def report_error(
        self,
        error_type: "ErrorType",
        code: "ErrorCode",
        message: str,
        original: BaseException | None = None,
    ) -> "BlueprintError": ...

    @abstractmethod
    def attempt_recovery(self, err: "BlueprintError") -> tuple[bool, dict[str, Any] | None]: ...

    @abstractmethod
    def get_error_summary(self) -> dict[str, Any]: ...

    @abstractmethod
    def get_default_value(self, pin_type: PinType) -> Value | None: ...


class EventCapability(ABC):
    """Access to the event manager and, for handlers, the triggering event."""

    @property
    @abstractmethod
    def event_manager(self) -> "EventManager": ...

    @abstractmethod
    def dispatch(self, event_id: str, params: dict[str, Value]) -> list["EventError"]: ...

    @abstractmethod
    def is_event_handler_active(self) -> bool: ...

    @abstractmethod
    def get_event_handler_context(self) -> "EventHandlerContext | None": ...

    @abstractmethod
    def get_event_id(self) -> str: ...

    @abstractmethod
    def get_event_source_id(self) -> str: ...

    @abstractmethod
    def get_event_parameters(self) -> dict[str, Value]: ...

    @abstractmethod
    def get_event_parameter(self, name: str) -> Value | None: ...


class ActorCapability(ABC):
    """Input-pin activation tracking for nodes running concurrently."""

    @abstractmethod
    def set_input_pin_active(self, pin_id: str) -> None: ...


class FunctionCapability(ABC):
    """Value store scoped to one function-subgraph invocation."""

    @property
    @abstractmethod
    def function_id(self) -> str: ...

    @abstractmethod
    def store_internal_output(self, node_id: str, pin_id: str, value: Value) -> None: ...

    @abstractmethod
    def get_internal_output(self, node_id: str, pin_id: str) -> Value | None: ...

    @abstractmethod
    def record_activated_flow(self, pin_id: str) -> None: ...

    @abstractmethod
    def was_flow_activated(self, pin_id: str) -> bool: ...


class LoopCapability(ABC):
    """Iteration state and completion signals for loop nodes."""

    @abstractmethod
    def signal_iteration_complete(self) -> None: ...

    @abstractmethod
    def wait_body_completed(self, timeout: float | None = None) -> bool: ...

    @abstractmethod
    def wait_execution_done(self, timeout: float | None = None) -> bool: ...


def find_capability(ctx: ExecutionContext, capability: type[C]) -> C | None:
    """Return the outermost layer of ``ctx`` implementing ``capability``.

    Walks inward through at most ``MAX_UNWRAP_DEPTH`` layers and returns
    None when no layer provides the capability.
    """
    current: ExecutionContext | None = ctx
    for _ in range(MAX_UNWRAP_DEPTH):
        if current is None:
            return None
        if isinstance(current, capability):
            return current
        if not isinstance(current, ContextDecorator):
            return None
        current = current.unwrap()
    return None
