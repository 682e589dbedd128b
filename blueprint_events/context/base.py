"""Execution context seen by a node while it runs, and the decorator base."""

import itertools
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from blueprint_events.core.logging import NodeLogger
from blueprint_events.core.types import DebugInfo, Value

ActivateFlowHook = Callable[["DefaultExecutionContext", str, str], None]


@dataclass
class ExecutionHooks:
    """Optional host callbacks fired during node execution.

    ``on_pin_value(node_id, pin_id, raw)`` fires on every input read and
    output write made through the base context.
    """

    on_node_start: Callable[[str, str], None] | None = None
    on_node_complete: Callable[[str, str], None] | None = None
    on_node_error: Callable[[str, BaseException], None] | None = None
    on_pin_value: Callable[[str, str, Any], None] | None = None
    on_log: Callable[[str, str], None] | None = None


class ExecutionContext(ABC):
    """Interface every node execution context provides."""

    @property
    @abstractmethod
    def node_id(self) -> str: ...

    @property
    @abstractmethod
    def node_type(self) -> str: ...

    @property
    @abstractmethod
    def blueprint_id(self) -> str: ...

    @property
    @abstractmethod
    def execution_id(self) -> str: ...

    @property
    @abstractmethod
    def logger(self) -> NodeLogger: ...

    @abstractmethod
    def get_input_value(self, pin_id: str) -> Value | None:
        """Return the value on an input pin, or None if nothing is connected."""

    @abstractmethod
    def set_output_value(self, pin_id: str, value: Value) -> None: ...

    @abstractmethod
    def get_output_value(self, pin_id: str) -> Value | None: ...

    @abstractmethod
    def get_outputs(self) -> dict[str, Value]: ...

    @abstractmethod
    def activate_output_flow(self, pin_id: str) -> None: ...

    @abstractmethod
    def get_activated_output_flows(self) -> list[str]: ...

    @abstractmethod
    def is_input_pin_active(self, pin_id: str) -> bool: ...

    @abstractmethod
    def get_variable(self, name: str) -> Value | None: ...

    @abstractmethod
    def set_variable(self, name: str, value: Value) -> None: ...

    @abstractmethod
    def record_debug_info(self, info: DebugInfo) -> None: ...

    @abstractmethod
    def get_debug_data(self) -> dict[str, Any]: ...


class DefaultExecutionContext(ExecutionContext):
    """Plain single-threaded context backed by dictionaries.

    ``variables`` is shared with the caller so that nodes of one execution
    see each other's writes; inputs are copied.
    """

    def __init__(
        self,
        node_id: str,
        node_type: str,
        blueprint_id: str,
        execution_id: str,
        inputs: dict[str, Value] | None = None,
        variables: dict[str, Value] | None = None,
        logger: NodeLogger | None = None,
        hooks: ExecutionHooks | None = None,
        activate_flow: ActivateFlowHook | None = None,
        active_input_pins: set[str] | None = None,
    ) -> None:
        self._node_id = node_id
        self._node_type = node_type
        self._blueprint_id = blueprint_id
        self._execution_id = execution_id
        self._inputs: dict[str, Value] = dict(inputs or {})
        self._outputs: dict[str, Value] = {}
        self._variables: dict[str, Value] = variables if variables is not None else {}
        self._debug_data: dict[str, Any] = {}
        self._debug_seq = itertools.count()
        self._activated_flows: list[str] = []
        self._active_input_pins: set[str] = set(active_input_pins or ())
        self._logger = (logger or NodeLogger()).opts(node_id=node_id)
        self.hooks = hooks or ExecutionHooks()
        self._activate_flow = activate_flow

    @property
    def node_id(self) -> str:
        return self._node_id

    @property
    def node_type(self) -> str:
        return self._node_type

    @property
    def blueprint_id(self) -> str:
        return self._blueprint_id

    @property
    def execution_id(self) -> str:
        return self._execution_id

    @property
    def logger(self) -> NodeLogger:
        return self._logger

    def _pin_value(self, pin_id: str, raw: Any) -> None:
        if self.hooks.on_pin_value is not None:
            self.hooks.on_pin_value(self._node_id, pin_id, raw)

    def get_input_value(self, pin_id: str) -> Value | None:
        value = self._inputs.get(pin_id)
        if value is not None:
            self._pin_value(pin_id, value.raw)
        return value

    def set_output_value(self, pin_id: str, value: Value) -> None:
        self._outputs[pin_id] = value
        self._pin_value(pin_id, value.raw)

    def get_output_value(self, pin_id: str) -> Value | None:
        return self._outputs.get(pin_id)

    def get_outputs(self) -> dict[str, Value]:
        return dict(self._outputs)

    def activate_output_flow(self, pin_id: str) -> None:
        self._activated_flows.append(pin_id)
        if self._activate_flow is not None:
            self._activate_flow(self, self._node_id, pin_id)

    def get_activated_output_flows(self) -> list[str]:
        return list(self._activated_flows)

    def is_input_pin_active(self, pin_id: str) -> bool:
        return pin_id in self._active_input_pins

    def get_variable(self, name: str) -> Value | None:
        return self._variables.get(name)

    def set_variable(self, name: str, value: Value) -> None:
        self._variables[name] = value

    def record_debug_info(self, info: DebugInfo) -> None:
        self._debug_data[f"debug_{next(self._debug_seq)}"] = info

    def get_debug_data(self) -> dict[str, Any]:
        return dict(self._debug_data)


class ContextDecorator(ExecutionContext):
    """Base for capability layers wrapping another context.

    Every operation is forwarded to the wrapped context unless a subclass
    overrides it. Writes a decorator makes on its own behalf go through
    ``root`` (the outermost context of the chain) so that any serialising
    layer above it still applies.
    """

    def __init__(self, inner: ExecutionContext) -> None:
        self._inner = inner
        self._root: ExecutionContext = self

    def unwrap(self) -> ExecutionContext:
        """Return the immediately wrapped context."""
        return self._inner

    @property
    def root(self) -> ExecutionContext:
        return self._root

    def bind_root(self, root: ExecutionContext) -> None:
        """Point this layer and every decorator below it at ``root``."""
        self._root = root
        if isinstance(self._inner, ContextDecorator):
            self._inner.bind_root(root)

    @property
    def node_id(self) -> str:
        return self._inner.node_id

    @property
    def node_type(self) -> str:
        return self._inner.node_type

    @property
    def blueprint_id(self) -> str:
        return self._inner.blueprint_id

    @property
    def execution_id(self) -> str:
        return self._inner.execution_id

    @property
    def logger(self) -> NodeLogger:
        return self._inner.logger

    def get_input_value(self, pin_id: str) -> Value | None:
        return self._inner.get_input_value(pin_id)

    def set_output_value(self, pin_id: str, value: Value) -> None:
        self._inner.set_output_value(pin_id, value)

    def get_output_value(self, pin_id: str) -> Value | None:
        return self._inner.get_output_value(pin_id)

    def get_outputs(self) -> dict[str, Value]:
        return self._inner.get_outputs()

    def activate_output_flow(self, pin_id: str) -> None:
        self._inner.activate_output_flow(pin_id)

    def get_activated_output_flows(self) -> list[str]:
        return self._inner.get_activated_output_flows()

    def is_input_pin_active(self, pin_id: str) -> bool:
        return self._inner.is_input_pin_active(pin_id)

    def get_variable(self, name: str) -> Value | None:
        return self._inner.get_variable(name)

    def set_variable(self, name: str, value: Value) -> None:
        self._inner.set_variable(name, value)

    def record_debug_info(self, info: DebugInfo) -> None:
        self._inner.record_debug_info(info)

    def get_debug_data(self) -> dict[str, Any]:
        return self._inner.get_debug_data()
