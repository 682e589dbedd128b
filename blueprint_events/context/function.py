"""Context layer scoping values to one function-subgraph invocation."""

from readerwriterlock import rwlock

from blueprint_events.context.base import ContextDecorator, ExecutionContext
from blueprint_events.context.capabilities import FunctionCapability
from blueprint_events.core.types import Value


class FunctionExecutionContext(ContextDecorator, FunctionCapability):
    """Stores internal node outputs and activated flows of a function call.

    The store is separate from the outer execution's outputs, which this
    layer never writes.
    """

    def __init__(self, inner: ExecutionContext, function_id: str) -> None:
        super().__init__(inner)
        self._function_id = function_id
        self._internal_values: dict[str, dict[str, Value]] = {}
        self._activated_flows: set[str] = set()
        self._lock = rwlock.RWLockFair()

    @property
    def function_id(self) -> str:
        return self._function_id

    def store_internal_output(self, node_id: str, pin_id: str, value: Value) -> None:
        with self._lock.gen_wlock():
            self._internal_values.setdefault(node_id, {})[pin_id] = value

    def get_internal_output(self, node_id: str, pin_id: str) -> Value | None:
        with self._lock.gen_rlock():
            return self._internal_values.get(node_id, {}).get(pin_id)

    def record_activated_flow(self, pin_id: str) -> None:
        with self._lock.gen_wlock():
            self._activated_flows.add(pin_id)

    def was_flow_activated(self, pin_id: str) -> bool:
        with self._lock.gen_rlock():
            return pin_id in self._activated_flows

    def get_all_outputs(self) -> dict[str, dict[str, Value]]:
        """Return a copy of every stored internal output by node and pin."""
        with self._lock.gen_rlock():
            return {node_id: dict(pins) for node_id, pins in self._internal_values.items()}

    def get_activated_flows(self) -> list[str]:
        with self._lock.gen_rlock():
            return sorted(self._activated_flows)
