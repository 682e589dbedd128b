"""Node base class for blueprint graph vertices."""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, ClassVar

from blueprint_events.context.base import ExecutionContext
from blueprint_events.core.types import Pin, Value

if TYPE_CHECKING:
    from blueprint_events.core.manager import EventManager


class NodeExecutionError(Exception):
    """Raised by a node whose execution cannot proceed."""

    def __init__(self, node_id: str, message: str):
        self.node_id = node_id
        super().__init__(f"node {node_id}: {message}")


class Node(ABC):
    """Base class for executable blueprint nodes.

    Each Node subclass declares its ``type_id`` and its default pins. Pin
    lists live on the instance so that nodes can grow pins at runtime
    (for example from an event's parameter schema).

    Note: Validation of ``type_id`` happens when a node is registered with
    an engine controller, not in the Node itself.
    """

    type_id: ClassVar[str] = ""
    display_name: ClassVar[str] = ""
    category: ClassVar[str] = ""

    def __init__(self, node_id: str, properties: dict[str, Any] | None = None) -> None:
        """Initialize the Node.

        Args:
            node_id: ID of this node within its blueprint.
            properties: Editor-configured property values.
        """
        self.node_id = node_id
        self.properties: dict[str, Any] = dict(properties or {})
        self.input_pins: list[Pin] = self.default_input_pins()
        self.output_pins: list[Pin] = self.default_output_pins()

    @classmethod
    def default_input_pins(cls) -> list[Pin]:
        return []

    @classmethod
    def default_output_pins(cls) -> list[Pin]:
        return []

    def get_input_pin(self, pin_id: str) -> Pin | None:
        return next((pin for pin in self.input_pins if pin.id == pin_id), None)

    def get_output_pin(self, pin_id: str) -> Pin | None:
        return next((pin for pin in self.output_pins if pin.id == pin_id), None)

    def prepare(self, event_manager: "EventManager", inputs: dict[str, Value]) -> None:
        """Adjust pins before the execution context is built. No-op by default."""

    @abstractmethod
    def execute(self, ctx: ExecutionContext) -> None:
        """Run the node against its execution context.

        Args:
            ctx: The context built for this execution.

        Raises:
            NodeExecutionError: If the node cannot complete.
        """
        ...
