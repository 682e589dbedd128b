"""Engine-controller port.

The event manager never depends on a concrete engine. It only holds an
object satisfying ``EngineController`` and calls it once per binding.
"""

from typing import Protocol

from blueprint_events.core.event import EventHandlerContext


class NodeNotFoundError(LookupError):
    """Raised when a controller has no node registered under an ID."""

    def __init__(self, blueprint_id: str, node_id: str):
        self.blueprint_id = blueprint_id
        self.node_id = node_id
        super().__init__(f"node {node_id!r} not found in blueprint {blueprint_id!r}")


class EngineController(Protocol):
    """Protocol the engine implements so events can trigger handler nodes.

    Implementations are responsible for:
    - Locating the node by ``(blueprint_id, node_id)``
    - Building its execution context with the event capability populated
      from ``handler_context``
    - Running it, synchronously or by scheduling it
    """

    def trigger_node_execution(
        self, blueprint_id: str, node_id: str, handler_context: EventHandlerContext
    ) -> None:
        """Run or schedule the handler node.

        Raises:
            Exception: Any exception signals a scheduling failure (for
                example NodeNotFoundError). Errors raised by the node
                while executing are the engine's concern and are not
                propagated.
        """
        ...
