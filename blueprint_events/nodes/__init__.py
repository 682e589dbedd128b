"""Node base class, schema helpers and built-in event nodes."""

from blueprint_events.nodes.base import Node, NodeExecutionError
from blueprint_events.nodes.events import ClearBindingsNode, EventBindNode, EventDispatcherNode
from blueprint_events.nodes.schema import sync_node_pins_with_event_schema

__all__ = [
    "Node",
    "NodeExecutionError",
    "EventDispatcherNode",
    "EventBindNode",
    "ClearBindingsNode",
    "sync_node_pins_with_event_schema",
]
