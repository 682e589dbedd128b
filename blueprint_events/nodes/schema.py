"""Derive node pins from an event's parameter schema."""

from blueprint_events.core.event import EventDefinition
from blueprint_events.core.types import Pin
from blueprint_events.nodes.base import Node


def _parameter_pins(definition: EventDefinition) -> list[Pin]:
    return [
        Pin(
            id=param.name,
            name=param.name,
            pin_type=param.pin_type,
            description=param.description,
            optional=param.optional,
            default=param.default,
        )
        for param in definition.parameters
    ]


def sync_node_pins_with_event_schema(
    node: Node, definition: EventDefinition, as_dispatcher: bool
) -> None:
    """Rewrite a node's pins so each event parameter has a pin.

    Dispatchers get parameter input pins, handlers get parameter output
    pins. Pins whose ID matches a parameter name are replaced; all other
    pins are kept in their original order ahead of the parameter pins.
    """
    names = {param.name for param in definition.parameters}
    if as_dispatcher:
        kept = [pin for pin in node.input_pins if pin.id not in names]
        node.input_pins = kept + _parameter_pins(definition)
    else:
        kept = [pin for pin in node.output_pins if pin.id not in names]
        node.output_pins = kept + _parameter_pins(definition)
