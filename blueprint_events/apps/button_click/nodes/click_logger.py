"""ClickLogger node: formats a ui.button.clicked event into a message."""

from blueprint_events.context.base import ExecutionContext
from blueprint_events.context.capabilities import EventCapability, find_capability
from blueprint_events.core.types import Pin, PinTypes, Value
from blueprint_events.nodes.base import Node, NodeExecutionError


class ClickLogger(Node):
    """Handles button clicks and writes a human-readable ``message`` output."""

    type_id = "click-logger"
    display_name = "Click Logger"
    category = "Demo"

    @classmethod
    def default_output_pins(cls) -> list[Pin]:
        return [
            Pin("then", "Then", PinTypes.EXECUTION),
            Pin("message", "Message", PinTypes.STRING),
        ]

    def execute(self, ctx: ExecutionContext) -> None:
        events = find_capability(ctx, EventCapability)
        if events is None or not events.is_event_handler_active():
            raise NodeExecutionError(self.node_id, "click logger only runs as an event handler")

        button = events.get_event_parameter("buttonId")
        x = events.get_event_parameter("x")
        y = events.get_event_parameter("y")
        if button is None or x is None or y is None:
            raise NodeExecutionError(self.node_id, "click event is missing coordinates")

        message = (
            f"Button '{button.as_string()}' clicked at "
            f"({x.as_number():g}, {y.as_number():g}) by {events.get_event_source_id()}"
        )
        ctx.logger.info(message, extra={"event_id": events.get_event_id()})
        ctx.set_output_value("message", Value(PinTypes.STRING, message))
        ctx.activate_output_flow("then")
