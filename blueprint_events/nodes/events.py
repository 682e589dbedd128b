"""Built-in event nodes: dispatcher, bind and clear-bindings."""

from typing import TYPE_CHECKING, Any

from blueprint_events.context.base import ExecutionContext
from blueprint_events.context.capabilities import EventCapability, find_capability
from blueprint_events.core.errors import EventError
from blueprint_events.core.event import EventBinding
from blueprint_events.core.types import Pin, PinTypes, Value
from blueprint_events.nodes.base import Node, NodeExecutionError
from blueprint_events.nodes.schema import sync_node_pins_with_event_schema

if TYPE_CHECKING:
    from blueprint_events.core.manager import EventManager


def _read_string_input(ctx: ExecutionContext, pin_id: str) -> str:
    value = ctx.get_input_value(pin_id)
    if value is None:
        return ""
    try:
        return value.as_string()
    except ValueError:
        return ""


class EventDispatcherNode(Node):
    """Dispatches an event with parameters read from its input pins.

    The event ID comes from the ``eventID`` input, falling back to the
    ``eventID`` property. ``success`` is false when the event could not be
    dispatched or any handler failed; ``then`` is always activated.
    """

    type_id = "event-dispatcher"
    display_name = "Dispatch Event"
    category = "Events"

    @classmethod
    def default_input_pins(cls) -> list[Pin]:
        return [
            Pin("execute", "Execute", PinTypes.EXECUTION, "Execution input"),
            Pin("eventID", "Event ID", PinTypes.STRING, "ID of the event to dispatch", optional=True),
        ]

    @classmethod
    def default_output_pins(cls) -> list[Pin]:
        return [
            Pin("then", "Then", PinTypes.EXECUTION, "Executed after the event is dispatched"),
            Pin("success", "Success", PinTypes.BOOLEAN, "Whether the event was successfully dispatched"),
        ]

    def prepare(self, event_manager: "EventManager", inputs: dict[str, Value]) -> None:
        if not self.properties.get("dynamicParameters", True):
            return
        event_id = ""
        value = inputs.get("eventID")
        if value is not None and isinstance(value.raw, str):
            event_id = value.raw
        event_id = event_id or str(self.properties.get("eventID") or "")
        definition = event_manager.get_definition(event_id) if event_id else None
        if definition is not None:
            sync_node_pins_with_event_schema(self, definition, as_dispatcher=True)

    def _finish(self, ctx: ExecutionContext, success: bool) -> None:
        ctx.set_output_value("success", Value(PinTypes.BOOLEAN, success))
        ctx.activate_output_flow("then")

    def execute(self, ctx: ExecutionContext) -> None:
        log = ctx.logger
        event_id = _read_string_input(ctx, "eventID") or str(self.properties.get("eventID") or "")
        if not event_id:
            log.error("No event ID provided")
            self._finish(ctx, False)
            return

        events = find_capability(ctx, EventCapability)
        if events is None:
            log.error("Event manager not available in context", extra={"event_id": event_id})
            self._finish(ctx, False)
            return

        definition = events.event_manager.get_definition(event_id)
        if definition is None:
            log.error(f"Event {event_id} does not exist", extra={"event_id": event_id})
            self._finish(ctx, False)
            return

        if self.properties.get("dynamicParameters", True):
            sync_node_pins_with_event_schema(self, definition, as_dispatcher=True)

        params: dict[str, Value] = {}
        for param in definition.parameters:
            value = ctx.get_input_value(param.name)
            if value is not None:
                params[param.name] = value
            elif param.optional and param.default is not None:
                params[param.name] = Value(param.pin_type, param.default)

        errors: list[EventError] = events.dispatch(event_id, params)
        if errors:
            log.error(
                f"Failed to dispatch event {event_id}: {errors[0]}",
                extra={"event_id": event_id, "error": str(errors[0])},
            )
            self._finish(ctx, False)
            return

        log.info(
            f"Event {event_id} dispatched successfully",
            extra={"event_id": event_id, "params": {k: v.raw for k, v in params.items()}},
        )
        self._finish(ctx, True)


class EventBindNode(Node):
    """Binds itself as a handler for an event.

    Activated through ``bind`` it registers a binding at its ``priority``
    property and fires ``onBound``; through ``unbind`` it removes that
    binding and fires ``onUnbound``. When run as the handler of a
    dispatched event it copies the event parameters to matching output
    pins and fires ``onEvent``.
    """

    type_id = "event-bind"
    display_name = "Event Bind"
    category = "Events"

    def __init__(self, node_id: str, properties: dict[str, Any] | None = None) -> None:
        super().__init__(node_id, properties)
        self.binding_id = ""

    @classmethod
    def default_input_pins(cls) -> list[Pin]:
        return [
            Pin("bind", "Bind", PinTypes.EXECUTION, "Trigger to bind the event"),
            Pin("unbind", "Unbind", PinTypes.EXECUTION, "Trigger to unbind the event"),
            Pin("eventID", "Event ID", PinTypes.STRING, "ID of the event to bind to", optional=True),
        ]

    @classmethod
    def default_output_pins(cls) -> list[Pin]:
        return [
            Pin("onBound", "On Bound", PinTypes.EXECUTION, "Triggered when the event is bound"),
            Pin("onUnbound", "On Unbound", PinTypes.EXECUTION, "Triggered when the event is unbound"),
            Pin("onEvent", "On Event", PinTypes.EXECUTION, "Triggered when the bound event fires"),
            Pin("bindingID", "Binding ID", PinTypes.STRING, "ID of the binding"),
        ]

    @property
    def priority(self) -> int:
        try:
            return int(self.properties.get("priority", 0))
        except (TypeError, ValueError):
            return 0

    def execute(self, ctx: ExecutionContext) -> None:
        events = find_capability(ctx, EventCapability)
        if events is None:
            ctx.set_output_value("bindingID", Value(PinTypes.STRING, ""))
            raise NodeExecutionError(self.node_id, "event manager not available in context")

        if events.is_event_handler_active():
            self._handle_event(ctx, events)
            return

        event_id = _read_string_input(ctx, "eventID") or str(self.properties.get("eventID") or "")
        if not event_id:
            raise NodeExecutionError(self.node_id, "event ID not provided")

        manager = events.event_manager
        definition = manager.get_definition(event_id)
        if definition is None:
            ctx.set_output_value("bindingID", Value(PinTypes.STRING, ""))
            raise NodeExecutionError(self.node_id, f"event does not exist: {event_id}")

        if ctx.is_input_pin_active("unbind"):
            self._unbind(ctx, event_id)
            return

        sync_node_pins_with_event_schema(self, definition, as_dispatcher=False)
        binding = EventBinding(
            event_id=event_id,
            handler_node_id=ctx.node_id,
            handler_node_type=self.type_id,
            blueprint_id=ctx.blueprint_id,
            priority=self.priority,
        )
        try:
            self.binding_id = manager.bind_event(binding)
        except EventError as e:
            ctx.set_output_value("bindingID", Value(PinTypes.STRING, ""))
            raise NodeExecutionError(self.node_id, f"failed to bind event: {e}") from e

        ctx.logger.info(
            f"Bound to event {event_id}",
            extra={"event_id": event_id, "binding_id": self.binding_id, "priority": self.priority},
        )
        ctx.set_output_value("bindingID", Value(PinTypes.STRING, self.binding_id))
        ctx.activate_output_flow("onBound")

    def _unbind(self, ctx: ExecutionContext, event_id: str) -> None:
        events = find_capability(ctx, EventCapability)
        if self.binding_id and events is not None:
            events.event_manager.remove_binding(self.binding_id)
            ctx.logger.info(
                "Event unbound", extra={"event_id": event_id, "binding_id": self.binding_id}
            )
        else:
            ctx.logger.debug("Unbind called but no active binding found")
        self.binding_id = ""
        ctx.set_output_value("bindingID", Value(PinTypes.STRING, ""))
        ctx.activate_output_flow("onUnbound")

    def _handle_event(self, ctx: ExecutionContext, events: EventCapability) -> None:
        handler_context = events.get_event_handler_context()
        if handler_context is None:
            raise NodeExecutionError(self.node_id, "event handler context is missing")

        definition = events.event_manager.get_definition(handler_context.event_id)
        if definition is not None:
            sync_node_pins_with_event_schema(self, definition, as_dispatcher=False)
        else:
            ctx.logger.warning(
                "Event definition not found while handling event",
                extra={"event_id": handler_context.event_id},
            )

        for name, value in handler_context.parameters.items():
            if self.get_output_pin(name) is None:
                ctx.logger.warning(
                    f"Output pin not found for event parameter {name}",
                    extra={"event_id": handler_context.event_id, "param_name": name},
                )
                continue
            ctx.set_output_value(name, value)

        ctx.set_output_value("bindingID", Value(PinTypes.STRING, handler_context.binding_id))
        ctx.activate_output_flow("onEvent")


class ClearBindingsNode(Node):
    """Removes every event binding owned by a blueprint.

    Uses the ``blueprintID`` input when connected, otherwise the blueprint
    the node runs in.
    """

    type_id = "clear-event-bindings"
    display_name = "Clear Event Bindings"
    category = "Events"

    @classmethod
    def default_input_pins(cls) -> list[Pin]:
        return [
            Pin("execute", "Execute", PinTypes.EXECUTION, "Execution input"),
            Pin("blueprintID", "Blueprint ID", PinTypes.STRING, "Blueprint whose bindings are cleared", optional=True),
        ]

    @classmethod
    def default_output_pins(cls) -> list[Pin]:
        return [
            Pin("then", "Then", PinTypes.EXECUTION, "Executed after the bindings are cleared"),
            Pin("count", "Count", PinTypes.NUMBER, "Number of bindings removed"),
        ]

    def execute(self, ctx: ExecutionContext) -> None:
        blueprint_id = _read_string_input(ctx, "blueprintID") or ctx.blueprint_id

        events = find_capability(ctx, EventCapability)
        if events is None:
            raise NodeExecutionError(self.node_id, "event manager not available in context")

        removed = events.event_manager.clear_bindings(blueprint_id)
        ctx.logger.info(
            f"Cleared event bindings for blueprint {blueprint_id}",
            extra={"blueprint_id": blueprint_id, "bindings_removed": removed},
        )
        ctx.set_output_value("count", Value(PinTypes.NUMBER, float(removed)))
        ctx.activate_output_flow("then")
