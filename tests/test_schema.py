"""Tests for syncing node pins with an event's parameter schema."""

from hypothesis import given
from hypothesis import strategies as st

from blueprint_events.core import EventDefinition, EventParameter, PinTypes
from blueprint_events.nodes import EventBindNode, EventDispatcherNode, sync_node_pins_with_event_schema

param_names = st.lists(
    st.from_regex(r"[a-z][a-zA-Z0-9]{0,8}", fullmatch=True), unique=True, max_size=6
)


def definition_with(*params: EventParameter) -> EventDefinition:
    return EventDefinition(id="e", parameters=list(params))


class TestDispatcherPins:
    def test_parameters_become_inputs(self, click_event):
        node = EventDispatcherNode("d")
        sync_node_pins_with_event_schema(node, click_event, as_dispatcher=True)

        assert [p.id for p in node.input_pins] == ["execute", "eventID", "buttonId", "x", "y"]
        assert node.get_input_pin("x").pin_type == PinTypes.NUMBER
        assert [p.id for p in node.output_pins] == ["then", "success"]

    def test_existing_parameter_pins_replaced(self):
        node = EventDispatcherNode("d")
        sync_node_pins_with_event_schema(
            node, definition_with(EventParameter(name="n", pin_type=PinTypes.STRING)), as_dispatcher=True
        )
        sync_node_pins_with_event_schema(
            node, definition_with(EventParameter(name="n", pin_type=PinTypes.NUMBER)), as_dispatcher=True
        )

        matching = [p for p in node.input_pins if p.id == "n"]
        assert len(matching) == 1
        assert matching[0].pin_type == PinTypes.NUMBER

    def test_defaults_preserved(self):
        node = EventDispatcherNode("d")
        sync_node_pins_with_event_schema(
            node,
            definition_with(
                EventParameter(name="greeting", pin_type=PinTypes.STRING, optional=True, default="hi")
            ),
            as_dispatcher=True,
        )
        pin = node.get_input_pin("greeting")
        assert pin.optional is True
        assert pin.default == "hi"

    @given(names=param_names)
    def test_sync_is_idempotent(self, names):
        definition = definition_with(*(EventParameter(name=n, pin_type=PinTypes.ANY) for n in names))
        node = EventDispatcherNode("d")
        sync_node_pins_with_event_schema(node, definition, as_dispatcher=True)
        first = [p.id for p in node.input_pins]
        sync_node_pins_with_event_schema(node, definition, as_dispatcher=True)
        assert [p.id for p in node.input_pins] == first


class TestHandlerPins:
    def test_parameters_become_outputs(self, click_event):
        node = EventBindNode("h")
        sync_node_pins_with_event_schema(node, click_event, as_dispatcher=False)

        assert [p.id for p in node.output_pins] == [
            "onBound",
            "onUnbound",
            "onEvent",
            "bindingID",
            "buttonId",
            "x",
            "y",
        ]
        assert [p.id for p in node.input_pins] == ["bind", "unbind", "eventID"]

    def test_pins_are_per_instance(self, click_event):
        synced = EventBindNode("a")
        untouched = EventBindNode("b")
        sync_node_pins_with_event_schema(synced, click_event, as_dispatcher=False)
        assert untouched.get_output_pin("x") is None
