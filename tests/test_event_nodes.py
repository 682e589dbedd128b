"""Tests for the built-in dispatcher, bind and clear-bindings nodes."""

import logging

import pytest

from blueprint_events.bperrors import ErrorCode, ErrorManager, RecoveryManager
from blueprint_events.context import DefaultExecutionContext
from blueprint_events.controllers import InlineEngineController
from blueprint_events.core import (
    EventBinding,
    EventDefinition,
    EventManager,
    EventParameter,
    PinTypes,
    Value,
)
from blueprint_events.core.logging import NODE_LOGGER_NAME
from blueprint_events.nodes import (
    ClearBindingsNode,
    EventBindNode,
    EventDispatcherNode,
    NodeExecutionError,
)

BP = "bp-1"


@pytest.fixture
def engine(click_event) -> InlineEngineController:
    controller = InlineEngineController()
    manager = EventManager(controller)
    controller.event_manager = manager
    manager.register_event(click_event)
    return controller


def click_inputs(button: str = "submit") -> dict[str, Value]:
    return {
        "buttonId": Value(PinTypes.STRING, button),
        "x": Value(PinTypes.NUMBER, 120.5),
        "y": Value(PinTypes.NUMBER, 250.0),
    }


def add_bound_handler(engine: InlineEngineController, node_id: str = "handler", priority: int = 0) -> EventBindNode:
    node = EventBindNode(node_id, {"eventID": "ui.button.clicked", "priority": priority})
    engine.register_node(BP, node)
    run = engine.execute_node(BP, node_id, active_input_pins={"bind"})
    assert run.succeeded, run.error
    return node


def success_of(run) -> bool:
    return run.context.get_output_value("success").as_boolean()


class TestEventDispatcherNode:
    def test_dispatches_to_bound_handler(self, engine):
        add_bound_handler(engine)
        engine.register_node(BP, EventDispatcherNode("dispatch", {"eventID": "ui.button.clicked"}))

        run = engine.execute_node(BP, "dispatch", inputs=click_inputs(), execution_id="exec-1")

        assert run.succeeded
        assert success_of(run) is True
        assert run.context.get_activated_output_flows() == ["then"]
        handled = [r for r in engine.get_runs("handler") if r.handler_context is not None]
        assert len(handled) == 1
        assert handled[0].handler_context.source_id == "dispatch"
        assert handled[0].handler_context.execution_id == "exec-1"

    def test_input_event_id_overrides_property(self, engine):
        engine.event_manager.register_event(EventDefinition(id="other"))
        engine.register_node(BP, EventDispatcherNode("dispatch", {"eventID": "ui.button.clicked"}))

        run = engine.execute_node(BP, "dispatch", inputs={"eventID": Value(PinTypes.STRING, "other")})

        assert success_of(run) is True

    def test_missing_event_id(self, engine, capture_logs):
        logs = capture_logs(NODE_LOGGER_NAME)
        engine.register_node(BP, EventDispatcherNode("dispatch"))

        run = engine.execute_node(BP, "dispatch")

        assert success_of(run) is False
        assert run.context.get_activated_output_flows() == ["then"]
        assert "No event ID provided" in logs.messages(logging.ERROR)

    def test_unknown_event(self, engine):
        engine.register_node(BP, EventDispatcherNode("dispatch", {"eventID": "ghost"}))
        run = engine.execute_node(BP, "dispatch")
        assert success_of(run) is False

    def test_validation_failure_reports_false(self, engine, capture_logs):
        logs = capture_logs(NODE_LOGGER_NAME)
        add_bound_handler(engine)
        engine.register_node(BP, EventDispatcherNode("dispatch", {"eventID": "ui.button.clicked"}))

        run = engine.execute_node(BP, "dispatch", inputs={"buttonId": Value(PinTypes.STRING, "submit")})

        assert success_of(run) is False
        assert run.context.get_activated_output_flows() == ["then"]
        assert not [r for r in engine.get_runs("handler") if r.handler_context is not None]
        assert any("Failed to dispatch event ui.button.clicked" in m for m in logs.messages(logging.ERROR))

    def test_handler_failure_reports_false(self, engine):
        engine.event_manager.bind_event(
            EventBinding(event_id="ui.button.clicked", handler_node_id="not-registered", blueprint_id=BP)
        )
        engine.register_node(BP, EventDispatcherNode("dispatch", {"eventID": "ui.button.clicked"}))

        run = engine.execute_node(BP, "dispatch", inputs=click_inputs())

        assert success_of(run) is False

    def test_optional_defaults_filled(self, engine):
        engine.event_manager.register_event(
            EventDefinition(
                id="greet",
                parameters=[
                    EventParameter(name="who", pin_type=PinTypes.STRING),
                    EventParameter(name="greeting", pin_type=PinTypes.STRING, optional=True, default="hello"),
                ],
            )
        )
        handler = EventBindNode("greeter", {"eventID": "greet"})
        engine.register_node(BP, handler)
        engine.execute_node(BP, "greeter", active_input_pins={"bind"})
        engine.register_node(BP, EventDispatcherNode("dispatch", {"eventID": "greet"}))

        engine.execute_node(BP, "dispatch", inputs={"who": Value(PinTypes.STRING, "world")})

        handled = [r for r in engine.get_runs("greeter") if r.handler_context is not None][0]
        assert handled.handler_context.parameters["greeting"] == Value(PinTypes.STRING, "hello")

    def test_pins_synced_from_schema(self, engine):
        node = EventDispatcherNode("dispatch", {"eventID": "ui.button.clicked"})
        engine.register_node(BP, node)
        engine.execute_node(BP, "dispatch", inputs=click_inputs())
        assert node.get_input_pin("buttonId") is not None

    def test_dynamic_parameters_can_be_disabled(self, engine):
        node = EventDispatcherNode("dispatch", {"eventID": "ui.button.clicked", "dynamicParameters": False})
        engine.register_node(BP, node)
        engine.execute_node(BP, "dispatch", inputs=click_inputs())
        assert node.get_input_pin("buttonId") is None


class TestEventBindNode:
    def test_bind(self, engine):
        node = add_bound_handler(engine, priority=7)
        run = engine.get_runs("handler")[-1]

        assert node.binding_id == "binding-ui.button.clicked-handler"
        assert run.context.get_output_value("bindingID").raw == node.binding_id
        assert run.context.get_activated_output_flows() == ["onBound"]
        binding = engine.event_manager.get_event_bindings("ui.button.clicked")[0]
        assert binding.priority == 7
        assert binding.handler_node_type == "event-bind"
        assert node.get_output_pin("x") is not None

    def test_unbind(self, engine):
        node = add_bound_handler(engine)
        run = engine.execute_node(BP, "handler", active_input_pins={"unbind"})

        assert run.succeeded
        assert node.binding_id == ""
        assert run.context.get_activated_output_flows() == ["onUnbound"]
        assert engine.event_manager.get_event_bindings("ui.button.clicked") == []

    def test_unbind_without_binding(self, engine):
        engine.register_node(BP, EventBindNode("handler", {"eventID": "ui.button.clicked"}))
        run = engine.execute_node(BP, "handler", active_input_pins={"unbind"})
        assert run.succeeded
        assert run.context.get_activated_output_flows() == ["onUnbound"]

    def test_handles_event(self, engine):
        add_bound_handler(engine)
        engine.register_node(BP, EventDispatcherNode("dispatch", {"eventID": "ui.button.clicked"}))
        engine.execute_node(BP, "dispatch", inputs=click_inputs("cancel"))

        handled = [r for r in engine.get_runs("handler") if r.handler_context is not None][0]
        outputs = handled.context.get_outputs()
        assert outputs["buttonId"].raw == "cancel"
        assert outputs["x"].raw == 120.5
        assert outputs["bindingID"].raw == "binding-ui.button.clicked-handler"
        assert handled.context.get_activated_output_flows() == ["onEvent"]

    def test_missing_event_id(self, engine):
        engine.register_node(BP, EventBindNode("handler"))
        run = engine.execute_node(BP, "handler", active_input_pins={"bind"})
        assert isinstance(run.error, NodeExecutionError)

    def test_unknown_event(self, engine):
        engine.register_node(BP, EventBindNode("handler", {"eventID": "ghost"}))
        run = engine.execute_node(BP, "handler", active_input_pins={"bind"})
        assert isinstance(run.error, NodeExecutionError)
        assert "ghost" in str(run.error)
        assert run.context.get_output_value("bindingID").raw == ""

    def test_requires_event_capability(self):
        ctx = DefaultExecutionContext("handler", "event-bind", BP, "exec-1")
        with pytest.raises(NodeExecutionError):
            EventBindNode("handler", {"eventID": "ui.button.clicked"}).execute(ctx)

    def test_non_integer_priority(self):
        assert EventBindNode("h", {"priority": "high"}).priority == 0
        assert EventBindNode("h", {"priority": "3"}).priority == 3


class TestClearBindingsNode:
    def test_clears_own_blueprint(self, engine):
        add_bound_handler(engine, "h1")
        add_bound_handler(engine, "h2")
        engine.event_manager.bind_event(
            EventBinding(event_id="ui.button.clicked", handler_node_id="other", blueprint_id="bp-2")
        )
        engine.register_node(BP, ClearBindingsNode("clear"))

        run = engine.execute_node(BP, "clear")

        assert run.context.get_output_value("count").raw == 2.0
        assert run.context.get_activated_output_flows() == ["then"]
        remaining = engine.event_manager.get_event_bindings("ui.button.clicked")
        assert [b.blueprint_id for b in remaining] == ["bp-2"]

    def test_blueprint_id_input(self, engine):
        engine.event_manager.bind_event(
            EventBinding(event_id="ui.button.clicked", handler_node_id="other", blueprint_id="bp-2")
        )
        engine.register_node(BP, ClearBindingsNode("clear"))

        run = engine.execute_node(BP, "clear", inputs={"blueprintID": Value(PinTypes.STRING, "bp-2")})

        assert run.context.get_output_value("count").as_number() == 1.0
        assert engine.event_manager.get_event_bindings("ui.button.clicked") == []


class TestPinsBeforeContext:
    def test_pins_synced_before_first_context(self, engine):
        node = EventDispatcherNode("dispatch", {"eventID": "ui.button.clicked"})
        engine.register_node(BP, node)

        ctx = engine.build_context(BP, node, "exec-1", inputs=click_inputs())

        assert node.get_input_pin("x") is not None
        assert ctx.get_input_value("x").raw == 120.5

    def test_input_event_id_used_for_pins(self, engine):
        engine.event_manager.register_event(
            EventDefinition(id="other", parameters=[EventParameter(name="n", pin_type=PinTypes.NUMBER)])
        )
        node = EventDispatcherNode("dispatch", {"eventID": "ui.button.clicked"})

        node.prepare(engine.event_manager, {"eventID": Value(PinTypes.STRING, "other")})

        assert node.get_input_pin("n") is not None
        assert node.get_input_pin("buttonId") is None

    def test_missing_parameter_recovered_on_first_run(self, click_event):
        errors = ErrorManager()
        controller = InlineEngineController(error_manager=errors, recovery_manager=RecoveryManager(errors))
        manager = EventManager(controller)
        controller.event_manager = manager
        manager.register_event(click_event)
        controller.register_node(BP, EventDispatcherNode("dispatch", {"eventID": "ui.button.clicked"}))
        inputs = click_inputs()
        del inputs["y"]

        run = controller.execute_node(BP, "dispatch", inputs=inputs, execution_id="exec-1")

        assert success_of(run) is True
        recorded = errors.get_errors("exec-1")
        assert [(e.code, e.pin_id) for e in recorded] == [(ErrorCode.MISSING_REQUIRED_INPUT, "y")]
        assert any(key.startswith("debug_") for key in run.context.get_debug_data())
