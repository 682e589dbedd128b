"""Button-click demo: a dispatcher node fires ui.button.clicked to two handlers.

Usage: python -m blueprint_events.apps.button_click.main
"""

from blueprint_events.apps.button_click.nodes import ClickLogger
from blueprint_events.bperrors import ErrorManager, RecoveryManager
from blueprint_events.controllers import InlineEngineController, NodeRun
from blueprint_events.core import (
    EventBinding,
    EventDefinition,
    EventManager,
    EventParameter,
    PinTypes,
    Value,
)
from blueprint_events.nodes import EventBindNode, EventDispatcherNode

BLUEPRINT_ID = "bp-demo"
BUTTON_CLICKED = "ui.button.clicked"

BUTTON_CLICKED_EVENT = EventDefinition(
    id=BUTTON_CLICKED,
    name="Button Clicked",
    description="Fired when a UI button is clicked",
    category="UI",
    parameters=[
        EventParameter(name="buttonId", pin_type=PinTypes.STRING, description="Clicked button"),
        EventParameter(name="x", pin_type=PinTypes.NUMBER, description="Click X coordinate"),
        EventParameter(name="y", pin_type=PinTypes.NUMBER, description="Click Y coordinate"),
    ],
)


def run_button_click(
    button_id: str = "submit", x: float = 120.5, y: float = 250.0
) -> tuple[NodeRun, list[NodeRun]]:
    """Wire the demo blueprint, click the button once.

    Returns the dispatcher run and the handler runs in execution order.
    """
    error_manager = ErrorManager()
    controller = InlineEngineController(
        error_manager=error_manager, recovery_manager=RecoveryManager(error_manager)
    )
    manager = EventManager(controller)
    controller.event_manager = manager
    manager.register_event(BUTTON_CLICKED_EVENT)

    dispatcher = EventDispatcherNode("button", {"eventID": BUTTON_CLICKED})
    binder = EventBindNode("on-click", {"eventID": BUTTON_CLICKED, "priority": 10})
    click_logger = ClickLogger("click-logger")
    for node in (dispatcher, binder, click_logger):
        controller.register_node(BLUEPRINT_ID, node)

    # The bind node registers itself; the logger is bound directly at a lower priority.
    controller.execute_node(BLUEPRINT_ID, binder.node_id, active_input_pins={"bind"})
    manager.bind_event(
        EventBinding(
            event_id=BUTTON_CLICKED,
            handler_node_id=click_logger.node_id,
            handler_node_type=ClickLogger.type_id,
            blueprint_id=BLUEPRINT_ID,
            priority=0,
        )
    )

    dispatch_run = controller.execute_node(
        BLUEPRINT_ID,
        dispatcher.node_id,
        inputs={
            "buttonId": Value(PinTypes.STRING, button_id),
            "x": Value(PinTypes.NUMBER, x),
            "y": Value(PinTypes.NUMBER, y),
        },
        execution_id="exec-click-1",
    )
    handler_runs = [run for run in controller.get_runs() if run.handler_context is not None]
    return dispatch_run, handler_runs


def main():
    print("=" * 50)
    print("Blueprint Events: button click demo")
    print("=" * 50)

    dispatch_run, handler_runs = run_button_click()
    success = dispatch_run.context.get_output_value("success")
    print(f"\nDispatched {BUTTON_CLICKED}: success={success.as_boolean() if success else False}")

    for run in handler_runs:
        hc = run.handler_context
        print(f"\n-> {run.node_id} (binding {hc.binding_id})")
        if not run.succeeded:
            print(f"   failed: {run.error}")
            continue
        for name, value in run.context.get_outputs().items():
            print(f"   {name} = {value.raw!r}")

    print("\n" + "=" * 50)


if __name__ == "__main__":
    main()
