"""Built-in system event definitions seeded into every EventManager."""

from blueprint_events.core.event import (
    SYSTEM_CATEGORY,
    EventDefinition,
    EventParameter,
    SystemEventType,
)
from blueprint_events.core.types import PinTypes

SYSTEM_INITIALIZE = "system.initialize"
SYSTEM_SHUTDOWN = "system.shutdown"
SYSTEM_TIMER = "system.timer"
SYSTEM_ERROR = "system.error"
SYSTEM_WEBHOOK = "system.webhook"

SYSTEM_EVENT_IDS: dict[SystemEventType, str] = {
    SystemEventType.INITIALIZE: SYSTEM_INITIALIZE,
    SystemEventType.SHUTDOWN: SYSTEM_SHUTDOWN,
    SystemEventType.TIMER: SYSTEM_TIMER,
    SystemEventType.ERROR: SYSTEM_ERROR,
    SystemEventType.WEBHOOK: SYSTEM_WEBHOOK,
}


def _execution_params() -> list[EventParameter]:
    return [
        EventParameter(
            name="blueprintID",
            pin_type=PinTypes.STRING,
            description="ID of the blueprint being executed",
        ),
        EventParameter(
            name="executionID",
            pin_type=PinTypes.STRING,
            description="ID of the current execution",
        ),
    ]


def system_event_definitions() -> list[tuple[SystemEventType, EventDefinition]]:
    """Return fresh definitions for every system event kind."""
    return [
        (
            SystemEventType.INITIALIZE,
            EventDefinition(
                id=SYSTEM_INITIALIZE,
                name="On Initialize",
                description="Triggered when the blueprint is initialized",
                category=SYSTEM_CATEGORY,
                parameters=_execution_params(),
            ),
        ),
        (
            SystemEventType.SHUTDOWN,
            EventDefinition(
                id=SYSTEM_SHUTDOWN,
                name="On Shutdown",
                description="Triggered when the blueprint execution is completing",
                category=SYSTEM_CATEGORY,
                parameters=[
                    *_execution_params(),
                    EventParameter(
                        name="success",
                        pin_type=PinTypes.BOOLEAN,
                        description="Whether the execution completed successfully",
                    ),
                    EventParameter(
                        name="errorMessage",
                        pin_type=PinTypes.STRING,
                        description="Error message if execution failed",
                        optional=True,
                    ),
                ],
            ),
        ),
        (
            SystemEventType.TIMER,
            EventDefinition(
                id=SYSTEM_TIMER,
                name="On Timer",
                description="Triggered periodically by a timer",
                category=SYSTEM_CATEGORY,
                parameters=[
                    *_execution_params(),
                    EventParameter(
                        name="interval",
                        pin_type=PinTypes.NUMBER,
                        description="Timer interval in milliseconds",
                    ),
                    EventParameter(
                        name="count",
                        pin_type=PinTypes.NUMBER,
                        description="Number of times the timer has fired",
                    ),
                    EventParameter(
                        name="timerID",
                        pin_type=PinTypes.STRING,
                        description="ID of the timer that fired",
                    ),
                ],
            ),
        ),
        (
            SystemEventType.ERROR,
            EventDefinition(
                id=SYSTEM_ERROR,
                name="On Error",
                description="Triggered when an error occurs during execution",
                category=SYSTEM_CATEGORY,
                parameters=[
                    *_execution_params(),
                    EventParameter(
                        name="nodeID",
                        pin_type=PinTypes.STRING,
                        description="ID of the node where the error occurred",
                        optional=True,
                    ),
                    EventParameter(
                        name="errorMessage",
                        pin_type=PinTypes.STRING,
                        description="Error message",
                    ),
                    EventParameter(
                        name="errorDetails",
                        pin_type=PinTypes.OBJECT,
                        description="Additional error details",
                        optional=True,
                    ),
                ],
            ),
        ),
        (
            SystemEventType.WEBHOOK,
            EventDefinition(
                id=SYSTEM_WEBHOOK,
                name="On Webhook",
                description="Triggered when a webhook request is received",
                category=SYSTEM_CATEGORY,
                parameters=[
                    *_execution_params(),
                    EventParameter(
                        name="path",
                        pin_type=PinTypes.STRING,
                        description="Request path",
                    ),
                    EventParameter(
                        name="method",
                        pin_type=PinTypes.STRING,
                        description="HTTP method",
                    ),
                    EventParameter(
                        name="data",
                        pin_type=PinTypes.OBJECT,
                        description="Request payload",
                        optional=True,
                    ),
                    EventParameter(
                        name="headers",
                        pin_type=PinTypes.OBJECT,
                        description="Request headers",
                        optional=True,
                    ),
                ],
            ),
        ),
    ]
