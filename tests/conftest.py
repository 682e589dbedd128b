"""Pytest configuration, Hypothesis profiles and shared fixtures."""

import logging

import pytest
from hypothesis import settings

from blueprint_events.core import EventDefinition, EventHandlerContext, EventManager, EventParameter, PinTypes

# Register Hypothesis profiles
settings.register_profile("ci", max_examples=100)
settings.register_profile("dev", max_examples=20)

# Load dev profile by default, CI can override via --hypothesis-profile=ci
settings.load_profile("dev")


class LogCapture(logging.Handler):
    """Custom handler to capture log records for testing."""

    def __init__(self):
        super().__init__()
        self.records: list[logging.LogRecord] = []

    def emit(self, record: logging.LogRecord) -> None:
        self.records.append(record)

    def clear(self) -> None:
        self.records.clear()

    def messages(self, level: int | None = None) -> list[str]:
        return [r.getMessage() for r in self.records if level is None or r.levelno == level]


class RecordingController:
    """Engine controller that records trigger calls and can fail chosen nodes."""

    def __init__(self):
        self.calls: list[tuple[str, str, EventHandlerContext]] = []
        self.failures: dict[str, Exception] = {}
        self.on_trigger = None

    def trigger_node_execution(
        self, blueprint_id: str, node_id: str, handler_context: EventHandlerContext
    ) -> None:
        self.calls.append((blueprint_id, node_id, handler_context))
        if self.on_trigger is not None:
            self.on_trigger(blueprint_id, node_id, handler_context)
        if node_id in self.failures:
            raise self.failures[node_id]

    @property
    def node_ids(self) -> list[str]:
        return [node_id for _, node_id, _ in self.calls]


@pytest.fixture
def capture_logs():
    """Attach a LogCapture to named loggers for the duration of a test.

    The package loggers do not propagate, so the handler is attached to
    each logger directly.
    """
    attached: list[tuple[logging.Logger, LogCapture, int]] = []

    def attach(name: str) -> LogCapture:
        logger = logging.getLogger(name)
        handler = LogCapture()
        handler.setLevel(logging.DEBUG)
        attached.append((logger, handler, logger.level))
        logger.addHandler(handler)
        logger.setLevel(logging.DEBUG)
        return handler

    yield attach

    for logger, handler, level in attached:
        logger.removeHandler(handler)
        logger.setLevel(level)


@pytest.fixture
def controller() -> RecordingController:
    return RecordingController()


@pytest.fixture
def manager(controller: RecordingController) -> EventManager:
    return EventManager(controller)


@pytest.fixture
def click_event() -> EventDefinition:
    return EventDefinition(
        id="ui.button.clicked",
        name="Button Clicked",
        category="UI",
        parameters=[
            EventParameter(name="buttonId", pin_type=PinTypes.STRING),
            EventParameter(name="x", pin_type=PinTypes.NUMBER),
            EventParameter(name="y", pin_type=PinTypes.NUMBER),
        ],
    )
