"""Engine controllers that run handler nodes for the event manager."""

from blueprint_events.controllers.base import EngineController, NodeNotFoundError
from blueprint_events.controllers.inline import InlineEngineController, NodeRun
from blueprint_events.controllers.threaded import DEFAULT_MAX_WORKERS, ThreadedEngineController

__all__ = [
    "EngineController",
    "NodeNotFoundError",
    "InlineEngineController",
    "ThreadedEngineController",
    "NodeRun",
    "DEFAULT_MAX_WORKERS",
]
