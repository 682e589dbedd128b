"""Event-dispatching context layer."""

from blueprint_events.context.base import ContextDecorator, ExecutionContext
from blueprint_events.context.capabilities import EventCapability
from blueprint_events.core.errors import EventError
from blueprint_events.core.event import EventDispatchRequest, EventHandlerContext
from blueprint_events.core.manager import EventManager
from blueprint_events.core.types import Value


class EventAwareContext(ContextDecorator, EventCapability):
    """Gives a node access to the event manager.

    When ``handler_context`` is supplied the node is running as an event
    handler and can read the triggering event's identity and parameters.
    """

    def __init__(
        self,
        inner: ExecutionContext,
        event_manager: EventManager,
        handler_context: EventHandlerContext | None = None,
        is_event_handler: bool | None = None,
    ) -> None:
        super().__init__(inner)
        self._event_manager = event_manager
        self._handler_context = handler_context
        if is_event_handler is None:
            is_event_handler = handler_context is not None
        self._is_event_handler = is_event_handler

    @property
    def event_manager(self) -> EventManager:
        return self._event_manager

    def dispatch(self, event_id: str, params: dict[str, Value]) -> list[EventError]:
        """Dispatch ``event_id`` with this node as the source.

        Returns the manager's error list; the first error is also logged.
        """
        request = EventDispatchRequest(
            event_id=event_id,
            parameters=params,
            source_id=self.node_id,
            blueprint_id=self.blueprint_id,
            execution_id=self.execution_id,
        )
        errors = self._event_manager.dispatch_event(request)
        if errors:
            self.logger.error(
                f"Error dispatching event {event_id}: {errors[0]}",
                extra={"event_id": event_id, "error_count": len(errors)},
            )
        else:
            self.logger.debug(
                f"Event dispatched: {event_id}",
                extra={"event_id": event_id, "execution_id": self.execution_id},
            )
        return errors

    def is_event_handler_active(self) -> bool:
        return self._is_event_handler

    def get_event_handler_context(self) -> EventHandlerContext | None:
        return self._handler_context

    def _active_handler_context(self) -> EventHandlerContext | None:
        if not self._is_event_handler:
            return None
        return self._handler_context

    def get_event_id(self) -> str:
        hc = self._active_handler_context()
        return hc.event_id if hc is not None else ""

    def get_event_source_id(self) -> str:
        hc = self._active_handler_context()
        return hc.source_id if hc is not None else ""

    def get_event_parameters(self) -> dict[str, Value]:
        hc = self._active_handler_context()
        return dict(hc.parameters) if hc is not None else {}

    def get_event_parameter(self, name: str) -> Value | None:
        hc = self._active_handler_context()
        return hc.get_parameter(name) if hc is not None else None
