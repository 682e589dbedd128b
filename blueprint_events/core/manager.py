"""Event manager: registry, binding table and dispatch.

The EventManager is the process-wide mediator between dispatcher nodes and
the engine that runs handler nodes. It:
- Stores event definitions and maps system-event kinds to event IDs
- Keeps a priority-sorted binding list per event, each binding paired with
  a trigger closure that asks the engine controller to run the handler
- Validates dispatch requests and invokes every enabled binding in order

All internal maps are guarded by one reader-writer lock. Dispatch snapshots
what it needs under the read lock and releases it before any closure runs,
so handlers may bind, unbind or dispatch on the same manager.
"""

import logging
import warnings
from collections.abc import Callable
from typing import TYPE_CHECKING, Protocol

from readerwriterlock import rwlock

from blueprint_events.core.errors import (
    BindingIDConflictError,
    DuplicateBindingWarning,
    EventAlreadyExistsError,
    EventError,
    EventNotFoundError,
    HandlerInvocationFailedError,
    HandlerRegistrationFailedError,
    ParameterTypeMismatchError,
    RequiredParameterMissingError,
)
from blueprint_events.core.event import (
    EventBinding,
    EventDefinition,
    EventDispatchRequest,
    EventHandlerContext,
    SystemEventType,
)
from blueprint_events.core.logging import configure_manager_logger
from blueprint_events.core.system_events import system_event_definitions
from blueprint_events.core.types import PinTypes, Value

if TYPE_CHECKING:
    from blueprint_events.controllers.base import EngineController

HandlerClosure = Callable[[EventHandlerContext], None]


class EventListener(Protocol):
    """Observer notified after manager state changes or dispatches."""

    def on_event_dispatched(self, event_id: str, request: EventDispatchRequest) -> None: ...
    def on_event_bound(self, binding: EventBinding) -> None: ...
    def on_event_unbound(self, binding_id: str) -> None: ...


def make_trigger(engine_controller: "EngineController", binding: EventBinding) -> HandlerClosure:
    """Build the closure that asks the engine to run ``binding``'s handler node."""
    blueprint_id = binding.blueprint_id
    node_id = binding.handler_node_id

    def trigger(handler_context: EventHandlerContext) -> None:
        engine_controller.trigger_node_execution(blueprint_id, node_id, handler_context)

    return trigger


def validate_parameters(
    definition: EventDefinition, parameters: dict[str, Value]
) -> list[EventError]:
    """Check a parameter map against an event's schema.

    Every non-optional parameter must be present, and every present
    parameter must carry the schema's pin type unless the schema declares
    ``any``. All problems are collected; parameters absent from the schema
    are ignored.
    """
    errors: list[EventError] = []
    for param in definition.parameters:
        value = parameters.get(param.name)
        if value is None:
            if not param.optional:
                errors.append(RequiredParameterMissingError(param.name, definition.id))
            continue
        if param.pin_type == PinTypes.ANY:
            continue
        if value.pin_type != param.pin_type:
            errors.append(
                ParameterTypeMismatchError(
                    param.name, definition.id, param.pin_type.id, value.pin_type.id
                )
            )
    return errors


class EventManager:
    """Registry, binding table and dispatcher for blueprint events."""

    def __init__(
        self,
        engine_controller: "EngineController",
        *,
        seed_system_events: bool = True,
        logger: logging.Logger | None = None,
    ) -> None:
        if engine_controller is None:
            raise ValueError("EventManager requires an engine controller")
        self.engine_controller = engine_controller
        self._log = logger or configure_manager_logger()
        self._lock = rwlock.RWLockFair()

        self._definitions: dict[str, EventDefinition] = {}
        self._bindings: dict[str, list[EventBinding]] = {}
        self._handlers: dict[str, HandlerClosure] = {}
        self._binding_events: dict[str, str] = {}
        self._blueprint_events: dict[str, list[str]] = {}
        self._system_events: dict[SystemEventType, str] = {}
        self._listeners: list[EventListener] = []

        if seed_system_events:
            self._seed_system_events()

    def _seed_system_events(self) -> None:
        with self._lock.gen_wlock():
            for kind, definition in system_event_definitions():
                self._definitions[definition.id] = definition
                self._bindings.setdefault(definition.id, [])
                self._system_events[kind] = definition.id

    # ------------------------------------------------------------------
    # Registry
    # ------------------------------------------------------------------

    def register_event(self, definition: EventDefinition) -> None:
        """Add an event definition.

        Raises:
            EventAlreadyExistsError: If the event ID is already registered.
        """
        with self._lock.gen_wlock():
            if definition.id in self._definitions:
                raise EventAlreadyExistsError(definition.id)
            self._definitions[definition.id] = definition
            self._bindings.setdefault(definition.id, [])
            if definition.blueprint_id:
                self._blueprint_events.setdefault(definition.blueprint_id, []).append(
                    definition.id
                )

        self._log.info(
            f"Registered event {definition.id}",
            extra={"event_id": definition.id, "blueprint_id": definition.blueprint_id},
        )

    def unregister_event(self, event_id: str) -> None:
        """Remove an event with all of its bindings and their closures.

        Raises:
            EventNotFoundError: If the event ID is unknown.
        """
        with self._lock.gen_wlock():
            definition = self._definitions.pop(event_id, None)
            if definition is None:
                raise EventNotFoundError(event_id)

            removed = self._bindings.pop(event_id, [])
            for binding in removed:
                self._handlers.pop(binding.id, None)
                self._binding_events.pop(binding.id, None)

            if definition.blueprint_id:
                owned = self._blueprint_events.get(definition.blueprint_id, [])
                remaining = [eid for eid in owned if eid != event_id]
                if remaining:
                    self._blueprint_events[definition.blueprint_id] = remaining
                else:
                    self._blueprint_events.pop(definition.blueprint_id, None)

            for kind, eid in list(self._system_events.items()):
                if eid == event_id:
                    del self._system_events[kind]
                    break

        self._log.info(
            f"Unregistered event {event_id}",
            extra={"event_id": event_id, "bindings_removed": len(removed)},
        )
        for binding in removed:
            self._notify_unbound(binding.id)

    def get_definition(self, event_id: str) -> EventDefinition | None:
        with self._lock.gen_rlock():
            return self._definitions.get(event_id)

    def get_all_events(self) -> list[EventDefinition]:
        with self._lock.gen_rlock():
            return list(self._definitions.values())

    def get_blueprint_events(self, blueprint_id: str) -> list[EventDefinition]:
        with self._lock.gen_rlock():
            return [
                self._definitions[eid]
                for eid in self._blueprint_events.get(blueprint_id, [])
                if eid in self._definitions
            ]

    def get_system_event_id(self, kind: SystemEventType | str) -> str | None:
        try:
            kind = SystemEventType(kind)
        except ValueError:
            return None
        with self._lock.gen_rlock():
            return self._system_events.get(kind)

    # ------------------------------------------------------------------
    # Binding table
    # ------------------------------------------------------------------

    def _make_trigger(self, binding: EventBinding) -> HandlerClosure:
        return make_trigger(self.engine_controller, binding)

    def bind_event(self, binding: EventBinding) -> str:
        """Add a binding and install its trigger closure.

        Re-binding an existing binding ID for the same event issues a
        DuplicateBindingWarning and leaves the table unchanged. Binding IDs
        are unique across all events.

        Returns:
            The binding ID.

        Raises:
            EventNotFoundError: If the bound event is unknown.
            BindingIDConflictError: If the binding ID is already bound to
                another event.
            HandlerRegistrationFailedError: If the trigger closure could not be
                installed. The binding has been rolled back.
        """
        duplicate = False
        with self._lock.gen_wlock():
            if binding.event_id not in self._definitions:
                raise EventNotFoundError(binding.event_id)
            existing_event_id = self._binding_events.get(binding.id)
            if existing_event_id is not None and existing_event_id != binding.event_id:
                raise BindingIDConflictError(binding.id, binding.event_id, existing_event_id)
            bindings = self._bindings.setdefault(binding.event_id, [])
            if existing_event_id is not None:
                duplicate = True
            else:
                bindings.append(binding)
                self._binding_events[binding.id] = binding.event_id
                # list.sort is stable, so equal priorities keep insertion order
                bindings.sort(key=lambda b: b.priority, reverse=True)

        if duplicate:
            self._log.warning(
                f"Binding {binding.id} already exists for event {binding.event_id}; skipping",
                extra={"event_id": binding.event_id, "binding_id": binding.id},
            )
            warnings.warn(DuplicateBindingWarning(binding.id, binding.event_id), stacklevel=2)
            return binding.id

        try:
            trigger = self._make_trigger(binding)
            with self._lock.gen_wlock():
                # The event may have been unregistered since the binding was added
                if any(b.id == binding.id for b in self._bindings.get(binding.event_id, [])):
                    self._handlers[binding.id] = trigger
        except Exception as e:
            self._rollback_binding(binding)
            self._log.error(
                f"Failed to register handler for binding {binding.id}, rolled back: {e}",
                extra={
                    "event_id": binding.event_id,
                    "binding_id": binding.id,
                    "error": str(e),
                },
            )
            raise HandlerRegistrationFailedError(binding.id, e) from e

        self._log.info(
            f"Bound {binding.handler_node_id} to {binding.event_id}",
            extra={
                "event_id": binding.event_id,
                "binding_id": binding.id,
                "blueprint_id": binding.blueprint_id,
                "node_id": binding.handler_node_id,
                "priority": binding.priority,
            },
        )
        self._notify_bound(binding)
        return binding.id

    def _rollback_binding(self, binding: EventBinding) -> None:
        with self._lock.gen_wlock():
            bindings = self._bindings.get(binding.event_id)
            if bindings is not None:
                for i, existing in enumerate(bindings):
                    if existing.id == binding.id:
                        del bindings[i]
                        break
            self._handlers.pop(binding.id, None)
            self._binding_events.pop(binding.id, None)

    def remove_binding(self, binding_id: str) -> bool:
        """Remove a binding and its closure. Returns False if no binding matched."""
        removed: EventBinding | None = None
        with self._lock.gen_wlock():
            for bindings in self._bindings.values():
                for i, binding in enumerate(bindings):
                    if binding.id == binding_id:
                        removed = bindings.pop(i)
                        break
                if removed is not None:
                    break
            if removed is not None:
                self._handlers.pop(binding_id, None)
                self._binding_events.pop(binding_id, None)

        if removed is None:
            return False
        self._log.info(
            f"Removed binding {binding_id}",
            extra={"event_id": removed.event_id, "binding_id": binding_id},
        )
        self._notify_unbound(binding_id)
        return True

    def clear_bindings(self, blueprint_id: str) -> int:
        """Remove every binding owned by ``blueprint_id``. Returns the count removed."""
        removed_ids: list[str] = []
        with self._lock.gen_wlock():
            for event_id, bindings in self._bindings.items():
                kept = []
                for binding in bindings:
                    if binding.blueprint_id == blueprint_id:
                        removed_ids.append(binding.id)
                        self._handlers.pop(binding.id, None)
                        self._binding_events.pop(binding.id, None)
                    else:
                        kept.append(binding)
                if len(kept) != len(bindings):
                    self._bindings[event_id] = kept

        self._log.info(
            f"Cleared {len(removed_ids)} bindings for blueprint {blueprint_id}",
            extra={"blueprint_id": blueprint_id, "bindings_removed": len(removed_ids)},
        )
        for binding_id in removed_ids:
            self._notify_unbound(binding_id)
        return len(removed_ids)

    def get_event_bindings(self, event_id: str) -> list[EventBinding] | None:
        """Return a copy of the event's binding list, or None for unknown events."""
        with self._lock.gen_rlock():
            if event_id not in self._definitions:
                return None
            return list(self._bindings.get(event_id, []))

    def get_all_bindings(self) -> list[EventBinding]:
        with self._lock.gen_rlock():
            return [b for bindings in self._bindings.values() for b in bindings]

    def has_handler(self, binding_id: str) -> bool:
        with self._lock.gen_rlock():
            return binding_id in self._handlers

    def set_binding_enabled(self, binding_id: str, enabled: bool) -> bool:
        """Toggle a binding's enabled flag in place. Returns False if not found."""
        with self._lock.gen_wlock():
            for bindings in self._bindings.values():
                for i, binding in enumerate(bindings):
                    if binding.id == binding_id:
                        bindings[i] = binding.model_copy(update={"enabled": enabled})
                        return True
        return False

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def dispatch_event(self, request: EventDispatchRequest) -> list[EventError]:
        """Validate ``request`` and invoke every enabled binding in priority order.

        Never raises for validation or handler failures; they are returned.
        Validation failures abort the dispatch before any handler runs. A
        failing handler does not prevent the remaining handlers from running.
        """
        event_id = request.event_id
        bindings: list[EventBinding] = []
        handlers: dict[str, HandlerClosure] = {}
        with self._lock.gen_rlock():
            definition = self._definitions.get(event_id)
            if definition is not None:
                bindings = list(self._bindings.get(event_id, []))
                handlers = {
                    b.id: self._handlers[b.id] for b in bindings if b.id in self._handlers
                }

        if definition is None:
            self._log.error(
                f"Dispatch of unknown event {event_id}",
                extra={"event_id": event_id, "execution_id": request.execution_id},
            )
            return [EventNotFoundError(event_id)]

        validation_errors = validate_parameters(definition, request.parameters)
        if validation_errors:
            self._log.error(
                f"Parameter validation failed for event {event_id}",
                extra={
                    "event_id": event_id,
                    "execution_id": request.execution_id,
                    "errors": [str(e) for e in validation_errors],
                },
            )
            return validation_errors

        self._log.info(
            f"Dispatching {event_id} to {len(bindings)} bindings",
            extra={
                "event_id": event_id,
                "blueprint_id": request.blueprint_id,
                "execution_id": request.execution_id,
                "source_id": request.source_id,
            },
        )

        errors: list[EventError] = []
        for binding in bindings:
            if not binding.enabled:
                continue

            handler = handlers.get(binding.id)
            if handler is None:
                # Bind still in flight; the closure depends only on the binding
                self._log.debug(
                    f"No handler installed yet for binding {binding.id}; building one",
                    extra={"event_id": event_id, "binding_id": binding.id},
                )
                handler = make_trigger(self.engine_controller, binding)

            handler_context = EventHandlerContext(
                event_id=event_id,
                parameters=dict(request.parameters),
                source_id=request.source_id,
                blueprint_id=request.blueprint_id,
                execution_id=request.execution_id,
                handler_node_id=binding.handler_node_id,
                binding_id=binding.id,
                timestamp=request.timestamp,
            )

            try:
                handler(handler_context)
            except Exception as e:
                errors.append(HandlerInvocationFailedError(binding.id, e))
                self._log.error(
                    f"Error executing handler for binding {binding.id}: {e}",
                    extra={
                        "event_id": event_id,
                        "binding_id": binding.id,
                        "blueprint_id": binding.blueprint_id,
                        "node_id": binding.handler_node_id,
                        "execution_id": request.execution_id,
                        "error": str(e),
                    },
                )

        self._notify_dispatched(event_id, request)
        return errors

    # ------------------------------------------------------------------
    # Listeners
    # ------------------------------------------------------------------

    def add_listener(self, listener: EventListener) -> None:
        with self._lock.gen_wlock():
            if listener not in self._listeners:
                self._listeners.append(listener)

    def remove_listener(self, listener: EventListener) -> bool:
        with self._lock.gen_wlock():
            if listener in self._listeners:
                self._listeners.remove(listener)
                return True
        return False

    def _snapshot_listeners(self) -> list[EventListener]:
        with self._lock.gen_rlock():
            return list(self._listeners)

    def _notify(self, method: str, *args: object) -> None:
        for listener in self._snapshot_listeners():
            try:
                getattr(listener, method)(*args)
            except Exception as e:
                self._log.error(
                    f"Event listener {type(listener).__name__}.{method} raised: {e}",
                    extra={"listener": type(listener).__name__, "error": str(e)},
                )

    def _notify_dispatched(self, event_id: str, request: EventDispatchRequest) -> None:
        self._notify("on_event_dispatched", event_id, request)

    def _notify_bound(self, binding: EventBinding) -> None:
        self._notify("on_event_bound", binding)

    def _notify_unbound(self, binding_id: str) -> None:
        self._notify("on_event_unbound", binding_id)
