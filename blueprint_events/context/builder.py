"""Fluent construction of a node execution context with capabilities."""

from readerwriterlock import rwlock

from blueprint_events.bperrors import ErrorManager, RecoveryManager
from blueprint_events.context.actor import ActorExecutionContext
from blueprint_events.context.base import (
    ActivateFlowHook,
    ContextDecorator,
    DefaultExecutionContext,
    ExecutionContext,
    ExecutionHooks,
)
from blueprint_events.context.error_aware import ErrorAwareContext
from blueprint_events.context.event_aware import EventAwareContext
from blueprint_events.context.function import FunctionExecutionContext
from blueprint_events.context.loop import LOOP_INDEX_PIN, LoopContext
from blueprint_events.core.event import EventHandlerContext
from blueprint_events.core.logging import NodeLogger
from blueprint_events.core.manager import EventManager
from blueprint_events.core.types import Pin, Value


class ContextBuilder:
    """Builds a context for one node execution.

    Requested layers are always composed in the same order, innermost
    first: base, error, actor, event, function, loop. Any layer may be
    left out without changing the relative order of the rest.

    Example:
        ctx = (
            ContextBuilder("node-1", "print", "bp-1", "exec-1", inputs=inputs)
            .with_error_handling(error_manager, recovery_manager)
            .with_actor_mode()
            .with_event_support(event_manager)
            .build()
        )
    """

    def __init__(
        self,
        node_id: str,
        node_type: str,
        blueprint_id: str,
        execution_id: str,
        inputs: dict[str, Value] | None = None,
        variables: dict[str, Value] | None = None,
        logger: NodeLogger | None = None,
        hooks: ExecutionHooks | None = None,
        activate_flow: ActivateFlowHook | None = None,
        input_pins: list[Pin] | None = None,
        active_input_pins: set[str] | None = None,
    ) -> None:
        self.node_id = node_id
        self.node_type = node_type
        self.blueprint_id = blueprint_id
        self.execution_id = execution_id
        self.inputs = inputs
        self.variables = variables
        self.logger = logger
        self.hooks = hooks
        self.activate_flow = activate_flow
        self.input_pins = list(input_pins or [])
        self.active_input_pins = active_input_pins

        self._error_managers: tuple[ErrorManager, RecoveryManager] | None = None
        self._actor_mode = False
        self._variables_lock: rwlock.RWLockFair | None = None
        self._event_manager: EventManager | None = None
        self._handler_context: EventHandlerContext | None = None
        self._is_event_handler: bool | None = None
        self._function_id: str | None = None
        self._loop_args: dict | None = None

    def with_error_handling(
        self, error_manager: ErrorManager, recovery_manager: RecoveryManager
    ) -> "ContextBuilder":
        if error_manager is None or recovery_manager is None:
            raise ValueError("error handling requires an error manager and a recovery manager")
        self._error_managers = (error_manager, recovery_manager)
        return self

    def with_actor_mode(self, variables_lock: rwlock.RWLockFair | None = None) -> "ContextBuilder":
        """Serialise state access; pass the lock that guards a shared variables map."""
        self._actor_mode = True
        self._variables_lock = variables_lock
        return self

    def with_event_support(
        self,
        event_manager: EventManager,
        handler_context: EventHandlerContext | None = None,
        is_event_handler: bool | None = None,
    ) -> "ContextBuilder":
        if event_manager is None:
            raise ValueError("event support requires an event manager")
        self._event_manager = event_manager
        self._handler_context = handler_context
        self._is_event_handler = is_event_handler
        return self

    def with_function(self, function_id: str) -> "ContextBuilder":
        self._function_id = function_id
        return self

    def with_loop_support(
        self,
        loop_var_name: str = LOOP_INDEX_PIN,
        max_iterations: int = 0,
        start_index: float = 0.0,
    ) -> "ContextBuilder":
        self._loop_args = {
            "loop_var_name": loop_var_name,
            "max_iterations": max_iterations,
            "start_index": start_index,
        }
        return self

    def build(self) -> ExecutionContext:
        ctx: ExecutionContext = DefaultExecutionContext(
            self.node_id,
            self.node_type,
            self.blueprint_id,
            self.execution_id,
            inputs=self.inputs,
            variables=self.variables,
            logger=self.logger,
            hooks=self.hooks,
            activate_flow=self.activate_flow,
            active_input_pins=self.active_input_pins,
        )

        if self._error_managers is not None:
            error_manager, recovery_manager = self._error_managers
            ctx = ErrorAwareContext(ctx, error_manager, recovery_manager, self.input_pins)
        if self._actor_mode:
            ctx = ActorExecutionContext(ctx, self._variables_lock)
        if self._event_manager is not None:
            ctx = EventAwareContext(
                ctx, self._event_manager, self._handler_context, self._is_event_handler
            )
        if self._function_id is not None:
            ctx = FunctionExecutionContext(ctx, self._function_id)
        if self._loop_args is not None:
            ctx = LoopContext(ctx, **self._loop_args)

        if isinstance(ctx, ContextDecorator):
            ctx.bind_root(ctx)
        return ctx
