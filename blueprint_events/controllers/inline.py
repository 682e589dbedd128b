"""In-process engine controller running handler nodes on the caller's thread."""

import uuid
from dataclasses import dataclass

from readerwriterlock import rwlock

from blueprint_events.bperrors import ErrorCode, ErrorManager, ErrorType, RecoveryManager
from blueprint_events.context.base import ExecutionContext, ExecutionHooks
from blueprint_events.context.builder import ContextBuilder
from blueprint_events.context.capabilities import ErrorCapability, find_capability
from blueprint_events.controllers.base import NodeNotFoundError
from blueprint_events.core.event import EventHandlerContext
from blueprint_events.core.logging import NODE_LOGGER_NAME, NodeLogger, get_logger
from blueprint_events.core.manager import EventManager
from blueprint_events.core.types import Value
from blueprint_events.nodes.base import Node


@dataclass
class NodeRun:
    """Outcome of one node execution."""

    blueprint_id: str
    node_id: str
    context: ExecutionContext
    handler_context: EventHandlerContext | None = None
    error: BaseException | None = None

    @property
    def succeeded(self) -> bool:
        return self.error is None


class InlineEngineController:
    """Reference engine controller.

    Nodes are registered per blueprint. Triggering a handler builds its
    context through ContextBuilder (event capability always, error
    capability when managers are supplied) and executes it immediately.

    The event manager is attached after construction because the manager
    itself needs a controller:

        controller = InlineEngineController()
        manager = EventManager(controller)
        controller.event_manager = manager
    """

    actor_mode = False

    def __init__(
        self,
        event_manager: EventManager | None = None,
        *,
        error_manager: ErrorManager | None = None,
        recovery_manager: RecoveryManager | None = None,
        hooks: ExecutionHooks | None = None,
    ) -> None:
        if (error_manager is None) != (recovery_manager is None):
            raise ValueError("error_manager and recovery_manager must be supplied together")
        self.event_manager = event_manager
        self.error_manager = error_manager
        self.recovery_manager = recovery_manager
        self.hooks = hooks
        self._log = get_logger("blueprint_events.controller")
        self._node_logger = NodeLogger(get_logger(NODE_LOGGER_NAME))
        self._lock = rwlock.RWLockFair()
        self._nodes: dict[tuple[str, str], Node] = {}
        self._variables: dict[str, tuple[dict[str, Value], rwlock.RWLockFair]] = {}
        self._runs: list[NodeRun] = []

    def register_node(self, blueprint_id: str, node: Node) -> None:
        if not isinstance(node.type_id, str) or not node.type_id:
            raise TypeError(f"{type(node).__name__}.type_id must be a non-empty string")
        with self._lock.gen_wlock():
            self._nodes[(blueprint_id, node.node_id)] = node

    def unregister_node(self, blueprint_id: str, node_id: str) -> bool:
        with self._lock.gen_wlock():
            return self._nodes.pop((blueprint_id, node_id), None) is not None

    def get_node(self, blueprint_id: str, node_id: str) -> Node:
        with self._lock.gen_rlock():
            node = self._nodes.get((blueprint_id, node_id))
        if node is None:
            raise NodeNotFoundError(blueprint_id, node_id)
        return node

    def get_runs(self, node_id: str | None = None) -> list[NodeRun]:
        """Return recorded runs, optionally only those of one node."""
        with self._lock.gen_rlock():
            runs = list(self._runs)
        if node_id is not None:
            runs = [r for r in runs if r.node_id == node_id]
        return runs

    def _execution_variables(self, execution_id: str) -> tuple[dict[str, Value], rwlock.RWLockFair]:
        """Variables map of one execution and the lock every actor context shares for it."""
        with self._lock.gen_wlock():
            if execution_id not in self._variables:
                self._variables[execution_id] = ({}, rwlock.RWLockFair())
            return self._variables[execution_id]

    def build_context(
        self,
        blueprint_id: str,
        node: Node,
        execution_id: str,
        inputs: dict[str, Value] | None = None,
        handler_context: EventHandlerContext | None = None,
        active_input_pins: set[str] | None = None,
    ) -> ExecutionContext:
        if self.event_manager is None:
            raise RuntimeError("controller has no event manager attached")

        node.prepare(self.event_manager, inputs or {})
        variables, variables_lock = self._execution_variables(execution_id)
        builder = ContextBuilder(
            node.node_id,
            node.type_id,
            blueprint_id,
            execution_id,
            inputs=inputs,
            variables=variables,
            logger=self._node_logger.opts(blueprint_id=blueprint_id, execution_id=execution_id),
            hooks=self.hooks,
            input_pins=node.input_pins,
            active_input_pins=active_input_pins,
        )
        if self.error_manager is not None and self.recovery_manager is not None:
            builder.with_error_handling(self.error_manager, self.recovery_manager)
        if self.actor_mode:
            builder.with_actor_mode(variables_lock)
        builder.with_event_support(self.event_manager, handler_context)
        return builder.build()

    def trigger_node_execution(
        self, blueprint_id: str, node_id: str, handler_context: EventHandlerContext
    ) -> None:
        node = self.get_node(blueprint_id, node_id)
        ctx = self.build_context(
            blueprint_id, node, handler_context.execution_id, handler_context=handler_context
        )
        self._log.info(
            f"Triggering handler node {node_id}",
            extra={
                "blueprint_id": blueprint_id,
                "node_id": node_id,
                "event_id": handler_context.event_id,
                "binding_id": handler_context.binding_id,
                "execution_id": handler_context.execution_id,
            },
        )
        self._submit(node, NodeRun(blueprint_id, node_id, ctx, handler_context))

    def execute_node(
        self,
        blueprint_id: str,
        node_id: str,
        inputs: dict[str, Value] | None = None,
        execution_id: str | None = None,
        active_input_pins: set[str] | None = None,
    ) -> NodeRun:
        """Run a registered node directly on the calling thread."""
        node = self.get_node(blueprint_id, node_id)
        execution_id = execution_id or str(uuid.uuid4())
        ctx = self.build_context(
            blueprint_id, node, execution_id, inputs=inputs, active_input_pins=active_input_pins
        )
        run = NodeRun(blueprint_id, node_id, ctx)
        self._run(node, run)
        return run

    def _submit(self, node: Node, run: NodeRun) -> None:
        self._run(node, run)

    def _run(self, node: Node, run: NodeRun) -> None:
        hooks = self.hooks
        if hooks is not None and hooks.on_node_start is not None:
            hooks.on_node_start(node.node_id, node.type_id)
        try:
            node.execute(run.context)
        except Exception as e:
            run.error = e
            self._log.error(
                f"Node {node.node_id} raised exception: {e}",
                extra={
                    "blueprint_id": run.blueprint_id,
                    "node_id": node.node_id,
                    "execution_id": run.context.execution_id,
                    "error": str(e),
                },
            )
            errors = find_capability(run.context, ErrorCapability)
            if errors is not None:
                errors.report_error(
                    ErrorType.EXECUTION, ErrorCode.NODE_EXECUTION_FAILED, str(e), original=e
                )
            if hooks is not None and hooks.on_node_error is not None:
                hooks.on_node_error(node.node_id, e)
        else:
            if hooks is not None and hooks.on_node_complete is not None:
                hooks.on_node_complete(node.node_id, node.type_id)
        finally:
            with self._lock.gen_wlock():
                self._runs.append(run)
