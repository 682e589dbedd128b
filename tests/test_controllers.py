"""Tests for the inline and threaded engine controllers."""

import logging
import threading

import pytest

from blueprint_events.bperrors import ErrorCode, ErrorManager, RecoveryManager
from blueprint_events.context import ActorCapability, ErrorCapability, EventCapability, ExecutionHooks, find_capability
from blueprint_events.controllers import (
    InlineEngineController,
    NodeNotFoundError,
    ThreadedEngineController,
)
from blueprint_events.core import (
    EventBinding,
    EventDefinition,
    EventDispatchRequest,
    EventManager,
    EventParameter,
    HandlerInvocationFailedError,
    PinTypes,
    Value,
)
from blueprint_events.nodes import Node, NodeExecutionError

BP = "bp-1"


class CountingNode(Node):
    """Records the event parameter ``n`` into a shared list."""

    type_id = "counting"

    def __init__(self, node_id, sink, barrier=None):
        super().__init__(node_id)
        self.sink = sink
        self.barrier = barrier

    def execute(self, ctx):
        if self.barrier is not None:
            self.barrier.wait(timeout=5)
        events = find_capability(ctx, EventCapability)
        self.sink.append((self.node_id, events.get_event_parameter("n").raw))
        ctx.activate_output_flow("then")


class FailingNode(Node):
    type_id = "failing"

    def execute(self, ctx):
        raise NodeExecutionError(self.node_id, "always fails")


class UntypedNode(Node):
    def execute(self, ctx):
        return None


def attach_manager(controller) -> EventManager:
    manager = EventManager(controller)
    controller.event_manager = manager
    manager.register_event(
        EventDefinition(id="tick", parameters=[EventParameter(name="n", pin_type=PinTypes.NUMBER)])
    )
    return manager


def bind(manager: EventManager, node_id: str, priority: int = 0) -> str:
    return manager.bind_event(
        EventBinding(event_id="tick", handler_node_id=node_id, blueprint_id=BP, priority=priority)
    )


def tick(n: float, execution_id: str = "exec-1") -> EventDispatchRequest:
    return EventDispatchRequest(
        event_id="tick",
        parameters={"n": Value(PinTypes.NUMBER, n)},
        source_id="clock",
        blueprint_id=BP,
        execution_id=execution_id,
    )


class TestInlineEngineController:
    def test_runs_handlers_in_priority_order(self):
        controller = InlineEngineController()
        manager = attach_manager(controller)
        sink: list = []
        for node_id, priority in (("low", 0), ("high", 5)):
            controller.register_node(BP, CountingNode(node_id, sink))
            bind(manager, node_id, priority)

        assert manager.dispatch_event(tick(1.0)) == []
        assert sink == [("high", 1.0), ("low", 1.0)]

    def test_handler_context_propagated(self):
        controller = InlineEngineController()
        manager = attach_manager(controller)
        controller.register_node(BP, CountingNode("h", []))
        binding_id = bind(manager, "h")

        manager.dispatch_event(tick(2.0))

        run = controller.get_runs("h")[0]
        assert run.succeeded
        assert run.handler_context.binding_id == binding_id
        events = find_capability(run.context, EventCapability)
        assert events.is_event_handler_active()
        assert events.get_event_source_id() == "clock"
        assert run.context.execution_id == "exec-1"

    def test_node_failure_not_propagated(self, capture_logs):
        logs = capture_logs("blueprint_events.controller")
        controller = InlineEngineController()
        manager = attach_manager(controller)
        sink: list = []
        controller.register_node(BP, FailingNode("bad"))
        controller.register_node(BP, CountingNode("good", sink))
        bind(manager, "bad", 1)
        bind(manager, "good", 0)

        assert manager.dispatch_event(tick(3.0)) == []

        assert sink == [("good", 3.0)]
        failed = controller.get_runs("bad")[0]
        assert isinstance(failed.error, NodeExecutionError)
        assert any("always fails" in m for m in logs.messages(logging.ERROR))

    def test_unknown_node_is_invocation_failure(self):
        controller = InlineEngineController()
        manager = attach_manager(controller)
        binding_id = bind(manager, "ghost")

        errors = manager.dispatch_event(tick(1.0))

        assert len(errors) == 1
        assert isinstance(errors[0], HandlerInvocationFailedError)
        assert errors[0].binding_id == binding_id
        assert isinstance(errors[0].cause, NodeNotFoundError)

    def test_failures_recorded_with_error_handling(self):
        errors = ErrorManager()
        controller = InlineEngineController(error_manager=errors, recovery_manager=RecoveryManager(errors))
        manager = attach_manager(controller)
        controller.register_node(BP, FailingNode("bad"))
        bind(manager, "bad")

        manager.dispatch_event(tick(1.0, execution_id="exec-7"))

        recorded = errors.get_errors("exec-7")
        assert [e.code for e in recorded] == [ErrorCode.NODE_EXECUTION_FAILED]
        assert recorded[0].node_id == "bad"
        assert isinstance(recorded[0].original_error, NodeExecutionError)
        assert find_capability(controller.get_runs("bad")[0].context, ErrorCapability) is not None

    def test_hooks(self):
        seen: list = []
        hooks = ExecutionHooks(
            on_node_start=lambda node_id, type_id: seen.append(("start", node_id)),
            on_node_complete=lambda node_id, type_id: seen.append(("complete", node_id)),
            on_node_error=lambda node_id, err: seen.append(("error", node_id)),
        )
        controller = InlineEngineController(hooks=hooks)
        attach_manager(controller)
        controller.register_node(BP, FailingNode("bad"))

        controller.execute_node(BP, "bad")

        assert seen == [("start", "bad"), ("error", "bad")]

    def test_variables_shared_within_execution(self):
        controller = InlineEngineController()
        attach_manager(controller)

        first = controller.build_context(BP, CountingNode("a", []), "exec-1")
        second = controller.build_context(BP, CountingNode("b", []), "exec-1")
        other = controller.build_context(BP, CountingNode("c", []), "exec-2")
        first.set_variable("v", Value(PinTypes.STRING, "x"))

        assert second.get_variable("v") == Value(PinTypes.STRING, "x")
        assert other.get_variable("v") is None

    def test_registration_checks(self):
        controller = InlineEngineController()
        with pytest.raises(TypeError):
            controller.register_node(BP, UntypedNode("u"))
        with pytest.raises(NodeNotFoundError):
            controller.get_node(BP, "missing")
        assert controller.unregister_node(BP, "missing") is False

    def test_requires_manager_before_running(self):
        controller = InlineEngineController()
        with pytest.raises(RuntimeError):
            controller.build_context(BP, CountingNode("a", []), "exec-1")

    def test_managers_supplied_together(self):
        with pytest.raises(ValueError):
            InlineEngineController(error_manager=ErrorManager())

    def test_inline_contexts_not_actor(self):
        controller = InlineEngineController()
        attach_manager(controller)
        ctx = controller.build_context(BP, CountingNode("a", []), "exec-1")
        assert find_capability(ctx, ActorCapability) is None


class TestThreadedEngineController:
    def test_handlers_run_concurrently(self):
        sink: list = []
        barrier = threading.Barrier(2)
        with ThreadedEngineController(max_workers=2) as controller:
            manager = attach_manager(controller)
            controller.register_node(BP, CountingNode("a", sink, barrier))
            controller.register_node(BP, CountingNode("b", sink, barrier))
            bind(manager, "a")
            bind(manager, "b")

            assert manager.dispatch_event(tick(4.0)) == []
            assert controller.wait_idle(timeout=5)

        # Both nodes passed the barrier, so they were running at the same time
        assert sorted(sink) == [("a", 4.0), ("b", 4.0)]
        assert all(run.succeeded for run in controller.get_runs())

    def test_contexts_are_actor_mode(self):
        with ThreadedEngineController() as controller:
            manager = attach_manager(controller)
            controller.register_node(BP, CountingNode("a", []))
            bind(manager, "a")
            manager.dispatch_event(tick(1.0))
            assert controller.wait_idle(timeout=5)

        run = controller.get_runs("a")[0]
        assert find_capability(run.context, ActorCapability) is not None

    def test_execution_shares_one_variables_lock(self):
        with ThreadedEngineController() as controller:
            attach_manager(controller)
            first = find_capability(controller.build_context(BP, CountingNode("a", []), "exec-1"), ActorCapability)
            second = find_capability(controller.build_context(BP, CountingNode("b", []), "exec-1"), ActorCapability)
            other = find_capability(controller.build_context(BP, CountingNode("c", []), "exec-2"), ActorCapability)

        assert first.variables_lock is second.variables_lock
        assert first.variables_lock is not other.variables_lock

    def test_parallel_variable_writes_across_contexts(self):
        with ThreadedEngineController() as controller:
            attach_manager(controller)
            contexts = [controller.build_context(BP, CountingNode(f"n{i}", []), "exec-1") for i in range(4)]

            def write(ctx, worker):
                for i in range(50):
                    ctx.set_variable(f"w{worker}-{i}", Value(PinTypes.NUMBER, float(i)))

            threads = [threading.Thread(target=write, args=(ctx, w)) for w, ctx in enumerate(contexts)]
            for t in threads:
                t.start()
            for t in threads:
                t.join(timeout=5)

        assert contexts[0].get_variable("w3-49") == Value(PinTypes.NUMBER, 49.0)
        assert contexts[3].get_variable("w0-0") == Value(PinTypes.NUMBER, 0.0)

    def test_many_dispatches(self):
        sink: list = []
        with ThreadedEngineController(max_workers=4) as controller:
            manager = attach_manager(controller)
            for i in range(3):
                controller.register_node(BP, CountingNode(f"h{i}", sink))
                bind(manager, f"h{i}")
            for n in range(20):
                assert manager.dispatch_event(tick(float(n))) == []
            assert controller.wait_idle(timeout=10)

        assert len(sink) == 60
        assert sorted(n for _, n in sink) == sorted(float(n) for n in range(20) for _ in range(3))

    def test_scheduling_failure_still_reported(self):
        with ThreadedEngineController() as controller:
            manager = attach_manager(controller)
            bind(manager, "ghost")
            errors = manager.dispatch_event(tick(1.0))
        assert isinstance(errors[0].cause, NodeNotFoundError)
