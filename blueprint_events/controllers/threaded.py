"""Engine controller running handler nodes on a thread pool."""

from concurrent.futures import Future, ThreadPoolExecutor, wait

from blueprint_events.bperrors import ErrorManager, RecoveryManager
from blueprint_events.context.base import ExecutionHooks
from blueprint_events.controllers.inline import InlineEngineController, NodeRun
from blueprint_events.core.manager import EventManager
from blueprint_events.nodes.base import Node

DEFAULT_MAX_WORKERS = 4


class ThreadedEngineController(InlineEngineController):
    """Schedules handler nodes on a ThreadPoolExecutor.

    ``trigger_node_execution`` returns as soon as the node is scheduled, so
    dispatch does not block on handler execution. Contexts are built in
    actor mode because handlers of one event may run in parallel.
    """

    actor_mode = True

    def __init__(
        self,
        event_manager: EventManager | None = None,
        *,
        max_workers: int = DEFAULT_MAX_WORKERS,
        error_manager: ErrorManager | None = None,
        recovery_manager: RecoveryManager | None = None,
        hooks: ExecutionHooks | None = None,
    ) -> None:
        super().__init__(
            event_manager,
            error_manager=error_manager,
            recovery_manager=recovery_manager,
            hooks=hooks,
        )
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="blueprint-handler"
        )
        self._pending: list[Future] = []

    def _submit(self, node: Node, run: NodeRun) -> None:
        future = self._executor.submit(self._run, node, run)
        with self._lock.gen_wlock():
            self._pending = [f for f in self._pending if not f.done()]
            self._pending.append(future)

    def wait_idle(self, timeout: float | None = None) -> bool:
        """Block until every scheduled node has finished. Returns False on timeout."""
        with self._lock.gen_rlock():
            pending = list(self._pending)
        _, not_done = wait(pending, timeout=timeout)
        return not not_done

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)

    def __enter__(self) -> "ThreadedEngineController":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.shutdown(wait=True)
