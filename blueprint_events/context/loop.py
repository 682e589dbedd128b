"""Context layer tracking loop iteration state."""

import queue
import time
from typing import Any

from readerwriterlock import rwlock

from blueprint_events.context.base import ContextDecorator, ExecutionContext
from blueprint_events.context.capabilities import LoopCapability
from blueprint_events.core.types import Value

LOOP_BODY_PIN = "loop"
LOOP_COMPLETED_PIN = "completed"
LOOP_INDEX_PIN = "index"


def _pulse(signal: "queue.Queue[bool]") -> bool:
    try:
        signal.put_nowait(True)
    except queue.Full:
        return False
    return True


def _wait(signal: "queue.Queue[bool]", timeout: float | None) -> bool:
    try:
        signal.get(timeout=timeout)
    except queue.Empty:
        return False
    return True


class LoopContext(ContextDecorator, LoopCapability):
    """Loop state plus two one-shot completion signals.

    ``body_completed`` is pulsed by ``signal_iteration_complete`` once per
    iteration. ``execution_done`` is pulsed when the ``completed`` flow is
    activated. Both sends are non-blocking: a pulse nobody consumes is
    dropped rather than blocking the sender.
    """

    def __init__(
        self,
        inner: ExecutionContext,
        loop_var_name: str = LOOP_INDEX_PIN,
        max_iterations: int = 0,
        start_index: float = 0.0,
    ) -> None:
        super().__init__(inner)
        self.loop_var_name = loop_var_name
        self.max_iterations = max_iterations
        self.start_index = start_index
        self._current_index = start_index
        self._iterations_done = 0
        self._body_activated = False
        self.start_time = time.monotonic()
        self._outputs: dict[str, Value] = {}
        self._debug_data: dict[str, Any] = {}
        self._lock = rwlock.RWLockFair()
        self._body_completed: queue.Queue[bool] = queue.Queue(maxsize=1)
        self._execution_done: queue.Queue[bool] = queue.Queue(maxsize=1)

    @property
    def current_index(self) -> float:
        with self._lock.gen_rlock():
            return self._current_index

    @current_index.setter
    def current_index(self, index: float) -> None:
        with self._lock.gen_wlock():
            self._current_index = index

    @property
    def iterations_done(self) -> int:
        with self._lock.gen_rlock():
            return self._iterations_done

    def increment_iterations_done(self) -> int:
        with self._lock.gen_wlock():
            self._iterations_done += 1
            return self._iterations_done

    @property
    def body_activated(self) -> bool:
        with self._lock.gen_rlock():
            return self._body_activated

    def activate_output_flow(self, pin_id: str) -> None:
        if pin_id == LOOP_BODY_PIN:
            with self._lock.gen_wlock():
                self._body_activated = True
            self.logger.info("Activate loop body flow", extra={"pin_id": pin_id})
        elif pin_id == LOOP_COMPLETED_PIN:
            _pulse(self._execution_done)
        self._inner.activate_output_flow(pin_id)

    def set_output_value(self, pin_id: str, value: Value) -> None:
        with self._lock.gen_wlock():
            self._outputs[pin_id] = value
            if pin_id == LOOP_INDEX_PIN:
                self._debug_data["currentIndex"] = value.raw

        if pin_id == LOOP_INDEX_PIN:
            # Each downstream reader gets its own Value
            self._inner.set_output_value(pin_id, value.clone())
            self.logger.debug(
                "Setting loop index output",
                extra={"index": value.raw, "iteration": self.iterations_done},
            )
        else:
            self._inner.set_output_value(pin_id, value)

    def get_output_value(self, pin_id: str) -> Value | None:
        with self._lock.gen_rlock():
            value = self._outputs.get(pin_id)
        if value is not None:
            return value
        return self._inner.get_output_value(pin_id)

    def get_debug_data(self) -> dict[str, Any]:
        result = self._inner.get_debug_data()
        with self._lock.gen_rlock():
            result["loopState"] = {
                "currentIndex": self._current_index,
                "maxIterations": self.max_iterations,
                "iterationsDone": self._iterations_done,
                "duration": time.monotonic() - self.start_time,
            }
            result.update(self._debug_data)
        return result

    def signal_iteration_complete(self) -> None:
        """Pulse ``body_completed``; logs a warning if a pulse is already pending."""
        if not _pulse(self._body_completed):
            self.logger.warning("Could not send loop body completion signal")

    def wait_body_completed(self, timeout: float | None = None) -> bool:
        return _wait(self._body_completed, timeout)

    def wait_execution_done(self, timeout: float | None = None) -> bool:
        return _wait(self._execution_done, timeout)
