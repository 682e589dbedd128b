"""Thread-safe context layer for nodes executing in parallel."""

from typing import Any

from readerwriterlock import rwlock

from blueprint_events.context.base import ContextDecorator, ExecutionContext
from blueprint_events.context.capabilities import ActorCapability
from blueprint_events.core.types import DebugInfo, Value

DEFAULT_EXECUTE_PIN = "execute"


class ActorExecutionContext(ContextDecorator, ActorCapability):
    """Serialises the wrapped context's mutable state.

    Outputs, variables and debug data each sit behind their own
    reader-writer lock. The locks are leaves: nothing calls back into an
    event manager while holding one.

    Contexts that share one variables map must share ``variables_lock``
    too; the engine controller hands out one lock per execution.

    Input pins can be marked active explicitly for fan-in nodes. While no
    pin is marked, the default ``execute`` pin counts as active.
    """

    def __init__(self, inner: ExecutionContext, variables_lock: rwlock.RWLockFair | None = None) -> None:
        super().__init__(inner)
        self._active_pins: set[str] = set()
        self._pins_lock = rwlock.RWLockFair()
        self._outputs_lock = rwlock.RWLockFair()
        self._variables_lock = variables_lock if variables_lock is not None else rwlock.RWLockFair()
        self._debug_lock = rwlock.RWLockFair()

    @property
    def variables_lock(self) -> rwlock.RWLockFair:
        return self._variables_lock

    def set_input_pin_active(self, pin_id: str) -> None:
        with self._pins_lock.gen_wlock():
            self._active_pins.add(pin_id)

    def is_input_pin_active(self, pin_id: str) -> bool:
        with self._pins_lock.gen_rlock():
            if pin_id in self._active_pins:
                return True
            if pin_id == DEFAULT_EXECUTE_PIN and not self._active_pins:
                return True
        return self._inner.is_input_pin_active(pin_id)

    def set_output_value(self, pin_id: str, value: Value) -> None:
        with self._outputs_lock.gen_wlock():
            self._inner.set_output_value(pin_id, value)

    def get_output_value(self, pin_id: str) -> Value | None:
        with self._outputs_lock.gen_rlock():
            return self._inner.get_output_value(pin_id)

    def get_outputs(self) -> dict[str, Value]:
        with self._outputs_lock.gen_rlock():
            return self._inner.get_outputs()

    def get_variable(self, name: str) -> Value | None:
        with self._variables_lock.gen_rlock():
            return self._inner.get_variable(name)

    def set_variable(self, name: str, value: Value) -> None:
        with self._variables_lock.gen_wlock():
            self._inner.set_variable(name, value)

    def record_debug_info(self, info: DebugInfo) -> None:
        with self._debug_lock.gen_wlock():
            self._inner.record_debug_info(info)

    def get_debug_data(self) -> dict[str, Any]:
        with self._debug_lock.gen_rlock():
            return self._inner.get_debug_data()
