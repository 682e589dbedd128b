"""Recovery policy: picks a strategy for an error and supplies default values."""

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from readerwriterlock import rwlock

from blueprint_events.bperrors.manager import ErrorManager
from blueprint_events.bperrors.types import BlueprintError, RecoveryStrategy
from blueprint_events.core.types import PinType, PinTypes, Value

MAX_RECOVERY_ATTEMPTS = 3

DefaultValueProvider = Callable[[PinType], Value]


@dataclass
class RecoveryAttempt:
    """One recovery attempt made for a node during an execution."""

    error: BlueprintError
    strategy: RecoveryStrategy
    successful: bool
    details: dict[str, Any] | None = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))


class RecoveryManager:
    """Chooses and records recovery attempts on top of an ErrorManager.

    Each strategy may be attempted at most ``MAX_RECOVERY_ATTEMPTS`` times
    per (execution, node).
    """

    def __init__(self, error_manager: ErrorManager) -> None:
        self.error_manager = error_manager
        self._lock = rwlock.RWLockFair()
        self._providers: dict[str, DefaultValueProvider] = {}
        self._attempts: dict[str, dict[str, list[RecoveryAttempt]]] = {}
        self._register_default_providers()

    def _register_default_providers(self) -> None:
        self.register_default_value_provider("string", lambda pt: Value(PinTypes.STRING, ""))
        self.register_default_value_provider("number", lambda pt: Value(PinTypes.NUMBER, 0.0))
        self.register_default_value_provider("boolean", lambda pt: Value(PinTypes.BOOLEAN, False))
        self.register_default_value_provider("array", lambda pt: Value(PinTypes.ARRAY, []))
        self.register_default_value_provider("object", lambda pt: Value(PinTypes.OBJECT, {}))
        self.register_default_value_provider("any", lambda pt: Value(PinTypes.ANY, None))

    def register_default_value_provider(self, type_id: str, provider: DefaultValueProvider) -> None:
        with self._lock.gen_wlock():
            self._providers[type_id] = provider

    def recover_from_error(
        self, execution_id: str, err: BlueprintError
    ) -> tuple[bool, dict[str, Any] | None]:
        """Try the first registered strategy for ``err`` and record the attempt."""
        strategies = self.error_manager.get_recovery_strategies(err)
        if not strategies or strategies[0] == RecoveryStrategy.NONE:
            return False, None
        strategy = strategies[0]

        with self._lock.gen_wlock():
            node_attempts = self._attempts.setdefault(execution_id, {}).setdefault(err.node_id, [])
            tried = sum(1 for a in node_attempts if a.strategy == strategy)
            if tried >= MAX_RECOVERY_ATTEMPTS:
                return False, {"reason": "too_many_attempts", "max_attempts": MAX_RECOVERY_ATTEMPTS}

            success, details = self.error_manager.attempt_recovery(err, strategy)
            node_attempts.append(RecoveryAttempt(err, strategy, success, details))
        return success, details

    def get_default_value(self, pin_type: PinType) -> Value:
        """Return the default value for ``pin_type``, falling back to ``any``.

        Raises:
            LookupError: If neither a provider for the type nor for ``any`` exists.
        """
        with self._lock.gen_rlock():
            provider = self._providers.get(pin_type.id) or self._providers.get("any")
        if provider is None:
            raise LookupError(f"no default value provider for pin type {pin_type.id!r}")
        return provider(pin_type)

    def get_recovery_attempts(self, execution_id: str, node_id: str) -> list[RecoveryAttempt]:
        with self._lock.gen_rlock():
            return list(self._attempts.get(execution_id, {}).get(node_id, []))

    def count_recovery_attempts(
        self, execution_id: str, node_id: str, strategy: RecoveryStrategy
    ) -> int:
        return sum(1 for a in self.get_recovery_attempts(execution_id, node_id) if a.strategy == strategy)

    def clear_recovery_attempts(self, execution_id: str) -> None:
        with self._lock.gen_wlock():
            self._attempts.pop(execution_id, None)
