"""Per-execution error recording, analysis and recovery strategy registry."""

from collections import Counter
from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any

from readerwriterlock import rwlock

from blueprint_events.bperrors.types import (
    BlueprintError,
    ErrorCode,
    ErrorType,
    RecoveryStrategy,
)
from blueprint_events.core.logging import get_logger

ErrorHandler = Callable[[BlueprintError], None]

DEFAULT_RECOVERY_STRATEGIES: dict[ErrorCode, tuple[RecoveryStrategy, ...]] = {
    ErrorCode.NODE_EXECUTION_FAILED: (RecoveryStrategy.RETRY, RecoveryStrategy.SKIP_NODE),
    ErrorCode.NODE_NOT_FOUND: (RecoveryStrategy.SKIP_NODE,),
    ErrorCode.NODE_TYPE_NOT_REGISTERED: (RecoveryStrategy.SKIP_NODE,),
    ErrorCode.EXECUTION_TIMEOUT: (RecoveryStrategy.RETRY,),
    ErrorCode.MISSING_REQUIRED_INPUT: (RecoveryStrategy.USE_DEFAULT_VALUE,),
    ErrorCode.TYPE_MISMATCH: (RecoveryStrategy.USE_DEFAULT_VALUE,),
    ErrorCode.DATABASE_CONNECTION: (RecoveryStrategy.RETRY,),
}

MAX_RETRIES = 3
TOP_PROBLEM_NODES = 5


class ErrorManager:
    """Records BlueprintErrors per execution and knows how each code recovers."""

    def __init__(self) -> None:
        self._lock = rwlock.RWLockFair()
        self._errors: dict[str, list[BlueprintError]] = {}
        self._handlers: dict[ErrorType, list[ErrorHandler]] = {}
        self._strategies: dict[ErrorCode, list[RecoveryStrategy]] = {
            code: list(strategies) for code, strategies in DEFAULT_RECOVERY_STRATEGIES.items()
        }
        self._log = get_logger("blueprint_events.bperrors")

    def record_error(self, execution_id: str, err: BlueprintError) -> None:
        """Store ``err`` and run the handlers registered for its type.

        Errors without recovery options inherit the registered strategies
        for their code. A failing handler is logged and does not stop the
        others.
        """
        with self._lock.gen_wlock():
            if not err.recovery_options:
                strategies = self._strategies.get(err.code)
                if strategies:
                    err.with_recovery_options(*strategies)
            self._errors.setdefault(execution_id, []).append(err)
            handlers = list(self._handlers.get(err.type, []))

        for handler in handlers:
            try:
                handler(err)
            except Exception as e:
                self._log.error(
                    f"Error handler failed: {e}",
                    extra={"execution_id": execution_id, "code": err.code.value, "error": str(e)},
                )

    def get_errors(self, execution_id: str) -> list[BlueprintError]:
        with self._lock.gen_rlock():
            return list(self._errors.get(execution_id, []))

    def get_node_errors(self, execution_id: str, node_id: str) -> list[BlueprintError]:
        with self._lock.gen_rlock():
            return [e for e in self._errors.get(execution_id, []) if e.node_id == node_id]

    def clear_errors(self, execution_id: str) -> None:
        with self._lock.gen_wlock():
            self._errors.pop(execution_id, None)

    def register_error_handler(self, error_type: ErrorType, handler: ErrorHandler) -> None:
        with self._lock.gen_wlock():
            self._handlers.setdefault(error_type, []).append(handler)

    def register_recovery_strategy(self, code: ErrorCode, *strategies: RecoveryStrategy) -> None:
        with self._lock.gen_wlock():
            self._strategies[code] = list(strategies)

    def get_recovery_strategies(self, err: BlueprintError) -> list[RecoveryStrategy]:
        with self._lock.gen_rlock():
            strategies = self._strategies.get(err.code)
            return list(strategies) if strategies else [RecoveryStrategy.NONE]

    def attempt_recovery(
        self, err: BlueprintError, strategy: RecoveryStrategy
    ) -> tuple[bool, dict[str, Any] | None]:
        """Decide whether ``strategy`` recovers ``err``.

        Returns a success flag and, on success, details describing the
        recovery the caller should perform.
        """
        if not err.recoverable or strategy not in err.recovery_options:
            return False, None

        now = datetime.now(UTC)
        if strategy == RecoveryStrategy.USE_DEFAULT_VALUE:
            return True, {"recovery_type": "default_value", "timestamp": now}
        if strategy == RecoveryStrategy.RETRY:
            return True, {"recovery_type": "retry", "max_retries": MAX_RETRIES, "timestamp": now}
        if strategy == RecoveryStrategy.SKIP_NODE:
            return True, {"recovery_type": "skip_node", "node_id": err.node_id, "timestamp": now}
        return False, None

    def analyze_errors(self, execution_id: str) -> dict[str, Any]:
        """Summarise an execution's errors by type, severity, node and code."""
        errors = self.get_errors(execution_id)
        if not errors:
            return {"total_errors": 0}

        node_counts = Counter(e.node_id for e in errors if e.node_id)
        return {
            "total_errors": len(errors),
            "recoverable_errors": sum(1 for e in errors if e.recoverable),
            "type_breakdown": dict(Counter(e.type.value for e in errors)),
            "severity_breakdown": dict(Counter(e.severity.value for e in errors)),
            "top_problem_nodes": [
                {"node_id": node_id, "count": count}
                for node_id, count in node_counts.most_common(TOP_PROBLEM_NODES)
            ],
            "most_common_codes": dict(Counter(e.code.value for e in errors)),
            "timestamp": datetime.now(UTC),
        }
