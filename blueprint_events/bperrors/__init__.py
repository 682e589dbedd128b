"""Blueprint error taxonomy, error recording and recovery policy."""

from blueprint_events.bperrors.manager import ErrorManager
from blueprint_events.bperrors.recovery import (
    MAX_RECOVERY_ATTEMPTS,
    RecoveryAttempt,
    RecoveryManager,
)
from blueprint_events.bperrors.types import (
    BlueprintError,
    ErrorCode,
    ErrorSeverity,
    ErrorType,
    RecoveryStrategy,
    wrap,
)

__all__ = [
    "BlueprintError",
    "ErrorCode",
    "ErrorSeverity",
    "ErrorType",
    "RecoveryStrategy",
    "wrap",
    "ErrorManager",
    "RecoveryManager",
    "RecoveryAttempt",
    "MAX_RECOVERY_ATTEMPTS",
]
