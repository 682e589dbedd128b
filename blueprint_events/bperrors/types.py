"""Structured blueprint error taxonomy."""

from datetime import UTC, datetime
from enum import Enum
from typing import Any


class ErrorType(str, Enum):
    """Category of a blueprint error."""

    EXECUTION = "execution"
    CONNECTION = "connection"
    VALIDATION = "validation"
    PERMISSION = "permission"
    DATABASE = "database"
    NETWORK = "network"
    PLUGIN = "plugin"
    SYSTEM = "system"
    UNKNOWN = "unknown"


class ErrorSeverity(str, Enum):
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    INFO = "info"


class ErrorCode(str, Enum):
    """Stable error codes, prefixed by category letter."""

    # Execution
    NODE_EXECUTION_FAILED = "E001"
    NODE_NOT_FOUND = "E002"
    NODE_TYPE_NOT_REGISTERED = "E003"
    EXECUTION_TIMEOUT = "E004"
    EXECUTION_CANCELLED = "E005"
    NO_ENTRY_POINTS = "E006"

    # Connection
    INVALID_CONNECTION = "C001"
    CIRCULAR_DEPENDENCY = "C002"
    MISSING_REQUIRED_INPUT = "C003"
    TYPE_MISMATCH = "C004"
    NODE_DISCONNECTED = "C005"

    # Validation
    INVALID_BLUEPRINT_STRUCTURE = "V001"
    INVALID_NODE_CONFIGURATION = "V002"
    MISSING_PROPERTY = "V003"
    INVALID_PROPERTY_VALUE = "V004"

    # Database
    DATABASE_CONNECTION = "D001"
    BLUEPRINT_NOT_FOUND = "D002"
    BLUEPRINT_VERSION_NOT_FOUND = "D003"
    DATABASE_QUERY = "D004"

    # System
    INTERNAL_SERVER_ERROR = "S001"
    RESOURCE_EXHAUSTED = "S002"
    SYSTEM_UNAVAILABLE = "S003"

    UNKNOWN = "U001"


class RecoveryStrategy(str, Enum):
    RETRY = "retry"
    SKIP_NODE = "skip_node"
    USE_DEFAULT_VALUE = "use_default_value"
    MANUAL = "manual"
    NONE = "none"


class BlueprintError(Exception):
    """An error with blueprint-level diagnostic metadata.

    The ``with_*`` helpers mutate the error in place and return it so they
    can be chained after construction.
    """

    def __init__(
        self,
        error_type: ErrorType,
        code: ErrorCode,
        message: str,
        severity: ErrorSeverity = ErrorSeverity.MEDIUM,
        details: dict[str, Any] | None = None,
    ):
        self.type = error_type
        self.code = code
        self.message = message
        self.severity = severity
        self.details: dict[str, Any] = dict(details or {})
        self.recoverable = False
        self.recovery_options: list[RecoveryStrategy] = []
        self.node_id = ""
        self.pin_id = ""
        self.blueprint_id = ""
        self.execution_id = ""
        self.timestamp = datetime.now(UTC)
        super().__init__(message)

    def __str__(self) -> str:
        prefix = f"[{self.type.value}-{self.code.value}] {self.severity.value}: {self.message}"
        if self.node_id and self.pin_id:
            return f"{prefix} (Node: {self.node_id}, Pin: {self.pin_id})"
        if self.node_id:
            return f"{prefix} (Node: {self.node_id})"
        return prefix

    @property
    def original_error(self) -> BaseException | None:
        return self.__cause__

    def with_details(self, details: dict[str, Any]) -> "BlueprintError":
        self.details.update(details)
        return self

    def with_node_info(self, node_id: str, pin_id: str = "") -> "BlueprintError":
        self.node_id = node_id
        if pin_id:
            self.pin_id = pin_id
        return self

    def with_blueprint_info(self, blueprint_id: str, execution_id: str = "") -> "BlueprintError":
        self.blueprint_id = blueprint_id
        if execution_id:
            self.execution_id = execution_id
        return self

    def with_recovery_options(self, *options: RecoveryStrategy) -> "BlueprintError":
        self.recovery_options = list(options)
        self.recoverable = bool(options)
        return self

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "type": self.type.value,
            "code": self.code.value,
            "message": self.message,
            "severity": self.severity.value,
            "recoverable": self.recoverable,
            "timestamp": self.timestamp.isoformat(),
        }
        if self.details:
            data["details"] = dict(self.details)
        if self.recovery_options:
            data["recovery_options"] = [s.value for s in self.recovery_options]
        for key in ("node_id", "pin_id", "blueprint_id", "execution_id"):
            value = getattr(self, key)
            if value:
                data[key] = value
        if self.__cause__ is not None:
            data["original_error"] = str(self.__cause__)
        return data


def wrap(
    err: BaseException,
    error_type: ErrorType | None = None,
    code: ErrorCode | None = None,
    message: str = "",
    severity: ErrorSeverity | None = None,
) -> BlueprintError:
    """Wrap ``err`` in a BlueprintError.

    An existing BlueprintError is updated in place with whichever fields
    were supplied instead of being wrapped again.
    """
    if isinstance(err, BlueprintError):
        if error_type is not None:
            err.type = error_type
        if code is not None:
            err.code = code
        if message:
            err.message = message
        if severity is not None:
            err.severity = severity
        return err

    wrapped = BlueprintError(
        error_type or ErrorType.UNKNOWN,
        code or ErrorCode.UNKNOWN,
        message or str(err),
        severity or ErrorSeverity.MEDIUM,
    )
    wrapped.__cause__ = err
    return wrapped
