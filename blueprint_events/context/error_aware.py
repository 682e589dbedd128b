"""Error-reporting context layer."""

from collections import Counter
from typing import Any

from blueprint_events.bperrors import (
    BlueprintError,
    ErrorCode,
    ErrorManager,
    ErrorSeverity,
    ErrorType,
    RecoveryManager,
    wrap,
)
from blueprint_events.context.base import ContextDecorator, ExecutionContext
from blueprint_events.context.capabilities import ErrorCapability
from blueprint_events.core.types import DebugInfo, Pin, PinType, Value

_HIGH_SEVERITY_TYPES = frozenset({ErrorType.EXECUTION, ErrorType.PERMISSION, ErrorType.DATABASE})


def severity_for(error_type: ErrorType) -> ErrorSeverity:
    if error_type in _HIGH_SEVERITY_TYPES:
        return ErrorSeverity.HIGH
    return ErrorSeverity.MEDIUM


class ErrorAwareContext(ContextDecorator, ErrorCapability):
    """Records structured errors and recovers missing inputs with defaults.

    Args:
        inner: The wrapped context.
        error_manager: Where errors are recorded.
        recovery_manager: Recovery policy consulted for missing inputs.
        input_pins: The node's declared input pins. Only missing values on
            declared, non-optional pins are reported and recovered; the
            default comes from the pin's type.
    """

    def __init__(
        self,
        inner: ExecutionContext,
        error_manager: ErrorManager,
        recovery_manager: RecoveryManager,
        input_pins: list[Pin] | None = None,
    ) -> None:
        super().__init__(inner)
        self.error_manager = error_manager
        self.recovery_manager = recovery_manager
        self._input_pins = {pin.id: pin for pin in input_pins or ()}

    def get_input_value(self, pin_id: str) -> Value | None:
        value = self._inner.get_input_value(pin_id)
        if value is not None:
            return value

        pin = self._input_pins.get(pin_id)
        if pin is None or pin.optional:
            return None

        err = (
            BlueprintError(
                ErrorType.EXECUTION,
                ErrorCode.MISSING_REQUIRED_INPUT,
                "Required input value missing",
                ErrorSeverity.MEDIUM,
            )
            .with_node_info(self.node_id, pin_id)
            .with_blueprint_info(self.blueprint_id, self.execution_id)
        )
        self.error_manager.record_error(self.execution_id, err)

        recovered, _ = self.recovery_manager.recover_from_error(self.execution_id, err)
        if not recovered:
            return None

        default = self.get_default_value(pin.pin_type)
        if default is None:
            return None

        self.logger.info(
            "Recovered from missing input by using default value",
            extra={"pin_id": pin_id, "value": default.raw},
        )
        self.root.record_debug_info(
            DebugInfo(
                node_id=self.node_id,
                pin_id=pin_id,
                description="Recovered from missing input using default value",
                value={"default": default.raw, "recovery": "default_value"},
            )
        )
        return default

    def report_error(
        self,
        error_type: ErrorType,
        code: ErrorCode,
        message: str,
        original: BaseException | None = None,
    ) -> BlueprintError:
        severity = severity_for(error_type)
        if original is not None:
            err = wrap(original, error_type, code, message, severity)
        else:
            err = BlueprintError(error_type, code, message, severity)
        err.with_node_info(self.node_id).with_blueprint_info(self.blueprint_id, self.execution_id)

        self.error_manager.record_error(self.execution_id, err)
        self.logger.error(
            message,
            extra={
                "error_type": error_type.value,
                "error_code": code.value,
                "original_error": str(original) if original is not None else None,
            },
        )
        return err

    def attempt_recovery(self, err: BlueprintError) -> tuple[bool, dict[str, Any] | None]:
        return self.recovery_manager.recover_from_error(self.execution_id, err)

    def get_error_summary(self) -> dict[str, Any]:
        errors = self.error_manager.get_node_errors(self.execution_id, self.node_id)
        if not errors:
            return {"has_errors": False}
        return {
            "has_errors": True,
            "error_count": len(errors),
            "error_types": dict(Counter(e.type.value for e in errors)),
            "error_codes": dict(Counter(e.code.value for e in errors)),
            "severity_counts": dict(Counter(e.severity.value for e in errors)),
            "latest_error": errors[-1],
        }

    def get_default_value(self, pin_type: PinType) -> Value | None:
        try:
            return self.recovery_manager.get_default_value(pin_type)
        except LookupError:
            return None
