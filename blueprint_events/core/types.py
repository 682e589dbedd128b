"""Typed values and pin types flowing between blueprint nodes."""

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

_TRUE_STRINGS = frozenset({"1", "t", "true", "yes", "on"})
_FALSE_STRINGS = frozenset({"0", "f", "false", "no", "off"})


class ValueConversionError(ValueError):
    """Raised when a raw value cannot be validated or coerced to a pin type."""


class PinType:
    """Named value-type descriptor.

    Pin types are compared by ``id``; two descriptors with the same id
    describe the same type even if they are distinct objects.

    Attributes:
        id: Stable identifier ("string", "number", ...).
        name: Display name.
        description: Human-readable description.
        validator: Callable raising ``ValueConversionError`` for rejected values.
        converter: Callable coercing a raw value to the canonical form.
    """

    __slots__ = ("id", "name", "description", "validator", "converter")

    def __init__(
        self,
        id: str,
        name: str,
        description: str = "",
        validator: Callable[[Any], None] | None = None,
        converter: Callable[[Any], Any] | None = None,
    ) -> None:
        self.id = id
        self.name = name
        self.description = description
        self.validator = validator
        self.converter = converter

    def validate(self, raw: Any) -> None:
        if self.validator is not None:
            self.validator(raw)

    def accepts(self, raw: Any) -> bool:
        try:
            self.validate(raw)
        except ValueConversionError:
            return False
        return True

    def convert(self, raw: Any) -> Any:
        if self.converter is None:
            raise ValueConversionError(f"pin type {self.id!r} has no converter")
        return self.converter(raw)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PinType):
            return NotImplemented
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)

    def __repr__(self) -> str:
        return f"PinType({self.id!r})"


def _is_number(raw: Any) -> bool:
    return isinstance(raw, (int, float)) and not isinstance(raw, bool)


def _validate_string(raw: Any) -> None:
    if raw is not None and not isinstance(raw, str):
        raise ValueConversionError(f"expected string, got {type(raw).__name__}")


def _validate_number(raw: Any) -> None:
    if raw is not None and not _is_number(raw):
        raise ValueConversionError(f"expected number, got {type(raw).__name__}")


def _validate_boolean(raw: Any) -> None:
    if raw is not None and not isinstance(raw, bool):
        raise ValueConversionError(f"expected boolean, got {type(raw).__name__}")


def _validate_object(raw: Any) -> None:
    if raw is not None and not isinstance(raw, dict):
        raise ValueConversionError(f"expected object, got {type(raw).__name__}")


def _validate_array(raw: Any) -> None:
    if raw is not None and not isinstance(raw, (list, tuple)):
        raise ValueConversionError(f"expected array, got {type(raw).__name__}")


def _accept_anything(raw: Any) -> None:
    return None


def _convert_to_string(raw: Any) -> str:
    if raw is None:
        return ""
    if isinstance(raw, bool):
        return "true" if raw else "false"
    return str(raw)


def _convert_to_number(raw: Any) -> float:
    if raw is None:
        return 0.0
    if isinstance(raw, bool):
        return 1.0 if raw else 0.0
    if _is_number(raw):
        return float(raw)
    if isinstance(raw, str):
        try:
            return float(raw.strip())
        except ValueError as e:
            raise ValueConversionError(f"cannot convert string {raw!r} to number") from e
    raise ValueConversionError(f"cannot convert {type(raw).__name__} to number")


def _convert_to_boolean(raw: Any) -> bool:
    if raw is None:
        return False
    if isinstance(raw, bool):
        return raw
    if _is_number(raw):
        return raw != 0
    if isinstance(raw, str):
        lowered = raw.strip().lower()
        if lowered in _TRUE_STRINGS:
            return True
        if lowered in _FALSE_STRINGS:
            return False
        # Non-boolean strings: empty is false, anything else is true
        return raw != ""
    return True


def _convert_to_object(raw: Any) -> dict[str, Any]:
    if raw is None:
        return {}
    if isinstance(raw, dict):
        return raw
    raise ValueConversionError(f"cannot convert {type(raw).__name__} to object")


def _convert_to_array(raw: Any) -> list[Any]:
    if raw is None:
        return []
    if isinstance(raw, list):
        return raw
    if isinstance(raw, tuple):
        return list(raw)
    raise ValueConversionError(f"cannot convert {type(raw).__name__} to array")


class PinTypes:
    """The closed set of built-in pin types."""

    EXECUTION = PinType("execution", "Execution", "Controls execution flow", _accept_anything)
    STRING = PinType("string", "String", "Text value", _validate_string, _convert_to_string)
    NUMBER = PinType("number", "Number", "Numeric value", _validate_number, _convert_to_number)
    BOOLEAN = PinType(
        "boolean", "Boolean", "True or false value", _validate_boolean, _convert_to_boolean
    )
    OBJECT = PinType(
        "object", "Object", "Key-value data structure", _validate_object, _convert_to_object
    )
    ARRAY = PinType("array", "Array", "List of values", _validate_array, _convert_to_array)
    ANY = PinType("any", "Any", "Any type of value", _accept_anything)

    @classmethod
    def all(cls) -> list[PinType]:
        return [cls.EXECUTION, cls.STRING, cls.NUMBER, cls.BOOLEAN, cls.OBJECT, cls.ARRAY, cls.ANY]


_PIN_TYPES_BY_ID: dict[str, PinType] = {pt.id: pt for pt in PinTypes.all()}


def get_pin_type(type_id: str) -> PinType | None:
    """Return the built-in pin type with the given id, or None."""
    return _PIN_TYPES_BY_ID.get(type_id)


class Value:
    """A raw payload tagged with its pin type.

    Typed accessors return the payload directly when the pin type already
    matches, and otherwise coerce through the target type's converter.
    """

    __slots__ = ("pin_type", "raw")

    def __init__(self, pin_type: PinType, raw: Any = None) -> None:
        self.pin_type = pin_type
        self.raw = raw

    @property
    def type_id(self) -> str:
        return self.pin_type.id

    def _coerce(self, target: PinType) -> Any:
        if self.pin_type == target and self.raw is not None:
            return self.raw
        try:
            return target.convert(self.raw)
        except ValueConversionError as e:
            raise ValueConversionError(
                f"cannot read {self.pin_type.id} value as {target.id}: {e}"
            ) from e

    def as_string(self) -> str:
        return self._coerce(PinTypes.STRING)

    def as_number(self) -> float:
        if self.pin_type == PinTypes.NUMBER and self.raw is not None:
            return float(self.raw)
        return self._coerce(PinTypes.NUMBER)

    def as_boolean(self) -> bool:
        return self._coerce(PinTypes.BOOLEAN)

    def as_object(self) -> dict[str, Any]:
        return self._coerce(PinTypes.OBJECT)

    def as_array(self) -> list[Any]:
        return self._coerce(PinTypes.ARRAY)

    def clone(self) -> "Value":
        return Value(self.pin_type, self.raw)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Value):
            return NotImplemented
        return self.pin_type == other.pin_type and self.raw == other.raw

    def __hash__(self) -> int:
        # Raw payloads may be unhashable; hash on type only
        return hash(self.pin_type)

    def __repr__(self) -> str:
        return f"Value({self.pin_type.id}, {self.raw!r})"


@dataclass
class Pin:
    """An input or output port on a node."""

    id: str
    name: str
    pin_type: PinType
    description: str = ""
    optional: bool = False
    default: Any = None

    def validate_connection(self, target: "Pin") -> None:
        """Raise ValueConversionError if this pin cannot feed ``target``."""
        source_is_exec = self.pin_type == PinTypes.EXECUTION
        target_is_exec = target.pin_type == PinTypes.EXECUTION
        if source_is_exec != target_is_exec:
            raise ValueConversionError("cannot connect execution pin to data pin")
        if PinTypes.ANY in (self.pin_type, target.pin_type):
            return
        if self.pin_type != target.pin_type and target.pin_type.converter is None:
            raise ValueConversionError(
                f"incompatible pin types: {self.pin_type.name} -> {target.pin_type.name}"
            )


@dataclass
class DebugInfo:
    """A debug record captured during node execution."""

    node_id: str
    pin_id: str
    description: str
    value: Any = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))
