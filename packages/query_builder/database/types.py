"""Typed value decoding for fetched columns.

Each supported scalar type is a ``ValueType`` member; ``cast`` applies the
coercion policy for one member instead of relying on runtime class casts.
"""
from __future__ import annotations

import enum
from decimal import Decimal
from typing import Any, Optional, Union

from query_builder.database.errors import ValueConversionError

INT32_MIN = -(2 ** 31)
INT32_MAX = 2 ** 31 - 1
INT64_MIN = -(2 ** 63)
INT64_MAX = 2 ** 63 - 1


class ValueType(enum.Enum):
    """Scalar types a column value can be decoded to."""

    INT = "int"
    LONG = "long"
    DOUBLE = "double"
    STRING = "string"
    BOOLEAN = "boolean"
    ANY = "any"


# Python builtins map to the widest matching member; use ValueType.INT to
# request 32-bit narrowing explicitly.
_PYTHON_TYPES = {
    bool: ValueType.BOOLEAN,
    int: ValueType.LONG,
    float: ValueType.DOUBLE,
    str: ValueType.STRING,
    object: ValueType.ANY,
}

TypeSpec = Union[ValueType, type]


def resolve_value_type(spec: Optional[TypeSpec]) -> ValueType:
    """Return the ValueType for a member or a supported Python builtin type."""
    if spec is None:
        return ValueType.ANY
    if isinstance(spec, ValueType):
        return spec
    try:
        return _PYTHON_TYPES[spec]
    except (KeyError, TypeError):
        raise ValueConversionError(f"Unsupported value type: {spec!r}") from None


def in_int32_range(value: int) -> bool:
    return INT32_MIN <= value <= INT32_MAX


def in_int64_range(value: int) -> bool:
    return INT64_MIN <= value <= INT64_MAX


def _is_integer(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def cast(value: Any, value_type: Optional[TypeSpec]) -> Any:
    """Convert a driver value to the requested type.

    ``None`` always passes through. Integers are narrowed to 32 bits unless
    the target is ``LONG`` (or ``ANY``); a value that does not fit raises
    instead of wrapping.

    :param value: Raw value read from the result set.
    :param value_type: Target ``ValueType`` or Python builtin type.
    :returns: The converted value.
    :raises ValueConversionError: When the value is incompatible with the target.
    """
    target = resolve_value_type(value_type)
    if value is None or target is ValueType.ANY:
        return value

    if target is ValueType.INT:
        if _is_integer(value):
            if not in_int32_range(value):
                raise ValueConversionError(f"Integer {value} does not fit in 32 bits")
            return int(value)
    elif target is ValueType.LONG:
        if _is_integer(value):
            if not in_int64_range(value):
                raise ValueConversionError(f"Integer {value} does not fit in 64 bits")
            return int(value)
    elif target is ValueType.DOUBLE:
        if isinstance(value, (float, Decimal)) or _is_integer(value):
            return float(value)
    elif target is ValueType.STRING:
        if isinstance(value, str):
            return value
    elif target is ValueType.BOOLEAN:
        if isinstance(value, bool):
            return value
        # sqlite and some MySQL drivers report booleans as 0/1
        if _is_integer(value) and value in (0, 1):
            return bool(value)

    raise ValueConversionError(
        f"Cannot convert {type(value).__name__} value {value!r} to {target.value}"
    )
