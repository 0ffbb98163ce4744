from collections.abc import Mapping
from decimal import Decimal
from enum import Enum
from typing import Any


class ValueKind(Enum):
    """
    Top-level kind of one decoded semi-structured value.
    """
    NULL = "null"
    BOOLEAN = "boolean"
    NUMBER = "number"
    STRING = "string"
    ARRAY = "array"
    OBJECT = "object"
    UNDEFINED = "unknown"


NUMERIC_TYPES = (int, float, Decimal)
SEQUENCE_TYPES = (list, tuple)


def value_kind(value: Any) -> ValueKind:
    """
    Classify a decoded value.

    bool is checked before int so that True/False never count as numbers.
    Anything outside the JSON-like model is UNDEFINED.
    """
    if value is None:
        return ValueKind.NULL
    if isinstance(value, bool):
        return ValueKind.BOOLEAN
    if isinstance(value, NUMERIC_TYPES):
        return ValueKind.NUMBER
    if isinstance(value, str):
        return ValueKind.STRING
    if isinstance(value, SEQUENCE_TYPES):
        return ValueKind.ARRAY
    if isinstance(value, Mapping):
        return ValueKind.OBJECT
    return ValueKind.UNDEFINED


def coarse_type(value: Any) -> str:
    """
    Display-level type name: string, number, boolean, array, object, null
    or unknown.
    """
    return value_kind(value).value


def is_complex(value: Any) -> bool:
    return value_kind(value) in (ValueKind.ARRAY, ValueKind.OBJECT)
