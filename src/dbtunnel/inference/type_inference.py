import logging
from collections import Counter
from typing import Any, Optional, Sequence

from dbtunnel.canonical.value import ValueKind, value_kind
from dbtunnel.config.settings import InferenceLimits
from dbtunnel.inference.numeric_inference import classify_number


logger = logging.getLogger("dbtunnel.inference")

UNKNOWN = "unknown"
GENERIC_ARRAY = "array"

_DEFAULT_LIMITS = InferenceLimits()


def join_union(type_names) -> str:
    """
    Render a union: distinct members, sorted ascending, joined with '|'.
    """
    return "|".join(sorted(set(type_names)))


def _is_valid_label(label: Optional[str]) -> bool:
    return bool(label) and label != UNKNOWN


def classify_value(
    value: Any,
    depth: int = 0,
    limits: InferenceLimits = _DEFAULT_LIMITS,
) -> str:
    """
    Type descriptor of a single document value.

    Objects are opaque ("object"); arrays resolve their element types.
    Unclassifiable values come back as "unknown" instead of raising.
    """
    kind = value_kind(value)

    try:
        if kind is ValueKind.NULL:
            return "null"
        if kind is ValueKind.BOOLEAN:
            return "boolean"
        if kind is ValueKind.NUMBER:
            return classify_number(value)
        if kind is ValueKind.STRING:
            return "string"
        if kind is ValueKind.OBJECT:
            return "object"
        if kind is ValueKind.ARRAY:
            return classify_array(value, depth, limits)
    except Exception as e:
        logger.debug("classification failed for %s: %s", type(value).__name__, e)
        if kind is ValueKind.ARRAY:
            return GENERIC_ARRAY
        if kind is ValueKind.OBJECT:
            return "object"

    return UNKNOWN


def classify_array(
    array: Sequence[Any],
    depth: int = 0,
    limits: InferenceLimits = _DEFAULT_LIMITS,
) -> str:
    """
    Resolve array<T> from a sample of the leading elements.

    - past the depth cap or empty -> "array"
    - one element type            -> array<T>
    - several element types       -> array<T1|T2|...> (sorted)
    Empty/unknown element labels are left out of the tally.
    """
    if depth > limits.max_array_depth:
        return GENERIC_ARRAY

    if not array:
        return GENERIC_ARRAY

    try:
        tally = Counter()
        for element in list(array[: limits.array_sample_size]):
            label = classify_value(element, depth + 1, limits)
            if _is_valid_label(label):
                tally[label] += 1
    except Exception as e:
        logger.debug("array classification failed: %s", e)
        return GENERIC_ARRAY

    if not tally:
        return GENERIC_ARRAY

    return f"array<{join_union(tally)}>"
