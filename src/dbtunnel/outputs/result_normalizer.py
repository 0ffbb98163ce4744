import json
import logging
import math
from collections.abc import Mapping
from decimal import Decimal
from typing import Any, Dict, List, Optional, Sequence

from dbtunnel.canonical.property import ColumnDescriptor
from dbtunnel.canonical.value import ValueKind, coarse_type, value_kind
from dbtunnel.config.settings import InferenceLimits
from dbtunnel.inference.numeric_inference import fits_int64
from dbtunnel.standards.system_columns import partition_columns


logger = logging.getLogger("dbtunnel.outputs")

_DEFAULT_MAX_DEPTH = InferenceLimits().max_value_depth


def _non_finite_text(value) -> str:
    """
    JSON has no NaN/Infinity literals; they travel as text.
    """
    if math.isnan(value):
        return "NaN"
    return "Infinity" if value > 0 else "-Infinity"


def _to_plain_number(value):
    if isinstance(value, int):
        if fits_int64(value):
            return value
        converted = float(value)

    elif isinstance(value, Decimal):
        if not value.is_finite():
            return "NaN" if value.is_nan() else _non_finite_text(value)
        if value.as_tuple().exponent >= 0:
            integral = int(value)
            if fits_int64(integral):
                return integral
        converted = float(value)

    else:
        converted = float(value)
        if not math.isfinite(converted):
            return _non_finite_text(converted)

    # finite input too large for a double
    if not math.isfinite(converted):
        return _fallback_text(value)
    return converted


def _fallback_text(value: Any) -> str:
    try:
        return str(value)
    except Exception as e:
        logger.debug("text fallback failed for %s: %s", type(value).__name__, e)
        return f"<{type(value).__name__}>"


def _truncated_text(value: Any) -> str:
    """
    Text form of a container nested past the depth cap.
    """
    try:
        return json.dumps(value, default=str)
    except (RecursionError, ValueError, TypeError) as e:
        logger.debug("nested value left unrendered: %s", e)
        return f"<{type(value).__name__}>"


def to_plain_value(value: Any, depth: int = 0, max_depth: int = _DEFAULT_MAX_DEPTH) -> Any:
    """
    Convert a decoded value into a directly serializable one.

    Numbers take the narrowest exact form (int within 64 bits, else float);
    NaN and infinities become "NaN" / "Infinity" / "-Infinity".
    Sequences become lists and mappings become dicts, recursively, down to
    max_depth; deeper containers are rendered as JSON text.
    Values outside the JSON-like model degrade to their text form.
    """
    kind = value_kind(value)

    if kind in (ValueKind.ARRAY, ValueKind.OBJECT) and depth >= max_depth:
        return _truncated_text(value)

    try:
        if kind is ValueKind.NULL or kind is ValueKind.BOOLEAN:
            return value
        if kind is ValueKind.STRING:
            return value
        if kind is ValueKind.NUMBER:
            return _to_plain_number(value)
        if kind is ValueKind.ARRAY:
            return [to_plain_value(item, depth + 1, max_depth) for item in value]
        if kind is ValueKind.OBJECT:
            return {
                str(k): to_plain_value(v, depth + 1, max_depth)
                for k, v in value.items()
            }
    except (ValueError, TypeError, OverflowError, ArithmeticError, RecursionError) as e:
        logger.debug("value conversion fell back to text: %s", e)

    return _fallback_text(value)


class ResultNormalizer:
    """
    Turns raw result rows into a client-ready table.

    Columns come from the first row only: system columns first, then
    business columns, each group sorted. Nullability is sampled from
    a bounded prefix of rows.
    """

    def __init__(self, limits: Optional[InferenceLimits] = None):
        self.limits = limits or InferenceLimits()

    def extract_columns(self, rows: Sequence[Mapping]) -> List[ColumnDescriptor]:
        if not rows:
            return []

        first = rows[0]
        if not isinstance(first, Mapping):
            return []

        system, business = partition_columns(first.keys())
        sample = rows[: self.limits.nullability_sample_rows]

        return [
            ColumnDescriptor(
                name=name,
                type=coarse_type(first[name]),
                nullable=self._has_null(sample, name),
            )
            for name in system + business
        ]

    def convert_rows(self, rows: Sequence[Mapping]) -> List[Dict[str, Any]]:
        return [self.convert_row(row) for row in rows]

    def convert_row(self, row: Mapping) -> Dict[str, Any]:
        if not isinstance(row, Mapping):
            return {"_value": to_plain_value(row, max_depth=self.limits.max_value_depth)}
        return {
            str(k): to_plain_value(v, max_depth=self.limits.max_value_depth)
            for k, v in row.items()
        }

    @staticmethod
    def _has_null(sample: Sequence[Mapping], name: str) -> bool:
        return any(
            isinstance(row, Mapping) and name in row and row[name] is None
            for row in sample
        )
