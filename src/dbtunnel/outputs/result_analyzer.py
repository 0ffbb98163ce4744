from collections.abc import Mapping
from typing import Sequence

from dbtunnel.canonical.value import ValueKind, is_complex, value_kind
from dbtunnel.standards.system_columns import is_system_column


QUALITY_SAMPLE_ROWS = 10


def _first_row(rows: Sequence[Mapping]):
    if not rows or not isinstance(rows[0], Mapping):
        return None
    return rows[0]


def count_business_columns(rows: Sequence[Mapping]) -> int:
    """
    Number of non-system keys in the first row.
    """
    first = _first_row(rows)
    if first is None:
        return 0
    return sum(1 for key in first if not is_system_column(key))


def has_business_relevant_data(rows: Sequence[Mapping]) -> bool:
    return count_business_columns(rows) > 0


def calculate_schema_complexity(rows: Sequence[Mapping]) -> str:
    """
    Coarse complexity bucket from result size and nesting.

    Looks at row count, column count and how many first-row values
    are objects or arrays.
    """
    first = _first_row(rows)
    if first is None:
        return "Empty"

    row_count = len(rows)
    column_count = len(first)
    complex_types = sum(1 for value in first.values() if is_complex(value))

    if column_count <= 3 and row_count <= 10 and complex_types == 0:
        return "Simple"
    if column_count <= 10 and row_count <= 100 and complex_types <= 2:
        return "Moderate"
    if column_count <= 20 and row_count <= 1000 and complex_types <= 5:
        return "Complex"
    return "Very Complex"


def analyze_json_quality(rows: Sequence[Mapping]) -> str:
    if not rows:
        return "No data"

    total = 0
    nulls = 0
    complex_values = 0

    for row in rows[:QUALITY_SAMPLE_ROWS]:
        if not isinstance(row, Mapping):
            continue
        for value in row.values():
            total += 1
            kind = value_kind(value)
            if kind is ValueKind.NULL:
                nulls += 1
            elif kind in (ValueKind.ARRAY, ValueKind.OBJECT):
                complex_values += 1

    if total == 0:
        return "No data"

    null_ratio = nulls / total
    complex_ratio = complex_values / total

    if null_ratio > 0.5:
        return "Poor - High null ratio"
    if complex_ratio > 0.3:
        return "Rich - Complex structure"
    if complex_ratio > 0.1:
        return "Good - Some structure"
    return "Basic - Simple types"
