from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional

from dbtunnel.canonical.table import QueryData, QueryResponse, QueryResult
from dbtunnel.outputs.result_analyzer import (
    analyze_json_quality,
    calculate_schema_complexity,
    count_business_columns,
    has_business_relevant_data,
)
from dbtunnel.outputs.result_normalizer import ResultNormalizer


@dataclass
class ResultDetails:
    """
    Execution and shape facts about one result batch.
    """
    execution_time_ms: int
    request_charge: float
    business_column_count: int
    has_business_data: bool
    schema_complexity: str
    json_quality: str


def _plural(count: int, word: str) -> str:
    return f"{count} {word}{'' if count == 1 else 's'}"


def describe_query_result(
    row_count: int,
    column_count: int,
    details: Optional[ResultDetails],
) -> str:
    if row_count == 0:
        return "Query executed successfully but returned no results."

    description = (
        f"Query returned {_plural(row_count, 'record')} "
        f"with {_plural(column_count, 'column')}."
    )

    if details is not None:
        description += f" Execution completed in {details.execution_time_ms}ms"
        if details.request_charge:
            description += f" consuming {details.request_charge:.2f} RU"
        description += "."

        if details.has_business_data:
            description += (
                f" Results contain {details.business_column_count} "
                f"business-relevant column"
                f"{'' if details.business_column_count == 1 else 's'}."
            )

    return description


def conclude_query_result(
    rows: List[Mapping],
    details: Optional[ResultDetails],
    source: str,
) -> str:
    if not rows:
        return "No data was found matching the query criteria."

    conclusion = f"Successfully retrieved {_plural(len(rows), 'record')} from {source}."

    if details is None:
        return conclusion

    if not details.has_business_data:
        conclusion += " Results contain primarily system metadata columns."
    else:
        complexity = details.schema_complexity.lower()
        if complexity == "simple":
            conclusion += " Data has a simple structure with basic data types."
        elif complexity == "moderate":
            conclusion += " Data has moderate complexity with some nested structures."
        elif complexity in ("complex", "very complex"):
            conclusion += " Data contains complex nested objects and arrays."

    if "Poor" in details.json_quality:
        conclusion += " Note: Results contain a high proportion of null values."

    return conclusion


def build_details(result: QueryResult) -> ResultDetails:
    return ResultDetails(
        execution_time_ms=result.execution_time_ms,
        request_charge=result.request_charge,
        business_column_count=count_business_columns(result.rows),
        has_business_data=has_business_relevant_data(result.rows),
        schema_complexity=calculate_schema_complexity(result.rows),
        json_quality=analyze_json_quality(result.rows),
    )


def build_query_response(
    result: QueryResult,
    source: str,
    normalizer: ResultNormalizer,
    context: Optional[Dict[str, Any]] = None,
) -> QueryResponse:
    """
    Wrap a successful query result into the generic response envelope.
    """
    columns = normalizer.extract_columns(result.rows)
    rows = normalizer.convert_rows(result.rows)
    details = build_details(result)

    properties: Dict[str, Any] = dict(context or {})
    properties.update({
        "executionTimeMs": details.execution_time_ms,
        "requestCharge": details.request_charge,
        "activityId": result.activity_id,
        "totalRecords": len(result.rows),
        "businessColumnCount": details.business_column_count,
        "schemaComplexity": details.schema_complexity,
        "jsonQuality": details.json_quality,
    })

    return QueryResponse(
        description=describe_query_result(len(rows), len(columns), details),
        data=QueryData(columns=columns, rows=rows),
        conclusion=conclude_query_result(result.rows, details, source),
        source=source,
        properties=properties,
    )


def build_failure_response(
    error: str,
    source: str,
    context: Optional[Dict[str, Any]] = None,
) -> QueryResponse:
    properties: Dict[str, Any] = {"error": error}
    properties.update(context or {})

    return QueryResponse(
        description=f"Query execution failed: {error}",
        data=QueryData(),
        conclusion="Query failed to execute successfully",
        source=source,
        properties=properties,
    )
