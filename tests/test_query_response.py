from dbtunnel.canonical.table import QueryResult
from dbtunnel.outputs.query_response import (
    build_failure_response,
    build_query_response,
    describe_query_result,
)
from dbtunnel.outputs.result_normalizer import ResultNormalizer


def test_empty_result_envelope():
    response = build_query_response(QueryResult(rows=[]), "Cosmos DB", ResultNormalizer())
    payload = response.to_dict()

    assert payload["description"] == "Query executed successfully but returned no results."
    assert payload["conclusion"] == "No data was found matching the query criteria."
    assert payload["data"] == {"columns": [], "rows": []}
    assert payload["metadata"]["source"] == "Cosmos DB"
    assert payload["metadata"]["properties"]["totalRecords"] == 0
    assert payload["metadata"]["properties"]["schemaComplexity"] == "Empty"


def test_populated_result_envelope():
    result = QueryResult(
        rows=[{"id": "1", "name": "A"}],
        execution_time_ms=12,
        request_charge=2.5,
        activity_id="abc",
    )
    payload = build_query_response(
        result, "Cosmos DB", ResultNormalizer(), {"containerName": "orders"}
    ).to_dict()

    assert payload["description"] == (
        "Query returned 1 record with 2 columns. "
        "Execution completed in 12ms consuming 2.50 RU. "
        "Results contain 1 business-relevant column."
    )
    assert payload["conclusion"] == (
        "Successfully retrieved 1 record from Cosmos DB. "
        "Data has a simple structure with basic data types."
    )
    assert payload["data"]["columns"] == [
        {"name": "id", "type": "string", "isNullable": False},
        {"name": "name", "type": "string", "isNullable": False},
    ]
    properties = payload["metadata"]["properties"]
    assert properties["containerName"] == "orders"
    assert properties["requestCharge"] == 2.5
    assert properties["activityId"] == "abc"
    assert properties["businessColumnCount"] == 1


def test_system_only_rows_are_called_out():
    result = QueryResult(rows=[{"id": "1", "_ts": 5}, {"id": "2", "_ts": 6}])
    payload = build_query_response(result, "SQL Server", ResultNormalizer()).to_dict()

    assert payload["description"] == (
        "Query returned 2 records with 2 columns. Execution completed in 0ms."
    )
    assert payload["conclusion"] == (
        "Successfully retrieved 2 records from SQL Server. "
        "Results contain primarily system metadata columns."
    )


def test_null_heavy_results_get_a_note():
    result = QueryResult(rows=[{"a": None, "b": None, "c": 1}])
    conclusion = build_query_response(result, "SQL Server", ResultNormalizer()).conclusion

    assert conclusion.endswith("Note: Results contain a high proportion of null values.")


def test_describe_without_details():
    assert describe_query_result(3, 1, None) == "Query returned 3 records with 1 column."


def test_failure_envelope():
    payload = build_failure_response("boom", "SQL Server", {"query": "SELECT 1"}).to_dict()

    assert payload["description"] == "Query execution failed: boom"
    assert payload["conclusion"] == "Query failed to execute successfully"
    assert payload["data"] == {"columns": [], "rows": []}
    assert payload["metadata"] == {
        "source": "SQL Server",
        "properties": {"error": "boom", "query": "SELECT 1"},
    }
