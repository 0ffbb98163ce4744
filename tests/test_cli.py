import json

import pytest

from dbtunnel.cli import main
from dbtunnel.config.settings import Settings
from dbtunnel.execution.config_executor import ConfigExecutor
from dbtunnel.services.cosmos_service import CosmosService
from dbtunnel.utils.exceptions import ConfigurationError


def test_analyze(tmp_path, capsys):
    path = tmp_path / "docs.json"
    path.write_text(json.dumps([{"id": "1", "age": 30}, {"id": "2"}]), encoding="utf-8")

    assert main(["analyze", str(path)]) == 0

    payload = json.loads(capsys.readouterr().out)
    assert payload["documents"] == 2
    assert payload["properties"] == [
        {"name": "age", "jsonType": "integer", "isNullable": True, "isSystemProperty": False},
        {"name": "id", "jsonType": "string", "isNullable": False, "isSystemProperty": True},
    ]


def test_normalize(tmp_path, capsys):
    path = tmp_path / "rows.jsonl"
    path.write_text('{"name": "A", "_ts": 1}\n{"name": null, "_ts": 2}\n', encoding="utf-8")

    assert main(["normalize", str(path)]) == 0

    payload = json.loads(capsys.readouterr().out)
    assert payload["columns"] == [
        {"name": "_ts", "type": "number", "isNullable": False},
        {"name": "name", "type": "string", "isNullable": True},
    ]
    assert payload["rows"][1] == {"name": None, "_ts": 2}


def test_missing_file_fails_cleanly(tmp_path):
    assert main(["analyze", str(tmp_path / "missing.json")]) == 1


def _write_config(tmp_path, body):
    path = tmp_path / "run.yaml"
    path.write_text(body, encoding="utf-8")
    return str(path)


def test_run_config_sql_query(tmp_path, sqlite_url, monkeypatch):
    output = tmp_path / "out" / "people.json"
    config = _write_config(tmp_path, (
        "backend: sql\n"
        "operation: query\n"
        "connection_string_env: TUNNEL_TEST_SQL\n"
        "query: SELECT id, name FROM people ORDER BY id\n"
        f"output: {output}\n"
    ))
    monkeypatch.setenv("TUNNEL_TEST_SQL", sqlite_url)

    assert main(["run-config", config]) == 0

    payload = json.loads(output.read_text(encoding="utf-8"))
    assert payload["data"]["rows"] == [{"id": 1, "name": "Ada"}, {"id": 2, "name": "Linus"}]


def test_run_config_cosmos_schema(tmp_path, fake_cosmos):
    backend = fake_cosmos(containers={"orders": [{"id": "1", "total": 3}]})
    config = _write_config(tmp_path, (
        "backend: cosmos\n"
        "operation: schema\n"
        "connection_string_env: TUNNEL_TEST_COSMOS\n"
        "database: shop\n"
    ))
    executor = ConfigExecutor(
        config,
        environ={"TUNNEL_TEST_COSMOS": "AccountEndpoint=x"},
        cosmos_service=CosmosService(backend_factory=lambda cs: backend, settings=Settings()),
    )

    result = executor.execute()
    assert result["success"] is True
    assert result["schema"]["containers"][0]["name"] == "orders"


def test_run_config_requires_connection_env(tmp_path):
    config = _write_config(tmp_path, (
        "backend: sql\n"
        "operation: test\n"
        "connection_string_env: TUNNEL_TEST_UNSET\n"
    ))

    with pytest.raises(ConfigurationError):
        ConfigExecutor(config, environ={}).execute()


def test_run_config_rejects_unknown_backend(tmp_path):
    config = _write_config(tmp_path, "backend: oracle\n")

    with pytest.raises(ConfigurationError):
        ConfigExecutor(config)


def test_run_config_rejects_unsupported_operation(tmp_path):
    config = _write_config(tmp_path, "backend: sql\noperation: schema\n")

    with pytest.raises(ConfigurationError):
        ConfigExecutor(config)


def _cosmos_executor(tmp_path, fake_cosmos, extra):
    backend = fake_cosmos(containers={
        "orders": [{"id": "1", "total": 3}],
        "customers": [{"id": "c1", "name": "Ada"}],
    })
    config = _write_config(tmp_path, (
        "backend: cosmos\n"
        "operation: schema\n"
        "connection_string_env: TUNNEL_TEST_COSMOS\n"
        "database: shop\n"
        + extra
    ))
    return ConfigExecutor(
        config,
        environ={"TUNNEL_TEST_COSMOS": "AccountEndpoint=x"},
        cosmos_service=CosmosService(backend_factory=lambda cs: backend, settings=Settings()),
    )


def test_run_config_schema_for_one_container(tmp_path, fake_cosmos):
    result = _cosmos_executor(tmp_path, fake_cosmos, "container: customers\n").execute()

    assert "schema" not in result
    assert result["container"]["name"] == "customers"
    assert [p["name"] for p in result["container"]["properties"]] == ["id", "name"]


def test_run_config_schema_for_unknown_container(tmp_path, fake_cosmos):
    executor = _cosmos_executor(tmp_path, fake_cosmos, "container: invoices\n")

    with pytest.raises(ConfigurationError, match="invoices"):
        executor.execute()
