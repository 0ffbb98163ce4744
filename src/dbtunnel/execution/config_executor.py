import json
import os
from typing import Any, Dict, Optional

import yaml

from dbtunnel.canonical.schema import DatabaseSchema
from dbtunnel.services.cosmos_service import CosmosService
from dbtunnel.services.sql_service import SqlService
from dbtunnel.utils.exceptions import ConfigurationError


BACKENDS = {"cosmos", "sql"}
OPERATIONS = {
    "cosmos": {"schema", "query", "test"},
    "sql": {"query", "test"},
}


class ConfigExecutor:
    """
    Executes one schema / query / connection-test run described by a
    YAML file, without going through HTTP.

    The connection string is read from the environment variable named by
    `connection_string_env`; it is never stored in the config file.
    """

    def __init__(self, config_path: str, environ=None, cosmos_service=None, sql_service=None):
        self.config_path = config_path
        self.environ = os.environ if environ is None else environ
        self.config = self._load_config()
        self._cosmos_service = cosmos_service
        self._sql_service = sql_service

    # ------------------------------------------
    # Load YAML
    # ------------------------------------------
    def _load_config(self) -> Dict:
        if not os.path.exists(self.config_path):
            raise ConfigurationError(f"Config file not found: {self.config_path}")

        with open(self.config_path, "r", encoding="utf-8") as f:
            try:
                config = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise ConfigurationError(f"Invalid YAML in {self.config_path}: {e}") from e

        if not isinstance(config, dict):
            raise ConfigurationError("Run config root must be a mapping")

        backend = str(config.get("backend", "")).lower()
        if backend not in BACKENDS:
            raise ConfigurationError(
                f"Unsupported backend: {config.get('backend')!r}. "
                f"Expected one of {sorted(BACKENDS)}"
            )

        operation = str(config.get("operation", "query")).lower()
        if operation not in OPERATIONS[backend]:
            raise ConfigurationError(
                f"Unsupported operation for {backend}: {operation!r}. "
                f"Expected one of {sorted(OPERATIONS[backend])}"
            )

        config["backend"] = backend
        config["operation"] = operation
        return config

    # ------------------------------------------
    # Connection string
    # ------------------------------------------
    def _connection_string(self) -> str:
        env_name = self.config.get("connection_string_env")
        if not env_name:
            raise ConfigurationError("'connection_string_env' is required")

        value = self.environ.get(env_name)
        if not value or not value.strip():
            raise ConfigurationError(f"Environment variable {env_name} is not set")
        return value

    @property
    def cosmos_service(self) -> CosmosService:
        if self._cosmos_service is None:
            self._cosmos_service = CosmosService()
        return self._cosmos_service

    @property
    def sql_service(self) -> SqlService:
        if self._sql_service is None:
            self._sql_service = SqlService()
        return self._sql_service

    # ------------------------------------------
    # Execute
    # ------------------------------------------
    def execute(self) -> Dict[str, Any]:
        cfg = self.config
        connection_string = self._connection_string()
        backend = cfg["backend"]
        operation = cfg["operation"]

        if backend == "cosmos":
            if operation == "schema":
                schema = self.cosmos_service.get_schema(cfg.get("database"), connection_string)
                result = self._schema_result(schema, cfg.get("container"))
            elif operation == "test":
                self.cosmos_service.test_connection(cfg.get("database"), connection_string)
                result = {"success": True, "message": "Connection successful"}
            else:
                result = self.cosmos_service.execute_query(
                    cfg.get("query"),
                    cfg.get("database"),
                    cfg.get("container"),
                    connection_string,
                ).to_dict()
        else:
            if operation == "test":
                self.sql_service.test_connection(connection_string)
                result = {"success": True, "message": "Connection successful"}
            else:
                result = self.sql_service.execute_query(cfg.get("query"), connection_string).to_dict()

        self._save_output(result)
        return result

    @staticmethod
    def _schema_result(schema: DatabaseSchema, container: Optional[str]) -> Dict[str, Any]:
        """
        Whole database schema, or one container's when `container` is set.
        """
        if not container:
            return {"success": True, "schema": schema.to_dict()}

        found = schema.get_container(container)
        if found is None:
            raise ConfigurationError(
                f"Container not found in {schema.name}: {container}"
            )
        return {"success": True, "container": found.to_dict()}

    # ------------------------------------------
    # Save Output
    # ------------------------------------------
    def _save_output(self, result: Dict[str, Any]):
        output = self.config.get("output")
        if not output:
            return

        directory = os.path.dirname(output)
        if directory:
            os.makedirs(directory, exist_ok=True)

        with open(output, "w", encoding="utf-8") as f:
            json.dump(result, f, indent=2, default=str)
