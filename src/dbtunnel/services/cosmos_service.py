from typing import Callable, Dict, List, Optional

from dbtunnel.backends.base import DocumentBackend
from dbtunnel.backends.cosmos_query import clean_cosmos_query
from dbtunnel.backends.registry import BackendRegistry
from dbtunnel.canonical.schema import ContainerSchema, DatabaseSchema
from dbtunnel.canonical.table import QueryResponse
from dbtunnel.config.settings import Settings, get_settings
from dbtunnel.inference.document_analyzer import DocumentTypeAnalyzer
from dbtunnel.observability.audit_logger import AuditLogger
from dbtunnel.observability.logger import (
    RequestTimer,
    generate_request_id,
    log_event,
)
from dbtunnel.outputs.query_response import build_query_response
from dbtunnel.outputs.result_normalizer import ResultNormalizer
from dbtunnel.utils.exceptions import BackendError, InvalidRequestError


SOURCE = "Cosmos DB"


def _require(value, message: str) -> str:
    if value is None or not str(value).strip():
        raise InvalidRequestError(message)
    return str(value)


class CosmosService:
    """
    Schema inference, connection checks and queries against a
    document database.

    Flow (schema):
    containers -> sampled documents -> DocumentTypeAnalyzer -> DatabaseSchema

    Flow (query):
    cleaned query -> backend rows -> ResultNormalizer -> QueryResponse
    """

    def __init__(
        self,
        backend_factory: Optional[Callable[[str], DocumentBackend]] = None,
        settings: Optional[Settings] = None,
    ):
        self.settings = settings or get_settings()
        self.backend_factory = backend_factory or BackendRegistry.get_backend("cosmos")
        self.analyzer = DocumentTypeAnalyzer(self.settings.limits)
        self.normalizer = ResultNormalizer(self.settings.limits)
        self.audit_logger = AuditLogger()

    # ==================================================
    # SCHEMA
    # ==================================================

    def get_schema(self, database: str, connection_string: str) -> DatabaseSchema:
        database = _require(database, "DatabaseName is required")
        request_id = generate_request_id()
        timer = RequestTimer()

        log_event("COSMOS_SCHEMA_STARTED", {
            "request_id": request_id,
            "database": database,
        })

        try:
            with self.backend_factory(connection_string) as backend:
                containers = [
                    self._container_schema(backend, database, name, partition_key, request_id)
                    for name, partition_key in backend.list_containers(database)
                ]
        except Exception as e:
            log_event("COSMOS_SCHEMA_FAILED", {
                "request_id": request_id,
                "database": database,
                "error": str(e),
            })
            self._audit(request_id, "COSMOS_SCHEMA", "FAILED", timer, database)
            raise

        schema = DatabaseSchema(name=database, containers=containers)

        log_event("COSMOS_SCHEMA_COMPLETED", {
            "request_id": request_id,
            "database": database,
            "containers": len(containers),
            "total_properties": schema.total_properties,
            "duration_seconds": timer.duration(),
        })
        self._audit(request_id, "COSMOS_SCHEMA", "SUCCESS", timer, database)

        return schema

    def _container_schema(
        self,
        backend: DocumentBackend,
        database: str,
        container: str,
        partition_key: str,
        request_id: str,
    ) -> ContainerSchema:
        try:
            document_count = backend.count_documents(database, container)
        except BackendError as e:
            document_count = None
            log_event("COSMOS_CONTAINER_COUNT_FAILED", {
                "request_id": request_id,
                "container": container,
                "error": str(e),
            })

        documents: List[Dict] = []
        if document_count != 0:
            documents = backend.sample_documents(
                database,
                container,
                self.settings.limits.document_sample_size,
            )

        properties = self.analyzer.analyze(documents)

        log_event("COSMOS_CONTAINER_ANALYZED", {
            "request_id": request_id,
            "container": container,
            "document_count": document_count,
            "sampled_documents": len(documents),
            "properties": len(properties),
        })

        return ContainerSchema(
            name=container,
            properties=properties,
            partition_key_path=partition_key or "/id",
        )

    # ==================================================
    # CONNECTION TEST
    # ==================================================

    def test_connection(self, database: str, connection_string: str) -> None:
        """
        Raises BackendError when the database cannot be read.
        """
        database = _require(database, "DatabaseName is required")

        with self.backend_factory(connection_string) as backend:
            try:
                backend.ping(database)
            except BackendError as e:
                log_event("CONNECTION_TEST_FAILED", {
                    "backend": "cosmos",
                    "database": database,
                    "error": str(e),
                })
                raise

        log_event("CONNECTION_TEST_COMPLETED", {
            "backend": "cosmos",
            "database": database,
        })

    # ==================================================
    # QUERY
    # ==================================================

    def execute_query(
        self,
        query: str,
        database: str,
        container: str,
        connection_string: str,
    ) -> QueryResponse:
        query = _require(query, "Query cannot be empty")
        database = _require(database, "DatabaseName is required")
        container = _require(container, "ContainerName is required")

        request_id = generate_request_id()
        timer = RequestTimer()

        cleaned = clean_cosmos_query(query)
        if cleaned != query:
            log_event("COSMOS_QUERY_REWRITTEN", {
                "request_id": request_id,
                "query": query,
                "rewritten": cleaned,
            })

        log_event("COSMOS_QUERY_STARTED", {
            "request_id": request_id,
            "database": database,
            "container": container,
        })

        context = {
            "databaseName": database,
            "containerName": container,
            "query": cleaned,
            "queryType": "Cosmos DB SQL",
        }

        try:
            with self.backend_factory(connection_string) as backend:
                result = backend.query(database, container, cleaned)
        except Exception as e:
            log_event("COSMOS_QUERY_FAILED", {
                "request_id": request_id,
                "database": database,
                "container": container,
                "error": str(e),
            })
            self._audit(request_id, "COSMOS_QUERY", "FAILED", timer, database, container)
            raise

        response = build_query_response(result, SOURCE, self.normalizer, context)

        log_event("COSMOS_QUERY_COMPLETED", {
            "request_id": request_id,
            "rows": len(result.rows),
            "columns": len(response.data.columns),
            "request_charge": result.request_charge,
            "duration_seconds": timer.duration(),
        })
        self._audit(
            request_id, "COSMOS_QUERY", "SUCCESS", timer,
            database, container, row_count=len(result.rows),
        )

        return response

    def _audit(self, request_id, action, decision, timer, database=None, container=None, row_count=0):
        self.audit_logger.persist(self.audit_logger.build_record(
            request_id=request_id,
            action=action,
            backend="cosmos",
            decision=decision,
            database=database,
            container=container,
            row_count=row_count,
            duration_seconds=timer.duration(),
        ))
