from typing import Callable, Optional

from dbtunnel.backends.base import SqlBackend
from dbtunnel.backends.registry import BackendRegistry
from dbtunnel.canonical.table import QueryResponse
from dbtunnel.config.settings import Settings, get_settings
from dbtunnel.observability.audit_logger import AuditLogger
from dbtunnel.observability.logger import (
    RequestTimer,
    generate_request_id,
    log_event,
)
from dbtunnel.outputs.query_response import build_query_response
from dbtunnel.outputs.result_normalizer import ResultNormalizer
from dbtunnel.utils.exceptions import BackendError, InvalidRequestError


SOURCE = "SQL Server"


class SqlService:
    """
    Connection checks and queries against a relational database.
    """

    def __init__(
        self,
        backend_factory: Optional[Callable[[str], SqlBackend]] = None,
        settings: Optional[Settings] = None,
    ):
        self.settings = settings or get_settings()
        self.backend_factory = backend_factory or BackendRegistry.get_backend("sql")
        self.normalizer = ResultNormalizer(self.settings.limits)
        self.audit_logger = AuditLogger()

    def test_connection(self, connection_string: str) -> None:
        with self.backend_factory(connection_string) as backend:
            try:
                backend.ping()
            except BackendError as e:
                log_event("CONNECTION_TEST_FAILED", {
                    "backend": "sql",
                    "error": str(e),
                })
                raise

        log_event("CONNECTION_TEST_COMPLETED", {"backend": "sql"})

    def execute_query(self, query: str, connection_string: str) -> QueryResponse:
        if query is None or not str(query).strip():
            raise InvalidRequestError("Query cannot be empty")

        request_id = generate_request_id()
        timer = RequestTimer()

        log_event("SQL_QUERY_STARTED", {"request_id": request_id})

        context = {"query": query, "queryType": "SQL"}

        try:
            with self.backend_factory(connection_string) as backend:
                result = backend.query(query)
        except Exception as e:
            log_event("SQL_QUERY_FAILED", {
                "request_id": request_id,
                "error": str(e),
            })
            self._audit(request_id, "FAILED", timer)
            raise

        response = build_query_response(result, SOURCE, self.normalizer, context)

        log_event("SQL_QUERY_COMPLETED", {
            "request_id": request_id,
            "rows": len(result.rows),
            "columns": len(response.data.columns),
            "duration_seconds": timer.duration(),
        })
        self._audit(request_id, "SUCCESS", timer, row_count=len(result.rows))

        return response

    def _audit(self, request_id, decision, timer, row_count=0):
        self.audit_logger.persist(self.audit_logger.build_record(
            request_id=request_id,
            action="SQL_QUERY",
            backend="sql",
            decision=decision,
            row_count=row_count,
            duration_seconds=timer.duration(),
        ))
