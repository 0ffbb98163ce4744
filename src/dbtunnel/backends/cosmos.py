from typing import Any, Dict, List, Tuple

from azure.core.exceptions import AzureError
from azure.cosmos import CosmosClient

from dbtunnel.adapters.json_adapter import decode_item
from dbtunnel.backends.base import DocumentBackend
from dbtunnel.canonical.table import QueryResult
from dbtunnel.observability.logger import RequestTimer, logger
from dbtunnel.utils.exceptions import BackendError


COUNT_QUERY = "SELECT VALUE COUNT(1) FROM c"


def _sample_queries(limit: int) -> List[str]:
    return [
        f"SELECT TOP {int(limit)} * FROM c",
        f"SELECT * FROM c OFFSET 0 LIMIT {int(limit)}",
    ]


class CosmosBackend(DocumentBackend):
    """
    Document backend over the azure-cosmos SDK.

    One client per backend instance; the client is opened lazily and
    closed with the backend.
    """

    def __init__(self, connection_string: str):
        super().__init__(connection_string)
        self._client = None

    # ------------------------------------------
    # Client lifecycle
    # ------------------------------------------
    @property
    def client(self) -> CosmosClient:
        if self._client is None:
            try:
                self._client = CosmosClient.from_connection_string(self.connection_string)
            except (AzureError, ValueError) as e:
                raise BackendError(f"Invalid Cosmos connection: {e}") from e
        return self._client

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None

    def _container(self, database: str, container: str):
        return self.client.get_database_client(database).get_container_client(container)

    # ------------------------------------------
    # Operations
    # ------------------------------------------
    def ping(self, database: str) -> None:
        try:
            self.client.get_database_client(database).read()
        except AzureError as e:
            raise BackendError(str(e)) from e

    def list_containers(self, database: str) -> List[Tuple[str, str]]:
        try:
            db = self.client.get_database_client(database)
            containers = []
            for props in db.list_containers():
                paths = (props.get("partitionKey") or {}).get("paths") or ["/id"]
                containers.append((props["id"], paths[0]))
            return containers
        except AzureError as e:
            raise BackendError(str(e)) from e

    def count_documents(self, database: str, container: str) -> int:
        try:
            items = self._container(database, container).query_items(
                query=COUNT_QUERY,
                enable_cross_partition_query=True,
            )
            values = list(items)
        except AzureError as e:
            raise BackendError(str(e)) from e
        return int(values[0]) if values else 0

    def sample_documents(self, database: str, container: str, limit: int) -> List[Dict[str, Any]]:
        """
        Fetch up to `limit` documents, trying TOP then OFFSET/LIMIT.

        A query form the account rejects is skipped; the first form that
        yields documents wins.
        """
        client = self._container(database, container)

        for query in _sample_queries(limit):
            try:
                items = client.query_items(
                    query=query,
                    enable_cross_partition_query=True,
                    max_item_count=limit,
                )
                documents = []
                for item in items:
                    document = decode_item(item)
                    if document:
                        documents.append(document)
                    if len(documents) >= limit:
                        break
            except AzureError as e:
                logger.debug("sample query failed on %s: %s", container, e)
                continue

            if documents:
                return documents

        return []

    def query(self, database: str, container: str, query: str) -> QueryResult:
        timer = RequestTimer()
        client = self._container(database, container)

        try:
            rows = [
                decode_item(item)
                for item in client.query_items(
                    query=query,
                    enable_cross_partition_query=True,
                )
            ]
        except AzureError as e:
            raise BackendError(str(e)) from e

        headers = client.client_connection.last_response_headers or {}

        return QueryResult(
            rows=rows,
            execution_time_ms=timer.elapsed_ms(),
            request_charge=float(headers.get("x-ms-request-charge", 0) or 0),
            activity_id=headers.get("x-ms-activity-id"),
        )
