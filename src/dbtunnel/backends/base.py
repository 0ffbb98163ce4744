"""
Backend interfaces.

A backend owns one connection string for the duration of one request:
it connects, runs queries, and hands back rows already decoded into
plain mappings. It knows nothing about schema inference or response
shaping; that stays in inference/ and outputs/.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Tuple

from dbtunnel.canonical.table import QueryResult


class Backend(ABC):

    def __init__(self, connection_string: str):
        self.connection_string = connection_string

    def close(self) -> None:
        """Release driver resources. Safe to call twice."""

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False


class DocumentBackend(Backend):
    """
    Document store: databases hold containers, containers hold documents.
    """

    @abstractmethod
    def ping(self, database: str) -> None:
        """Raise BackendError if the database cannot be reached."""

    @abstractmethod
    def list_containers(self, database: str) -> List[Tuple[str, str]]:
        """(container name, partition key path) pairs."""

    @abstractmethod
    def count_documents(self, database: str, container: str) -> int:
        ...

    @abstractmethod
    def sample_documents(self, database: str, container: str, limit: int) -> List[Dict[str, Any]]:
        ...

    @abstractmethod
    def query(self, database: str, container: str, query: str) -> QueryResult:
        ...


class SqlBackend(Backend):
    """
    Relational engine reached through a single connection string.
    """

    @abstractmethod
    def ping(self) -> None:
        ...

    @abstractmethod
    def query(self, sql: str) -> QueryResult:
        ...
