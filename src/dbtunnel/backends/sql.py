from typing import Any, Dict, List

from sqlalchemy import create_engine, text
from sqlalchemy.exc import ArgumentError, SQLAlchemyError
from sqlalchemy.pool import NullPool

from dbtunnel.backends.base import SqlBackend
from dbtunnel.canonical.table import QueryResult
from dbtunnel.observability.logger import RequestTimer
from dbtunnel.utils.exceptions import BackendError


class SqlAlchemyBackend(SqlBackend):
    """
    Relational backend over a SQLAlchemy URL.

    NullPool: every request opens and closes its own connection.
    """

    def __init__(self, connection_string: str):
        super().__init__(connection_string)
        self._engine = None

    @property
    def engine(self):
        if self._engine is None:
            try:
                self._engine = create_engine(
                    self.connection_string,
                    poolclass=NullPool,
                    future=True,
                )
            except (ArgumentError, ValueError) as e:
                raise BackendError(f"Invalid SQL connection string: {e}") from e
            except ImportError as e:
                raise BackendError(f"Missing database driver: {e}") from e
        return self._engine

    def close(self) -> None:
        if self._engine is not None:
            self._engine.dispose()
            self._engine = None

    def ping(self) -> None:
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
        except SQLAlchemyError as e:
            raise BackendError(str(e)) from e

    def query(self, sql: str) -> QueryResult:
        if not isinstance(sql, str) or not sql.strip():
            raise BackendError("sql must be a non-empty string")

        timer = RequestTimer()
        try:
            with self.engine.connect() as conn:
                result = conn.execute(text(sql))
                rows: List[Dict[str, Any]] = (
                    [dict(row) for row in result.mappings()]
                    if result.returns_rows
                    else []
                )
                conn.commit()
        except SQLAlchemyError as e:
            raise BackendError(str(e)) from e

        return QueryResult(rows=rows, execution_time_ms=timer.elapsed_ms())
