import pytest
from sqlalchemy import create_engine, text

from dbtunnel.backends.base import DocumentBackend
from dbtunnel.canonical.table import QueryResult
from dbtunnel.config.settings import Settings
from dbtunnel.utils.exceptions import BackendError


class FakeCosmosBackend(DocumentBackend):
    """
    In-memory document backend: containers map to lists of documents.
    """

    def __init__(self, connection_string="fake", containers=None, fail_with=None):
        super().__init__(connection_string)
        self.containers = containers or {}
        self.fail_with = fail_with
        self.queries = []
        self.closed = False

    def _check(self):
        if self.fail_with:
            raise BackendError(self.fail_with)

    def close(self):
        self.closed = True

    def ping(self, database):
        self._check()

    def list_containers(self, database):
        self._check()
        return [(name, "/pk") for name in self.containers]

    def count_documents(self, database, container):
        self._check()
        return len(self.containers[container])

    def sample_documents(self, database, container, limit):
        self._check()
        return list(self.containers[container][:limit])

    def query(self, database, container, query):
        self._check()
        self.queries.append(query)
        return QueryResult(
            rows=list(self.containers.get(container, [])),
            execution_time_ms=7,
            request_charge=2.5,
            activity_id="activity-1",
        )


@pytest.fixture
def settings():
    return Settings()


@pytest.fixture
def fake_cosmos():
    def _factory(**kwargs):
        return FakeCosmosBackend(**kwargs)
    return _factory


@pytest.fixture
def sqlite_url(tmp_path):
    url = f"sqlite:///{tmp_path / 'tunnel.db'}"
    engine = create_engine(url)
    with engine.begin() as conn:
        conn.execute(text("CREATE TABLE people (id INTEGER PRIMARY KEY, name TEXT, email TEXT)"))
        conn.execute(text(
            "INSERT INTO people (id, name, email) VALUES "
            "(1, 'Ada', 'ada@example.com'), (2, 'Linus', NULL)"
        ))
    engine.dispose()
    return url
