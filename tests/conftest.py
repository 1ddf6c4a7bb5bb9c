# ==============================================
# Pytest Configuration and Fixtures
# ==============================================
#
# FIXTURES:
# ---------
# - sqlite_backend  → SQLiteClient on a temp file
# - sql_store       → SQLMetadataStore over sqlite_backend, table created
# - file_store      → FileMetadataStore in a temp directory
# - store           → parametrized over both stores
# - clean_config    → config singleton reset around the test
#
# HELPERS:
# --------
# - StubBackend     → RelationalBackend returning canned rows
# - FailingBackend  → RelationalBackend whose every call fails
#
# ==============================================

import pytest

from metastore.backends.sqlite_client import SQLiteClient
from metastore.config import reset_config
from metastore.errors import BackendError
from metastore.sources.file_store import FileMetadataStore
from metastore.sources.sql_store import SQLMetadataStore

TABLE = "test_metadatastore"


def insert_raw(backend, set_name, entity, blob):
    """Write a row behind the store's back, e.g. a corrupted blob."""
    backend.execute(
        f"INSERT INTO {TABLE} (_set, _entity, _value) VALUES (?, ?, ?)",
        (set_name, entity, blob),
    )


def row_count(backend, set_name, entity):
    rows = backend.fetch_all(
        f"SELECT COUNT(*) FROM {TABLE} WHERE _set = ? AND _entity = ?",
        (set_name, entity),
    )
    return rows[0][0]


class StubBackend:
    """Backend that records every call and answers fetch_all with canned rows."""

    placeholder = "?"

    def __init__(self, rows=None):
        self.rows = rows or []
        self.calls = []

    def fetch_all(self, query, params=None):
        self.calls.append(("fetch_all", query, params))
        return list(self.rows)

    def execute(self, query, params=None):
        self.calls.append(("execute", query, params))
        return 0

    def insert_or_update(self, table, keys, values):
        self.calls.append(("insert_or_update", table, list(keys), dict(values)))

    def ensure_metadata_table(self, table):
        self.calls.append(("ensure_metadata_table", table))


class FailingBackend(StubBackend):
    """Backend simulating a database that is down."""

    def fetch_all(self, query, params=None):
        raise BackendError("fetch_all", "server has gone away")

    def execute(self, query, params=None):
        raise BackendError("execute", "server has gone away")

    def insert_or_update(self, table, keys, values):
        raise BackendError("insert_or_update", "server has gone away")

    def ensure_metadata_table(self, table):
        raise BackendError("ensure_metadata_table", "server has gone away")


@pytest.fixture
def sqlite_backend(tmp_path):
    return SQLiteClient(str(tmp_path / "db" / "metastore.db"))


@pytest.fixture
def sql_store(sqlite_backend):
    store = SQLMetadataStore(sqlite_backend, table_name=TABLE)
    store.initialize()
    return store


@pytest.fixture
def file_store(tmp_path):
    store = FileMetadataStore(str(tmp_path / "metadata"))
    store.initialize()
    return store


@pytest.fixture(params=["sql", "file"])
def store(request):
    """Run the test against every metadata source implementation."""
    return request.getfixturevalue(f"{request.param}_store")


@pytest.fixture
def clean_config(monkeypatch):
    for name in (
        "METASTORE_BACKEND", "METASTORE_TABLE_PREFIX", "METASTORE_LOG_LEVEL",
        "MYSQL_HOST", "MYSQL_PORT", "MYSQL_USER", "MYSQL_PASSWORD", "MYSQL_DATABASE",
        "SQLITE_PATH", "SQLITE_TIMEOUT", "METASTORE_FILE_DIR",
    ):
        monkeypatch.delenv(name, raising=False)
    # keep a developer's .env out of the tests
    monkeypatch.setattr("metastore.config.load_dotenv", lambda *a, **kw: False)
    reset_config()
    yield
    reset_config()
