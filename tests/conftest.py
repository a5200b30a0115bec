import copy
from datetime import datetime
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient

from dog_walking.api.dependencies import get_database
from dog_walking.main import app
from dog_walking.services.db_service import Database


def _comparable(value):
    if isinstance(value, str):
        try:
            return datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return value
    return value


class FakeQuery:
    """Just enough of the postgrest query builder for the Database gateway."""

    def __init__(self, backend, table):
        self._backend = backend
        self._table = table
        self._op = "select"
        self._columns = "*"
        self._payload = None
        self._filters = []
        self._limit = None
        self._order = None
        self._range = None

    def select(self, columns="*"):
        self._op, self._columns = "select", columns
        return self

    def insert(self, payload):
        self._op, self._payload = "insert", payload
        return self

    def update(self, payload):
        self._op, self._payload = "update", payload
        return self

    def eq(self, column, value):
        self._filters.append(lambda row: row.get(column) == value)
        return self

    def gte(self, column, value):
        self._filters.append(lambda row: _comparable(row.get(column)) >= _comparable(value))
        return self

    def in_(self, column, values):
        allowed = set(values)
        self._filters.append(lambda row: row.get(column) in allowed)
        return self

    def limit(self, count):
        self._limit = count
        return self

    def order(self, column, desc=False):
        self._order = (column, desc)
        return self

    def range(self, start, end):
        self._range = (start, end)
        return self

    def _matches(self, row):
        return all(f(row) for f in self._filters)

    async def execute(self):
        self._backend.calls.append((self._table, self._op))
        if self._backend.fail is not None:
            raise self._backend.fail

        rows = self._backend.tables.setdefault(self._table, [])

        if self._op == "insert":
            row = copy.deepcopy(self._payload)
            rows.append(row)
            return SimpleNamespace(data=[copy.deepcopy(row)])

        matched = [row for row in rows if self._matches(row)]
        if self._order is not None:
            column, desc = self._order
            matched.sort(key=lambda row: str(row.get(column)), reverse=desc)
        if self._range is not None:
            start, end = self._range
            matched = matched[start:end + 1]
        if self._limit is not None:
            matched = matched[: self._limit]

        if self._op == "update":
            for row in matched:
                row.update(self._payload)
            return SimpleNamespace(data=copy.deepcopy(matched))

        if self._columns != "*":
            wanted = [c.strip() for c in self._columns.split(",")]
            matched = [{c: row.get(c) for c in wanted} for row in matched]
        return SimpleNamespace(data=copy.deepcopy(matched))


class FakeSupabase:
    def __init__(self):
        self.tables = {"owners": [], "dogs": [], "bookings": []}
        self.calls = []
        self.fail = None

    def table(self, name):
        return FakeQuery(self, name)


@pytest.fixture
def fake_supabase():
    return FakeSupabase()


@pytest.fixture
def db(fake_supabase):
    return Database(fake_supabase)


@pytest.fixture
def client(db):
    app.dependency_overrides[get_database] = lambda: db
    yield TestClient(app)
    app.dependency_overrides.clear()
