"""
Shared fixtures: an in-memory stand-in for the Supabase client and TestClients
with auth/database dependencies overridden.
"""

import copy
import uuid
from datetime import datetime, timezone
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from app.core.dependencies import get_auth_service, get_current_user, get_user_supabase
from app.core.limiter import limiter
from app.database.supabase_client import get_supabase, get_service_supabase
from app.main import app
from app.modules.auth.service import AuthService, clear_auth_cache


USER = {
    "id": "11111111-1111-1111-1111-111111111111",
    "email": "ana@example.com",
    "user_metadata": {"full_name": "Ana Pérez", "company_name": "Acme"},
    "app_metadata": {},
}

ADMIN = {
    "id": "22222222-2222-2222-2222-222222222222",
    "email": "admin@example.com",
    "user_metadata": {"full_name": "Admin"},
    "app_metadata": {"type": "admin"},
}


# ── Fake Supabase ─────────────────────────────────

class FakeQuery:
    """The subset of the PostgREST query builder the services use, over a list of dicts"""

    def __init__(self, db: "FakeSupabase", table: str):
        self.db = db
        self.table = table
        self.mode = "select"
        self.columns = "*"
        self.count_mode = None
        self.payload = None
        self.filters = []
        self.ordering = []
        self.window = None
        self.single_mode = None

    # builders
    def select(self, columns="*", count=None):
        self.columns = columns
        self.count_mode = count
        return self

    def insert(self, data):
        self.mode = "insert"
        self.payload = data
        return self

    def update(self, data):
        self.mode = "update"
        self.payload = data
        return self

    def delete(self):
        self.mode = "delete"
        return self

    def eq(self, column, value):
        self.filters.append(lambda row: row.get(column) == value)
        return self

    def in_(self, column, values):
        values = list(values)
        self.filters.append(lambda row: row.get(column) in values)
        return self

    def gte(self, column, value):
        self.filters.append(lambda row: row.get(column) is not None and row.get(column) >= value)
        return self

    def order(self, column, desc=False):
        self.ordering.append((column, desc))
        return self

    def limit(self, n):
        self.window = (0, n)
        return self

    def range(self, start, end):
        self.window = (start, end - start + 1)
        return self

    def maybe_single(self):
        self.single_mode = "maybe"
        return self

    def single(self):
        self.single_mode = "single"
        return self

    # execution
    def _matches(self, row):
        return all(f(row) for f in self.filters)

    def _project(self, row):
        if self.columns.strip() == "*":
            return copy.deepcopy(row)
        names = [c.strip() for c in self.columns.split(",")]
        return {name: copy.deepcopy(row.get(name)) for name in names}

    def execute(self):
        if self.table in self.db.failing_tables:
            raise Exception(f"relation \"{self.table}\" is unavailable")
        rows = self.db.tables.setdefault(self.table, [])

        if self.mode == "insert":
            if self.db.failing_inserts.get(self.table):
                self.db.failing_inserts[self.table] -= 1
                raise Exception(f"insert into \"{self.table}\" failed")
            new_rows = self.payload if isinstance(self.payload, list) else [self.payload]
            inserted = []
            for data in new_rows:
                row = {"id": str(uuid.uuid4()), "created_at": datetime.now(timezone.utc).isoformat()}
                row.update(copy.deepcopy(data))
                rows.append(row)
                inserted.append(copy.deepcopy(row))
            return SimpleNamespace(data=inserted, count=None)

        matched = [r for r in rows if self._matches(r)]

        if self.mode == "update":
            for row in matched:
                row.update(copy.deepcopy(self.payload))
            return SimpleNamespace(data=[copy.deepcopy(r) for r in matched], count=None)

        if self.mode == "delete":
            self.db.tables[self.table] = [r for r in rows if not self._matches(r)]
            return SimpleNamespace(data=[copy.deepcopy(r) for r in matched], count=None)

        for column, desc in reversed(self.ordering):
            matched.sort(key=lambda r: (r.get(column) is None, r.get(column) or 0), reverse=desc)
        total = len(matched)
        if self.window:
            start, size = self.window
            matched = matched[start:start + size]
        data = [self._project(r) for r in matched]

        if self.single_mode:
            if not data:
                if self.single_mode == "single":
                    raise Exception("PGRST116: JSON object requested, multiple (or no) rows returned")
                return None
            return SimpleNamespace(data=data[0], count=total if self.count_mode else None)
        return SimpleNamespace(data=data, count=total if self.count_mode else None)


class FakeRpc:
    def __init__(self, db, name, params):
        self.db = db
        self.name = name
        self.params = params

    def execute(self):
        self.db.rpc_calls.append((self.name, self.params))
        handler = self.db.rpc_handlers.get(self.name)
        if handler is None:
            raise Exception(f"Could not find the function public.{self.name}")
        return SimpleNamespace(data=handler(self.params))


class FakeSupabase:
    def __init__(self):
        self.tables = {}
        self.failing_tables = set()
        self.failing_inserts = {}  # table -> number of inserts that fail before one succeeds
        self.rpc_handlers = {}
        self.rpc_calls = []
        self.auth = MagicMock()
        self.storage = MagicMock()

    def seed(self, table, rows):
        self.tables.setdefault(table, []).extend(copy.deepcopy(rows))
        return rows

    def rows(self, table):
        return self.tables.get(table, [])

    def table(self, name):
        return FakeQuery(self, name)

    def rpc(self, name, params=None):
        return FakeRpc(self, name, params or {})


def make_product(**overrides):
    product = {
        "id": str(uuid.uuid4()),
        "name": "Termo Mi Partner",
        "description": "Termo de acero 500ml",
        "price": 50,
        "category": "Merch",
        "image_url": None,
        "stock": 10,
        "max_per_user": 2,
        "sku": None,
        "urlpage": None,
    }
    product.update(overrides)
    return product


# ── Fixtures ──────────────────────────────────────

@pytest.fixture(autouse=True)
def _isolate():
    clear_auth_cache()
    limiter.enabled = False
    yield
    limiter.enabled = True
    app.dependency_overrides.clear()


@pytest.fixture
def fake_supabase():
    return FakeSupabase()


@pytest.fixture
def make_client(fake_supabase):
    def _make(user=USER):
        app.dependency_overrides[get_supabase] = lambda: fake_supabase
        app.dependency_overrides[get_service_supabase] = lambda: fake_supabase
        app.dependency_overrides[get_user_supabase] = lambda: fake_supabase
        app.dependency_overrides[get_auth_service] = lambda: AuthService(fake_supabase, lambda: fake_supabase)
        if user is not None:
            app.dependency_overrides[get_current_user] = lambda: user
        return TestClient(app)
    return _make


@pytest.fixture
def client(make_client):
    return make_client(USER)


@pytest.fixture
def admin_client(make_client):
    return make_client(ADMIN)
