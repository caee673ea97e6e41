"""
Pytest configuration and fixtures for Federation Rankings tests
"""

import itertools
import os
import pytest
import sys
import uuid
from pathlib import Path
from types import SimpleNamespace

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

os.environ.setdefault("SUPABASE_URL", "http://localhost:54321")
os.environ.setdefault("SUPABASE_KEY", "test-anon-key")


# =============================================================================
# In-memory Supabase
# =============================================================================

class FakeResponse:
    def __init__(self, data, count=None):
        self.data = data
        self.count = count


class FakeQuery:
    """Subset of the postgrest query builder used by FederationDB"""

    def __init__(self, store, table):
        self.store = store
        self.table_name = table
        self.op = "select"
        self.payload = None
        self.count_mode = None
        self.filters = []
        self.orders = []
        self.limit_value = None

    def select(self, columns="*", count=None):
        self.op = "select"
        self.count_mode = count
        return self

    def insert(self, data):
        self.op = "insert"
        self.payload = data
        return self

    def update(self, data):
        self.op = "update"
        self.payload = data
        return self

    def delete(self):
        self.op = "delete"
        return self

    def eq(self, column, value):
        self.filters.append((column, value))
        return self

    def order(self, column, desc=False):
        self.orders.append((column, desc))
        return self

    def limit(self, count):
        self.limit_value = count
        return self

    def _matches(self, row):
        return all(row.get(column) == value for column, value in self.filters)

    def execute(self):
        if (self.table_name, self.op) in self.store.failures:
            raise RuntimeError(f"simulated {self.op} failure on {self.table_name}")

        rows = self.store.tables.setdefault(self.table_name, [])

        if self.op == "insert":
            items = self.payload if isinstance(self.payload, list) else [self.payload]
            inserted = []
            for item in items:
                row = dict(item)
                row.setdefault("id", str(uuid.uuid4()))
                row.setdefault("created_at", next(self.store.clock))
                rows.append(row)
                inserted.append(dict(row))
            return FakeResponse(inserted)

        matched = [r for r in rows if self._matches(r)]

        if self.op == "update":
            for row in matched:
                row.update(self.payload)
            return FakeResponse([dict(r) for r in matched])

        if self.op == "delete":
            self.store.tables[self.table_name] = [r for r in rows if not self._matches(r)]
            return FakeResponse([dict(r) for r in matched])

        result = [dict(r) for r in matched]
        for column, desc in reversed(self.orders):
            result.sort(key=lambda r: (r.get(column) is None, r.get(column)), reverse=desc)
        count = len(result) if self.count_mode else None
        if self.limit_value is not None:
            result = result[:self.limit_value]
        return FakeResponse(result, count)


class FakeAuth:
    def __init__(self, store):
        self.store = store

    def get_user(self, token):
        user = self.store.tokens.get(token)
        if user is None:
            raise RuntimeError("invalid JWT")
        return SimpleNamespace(user=user)


class FakeSupabase:
    """Stands in for supabase.Client in tests"""

    def __init__(self):
        self.tables = {}
        self.tokens = {}
        self.failures = set()
        self.clock = itertools.count(1)
        self.auth = FakeAuth(self)

    def table(self, name):
        return FakeQuery(self, name)

    def seed(self, table, *rows):
        self.tables.setdefault(table, []).extend(dict(r) for r in rows)

    def rows(self, table):
        return self.tables.get(table, [])


# =============================================================================
# Sample data
# =============================================================================

def sample_rows():
    """Season 2026 sample: one athlete per age category plus edge cases"""
    athletes = [
        {"id": "a1", "first_name": "Mia", "last_name": "Tamm", "date_of_birth": "2012-03-01",
         "gender": "female", "weight_category": "-44kg", "club": "Tiger",
         "last_year_points": 50, "is_active": True},
        {"id": "a2", "first_name": "Karl", "last_name": "Kask", "date_of_birth": "2011-05-05",
         "gender": "male", "weight_category": "-55kg", "club": "Dragon",
         "last_year_points": 100, "is_active": True},
        {"id": "a3", "first_name": "Eva", "last_name": "Mets", "date_of_birth": "2000-01-01",
         "gender": "female", "weight_category": "-57kg", "club": "Tiger",
         "last_year_points": 20, "hub_member": True, "is_active": True},
        {"id": "a4", "first_name": "Leo", "last_name": "Saar", "date_of_birth": "2016-01-01",
         "gender": "male", "weight_category": "-30kg", "club": "Tiger",
         "last_year_points": 10, "is_active": True},
        {"id": "a5", "first_name": "Ott", "last_name": "Ilves", "date_of_birth": "2001-02-02",
         "gender": "male", "weight_category": "-68kg", "club": "Dragon",
         "last_year_points": 80, "is_active": False},
    ]
    events = [
        {"id": "e1", "name": "Spring Open", "start_date": "2026-03-10", "coefficient": 3,
         "city": "Tallinn", "year": 2026, "is_published": True},
        {"id": "e2", "name": "Club Cup", "start_date": "2026-05-20", "coefficient": 1,
         "city": "Tartu", "year": 2026, "is_published": True},
        {"id": "e3", "name": "Autumn Open", "start_date": "2025-11-01", "coefficient": 5,
         "city": "Riga", "year": 2025, "is_published": True},
        {"id": "e4", "name": "Nordic Championships", "start_date": "2026-09-01", "coefficient": 4,
         "city": "Helsinki", "year": 2026, "is_published": False},
    ]
    results = [
        {"id": "r1", "athlete_id": "a1", "event_id": "e1", "final_rank": 1, "matches_won": 3},
        {"id": "r2", "athlete_id": "a1", "event_id": "e2", "final_rank": 2, "matches_won": 1},
        {"id": "r3", "athlete_id": "a2", "event_id": "e2", "final_rank": 1, "matches_won": 2},
        {"id": "r4", "athlete_id": "a3", "event_id": "e1", "final_rank": 5, "matches_won": 2},
        {"id": "r5", "athlete_id": "a1", "event_id": "e3", "final_rank": 1, "matches_won": 4},
        {"id": "r6", "athlete_id": "a1", "event_id": "e4", "final_rank": 1, "matches_won": 4},
        {"id": "r7", "athlete_id": "a5", "event_id": "e1", "final_rank": 2, "matches_won": 3},
    ]
    return athletes, events, results


@pytest.fixture
def sample_data():
    return sample_rows()


@pytest.fixture
def fake_supabase():
    return FakeSupabase()


@pytest.fixture
def seeded_supabase(fake_supabase):
    athletes, events, results = sample_rows()
    fake_supabase.seed("athletes", *athletes)
    fake_supabase.seed("events", *events)
    fake_supabase.seed("results", *results)
    return fake_supabase


@pytest.fixture
def db(seeded_supabase):
    from database.supabase_client import FederationDB
    return FederationDB(client=seeded_supabase)


# =============================================================================
# API clients
# =============================================================================

@pytest.fixture
def api_app(db):
    from app.server import app
    from app.dependencies import get_db

    app.dependency_overrides[get_db] = lambda: db
    yield app
    app.dependency_overrides.clear()


@pytest.fixture
def client(api_app):
    """Public + admin client (admin check bypassed)"""
    from fastapi.testclient import TestClient
    from app.dependencies import AdminContext, require_admin

    api_app.dependency_overrides[require_admin] = lambda: AdminContext(
        user_id="admin-1", role="admin", email="admin@example.com"
    )
    with TestClient(api_app) as test_client:
        yield test_client


@pytest.fixture
def anon_client(api_app):
    """Client without the admin override (real token check)"""
    from fastapi.testclient import TestClient

    with TestClient(api_app) as test_client:
        yield test_client
