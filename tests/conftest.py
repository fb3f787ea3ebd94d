import os

# Avant l'import de l'app: pas de Redis en tests
os.environ.setdefault("DISABLE_FASTAPI_LIMITER_INIT_FOR_TESTS", "1")

import pytest
from decimal import Decimal
from typing import Generator, Dict, Any, List, Optional
from fastapi.testclient import TestClient
from unittest.mock import MagicMock

from backend.app import app as fastapi_app
from backend.utils.security import require_user

# Marquage automatique selon le dossier
def pytest_collection_modifyitems(config, items):
    for item in items:
        nodeid = item.nodeid.replace("\\", "/")
        if "tests/unit/" in nodeid:
            item.add_marker(pytest.mark.unit)
        elif "tests/integration/" in nodeid:
            item.add_marker(pytest.mark.integration)

@pytest.fixture(scope="session")
def app():
    return fastapi_app

@pytest.fixture()
def client(app) -> Generator[TestClient, None, None]:
    with TestClient(app) as c:
        yield c

TEST_USER: Dict[str, Any] = {
    "id": "test-user",
    "email": "test@example.com",
    "user_metadata": {"full_name": "Test User"},
}

# Simuler un utilisateur authentifié pour les endpoints protégés
@pytest.fixture(autouse=True)
def _override_require_user(app):
    app.dependency_overrides[require_user] = lambda: dict(TEST_USER)
    try:
        yield
    finally:
        app.dependency_overrides.pop(require_user, None)

# Aucun test ne doit joindre Supabase
@pytest.fixture(scope="function", autouse=True)
def mock_db_dependency(monkeypatch):
    monkeypatch.setattr("backend.infra.supabase_client.get_supabase", lambda: MagicMock())
    monkeypatch.setattr("backend.infra.supabase_client.get_service_supabase", lambda: MagicMock())

@pytest.fixture
def tenant() -> Dict[str, Any]:
    return {
        "id": "t1",
        "slug": "yoga-loft",
        "name": "Yoga Loft",
        "stripe_account_id": "acct_123",
        "tier": "basic",
        "currency": "usd",
        "processor_fixed_fee": None,
        "processor_percent_fee": None,
    }

@pytest.fixture
def fee_schedule():
    from backend.checkout.pricing import FeeSchedule
    return FeeSchedule(fixed_fee=30, percent_fee=Decimal("0.029"))


class _Result:
    def __init__(self, data: List[Dict[str, Any]], count: Optional[int] = None):
        self.data = data
        self.count = count


class _Query:
    """Sous-ensemble du query builder postgrest utilisé par le backend."""

    def __init__(self, db: "FakeSupabase", table: str):
        self.db = db
        self.table_name = table
        self.op = "select"
        self.payload: Any = None
        self.filters: List[tuple] = []
        self.max_rows: Optional[int] = None
        self.count_mode: Optional[str] = None

    def select(self, columns: str = "*", count: Optional[str] = None):
        self.op = "select"
        self.count_mode = count
        return self

    def insert(self, payload):
        self.op = "insert"
        self.payload = payload
        return self

    def update(self, values: Dict[str, Any]):
        self.op = "update"
        self.payload = values
        return self

    def eq(self, column: str, value: Any):
        self.filters.append((column, value))
        return self

    def limit(self, n: int):
        self.max_rows = n
        return self

    def _match(self, row: Dict[str, Any]) -> bool:
        return all(row.get(col) == val for col, val in self.filters)

    def execute(self) -> _Result:
        rows = self.db.tables.setdefault(self.table_name, [])
        if self.op == "insert":
            new_rows = self.payload if isinstance(self.payload, list) else [self.payload]
            rows.extend(dict(r) for r in new_rows)
            return _Result([dict(r) for r in new_rows])
        if self.op == "update":
            hook = self.db.before_update.pop(self.table_name, None)
            if hook:
                hook(self.db)
            updated = []
            for row in rows:
                if self._match(row):
                    row.update(self.payload)
                    updated.append(dict(row))
            return _Result(updated)
        found = [dict(r) for r in rows if self._match(r)]
        count = len(found) if self.count_mode else None
        if self.max_rows is not None:
            found = found[: self.max_rows]
        return _Result(found, count)


class FakeSupabase:
    def __init__(self):
        self.tables: Dict[str, List[Dict[str, Any]]] = {}
        # Callbacks ponctuels exécutés avant un update (écritures concurrentes)
        self.before_update: Dict[str, Any] = {}

    def table(self, name: str) -> _Query:
        return _Query(self, name)

    def rows(self, name: str) -> List[Dict[str, Any]]:
        return self.tables.get(name, [])


@pytest.fixture
def fake_db(monkeypatch) -> FakeSupabase:
    db = FakeSupabase()
    monkeypatch.setattr("backend.infra.supabase_client.get_service_supabase", lambda: db)
    return db
