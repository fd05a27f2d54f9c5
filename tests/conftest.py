"""
Test configuration and fixtures for the Nikov Plan tests.

Sets test environment variables before any nikovplan import and provides an
in-memory stand-in for the Supabase REST client.
"""
import os

# Patch env vars BEFORE any nikovplan imports; empty Supabase settings mean demo mode
os.environ["ENV"] = "test"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["ADMIN_DISCORD_ID"] = "123456789012345678"
os.environ["DISCORD_CLIENT_ID"] = "test-client-id"
os.environ["DISCORD_CLIENT_SECRET"] = "test-client-secret"
os.environ["BASE_URL"] = "http://testserver"
os.environ["SUPABASE_URL"] = ""
os.environ["SUPABASE_ANON_KEY"] = ""
os.environ["SUPABASE_SERVICE_KEY"] = ""

import itertools
from datetime import datetime
from typing import Any, Dict, List, Optional

import pytest
from fastapi.testclient import TestClient

from nikovplan.config.supabase import SupabaseError
from nikovplan.utils.clock import FixedClock

ADMIN_ID = os.environ["ADMIN_DISCORD_ID"]

# Monday afternoon
NOW = datetime(2026, 10, 19, 14, 30, 15)


class FakeSupabaseClient:
    """
    In-memory stand-in for SimpleSupabaseClient.query.

    Supports the operators and options the services use. ``fail`` makes
    matching calls raise SupabaseError, optionally after a number of successful
    calls.
    """

    def __init__(self):
        self.tables: Dict[str, List[Dict[str, Any]]] = {}
        self.calls: List[Dict[str, Any]] = []
        self._ids = itertools.count(1)
        self._failures: List[Dict[str, Any]] = []

    def seed(self, table: str, rows: List[Dict[str, Any]]):
        self.tables.setdefault(table, []).extend(dict(row) for row in rows)

    def fail(self, method: str, table: str, after: int = 0, status_code: int = 500):
        self._failures.append({"method": method, "table": table, "after": after, "status_code": status_code})

    def _check_failure(self, method: str, table: str):
        for failure in self._failures:
            if failure["method"] == method and failure["table"] == table:
                if failure["after"] > 0:
                    failure["after"] -= 1
                    continue
                raise SupabaseError(failure["status_code"], "simulated failure")

    @staticmethod
    def _matches(row: Dict[str, Any], filters: Optional[Dict[str, Any]]) -> bool:
        for column, value in (filters or {}).items():
            conditions = value if isinstance(value, list) else [value]
            for condition in conditions:
                operator, operand = condition if isinstance(condition, tuple) else ("eq", condition)
                actual = row.get(column)
                if operator == "eq" and not (actual == operand):
                    return False
                if operator == "neq" and (actual is None or actual == operand):
                    return False
                if operator == "gte" and not (actual is not None and actual >= operand):
                    return False
                if operator == "lte" and not (actual is not None and actual <= operand):
                    return False
        return True

    @staticmethod
    def _project(row: Dict[str, Any], select: Optional[str]) -> Dict[str, Any]:
        if not select or select == "*":
            return dict(row)
        return {column: row.get(column) for column in select.split(",")}

    async def query(self, table, method="GET", data=None, filters=None, select=None, order=None, on_conflict=None, limit=None):
        self.calls.append({"table": table, "method": method, "data": data, "filters": filters, "on_conflict": on_conflict})
        self._check_failure(method, table)
        rows = self.tables.setdefault(table, [])

        if method == "GET":
            result = [row for row in rows if self._matches(row, filters)]
            for part in reversed((order or "").split(",")):
                if part:
                    column, _, direction = part.partition(".")
                    result.sort(key=lambda r: r.get(column) or "", reverse=direction == "desc")
            if limit is not None:
                result = result[:limit]
            return [self._project(row, select) for row in result]

        if method == "POST":
            written = []
            for item in data if isinstance(data, list) else [data]:
                item = dict(item)
                existing = None
                if on_conflict:
                    keys = on_conflict.split(",")
                    existing = next((r for r in rows if all(r.get(k) == item.get(k) for k in keys)), None)
                if existing is not None:
                    existing.update(item)
                    written.append(existing)
                else:
                    number = next(self._ids)
                    item.setdefault("id", f"id-{number}")
                    item.setdefault("created_at", f"2026-10-19T00:00:{number:02d}")
                    rows.append(item)
                    written.append(item)
            return [self._project(row, select) for row in written]

        if method == "PATCH":
            for row in rows:
                if self._matches(row, filters):
                    row.update(data)
            return []

        if method == "DELETE":
            self.tables[table] = [row for row in rows if not self._matches(row, filters)]
            return []

        raise ValueError(f"Unsupported method: {method}")


@pytest.fixture
def clock():
    return FixedClock(NOW)


@pytest.fixture
def fake_store():
    return FakeSupabaseClient()


@pytest.fixture
def schedule_service(fake_store, clock):
    from nikovplan.services.schedule import ScheduleService
    return ScheduleService(fake_store, clock)


@pytest.fixture
def todo_service(fake_store):
    from nikovplan.services.todos import TodoService
    return TodoService(fake_store)


@pytest.fixture
def app_client(fake_store, clock):
    """TestClient wired to the fake store and a fixed clock"""
    from nikovplan.api.deps import get_clock, get_store_client
    from nikovplan.app import app

    app.dependency_overrides[get_store_client] = lambda: fake_store
    app.dependency_overrides[get_clock] = lambda: clock
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def demo_client(clock):
    """TestClient with no store handle, so demo data is served"""
    from nikovplan.api.deps import get_clock, get_store_client
    from nikovplan.app import app

    app.dependency_overrides[get_store_client] = lambda: None
    app.dependency_overrides[get_clock] = lambda: clock
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def owner_token():
    from nikovplan.utils.auth import create_access_token
    return create_access_token({"sub": ADMIN_ID, "name": "Niko", "username": "niko"})


@pytest.fixture
def auth_headers(owner_token):
    return {"Authorization": f"Bearer {owner_token}"}
