"""
Shared test fixtures.

The mock Supabase client keeps rows per table in memory and understands the
subset of the PostgREST query builder the services use, so writes made by one
call are visible to the next.
"""

import os
import sys
from pathlib import Path

# Add project root to Python path
project_dir = Path(__file__).parent.parent
sys.path.insert(0, str(project_dir))

# Settings are read at import time
os.environ.setdefault("SUPABASE_URL", "http://localhost:54321")
os.environ.setdefault("SUPABASE_KEY", "test.test.test")

import pytest
from unittest.mock import patch
from typing import Generator, Optional

from models.product import ProductCatalogEntry


# ===================
# MOCK SUPABASE CLIENT
# ===================

class MockSupabaseResponse:
    """Mock Supabase query response."""

    def __init__(self, data=None, count: Optional[int] = None):
        self.data = data if data is not None else []
        self.count = count


class MockSupabaseQuery:
    """Mock Supabase query builder with chainable methods."""

    def __init__(self, client: "MockSupabaseClient", table_name: str):
        self._client = client
        self._table_name = table_name
        self._operation = "select"
        self._columns = "*"
        self._payload = None
        self._on_conflict = None
        self._count_mode = None
        self._filters = []
        self._negate_next = False
        self._order = []
        self._range = None
        self._limit = None
        self._is_single = False

    # Operations

    def select(self, *columns, count=None):
        self._operation = "select"
        self._columns = columns[0] if columns else "*"
        self._count_mode = count
        return self

    def insert(self, data):
        self._operation = "insert"
        self._payload = data
        return self

    def upsert(self, data, on_conflict: str = "", **kwargs):
        self._operation = "upsert"
        self._payload = data
        self._on_conflict = on_conflict or "id"
        return self

    def update(self, data):
        self._operation = "update"
        self._payload = data
        return self

    def delete(self, count=None, **kwargs):
        self._operation = "delete"
        self._count_mode = count
        return self

    # Filters

    @property
    def not_(self):
        self._negate_next = True
        return self

    def _add_filter(self, predicate):
        if self._negate_next:
            self._negate_next = False
            self._filters.append(lambda row: not predicate(row))
        else:
            self._filters.append(predicate)
        return self

    def eq(self, column, value):
        return self._add_filter(lambda row: row.get(column) == value)

    def neq(self, column, value):
        return self._add_filter(lambda row: row.get(column) != value)

    def is_(self, column, value):
        if value in ("null", None):
            return self._add_filter(lambda row: row.get(column) is None)
        return self._add_filter(lambda row: row.get(column) is value)

    def in_(self, column, values):
        values = list(values)
        return self._add_filter(lambda row: row.get(column) in values)

    # Modifiers

    def order(self, column, desc: bool = False, **kwargs):
        self._order.append((column, desc))
        return self

    def range(self, start, end):
        self._range = (start, end)
        return self

    def limit(self, count):
        self._limit = count
        return self

    def single(self):
        self._is_single = True
        return self

    # Execution

    def _matches(self, row: dict) -> bool:
        return all(predicate(row) for predicate in self._filters)

    def _project(self, row: dict) -> dict:
        if self._columns.strip() == "*":
            return dict(row)
        columns = [c.strip() for c in self._columns.split(",")]
        return {c: row.get(c) for c in columns}

    def _select(self, rows: list) -> MockSupabaseResponse:
        matched = [row for row in rows if self._matches(row)]
        for column, desc in reversed(self._order):
            matched.sort(
                key=lambda row: (row.get(column) is None, row.get(column) or ""),
                reverse=desc
            )
        total = len(matched)
        if self._range is not None:
            start, end = self._range
            matched = matched[start:end + 1]
        if self._limit is not None:
            matched = matched[:self._limit]

        data = [self._project(row) for row in matched]
        count = total if self._count_mode else None
        if self._is_single:
            return MockSupabaseResponse(data=data[0] if data else None, count=count)
        return MockSupabaseResponse(data=data, count=count)

    def _upsert(self, rows: list) -> MockSupabaseResponse:
        items = self._payload if isinstance(self._payload, list) else [self._payload]
        keys = [k.strip() for k in self._on_conflict.split(",")]
        stored = []
        for item in items:
            existing = next(
                (row for row in rows if all(row.get(k) == item.get(k) for k in keys)),
                None
            )
            if existing is None:
                existing = dict(item)
                rows.append(existing)
            else:
                existing.update(item)
            stored.append(dict(existing))
        return MockSupabaseResponse(data=stored)

    def execute(self) -> MockSupabaseResponse:
        self._client._raise_if_failing(self._table_name, self._operation)
        rows = self._client._tables.setdefault(self._table_name, [])

        if self._operation == "select":
            return self._select(rows)

        if self._operation == "insert":
            items = self._payload if isinstance(self._payload, list) else [self._payload]
            rows.extend(dict(item) for item in items)
            return MockSupabaseResponse(data=[dict(item) for item in items])

        if self._operation == "upsert":
            return self._upsert(rows)

        if self._operation == "update":
            updated = []
            for row in rows:
                if self._matches(row):
                    row.update(self._payload)
                    updated.append(dict(row))
            return MockSupabaseResponse(data=updated)

        # delete
        removed = [row for row in rows if self._matches(row)]
        rows[:] = [row for row in rows if not self._matches(row)]
        count = len(removed) if self._count_mode else None
        return MockSupabaseResponse(data=removed, count=count)


class MockSupabaseClient:
    """In-memory Supabase client."""

    def __init__(self):
        self._tables: dict[str, list] = {}
        self._failures: set = set()

    def set_table_data(self, table_name: str, data: list):
        """Replace the rows of a table."""
        self._tables[table_name] = [dict(row) for row in data]

    def get_table_data(self, table_name: str) -> list:
        """Current rows of a table."""
        return self._tables.get(table_name, [])

    def fail(self, table_name: str, operation: Optional[str] = None):
        """Make queries on a table raise, optionally only for one operation."""
        self._failures.add((table_name, operation))

    def _raise_if_failing(self, table_name: str, operation: str):
        if (table_name, None) in self._failures or (table_name, operation) in self._failures:
            raise RuntimeError(f"connection refused ({table_name} {operation})")

    def table(self, name: str) -> MockSupabaseQuery:
        """Start a query on a table."""
        return MockSupabaseQuery(self, name)


# ===================
# FIXTURES
# ===================

@pytest.fixture
def mock_supabase() -> MockSupabaseClient:
    """
    Create a mock Supabase client.

    Usage:
        def test_something(mock_supabase):
            mock_supabase.set_table_data("products", [
                {"id": "1", "name": "チャーシューたれ", ...}
            ])
    """
    return MockSupabaseClient()


@pytest.fixture
def mock_db(mock_supabase) -> Generator:
    """
    Patch the database client with mock and reset service singletons.

    Usage:
        def test_something(mock_db, mock_supabase):
            mock_supabase.set_table_data("products", [...])
            # Now any code using get_supabase_client() gets the mock
    """
    with patch("config.database.get_supabase_client", return_value=mock_supabase), \
            patch("services.catalog_service.get_supabase_client", return_value=mock_supabase), \
            patch("services.mapping_service.get_supabase_client", return_value=mock_supabase), \
            patch("services.web_sales_service.get_supabase_client", return_value=mock_supabase), \
            patch("services.catalog_service._catalog_service", None), \
            patch("services.match_service._match_service", None), \
            patch("services.web_sales_service._web_sales_service", None), \
            patch.dict("services.mapping_service._mapping_services", clear=True):
        yield mock_supabase


@pytest.fixture
def sample_catalog() -> list[ProductCatalogEntry]:
    """Small catalog of sauces and soups."""
    return [
        ProductCatalogEntry(id="p-1", name="チャーシューたれ", series="たれ", price=680),
        ProductCatalogEntry(id="p-2", name="味噌ラーメンスープ", series="スープ", price=450),
        ProductCatalogEntry(id="p-3", name="醤油ラーメンスープ", series="スープ", price=450),
        ProductCatalogEntry(id="p-4", name="餃子のたれ", series="たれ", price=380),
    ]


@pytest.fixture
def sample_product_rows(sample_catalog) -> list[dict]:
    """sample_catalog as rows of the products table."""
    return [entry.model_dump() for entry in sample_catalog]


# ===================
# API TEST CLIENT
# ===================

@pytest.fixture
def test_client_with_mock_db(mock_db):
    """
    Create FastAPI test client with mocked database.

    Usage:
        def test_endpoint(test_client_with_mock_db, mock_supabase):
            mock_supabase.set_table_data("products", [...])
            response = test_client_with_mock_db.get("/api/products")
    """
    from fastapi.testclient import TestClient
    from main import app

    yield TestClient(app)
