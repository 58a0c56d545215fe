from types import SimpleNamespace

import pytest


class FakeQuery:
    """Minimal stand-in for the supabase-py query builder."""

    def __init__(self, name: str, rows: list, calls: list, fail: bool = False):
        self.name = name
        self.rows = rows
        self.calls = calls
        self.fail = fail
        self.filters: dict = {}
        self.operation: tuple = ("select", None)
        self.row_limit: int | None = None

    def select(self, columns="*"):
        self.operation = ("select", columns)
        return self

    def update(self, changes):
        self.operation = ("update", changes)
        return self

    def insert(self, row):
        self.operation = ("insert", row)
        return self

    def eq(self, column, value):
        self.filters[column] = value
        return self

    def limit(self, count):
        self.row_limit = count
        return self

    def _matches(self, row) -> bool:
        return all(row.get(column) == value for column, value in self.filters.items())

    def execute(self):
        if self.fail:
            raise RuntimeError("connection reset")
        kind, argument = self.operation
        self.calls.append((self.name, kind, dict(self.filters), argument))
        if kind == "insert":
            self.rows.append(dict(argument))
            return SimpleNamespace(data=[argument])
        matched = [row for row in self.rows if self._matches(row)]
        if kind == "update":
            for row in matched:
                row.update(argument)
        if self.row_limit is not None:
            matched = matched[: self.row_limit]
        return SimpleNamespace(data=[dict(row) for row in matched])


class FakeSupabase:
    def __init__(self, tables: dict | None = None, fail: bool = False):
        self.tables = tables or {}
        self.calls: list = []
        self.fail = fail

    def table(self, name):
        return FakeQuery(name, self.tables.setdefault(name, []), self.calls, fail=self.fail)


ORDER_ID = "7d9f6a52-3c1b-4e0f-9a55-2f6a1c0b9e11"
TENANT_ID = "tenant-9"
DRIVER_ID = "driver-42"


def order_row(**overrides) -> dict:
    row = {
        "id": ORDER_ID,
        "tenant_id": TENANT_ID,
        "order_number": "ORD-1001",
        "status": "activated",
        "assigned_driver_id": DRIVER_ID,
        "loading_point_location": "SRID=4326;POINT(28.0473 -26.2041)",
        "unloading_point_location": {"type": "Point", "coordinates": [28.1881, -25.7461]},
    }
    row.update(overrides)
    return row


@pytest.fixture
def fake_supabase() -> FakeSupabase:
    return FakeSupabase({"orders": [order_row()], "status_updates": []})
