"""Pytest configuration and fixtures.

The app/ tree is on sys.path (see [tool.pytest.ini_options] pythonpath), so
modules are imported the way the app imports them: core.*, services.*, ...
No test needs a live Postgres: the reconciler runs against InMemoryStore,
and SQL builders run against RecordingCursor.
"""
from __future__ import annotations

import itertools
from contextlib import contextmanager
from datetime import datetime, timedelta
from typing import Optional, Sequence

import psycopg2
import pytest

from core.tenant_schema import TenantSchemaGuard
from domain.models import Outcome, RegistryUser


class FakeUniqueViolation(psycopg2.Error):
    pgcode = "23505"


class FakeInvalidSchemaName(psycopg2.Error):
    pgcode = "3F000"


class InMemoryStore:
    """ReconcileStore with the same write semantics as the Postgres statements.

    tenants: tenant id -> schema name (the registry's tenants table)
    tables:  schema name -> {username: row}; only schemas listed here "exist"
    """

    def __init__(self) -> None:
        self.tenants: dict[int, str] = {}
        self.tables: dict[str, dict[str, dict]] = {}
        self.registry: list[dict] = []
        self.registry_down = False
        self.fail_usernames: set[str] = set()
        self.writes = 0
        self._ids = itertools.count(1)
        self._clock = datetime(2026, 1, 1)

    # --- setup helpers ---

    def add_tenant(self, tenant_id: int, schema: str, exists: bool = True) -> None:
        self.tenants[tenant_id] = schema
        if exists:
            self.tables.setdefault(schema, {})

    def add_user(self, tenant_id: int, username: str, **fields) -> dict:
        row = {
            "id": len(self.registry) + 1,
            "tenant_id": tenant_id,
            "username": username,
            "password_hash": fields.pop("password_hash", f"hash-{username}"),
            "full_name": fields.pop("full_name", username.title()),
            "email": fields.pop("email", f"{username}@example.com"),
            "role": fields.pop("role", "cashier"),
            "status": fields.pop("status", "active"),
            "last_login": fields.pop("last_login", None),
            "created_at": fields.pop("created_at", datetime(2025, 6, 1)),
        }
        row.update(fields)
        self.registry.append(row)
        return row

    def add_tenant_row(self, schema: str, username: str, **fields) -> dict:
        row = {"id": next(self._ids), "username": username, "updated_at": None, **fields}
        self.tables[schema][username] = row
        return row

    def snapshot(self) -> dict:
        return {s: {u: dict(r) for u, r in t.items()} for s, t in self.tables.items()}

    def _tick(self) -> datetime:
        self._clock += timedelta(seconds=1)
        return self._clock

    def _registry_row(self, registry_id: int) -> Optional[dict]:
        return next((r for r in self.registry if r["id"] == registry_id), None)

    def _table(self, user: RegistryUser) -> dict:
        if user.username in self.fail_usernames:
            raise FakeUniqueViolation("duplicate key value violates unique constraint")
        if user.tenant_schema not in self.tables:
            raise FakeInvalidSchemaName(f'schema "{user.tenant_schema}" does not exist')
        return self.tables[user.tenant_schema]

    # --- ReconcileStore ---

    def load_guard(self) -> TenantSchemaGuard:
        if self.registry_down:
            raise psycopg2.OperationalError("could not connect to server")
        return TenantSchemaGuard(s for s in self.tenants.values() if s in self.tables)

    def fetch_candidates(
        self, *, active_only: bool, username: Optional[str] = None, tenant_id: Optional[int] = None
    ) -> list[RegistryUser]:
        if self.registry_down:
            raise psycopg2.OperationalError("could not connect to server")
        rows = sorted(self.registry, key=lambda r: r["id"])
        if active_only:
            rows = [r for r in rows if r["status"] == "active"]
        if username is not None:
            rows = [r for r in rows if r["username"] == username]
        if tenant_id is not None:
            rows = [r for r in rows if r["tenant_id"] == tenant_id]
        return [
            RegistryUser(tenant_schema=self.tenants[r["tenant_id"]], **r)
            for r in rows
            if r["tenant_id"] in self.tenants
        ]

    def find_tenant_user(self, schema: str, username: str) -> Optional[int]:
        if schema not in self.tables:
            raise FakeInvalidSchemaName(f'schema "{schema}" does not exist')
        row = self.tables[schema].get(username)
        return row["id"] if row else None

    def upsert_tenant_user(
        self, user: RegistryUser, insert_fields: Sequence[str], update_fields: Sequence[str]
    ) -> Optional[Outcome]:
        table = self._table(user)
        src = self._registry_row(user.id)
        if src is None:
            return None
        existing = table.get(user.username)
        if existing is None:
            row = {"id": next(self._ids), "updated_at": None}
            row.update({f: src[f] for f in insert_fields})
            table[user.username] = row
            self.writes += 1
            return Outcome.CREATED
        if update_fields and any(existing.get(f) != src[f] for f in update_fields):
            existing.update({f: src[f] for f in update_fields})
            existing["updated_at"] = self._tick()
            self.writes += 1
            return Outcome.UPDATED
        return None

    def update_tenant_user(self, user: RegistryUser, fields: Sequence[str]) -> bool:
        table = self._table(user)
        src = self._registry_row(user.id)
        existing = table.get(user.username)
        if src is None or existing is None:
            return False
        if all(existing.get(f) == src[f] for f in fields):
            return False
        existing.update({f: src[f] for f in fields})
        existing["updated_at"] = self._tick()
        self.writes += 1
        return True


class RecordingCursor:
    """psycopg2 cursor stand-in: records execute() calls, returns queued rows."""

    def __init__(self, fetchone=None, fetchall=None) -> None:
        self.calls: list[tuple] = []
        self._fetchone = list(fetchone or [])
        self._fetchall = list(fetchall or [])

    def execute(self, query, params=None) -> None:
        self.calls.append((query, params))

    def fetchone(self):
        return self._fetchone.pop(0) if self._fetchone else None

    def fetchall(self):
        return self._fetchall.pop(0) if self._fetchall else []

    def __enter__(self):
        return self

    def __exit__(self, *exc) -> None:
        return None


class FakeConn:
    def __init__(self, cursor: RecordingCursor) -> None:
        self._cursor = cursor
        self.autocommit = False

    def cursor(self) -> RecordingCursor:
        return self._cursor


def sql_text(query) -> str:
    """Best-effort rendering of a psycopg2.sql composition without a connection."""
    from psycopg2 import sql

    if isinstance(query, str):
        return query
    if isinstance(query, sql.Composed):
        return "".join(sql_text(part) for part in query.seq)
    if isinstance(query, sql.SQL):
        return query.string
    if isinstance(query, sql.Identifier):
        return ".".join(f'"{s}"' for s in query.strings)
    return "?"


@pytest.fixture
def store() -> InMemoryStore:
    s = InMemoryStore()
    s.add_tenant(1, "tenant_acme")
    s.add_tenant(2, "tenant_globex")
    return s


@pytest.fixture
def recording_cursor():
    return RecordingCursor


@pytest.fixture
def fake_get_conn():
    """Factory for a get_conn() replacement bound to a given cursor."""

    def _factory(cursor: RecordingCursor, seen: Optional[list] = None):
        @contextmanager
        def _get_conn(autocommit: bool = False):
            conn = FakeConn(cursor)
            conn.autocommit = autocommit
            if seen is not None:
                seen.append(autocommit)
            yield conn

        return _get_conn

    return _factory
