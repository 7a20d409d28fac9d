"""
Trusted construction of per-tenant SQL identifiers.

Tenant schema names are spliced into query text (identifiers cannot be bound
parameters), so every such identifier in the codebase MUST come from here:
- name must match a plain Postgres identifier pattern
- name must be in the allow-list loaded from the tenant registry
- quoting is delegated to psycopg2.sql.Identifier
"""
from __future__ import annotations
import re
from typing import Iterable
from psycopg2 import sql
from core.config import settings
from core.errors import TenantSchemaError

_SCHEMA_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]{0,62}$")


def registry_table(name: str) -> sql.Composed:
    """Qualified table in the shared registry schema (tenants, tenant_users)."""
    return sql.SQL("{}.{}").format(
        sql.Identifier(settings.REGISTRY_SCHEMA), sql.Identifier(name)
    )


class TenantSchemaGuard:
    """Allow-list of tenant schemas that may be addressed in this run."""

    def __init__(self, allowed: Iterable[str], users_table: str | None = None) -> None:
        self._allowed = frozenset(allowed)
        self._users_table = users_table or settings.TENANT_USERS_TABLE

    def __contains__(self, schema: object) -> bool:
        return schema in self._allowed

    def __len__(self) -> int:
        return len(self._allowed)

    def check(self, schema: str | None) -> str:
        if not schema or not _SCHEMA_RE.match(schema):
            raise TenantSchemaError(str(schema), "malformed schema identifier")
        if schema == settings.REGISTRY_SCHEMA:
            raise TenantSchemaError(schema, "registry schema is not a tenant schema")
        if schema not in self._allowed:
            raise TenantSchemaError(schema, "unknown or missing tenant schema")
        return schema

    def users_table(self, schema: str) -> sql.Composed:
        return sql.SQL("{}.{}").format(
            sql.Identifier(self.check(schema)), sql.Identifier(self._users_table)
        )
