"""
Repository for the per-tenant users table ("<tenant_schema>".users).

Follows Layer 4 rules:
- Tenant tables are only addressed through identifiers built by TenantSchemaGuard
- Every write is a single statement, so a row is never looked up and then
  written in two separate round trips
- Rows are never deleted
"""
from __future__ import annotations
from typing import Optional, Sequence
from psycopg2 import sql
from core.tenant_schema import TenantSchemaGuard, registry_table
from domain.models import Outcome


def _differs(left: str, right: str, fields: Sequence[str]) -> sql.Composed:
    """`(l.a, l.b) IS DISTINCT FROM (r.a, r.b)` over the given columns."""
    def _row(alias: str) -> sql.Composed:
        return sql.SQL("ROW({})").format(
            sql.SQL(", ").join(sql.SQL("{}.{}").format(sql.Identifier(alias), sql.Identifier(f)) for f in fields)
        )
    return sql.SQL("{} IS DISTINCT FROM {}").format(_row(left), _row(right))


def _assignments(source: str, fields: Sequence[str]) -> sql.Composed:
    parts = [
        sql.SQL("{} = {}.{}").format(sql.Identifier(f), sql.Identifier(source), sql.Identifier(f))
        for f in fields
    ]
    parts.append(sql.SQL("updated_at = CURRENT_TIMESTAMP"))
    return sql.SQL(", ").join(parts)


def find_id_by_username(cur, guard: TenantSchemaGuard, schema: str, username: str) -> Optional[int]:
    cur.execute(
        sql.SQL("SELECT id FROM {table} WHERE username = %s").format(table=guard.users_table(schema)),
        (username,),
    )
    row = cur.fetchone()
    return row[0] if row else None


def upsert_from_registry(
    cur,
    guard: TenantSchemaGuard,
    schema: str,
    registry_id: int,
    insert_fields: Sequence[str],
    update_fields: Sequence[str],
) -> Optional[Outcome]:
    """
    Copy a registry row into the tenant table in one statement.

    The row is selected from the registry by its own id. On a username
    conflict the existing row is refreshed with `update_fields`, but only when
    one of them actually differs.

    Returns:
        Outcome.CREATED, Outcome.UPDATED, or None when nothing was written
        (row already present and matching, or registry row vanished)
    """
    cols = sql.SQL(", ").join(sql.Identifier(f) for f in insert_fields)
    if update_fields:
        on_conflict = sql.SQL(
            "ON CONFLICT (username) DO UPDATE SET {assign} WHERE {differs}"
        ).format(
            assign=_assignments("excluded", update_fields),
            differs=_differs("t", "excluded", update_fields),
        )
    else:
        on_conflict = sql.SQL("ON CONFLICT (username) DO NOTHING")

    cur.execute(
        sql.SQL("""
            INSERT INTO {table} AS t ({cols})
            SELECT {cols} FROM {registry} WHERE id = %s
            {on_conflict}
            RETURNING (xmax = 0) AS inserted
        """).format(
            table=guard.users_table(schema),
            cols=cols,
            registry=registry_table("tenant_users"),
            on_conflict=on_conflict,
        ),
        (registry_id,),
    )
    row = cur.fetchone()
    if not row:
        return None
    return Outcome.CREATED if row[0] else Outcome.UPDATED


def update_from_registry(
    cur,
    guard: TenantSchemaGuard,
    schema: str,
    registry_id: int,
    username: str,
    fields: Sequence[str],
) -> bool:
    """
    Refresh `fields` of an existing tenant row from its registry row.

    Returns:
        True if a row was changed, False if missing or already matching
    """
    cur.execute(
        sql.SQL("""
            UPDATE {table} AS t
            SET {assign}
            FROM {registry} AS r
            WHERE r.id = %s AND t.username = %s AND {differs}
            RETURNING t.id
        """).format(
            table=guard.users_table(schema),
            assign=_assignments("r", fields),
            registry=registry_table("tenant_users"),
            differs=_differs("t", "r", fields),
        ),
        (registry_id, username),
    )
    return cur.fetchone() is not None
