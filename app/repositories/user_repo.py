"""
Repository for the shared user registry (tenant_users joined with tenants).

Follows Layer 4 rules:
- Data access MUST be routed through repository layer
- The registry is the source of truth; only the password reset job writes to it
"""
from __future__ import annotations
from typing import Optional
from psycopg2 import sql
from core.tenant_schema import registry_table
from domain.models import RegistryUser

REGISTRY_COLUMNS = (
    "id", "tenant_id", "tenant_schema", "username", "password_hash",
    "full_name", "email", "role", "status", "last_login", "created_at",
)


def fetch_candidates(
    cur,
    *,
    active_only: bool,
    username: Optional[str] = None,
    tenant_id: Optional[int] = None,
) -> list[RegistryUser]:
    """
    Registry users with their tenant schema, ordered by registry id.

    Args:
        cur: Database cursor
        active_only: Only return users with status 'active'
        username: Restrict to a single username (single-user scope)
        tenant_id: Restrict to one tenant (used with username by the password reset)

    Returns:
        List of RegistryUser rows
    """
    filters = []
    params: list = []
    if active_only:
        filters.append(sql.SQL("tu.status = %s"))
        params.append("active")
    if username is not None:
        filters.append(sql.SQL("tu.username = %s"))
        params.append(username)
    if tenant_id is not None:
        filters.append(sql.SQL("tu.tenant_id = %s"))
        params.append(tenant_id)

    where = sql.SQL("")
    if filters:
        where = sql.SQL("WHERE ") + sql.SQL(" AND ").join(filters)

    cur.execute(
        sql.SQL("""
            SELECT tu.id, tu.tenant_id, t.tenant_schema, tu.username, tu.password_hash,
                   tu.full_name, tu.email, tu.role, tu.status, tu.last_login, tu.created_at
            FROM {users} tu
            JOIN {tenants} t ON tu.tenant_id = t.id
            {where}
            ORDER BY tu.id
        """).format(
            users=registry_table("tenant_users"),
            tenants=registry_table("tenants"),
            where=where,
        ),
        tuple(params),
    )
    return [RegistryUser(**dict(zip(REGISTRY_COLUMNS, row))) for row in cur.fetchall()]


def update_password_hash(cur, tenant_id: int, username: str, password_hash: str) -> Optional[dict]:
    """
    Replace a registry user's password hash.

    Returns:
        Dict with id, username and full_name, or None if no such user
    """
    cur.execute(
        sql.SQL("""
            UPDATE {users}
            SET password_hash = %s, updated_at = CURRENT_TIMESTAMP
            WHERE tenant_id = %s AND username = %s
            RETURNING id, username, full_name
        """).format(users=registry_table("tenant_users")),
        (password_hash, tenant_id, username),
    )
    row = cur.fetchone()
    if not row:
        return None
    return {"id": row[0], "username": row[1], "full_name": row[2]}
