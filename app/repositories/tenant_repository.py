# app/repositories/tenant_repository.py
from psycopg2 import sql
from core.tenant_schema import TenantSchemaGuard, registry_table


def load_tenant_schemas(cur) -> set[str]:
    """
    Tenant schema names registered in the tenants table that also exist in
    the database. Anything outside this set is never interpolated into SQL.
    """
    cur.execute(
        sql.SQL("""
            SELECT t.tenant_schema
            FROM {tenants} t
            JOIN information_schema.schemata s ON s.schema_name = t.tenant_schema
            ORDER BY t.tenant_schema
        """).format(tenants=registry_table("tenants"))
    )
    return {r[0] for r in cur.fetchall()}


def load_schema_guard(cur) -> TenantSchemaGuard:
    return TenantSchemaGuard(load_tenant_schemas(cur))
