# app/repositories/reconcile_store.py
from __future__ import annotations
from typing import Optional, Protocol, Sequence
from core.tenant_schema import TenantSchemaGuard
from domain.models import Outcome, RegistryUser
from repositories import tenant_repository, tenant_user_repo, user_repo


class ReconcileStore(Protocol):
    """Data access the reconciler needs, bound to one connection for the run."""

    def load_guard(self) -> TenantSchemaGuard: ...

    def fetch_candidates(
        self, *, active_only: bool, username: Optional[str] = None, tenant_id: Optional[int] = None
    ) -> list[RegistryUser]: ...

    def find_tenant_user(self, schema: str, username: str) -> Optional[int]: ...

    def upsert_tenant_user(
        self, user: RegistryUser, insert_fields: Sequence[str], update_fields: Sequence[str]
    ) -> Optional[Outcome]: ...

    def update_tenant_user(self, user: RegistryUser, fields: Sequence[str]) -> bool: ...


class PostgresReconcileStore:
    """ReconcileStore over a psycopg2 cursor."""

    def __init__(self, cur) -> None:
        self._cur = cur
        self._guard: TenantSchemaGuard | None = None

    @property
    def guard(self) -> TenantSchemaGuard:
        if self._guard is None:
            self._guard = self.load_guard()
        return self._guard

    def load_guard(self) -> TenantSchemaGuard:
        self._guard = tenant_repository.load_schema_guard(self._cur)
        return self._guard

    def fetch_candidates(
        self, *, active_only: bool, username: Optional[str] = None, tenant_id: Optional[int] = None
    ) -> list[RegistryUser]:
        return user_repo.fetch_candidates(
            self._cur, active_only=active_only, username=username, tenant_id=tenant_id,
        )

    def find_tenant_user(self, schema: str, username: str) -> Optional[int]:
        return tenant_user_repo.find_id_by_username(self._cur, self.guard, schema, username)

    def upsert_tenant_user(self, user, insert_fields, update_fields) -> Optional[Outcome]:
        return tenant_user_repo.upsert_from_registry(
            self._cur, self.guard, user.tenant_schema, user.id, insert_fields, update_fields,
        )

    def update_tenant_user(self, user, fields) -> bool:
        return tenant_user_repo.update_from_registry(
            self._cur, self.guard, user.tenant_schema, user.id, user.username, fields,
        )
