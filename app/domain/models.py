from __future__ import annotations
from datetime import datetime
from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field


class UpdateScope(str, Enum):
    NONE = "none"
    CREDENTIAL = "credential"
    ALL = "all"


class Outcome(str, Enum):
    CREATED = "created"
    UPDATED = "updated"
    PRESENT = "present"
    MISSING = "missing"
    FAILED = "failed"


# Columns of a tenant user row that can be copied from the registry.
PROFILE_FIELDS = ("full_name", "email", "role", "status")
CREDENTIAL_FIELDS = ("password_hash",)


class RegistryUser(BaseModel):
    """Row of the shared tenant_users registry joined with its tenant schema."""
    id: int
    tenant_id: int
    tenant_schema: str
    username: str
    password_hash: str
    full_name: Optional[str] = None
    email: Optional[str] = None
    role: Optional[str] = None
    status: Optional[str] = None
    last_login: Optional[datetime] = None
    created_at: Optional[datetime] = None


class ReconcileVariant(BaseModel):
    """
    One configuration of the reconciliation procedure.

    `insert_fields` are the registry columns copied when a tenant row is
    created; `update_scope` selects which columns are refreshed on an
    existing row.
    """
    name: str
    active_only: bool = True
    create: bool = False
    update_scope: UpdateScope = UpdateScope.NONE
    insert_fields: tuple[str, ...] = (
        "username", "password_hash", *PROFILE_FIELDS, "last_login", "created_at",
    )

    model_config = {"frozen": True}

    @property
    def update_fields(self) -> tuple[str, ...]:
        if self.update_scope is UpdateScope.CREDENTIAL:
            return CREDENTIAL_FIELDS
        if self.update_scope is UpdateScope.ALL:
            return (*CREDENTIAL_FIELDS, *PROFILE_FIELDS, "last_login")
        return ()


class CandidateResult(BaseModel):
    registry_id: int
    username: str
    tenant_schema: str
    outcome: Outcome
    error: Optional[str] = None


class ReconcileSummary(BaseModel):
    variant: str
    results: list[CandidateResult] = Field(default_factory=list)

    def count(self, outcome: Outcome) -> int:
        return sum(1 for r in self.results if r.outcome is outcome)

    @property
    def counts(self) -> dict[str, int]:
        return {o.value: self.count(o) for o in Outcome}

    @property
    def failed(self) -> list[CandidateResult]:
        return [r for r in self.results if r.outcome is Outcome.FAILED]
