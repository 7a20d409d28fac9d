"""
Service layer for reconciling registry users into tenant schemas.

Follows Layer 4 and Layer 6 rules:
- Data access goes through the ReconcileStore (repository layer)
- One structured log line per candidate, one summary line per run
- Password hashes never appear in logs

Failure tiers:
- Reading the tenant allow-list or the candidate set fails -> the run aborts
  (RegistryUnavailableError) before any candidate is touched
- Anything scoped to one candidate (bad schema, constraint violation) is
  recorded as Outcome.FAILED and the loop moves on
"""
from __future__ import annotations
from typing import Optional
import psycopg2
from core.config import settings
from core.db import close_pool, get_conn
from core.errors import AppError, RegistryUnavailableError
from core.logger import get_logger, log_reconcile_event
from core.tenant_schema import TenantSchemaGuard
from domain.models import CandidateResult, Outcome, ReconcileSummary, ReconcileVariant, RegistryUser
from repositories.reconcile_store import PostgresReconcileStore, ReconcileStore

logger = get_logger("reconcile")

EXIT_OK = 0
EXIT_FATAL = 1
EXIT_PARTIAL = 2


def _present_or_missing(store: ReconcileStore, user: RegistryUser) -> Outcome:
    found = store.find_tenant_user(user.tenant_schema, user.username)
    return Outcome.PRESENT if found is not None else Outcome.MISSING


def _apply(store: ReconcileStore, variant: ReconcileVariant, user: RegistryUser) -> Outcome:
    if variant.create:
        outcome = store.upsert_tenant_user(user, variant.insert_fields, variant.update_fields)
        if outcome is not None:
            return outcome
        return _present_or_missing(store, user)

    if variant.update_fields:
        if store.update_tenant_user(user, variant.update_fields):
            return Outcome.UPDATED
        return _present_or_missing(store, user)

    return _present_or_missing(store, user)


def reconcile_one(
    store: ReconcileStore,
    guard: TenantSchemaGuard,
    variant: ReconcileVariant,
    user: RegistryUser,
) -> CandidateResult:
    """Reconcile a single candidate; never raises for candidate-scoped errors."""
    try:
        guard.check(user.tenant_schema)
        outcome = _apply(store, variant, user)
    except (AppError, psycopg2.Error) as exc:
        error = getattr(exc, "message", None) or str(exc).strip()
        log_reconcile_event(
            variant.name, user.username, user.tenant_schema, Outcome.FAILED.value,
            meta={"registry_id": user.id, "error": error}, level="error",
        )
        return CandidateResult(
            registry_id=user.id,
            username=user.username,
            tenant_schema=user.tenant_schema,
            outcome=Outcome.FAILED,
            error=error,
        )

    log_reconcile_event(
        variant.name, user.username, user.tenant_schema, outcome.value,
        meta={"registry_id": user.id},
    )
    return CandidateResult(
        registry_id=user.id,
        username=user.username,
        tenant_schema=user.tenant_schema,
        outcome=outcome,
    )


def reconcile(
    store: ReconcileStore,
    variant: ReconcileVariant,
    username: Optional[str] = None,
    tenant_id: Optional[int] = None,
) -> ReconcileSummary:
    """
    Bring tenant user tables into agreement with the registry.

    Args:
        store: Data access bound to one connection for the whole run
        variant: Filter / create / update configuration
        username: Single-user scope; None processes every candidate
        tenant_id: Restrict the run to one tenant; None covers all tenants

    Returns:
        ReconcileSummary with one result per candidate, in registry id order

    Raises:
        RegistryUnavailableError: the allow-list or candidate set could not be read
    """
    try:
        guard = store.load_guard()
        candidates = store.fetch_candidates(
            active_only=variant.active_only, username=username, tenant_id=tenant_id,
        )
    except psycopg2.Error as exc:
        raise RegistryUnavailableError(f"Could not read user registry: {str(exc).strip()}") from exc

    logger.info(
        "Reconcile started",
        extra={
            "variant": variant.name,
            "meta": {
                "candidates": len(candidates),
                "tenant_schemas": len(guard),
                "username": username,
                "tenant_id": tenant_id,
            },
        },
    )

    summary = ReconcileSummary(variant=variant.name)
    for user in candidates:
        summary.results.append(reconcile_one(store, guard, variant, user))

    log_method = logger.warning if summary.failed else logger.info
    log_method("Reconcile finished", extra={"variant": variant.name, "meta": summary.counts})
    return summary


def exit_code_for(summary: ReconcileSummary, strict: Optional[bool] = None) -> int:
    """Partial failure only changes the exit status when strict mode is on."""
    if strict is None:
        strict = settings.RECONCILE_STRICT
    if strict and summary.failed:
        return EXIT_PARTIAL
    return EXIT_OK


def run_job(
    variant: ReconcileVariant,
    username: Optional[str] = None,
    strict: Optional[bool] = None,
) -> int:
    """
    Entry point shared by the batch scripts.

    Holds one autocommit connection for the whole run and releases the pool
    once at the end.

    Returns:
        Process exit code
    """
    try:
        with get_conn(autocommit=True) as conn, conn.cursor() as cur:
            summary = reconcile(PostgresReconcileStore(cur), variant, username=username)
    except (RegistryUnavailableError, psycopg2.Error) as exc:
        logger.error("Reconcile aborted", exc_info=exc, extra={"variant": variant.name})
        return EXIT_FATAL
    finally:
        close_pool()
    return exit_code_for(summary, strict)
