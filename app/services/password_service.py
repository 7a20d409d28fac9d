"""
Service for resetting a registry user's password.

Follows Layer 1 and Layer 6 rules:
- Hash with bcrypt before the value touches the database
- Log the reset as a security event, never the password or the hash
- The registry stays the source of truth: the tenant copy is refreshed by
  reconciling that single (tenant, username) pair afterwards
"""
from __future__ import annotations
from typing import Optional
from core.db import get_conn
from core.logger import log_security_event
from core.security import hash_password
from domain.models import ReconcileSummary
from domain.variants import FORCE_SYNC_PASSWORD
from repositories import user_repo
from repositories.reconcile_store import PostgresReconcileStore
from services.reconcile_service import reconcile


def reset_password(tenant_id: int, username: str, new_password: str) -> Optional[tuple[dict, ReconcileSummary]]:
    """
    Replace the registry password hash and propagate it to the tenant schema.

    Args:
        tenant_id: Registry tenant id
        username: Username within that tenant
        new_password: Plaintext password (hashed here)

    Returns:
        (user dict, reconcile summary), or None if the user does not exist
    """
    with get_conn(autocommit=True) as conn, conn.cursor() as cur:
        user = user_repo.update_password_hash(cur, tenant_id, username, hash_password(new_password))
        if not user:
            log_security_event(
                action="password_reset",
                result="failure",
                tenant_id=str(tenant_id),
                meta={"reason": "user_not_found", "username": username},
                level="warning",
            )
            return None

        log_security_event(
            action="password_reset",
            result="success",
            user_id=str(user["id"]),
            tenant_id=str(tenant_id),
            meta={"username": username},
        )
        summary = reconcile(
            PostgresReconcileStore(cur), FORCE_SYNC_PASSWORD, username=username, tenant_id=tenant_id,
        )
    return user, summary
