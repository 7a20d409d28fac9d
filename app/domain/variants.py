"""
Named configurations of the reconciliation procedure, one per batch job.
"""
from __future__ import annotations
from domain.models import PROFILE_FIELDS, ReconcileVariant, UpdateScope

CHECK_USERS = ReconcileVariant(
    name="check_users",
    active_only=True,
    create=False,
    update_scope=UpdateScope.NONE,
)

MIGRATE_EXISTING_USERS = ReconcileVariant(
    name="migrate_existing_users",
    active_only=True,
    create=True,
    update_scope=UpdateScope.ALL,
)

SYNC_TENANT_USERS = ReconcileVariant(
    name="sync_tenant_users",
    active_only=False,
    create=True,
    update_scope=UpdateScope.ALL,
)

EMERGENCY_PASSWORD_SYNC = ReconcileVariant(
    name="emergency_password_sync",
    active_only=True,
    create=True,
    update_scope=UpdateScope.CREDENTIAL,
    insert_fields=("username", "password_hash", *PROFILE_FIELDS, "created_at"),
)

FORCE_SYNC_PASSWORD = ReconcileVariant(
    name="force_sync_password",
    active_only=True,
    create=False,
    update_scope=UpdateScope.CREDENTIAL,
)
