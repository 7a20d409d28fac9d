"""Copy every registry user, whatever its status, into its tenant schema.

Usage:
    python -m scripts.sync_tenant_users [username]
Run from the app/ directory. Without a username every candidate is processed.
"""
import sys

from domain.variants import SYNC_TENANT_USERS
from services.reconcile_service import run_job


def main() -> None:
    username = sys.argv[1] if len(sys.argv) > 1 else None
    sys.exit(run_job(SYNC_TENANT_USERS, username=username))


if __name__ == "__main__":
    main()
