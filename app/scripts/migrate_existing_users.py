"""Copy active registry users into their tenant schemas, refreshing stale rows.

Usage:
    python -m scripts.migrate_existing_users [username]
Run from the app/ directory. Without a username every candidate is processed.
"""
import sys

from domain.variants import MIGRATE_EXISTING_USERS
from services.reconcile_service import run_job


def main() -> None:
    username = sys.argv[1] if len(sys.argv) > 1 else None
    sys.exit(run_job(MIGRATE_EXISTING_USERS, username=username))


if __name__ == "__main__":
    main()
