"""Push registry password hashes onto existing tenant rows (never creates rows).

Usage:
    python -m scripts.force_sync_password [username]
Run from the app/ directory. Without a username every candidate is processed.
"""
import sys

from domain.variants import FORCE_SYNC_PASSWORD
from services.reconcile_service import run_job


def main() -> None:
    username = sys.argv[1] if len(sys.argv) > 1 else None
    sys.exit(run_job(FORCE_SYNC_PASSWORD, username=username))


if __name__ == "__main__":
    main()
