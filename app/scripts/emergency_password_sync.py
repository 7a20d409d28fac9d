"""Make every active user able to log in: create missing tenant rows, push registry password hashes.

Usage:
    python -m scripts.emergency_password_sync [username]
Run from the app/ directory. Without a username every candidate is processed.
"""
import sys

from domain.variants import EMERGENCY_PASSWORD_SYNC
from services.reconcile_service import run_job


def main() -> None:
    username = sys.argv[1] if len(sys.argv) > 1 else None
    sys.exit(run_job(EMERGENCY_PASSWORD_SYNC, username=username))


if __name__ == "__main__":
    main()
