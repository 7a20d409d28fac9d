"""Reset a registry user's password and push it to the tenant schema.

Usage:
    python -m scripts.reset_admin_password <tenant_id> <username> [password]
If password is omitted, a random one is printed.
"""
import sys

import psycopg2

from core.db import close_pool
from core.errors import RegistryUnavailableError
from core.security import generate_password
from services.password_service import reset_password


def main() -> None:
    if len(sys.argv) < 3:
        print(
            "Usage: python -m scripts.reset_admin_password <tenant_id> <username> [password]",
            file=sys.stderr,
        )
        sys.exit(1)
    try:
        tenant_id = int(sys.argv[1])
    except ValueError:
        print(f"tenant_id must be an integer, got {sys.argv[1]!r}", file=sys.stderr)
        sys.exit(1)
    username = sys.argv[2]
    password = sys.argv[3] if len(sys.argv) > 3 else generate_password()

    try:
        result = reset_password(tenant_id, username, password)
    except (RegistryUnavailableError, psycopg2.Error) as exc:
        print(f"Password reset failed: {exc}", file=sys.stderr)
        sys.exit(1)
    finally:
        close_pool()

    if result is None:
        print(f"User not found: {username} (tenant {tenant_id})", file=sys.stderr)
        sys.exit(1)

    user, summary = result
    print(f"Password reset for user {user['id']} ({user['username']}, {user['full_name']})")
    if len(sys.argv) <= 3:
        print(f"Password: {password}")
    for r in summary.results:
        print(f"  {r.tenant_schema}: {r.outcome.value}" + (f" ({r.error})" if r.error else ""))


if __name__ == "__main__":
    main()
