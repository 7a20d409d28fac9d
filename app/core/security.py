"""
Password hashing utilities used by the maintenance jobs.

Follows Layer 1 rules:
- Always use a strong hashing algorithm (bcrypt)
- NEVER log plaintext passwords or hashes
"""
from __future__ import annotations
import secrets
import bcrypt

# Cost factor shared with the login service so registry hashes stay interchangeable.
BCRYPT_ROUNDS = 10


def hash_password(plain: str, rounds: int = BCRYPT_ROUNDS) -> str:
    """
    Hash a plaintext password using bcrypt.

    Args:
        plain: Plaintext password
        rounds: bcrypt cost factor

    Returns:
        Hashed password string
    """
    return bcrypt.hashpw(plain.encode(), bcrypt.gensalt(rounds=rounds)).decode()


def verify_password(plain: str, hashed: str) -> bool:
    """Check a plaintext password against a stored bcrypt hash."""
    try:
        return bcrypt.checkpw(plain.encode(), hashed.encode())
    except ValueError:
        return False


def generate_password(nbytes: int = 12) -> str:
    """Random URL-safe password for one-off resets."""
    return secrets.token_urlsafe(nbytes)
