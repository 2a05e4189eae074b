"""
auth/passwords.py -- Password hashing and bootstrap-password policy.

Hashing: bcrypt directly (no passlib wrapper). gensalt() draws a fresh random
salt on every call, so hashing the same plaintext twice never yields the same
string. The cost factor comes from Settings.bcrypt_rounds; tests drop it to
bcrypt's floor of 4 to stay fast.

Bootstrap passwords: two separate, named strategies on purpose. Employees get
a name-derived password, admins get one fixed literal. Both are low-entropy
and are only ever issued together with must_change_password=True.
"""

from __future__ import annotations

import bcrypt

_ADMIN_BOOTSTRAP_PASSWORD = "Admin@123"
_EMPLOYEE_BOOTSTRAP_SUFFIX = "@123"


class PasswordHasher:
    """Salted, adaptive one-way hashing.

    Usage:
        hasher = PasswordHasher(rounds=12)
        stored = hasher.hash("s3cret")
        hasher.verify("s3cret", stored)  # True
    """

    def __init__(self, rounds: int = 12) -> None:
        self.rounds = rounds

    def hash(self, plain: str) -> str:
        """Return a bcrypt hash of the given plaintext password.

        bcrypt only looks at the first 72 bytes. The API layer caps password
        fields at 128 characters; multibyte input past 72 bytes is truncated.
        """
        return bcrypt.hashpw(plain.encode("utf-8"), bcrypt.gensalt(rounds=self.rounds)).decode("utf-8")

    def verify(self, plain: str, hashed: str | None) -> bool:
        """Return True if the plaintext matches the hash.

        A malformed or missing hash is a failed verification, never an error.
        """
        if not hashed:
            return False
        try:
            return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
        except (ValueError, TypeError, AttributeError):
            return False


def employee_bootstrap_password(first_name: str) -> str:
    """First-login password for an auto-provisioned employee: "<FirstName>@123"."""
    return f"{first_name}{_EMPLOYEE_BOOTSTRAP_SUFFIX}"


def admin_bootstrap_password() -> str:
    """First-login password shared by every auto-provisioned admin."""
    return _ADMIN_BOOTSTRAP_PASSWORD
