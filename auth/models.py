"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data container, zero logic). Stores and services do
the work; these only own the shape.

Layer rule: no imports from api/ or employees/.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class Role(str, Enum):
    ADMIN = "Admin"
    EMPLOYEE = "Employee"


@dataclass
class User:
    """An account that can log in.

    email is stored normalized (stripped, lower-cased) by UserStore.
    must_change_password is True for every auto-provisioned account and is
    cleared only when the user sets a password of their own.

    id is None before the record is written to the database.
    """

    email: str
    password_hash: str
    role: str  # Role.ADMIN.value | Role.EMPLOYEE.value
    must_change_password: bool = True
    id: int | None = None
    created_at: str | None = None


@dataclass
class UserSummary:
    """Listing view of a User. Never carries the password hash."""

    id: int
    email: str
    role: str
    must_change_password: bool


@dataclass
class RefreshToken:
    """An opaque refresh credential bound to one user.

    Rotation changes token in place on the same row (same id), so a row is a
    session lineage and token is its current value. user is the owning account,
    loaded alongside by RefreshTokenStore.find_by_value(); the token does not
    own it.
    """

    user_id: int
    token: str
    id: int | None = None
    created_at: str | None = None
    updated_at: str | None = None
    user: User | None = None


@dataclass
class SessionTokens:
    """What login() and refresh() hand back to the caller."""

    access_token: str
    refresh_token: str
    expires_in: int
    user: User
    token_type: str = "bearer"
