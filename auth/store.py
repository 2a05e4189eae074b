"""
auth/store.py -- SQLAlchemy Core persistence layer for auth entities.

Pattern: Repository + Data Mapper.
UserStore and RefreshTokenStore are the repositories; _row_to_user /
_row_to_refresh_token are the mappers. Service and route code never touches
SQL directly.

Security:
  All queries use bound parameters. No f-strings in SQL.

Email policy:
  Emails are compared case-insensitively. normalize_email() is applied on
  every write and every lookup, so find_by_email() and the UNIQUE(email)
  constraint always agree on what counts as a duplicate.

Refresh-token rotation:
  replace() is a compare-and-swap: UPDATE ... WHERE id = :id AND token = :old.
  If a concurrent caller already rotated the row, zero rows match and the
  caller loses. Row identity is preserved across rotations.

Layer rule: no imports from api/ or employees/.
"""

from __future__ import annotations

import logging

from sqlalchemy import func, select
from sqlalchemy.engine import Connection, Engine

from auth.models import RefreshToken, User, UserSummary
from core.db import begin, now_iso, refresh_tokens, users

logger = logging.getLogger("empdir.store")


def normalize_email(email: str) -> str:
    return email.strip().lower()


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


class UserStore:
    """Repository for User accounts.

    Usage:
        store = UserStore(create_db_engine("sqlite:///auth.db"))
        user = store.create(User(email="a@b.com", password_hash=h, role="Admin"))
        store.find_by_email("A@B.com")  # same user
    """

    def __init__(self, engine: Engine) -> None:
        self.engine = engine

    def create(self, user: User, conn: Connection | None = None) -> User:
        """Insert a new user and return it with id and created_at filled in.

        Raises sqlalchemy.exc.IntegrityError if the email already exists.
        Callers that did a find_by_email() first should treat that as a
        concurrent request having won the race.
        """
        user.email = normalize_email(user.email)
        user.created_at = now_iso()
        with begin(self.engine, conn) as c:
            result = c.execute(
                users.insert().values(
                    email=user.email,
                    password_hash=user.password_hash,
                    role=user.role,
                    must_change_password=1 if user.must_change_password else 0,
                    created_at=user.created_at,
                )
            )
        user.id = result.inserted_primary_key[0]
        return user

    def find_by_email(self, email: str, conn: Connection | None = None) -> User | None:
        """Look up a user by email (case-insensitive). Returns None if not found."""
        with begin(self.engine, conn) as c:
            row = c.execute(select(users).where(users.c.email == normalize_email(email))).fetchone()
        return _row_to_user(row) if row is not None else None

    def get_by_id(self, user_id: int) -> User | None:
        with self.engine.connect() as conn:
            row = conn.execute(select(users).where(users.c.id == user_id)).fetchone()
        return _row_to_user(row) if row is not None else None

    def list_all(self) -> list[UserSummary]:
        """Return every account in creation order, without password hashes."""
        with self.engine.connect() as conn:
            rows = conn.execute(
                select(users.c.id, users.c.email, users.c.role, users.c.must_change_password).order_by(users.c.id)
            ).fetchall()
        return [
            UserSummary(id=r.id, email=r.email, role=r.role, must_change_password=bool(r.must_change_password))
            for r in rows
        ]

    def count(self) -> int:
        with self.engine.connect() as conn:
            return conn.execute(select(func.count()).select_from(users)).scalar_one()

    def update_password(self, user_id: int, password_hash: str) -> bool:
        """Store a user-chosen password hash and clear must_change_password.

        Returns True if a row was updated, False if user_id was not found.
        """
        with self.engine.begin() as conn:
            result = conn.execute(
                users.update().where(users.c.id == user_id).values(password_hash=password_hash, must_change_password=0)
            )
        return result.rowcount > 0


# ---------------------------------------------------------------------------
# Refresh tokens
# ---------------------------------------------------------------------------


class RefreshTokenStore:
    """Repository for opaque refresh tokens."""

    def __init__(self, engine: Engine) -> None:
        self.engine = engine

    def issue(self, token: RefreshToken) -> bool:
        """Persist a new refresh token row. Fills in token.id and timestamps.

        Raises sqlalchemy.exc.IntegrityError on a duplicate token value or an
        unknown user_id.
        """
        stamp = now_iso()
        with self.engine.begin() as conn:
            result = conn.execute(
                refresh_tokens.insert().values(
                    user_id=token.user_id,
                    token=token.token,
                    created_at=stamp,
                    updated_at=stamp,
                )
            )
        token.id = result.inserted_primary_key[0]
        token.created_at = stamp
        token.updated_at = stamp
        return True

    def find_by_value(self, value: str) -> RefreshToken | None:
        """Return the row currently holding this value, with its owner loaded.

        A value that never existed and a value that has since been rotated
        away both come back as None.
        """
        query = (
            select(
                refresh_tokens,
                users.c.email,
                users.c.password_hash,
                users.c.role,
                users.c.must_change_password,
                users.c.created_at.label("user_created_at"),
            )
            .join(users, users.c.id == refresh_tokens.c.user_id)
            .where(refresh_tokens.c.token == value)
        )
        with self.engine.connect() as conn:
            row = conn.execute(query).fetchone()
        return _row_to_refresh_token(row) if row is not None else None

    def replace(self, existing: RefreshToken, new_value: str) -> bool:
        """Rotate existing to new_value if nobody else rotated it first.

        The UPDATE only matches while the row still holds the value the caller
        read. On success existing.token is updated in place and True is
        returned; on a lost race nothing changes and False is returned.
        """
        stamp = now_iso()
        with self.engine.begin() as conn:
            result = conn.execute(
                refresh_tokens.update()
                .where((refresh_tokens.c.id == existing.id) & (refresh_tokens.c.token == existing.token))
                .values(token=new_value, updated_at=stamp)
            )
        if result.rowcount != 1:
            logger.info("Refresh token rotation lost race (row_id=%s)", existing.id)
            return False
        existing.token = new_value
        existing.updated_at = stamp
        return True

    def update(self, token: RefreshToken) -> bool:
        """Write token.token onto row token.id unconditionally.

        Use replace() for rotation on the refresh path; this is the plain
        "save my edits" operation. Returns False if the row does not exist.
        """
        stamp = now_iso()
        with self.engine.begin() as conn:
            result = conn.execute(
                refresh_tokens.update()
                .where(refresh_tokens.c.id == token.id)
                .values(token=token.token, updated_at=stamp)
            )
        if result.rowcount > 0:
            token.updated_at = stamp
            return True
        return False

    def count_for_user(self, user_id: int) -> int:
        with self.engine.connect() as conn:
            return conn.execute(
                select(func.count()).select_from(refresh_tokens).where(refresh_tokens.c.user_id == user_id)
            ).scalar_one()


# ---------------------------------------------------------------------------
# Row mappers (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_user(row) -> User:
    return User(
        id=row.id,
        email=row.email,
        password_hash=row.password_hash,
        role=row.role,
        must_change_password=bool(row.must_change_password),
        created_at=row.created_at,
    )


def _row_to_refresh_token(row) -> RefreshToken:
    owner = User(
        id=row.user_id,
        email=row.email,
        password_hash=row.password_hash,
        role=row.role,
        must_change_password=bool(row.must_change_password),
        created_at=row.user_created_at,
    )
    return RefreshToken(
        id=row.id,
        user_id=row.user_id,
        token=row.token,
        created_at=row.created_at,
        updated_at=row.updated_at,
        user=owner,
    )
