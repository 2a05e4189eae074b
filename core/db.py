"""
core/db.py -- SQLAlchemy Core schema and engine setup shared by all stores.

Users, employee profiles and refresh tokens live in one database so account
provisioning can create a user and its profile in a single transaction.

Constraints the auth layer depends on for correctness (not just hygiene):
  users.email           UNIQUE -- closes the check-then-create race
  employees.user_id     UNIQUE -- at most one profile per account
  refresh_tokens.token  UNIQUE -- a token value resolves to exactly one row

Stores accept an optional Connection so a caller can compose several writes
into one transaction via begin(). Without one, each call commits on its own.

Layer rule: core/ imports no project packages.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime, timezone

from sqlalchemy import Column, ForeignKey, Integer, MetaData, String, Table, Text, create_engine, event
from sqlalchemy.engine import Connection, Engine

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

metadata = MetaData()

users = Table(
    "users",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("email", String(255), nullable=False, unique=True),  # stored normalized (lower-case)
    Column("password_hash", Text, nullable=False),
    Column("role", String(20), nullable=False),  # "Admin" | "Employee"
    Column("must_change_password", Integer, nullable=False, server_default="1"),
    Column("created_at", String(32), nullable=False),
)

employees = Table(
    "employees",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("user_id", Integer, ForeignKey("users.id"), nullable=False, unique=True),
    Column("first_name", String(100), nullable=False),
    Column("last_name", String(100), nullable=False),
    Column("email", String(255), nullable=False),
    Column("gender", String(20)),
    Column("job_role", String(100)),
    Column("department_id", Integer),
    Column("phone_no", String(30)),
    Column("created_at", String(32), nullable=False),
)

refresh_tokens = Table(
    "refresh_tokens",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("user_id", Integer, ForeignKey("users.id"), nullable=False, index=True),
    Column("token", String(128), nullable=False, unique=True),
    Column("created_at", String(32), nullable=False),
    Column("updated_at", String(32), nullable=False),
)


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------


def _sqlite_pragmas(dbapi_conn, connection_record) -> None:
    """Enable WAL and foreign keys on every new SQLite connection.

    SQLite PRAGMAs are per-connection, so they are set on connect rather than
    once at startup.
    """
    dbapi_conn.execute("PRAGMA journal_mode=WAL")
    dbapi_conn.execute("PRAGMA foreign_keys=ON")


def create_db_engine(db_url: str) -> Engine:
    """Create an engine for db_url and make sure the schema exists."""
    connect_args: dict = {}
    if db_url.startswith("sqlite"):
        connect_args["check_same_thread"] = False
    engine = create_engine(db_url, connect_args=connect_args)
    if db_url.startswith("sqlite"):
        event.listen(engine, "connect", _sqlite_pragmas)
    metadata.create_all(engine)
    return engine


@contextmanager
def begin(engine: Engine, conn: Connection | None = None) -> Iterator[Connection]:
    """Yield conn if the caller already holds a transaction, else open one.

    A new transaction commits when the block exits normally and rolls back
    if it raises.
    """
    if conn is not None:
        yield conn
        return
    with engine.begin() as new_conn:
        yield new_conn


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()
