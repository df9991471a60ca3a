"""
auth/store.py -- SQLAlchemy Core persistence layer for users.

Pattern: Repository + Data Mapper. UserStore is the repository; _row_to_user
is the mapper. Route, dependency and flow code never touches SQL directly.

Security:
  All queries use bound parameters. No f-strings in SQL.

Invariants enforced by the schema, not by application code:
  - users.email is UNIQUE (NULLs are distinct, so many users may omit it).
    Concurrent signups with the same email race; exactly one insert wins and
    the other surfaces as sqlalchemy.exc.IntegrityError.
  - users.role is CHECK-constrained to the Role enum values.
  - system_state holds exactly one row (CHECK id = 1).

Bootstrap:
  The bootstrap grant depends on the user count read inside the insert
  transaction, never on a cached flag: rows written by other clients of the
  users table count, and an emptied table bootstraps again.
  create_user_with_bootstrap() first touches the single system_state row,
  which takes the row (or, on SQLite, database) write lock. Two concurrent
  first signups serialize on that lock; the second counts the first user's
  committed row and is created as a plain USER. system_state.bootstrapped_at
  records the last bootstrap grant.

DB path: auth/rolegate_users.db unless Settings.database_url is set.

Layer rule: no imports from api/.
"""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path

from sqlalchemy import (
    CheckConstraint,
    Column,
    Integer,
    MetaData,
    String,
    Table,
    create_engine,
    event,
    func,
    select,
)
from sqlalchemy.engine import Connection, Engine

from auth.models import Role, SystemState, User

_DEFAULT_DB_URL = f"sqlite:///{Path(__file__).parent / 'rolegate_users.db'}"

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_users = Table(
    "users",
    _metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("name", String(255), nullable=False),
    Column("email", String(320), unique=True),  # NULL allowed, unique when present
    Column("role", String(10), nullable=False, server_default=Role.USER.value),
    Column("created_at", String(32), nullable=False),
    CheckConstraint("role IN ('ADMIN', 'USER')", name="ck_users_role"),
)

_system_state = Table(
    "system_state",
    _metadata,
    Column("id", Integer, primary_key=True, autoincrement=False),
    Column("bootstrapped_at", String(32)),  # last bootstrap grant, NULL until one happens
    CheckConstraint("id = 1", name="ck_system_state_single_row"),
)


# ---------------------------------------------------------------------------
# WAL mode
# ---------------------------------------------------------------------------


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode so readers do not block behind the writer.

    Set per-connection because SQLite PRAGMAs are not inherited by new
    connections from the pool.
    """
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class UserStore:
    """Repository for User entities and the bootstrap state.

    Usage:
        store = UserStore()
        store.create_user("alice", email="alice@example.com")
        user = store.get_by_email_or_name(email="alice@example.com")
        store.close()

    Extra keyword arguments go to sqlalchemy.create_engine() (e.g. poolclass).
    """

    def __init__(self, db_url: str = _DEFAULT_DB_URL, **engine_kwargs) -> None:
        connect_args: dict = dict(engine_kwargs.pop("connect_args", {}))
        if db_url.startswith("sqlite"):
            connect_args.setdefault("check_same_thread", False)
        self.engine: Engine = create_engine(db_url, connect_args=connect_args, **engine_kwargs)
        if db_url.startswith("sqlite"):
            event.listen(self.engine, "connect", _set_wal_mode)
        _metadata.create_all(self.engine)
        self._ensure_system_state()

    def _ensure_system_state(self) -> None:
        """Seed the single system_state row (the bootstrap lock row) if it is missing."""
        with self.engine.begin() as conn:
            row = conn.execute(select(_system_state.c.id).where(_system_state.c.id == 1)).fetchone()
            if row is None:
                conn.execute(_system_state.insert().values(id=1))

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_by_id(self, user_id: int) -> User | None:
        """Look up a user by primary key. Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.id == user_id)).fetchone()
        return _row_to_user(row) if row is not None else None

    def get_by_email_or_name(self, email: str | None = None, name: str | None = None) -> User | None:
        """Resolve a user by email if given, otherwise by name.

        An email that matches nobody returns None; it does not fall back to
        the name. Names are not unique, so the earliest-created match (lowest
        id) wins.
        """
        if email:
            query = _users.select().where(_users.c.email == email)
        elif name:
            query = _users.select().where(_users.c.name == name).order_by(_users.c.id).limit(1)
        else:
            return None
        with self.engine.connect() as conn:
            row = conn.execute(query).fetchone()
        return _row_to_user(row) if row is not None else None

    def count_users(self) -> int:
        with self.engine.connect() as conn:
            return _count_users(conn)

    def list_users(self) -> list[User]:
        """Return all users ordered by id (creation order)."""
        with self.engine.connect() as conn:
            rows = conn.execute(_users.select().order_by(_users.c.id)).fetchall()
        return [_row_to_user(r) for r in rows]

    def system_state(self) -> SystemState:
        """EMPTY while the users table has no rows, POPULATED otherwise."""
        return SystemState.POPULATED if self.count_users() > 0 else SystemState.EMPTY

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def create_user(self, name: str, email: str | None = None, role: Role = Role.USER) -> User:
        """Insert a user with an explicit role and return it.

        Raises sqlalchemy.exc.IntegrityError if the email already exists.
        """
        with self.engine.begin() as conn:
            return _insert_user(conn, name, email, role)

    def create_user_with_bootstrap(self, name: str, email: str | None, bootstrap_role: Role) -> User:
        """Insert a user, granting bootstrap_role only if the users table is empty.

        The lock on system_state, the count and the insert share one
        transaction. If the insert fails (IntegrityError), everything rolls
        back together.
        """
        with self.engine.begin() as conn:
            # No-op write: serializes concurrent signups before the count.
            conn.execute(
                _system_state.update()
                .where(_system_state.c.id == 1)
                .values(bootstrapped_at=_system_state.c.bootstrapped_at)
            )
            bootstrap = _count_users(conn) == 0
            role = bootstrap_role if bootstrap else Role.USER
            user = _insert_user(conn, name, email, role)
            if bootstrap:
                conn.execute(
                    _system_state.update().where(_system_state.c.id == 1).values(bootstrapped_at=user.created_at)
                )
            return user

    def close(self) -> None:
        self.engine.dispose()


def _count_users(conn: Connection) -> int:
    return conn.execute(select(func.count()).select_from(_users)).scalar() or 0


def _insert_user(conn: Connection, name: str, email: str | None, role: Role) -> User:
    created_at = _now_iso()
    result = conn.execute(
        _users.insert().values(
            name=name,
            email=email,
            role=role.value,
            created_at=created_at,
        )
    )
    return User(
        id=result.inserted_primary_key[0],
        name=name,
        email=email,
        role=role,
        created_at=created_at,
    )


# ---------------------------------------------------------------------------
# Row mapper (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_user(row) -> User:
    return User(
        id=row.id,
        name=row.name,
        email=row.email,
        role=Role(row.role),
        created_at=row.created_at,
    )
