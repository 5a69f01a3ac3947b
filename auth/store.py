"""
auth/store.py -- SQLAlchemy Core persistence layer for accounts.

Pattern: Repository + Data Mapper.
UserStore is the repository; _row_to_user is the mapper.
Service and route code never touches SQL directly.

Atomicity:
  Every mutation is a single store-level statement so concurrent requests
  cannot lose each other's writes:
    - create_user: one INSERT; the UNIQUE(username) constraint rejects a
      duplicate with IntegrityError even when two registrations race.
    - append_contribution: one INSERT into contributions. List order is the
      autoincrement id, so appends never read-modify-write a list.
    - replace_password_hash: one UPDATE, optionally guarded by the hash the
      caller verified (compare-and-swap).

Security:
  All queries use bound parameters. No f-strings in SQL.

Layer rule: no imports from api/.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import Column, ForeignKey, Integer, MetaData, String, Table, Text, create_engine, event, select, text
from sqlalchemy.engine import Engine

from auth.models import User

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_users = Table(
    "users",
    _metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("username", String(255), nullable=False, unique=True),
    Column("hashed_password", Text, nullable=False),
    Column("created_at", String(32), nullable=False),
    Column("password_changed_at", String(32)),
)

_contributions = Table(
    "contributions",
    _metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("user_id", Integer, ForeignKey("users.id"), nullable=False, index=True),
    Column("content", Text, nullable=False),
    Column("created_at", String(32), nullable=False),
)


# ---------------------------------------------------------------------------
# WAL mode
# ---------------------------------------------------------------------------


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode for concurrent read safety.

    Set per-connection because SQLite PRAGMAs are not inherited by new
    connections from the pool.
    """
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class UserStore:
    """Repository for User records and their contributions.

    Usage:
        store = UserStore("sqlite:///accounts.db")
        store.create_user(User(username="alice", hashed_password=hasher.hash("secret1")))
        store.append_contribution("alice", "first")
        store.list_contributions("alice")   # ["first"]
        store.close()
    """

    def __init__(self, db_url: str, poolclass=None) -> None:
        connect_args: dict = {}
        if db_url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
        engine_kwargs: dict = {"connect_args": connect_args}
        if poolclass is not None:
            engine_kwargs["poolclass"] = poolclass
        self.engine: Engine = create_engine(db_url, **engine_kwargs)
        if db_url.startswith("sqlite"):
            event.listen(self.engine, "connect", _set_wal_mode)
        _metadata.create_all(self.engine)

    # ------------------------------------------------------------------
    # Users
    # ------------------------------------------------------------------

    def create_user(self, user: User) -> int:
        """Insert a new user and return its assigned database ID.

        Raises sqlalchemy.exc.IntegrityError if the username already exists.
        Callers treat that as the authoritative uniqueness check.
        """
        with self.engine.connect() as conn:
            result = conn.execute(
                _users.insert().values(
                    username=user.username,
                    hashed_password=user.hashed_password,
                    created_at=_now_iso(),
                )
            )
            conn.commit()
            return result.inserted_primary_key[0]

    def get_by_username(self, username: str) -> User | None:
        """Look up a user by exact username (case-sensitive). Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.username == username)).fetchone()
        return _row_to_user(row) if row is not None else None

    def replace_password_hash(self, username: str, new_hash: str, expected_hash: str | None = None) -> bool:
        """Swap in a new password hash in a single UPDATE.

        If expected_hash is given the row only changes when its current hash
        still equals it, so a password verified by the caller cannot be
        silently overwritten by a concurrent change.

        Returns True if a row was updated, False otherwise.
        """
        condition = _users.c.username == username
        if expected_hash is not None:
            condition = condition & (_users.c.hashed_password == expected_hash)
        with self.engine.connect() as conn:
            result = conn.execute(
                _users.update().where(condition).values(hashed_password=new_hash, password_changed_at=_now_iso())
            )
            conn.commit()
        return result.rowcount > 0

    # ------------------------------------------------------------------
    # Contributions
    # ------------------------------------------------------------------

    def append_contribution(self, username: str, content: str) -> bool:
        """Append one contribution for username.

        Returns False if the user does not exist. The append itself is a
        single INSERT, so concurrent appends are all kept, in commit order.
        """
        with self.engine.begin() as conn:
            user_id = conn.execute(select(_users.c.id).where(_users.c.username == username)).scalar()
            if user_id is None:
                return False
            conn.execute(_contributions.insert().values(user_id=user_id, content=content, created_at=_now_iso()))
        return True

    def list_contributions(self, username: str) -> list[str] | None:
        """Return username's contributions in insertion order, or None if no such user."""
        with self.engine.connect() as conn:
            user_id = conn.execute(select(_users.c.id).where(_users.c.username == username)).scalar()
            if user_id is None:
                return None
            return self._contributions_for(conn, user_id)

    @staticmethod
    def _contributions_for(conn, user_id: int) -> list[str]:
        rows = conn.execute(
            select(_contributions.c.content).where(_contributions.c.user_id == user_id).order_by(_contributions.c.id)
        ).fetchall()
        return [r.content for r in rows]

    # ------------------------------------------------------------------
    # Maintenance
    # ------------------------------------------------------------------

    def ping(self) -> bool:
        """Return True if the database answers a trivial query. Used by /health."""
        with self.engine.connect() as conn:
            return conn.execute(text("SELECT 1")).scalar() == 1

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mappers (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_user(row) -> User:
    return User(
        id=row.id,
        username=row.username,
        hashed_password=row.hashed_password,
        created_at=row.created_at,
        password_changed_at=row.password_changed_at,
    )
