"""
auth/store.py -- SQLAlchemy Core persistence layer for auth entities.

Pattern: Repository + Data Mapper.
UserStore is the repository; _row_to_user / _row_to_token are the mappers.
Service and dependency code never touches SQL directly.

Security:
  All queries use bound parameters. No f-strings in SQL.

Single-session policy:
  replace_tokens() deletes every token the user owns and inserts the new one
  inside one engine.begin() transaction. Two concurrent logins for the same
  user serialize on the database write lock, so the window where zero or two
  tokens are live is limited to what the engine's isolation level allows.

Layer rule: no imports from api/.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import Column, ForeignKey, Integer, MetaData, String, Table, Text, create_engine, event, select, text
from sqlalchemy.engine import Engine

from auth.models import SessionToken, User
from core.config import get_settings

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_users = Table(
    "users",
    _metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("name", String(255), nullable=False),
    Column("email", String(255), nullable=False, unique=True),  # stored lowercased
    Column("hashed_password", Text, nullable=False),
    Column("created_at", String(32), nullable=False),
)

_tokens = Table(
    "api_tokens",
    _metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("user_id", Integer, ForeignKey("users.id"), nullable=False, index=True),
    Column("token", String(64), nullable=False, unique=True),  # secrets.token_hex(32)
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


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class UserStore:
    """Repository for User and SessionToken entities.

    Usage:
        store = UserStore()
        uid = store.create_user(User(name="Ann", email="ann@x.com", hashed_password=hash_password("secret1")))
        store.replace_tokens(uid, generate_session_token())
        store.close()
    """

    def __init__(self, db_url: str | None = None) -> None:
        db_url = db_url or get_settings().database_url
        connect_args: dict = {}
        if db_url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
        self.engine: Engine = create_engine(db_url, connect_args=connect_args)
        if db_url.startswith("sqlite"):
            event.listen(self.engine, "connect", _set_wal_mode)
        _metadata.create_all(self.engine)

    def ping(self) -> bool:
        """Return True if the database answers a trivial query."""
        with self.engine.connect() as conn:
            return conn.execute(text("SELECT 1")).scalar() == 1

    # ------------------------------------------------------------------
    # User queries
    # ------------------------------------------------------------------

    def create_user(self, user: User) -> int:
        """Insert a new user and return its assigned database ID.

        Raises sqlalchemy.exc.IntegrityError if the email already exists.
        The service catches it and reports a duplicate-email validation error,
        which covers the race where two registrations pass email_exists() at
        the same time.
        """
        with self.engine.connect() as conn:
            result = conn.execute(
                _users.insert().values(
                    name=user.name,
                    email=user.email,
                    hashed_password=user.hashed_password,
                    created_at=_now_iso(),
                )
            )
            conn.commit()
            return result.inserted_primary_key[0]

    def get_by_email(self, email: str) -> User | None:
        """Look up a user by email. Callers pass the lowercased form."""
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.email == email)).fetchone()
        return _row_to_user(row) if row is not None else None

    def get_by_id(self, user_id: int) -> User | None:
        """Look up a user by primary key. Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.id == user_id)).fetchone()
        return _row_to_user(row) if row is not None else None

    def email_exists(self, email: str) -> bool:
        with self.engine.connect() as conn:
            row = conn.execute(select(_users.c.id).where(_users.c.email == email)).fetchone()
        return row is not None

    def count_users(self) -> int:
        with self.engine.connect() as conn:
            result = conn.execute(text("SELECT COUNT(*) FROM users")).scalar()
        return result or 0

    # ------------------------------------------------------------------
    # Token queries
    # ------------------------------------------------------------------

    def replace_tokens(self, user_id: int, token: str) -> int:
        """Revoke every token owned by user_id and store token as the only live one.

        Delete and insert share one transaction: either both happen or neither
        does. Returns the number of tokens that were revoked.
        """
        with self.engine.begin() as conn:
            deleted = conn.execute(_tokens.delete().where(_tokens.c.user_id == user_id))
            conn.execute(_tokens.insert().values(user_id=user_id, token=token, created_at=_now_iso()))
        return deleted.rowcount

    def get_user_by_token(self, token: str) -> User | None:
        """Resolve a bearer token to its owner in one query. None if the token is unknown."""
        query = select(_users).select_from(_users.join(_tokens, _tokens.c.user_id == _users.c.id)).where(
            _tokens.c.token == token
        )
        with self.engine.connect() as conn:
            row = conn.execute(query).fetchone()
        return _row_to_user(row) if row is not None else None

    def delete_token(self, token: str) -> bool:
        """Delete the row holding token. Returns True if a row was deleted, False if not found."""
        with self.engine.connect() as conn:
            result = conn.execute(_tokens.delete().where(_tokens.c.token == token))
            conn.commit()
        return result.rowcount > 0

    def list_tokens(self, user_id: int) -> list[SessionToken]:
        """Return every token row for a user. Under the single-session policy this is 0 or 1 rows."""
        with self.engine.connect() as conn:
            rows = conn.execute(
                _tokens.select().where(_tokens.c.user_id == user_id).order_by(_tokens.c.id)
            ).fetchall()
        return [_row_to_token(r) for r in rows]

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mappers (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_user(row) -> User:
    return User(
        id=row.id,
        name=row.name,
        email=row.email,
        hashed_password=row.hashed_password,
        created_at=row.created_at,
    )


def _row_to_token(row) -> SessionToken:
    return SessionToken(
        id=row.id,
        user_id=row.user_id,
        token=row.token,
        created_at=row.created_at,
    )
