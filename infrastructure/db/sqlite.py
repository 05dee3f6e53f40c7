import functools
import sqlite3
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterator, List, Optional

from core.entities.admin_membership import AdminMembership
from core.entities.user import User
from core.repositories.admin_repository import AdminRepository
from core.repositories.cancellation import call_cancelled
from core.repositories.errors import StoreError
from core.repositories.user_repository import UserRepository
from core.services.admin_procedure import AdminProcedure

SCHEMA = """
CREATE TABLE IF NOT EXISTS users (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    email TEXT UNIQUE NOT NULL,
    password_hash TEXT NOT NULL,
    is_admin INTEGER NOT NULL DEFAULT 0,
    created_at TEXT NOT NULL,
    full_name TEXT
);

CREATE TABLE IF NOT EXISTS user_tokens (
    user_id INTEGER PRIMARY KEY,
    balance INTEGER NOT NULL DEFAULT 0 CHECK (balance >= 0),
    level INTEGER NOT NULL DEFAULT 1 CHECK (level BETWEEN 1 AND 5),
    updated_at TEXT,
    FOREIGN KEY(user_id) REFERENCES users(id) ON DELETE CASCADE
);

CREATE TABLE IF NOT EXISTS token_transactions (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id INTEGER NOT NULL,
    amount INTEGER NOT NULL CHECK (amount > 0),
    description TEXT NOT NULL,
    transaction_type TEXT NOT NULL CHECK (transaction_type IN ('earned', 'spent')),
    source_type TEXT NOT NULL,
    source_id INTEGER,
    created_at TEXT NOT NULL,
    FOREIGN KEY(user_id) REFERENCES users(id) ON DELETE CASCADE
);
CREATE INDEX IF NOT EXISTS idx_token_transactions_user ON token_transactions(user_id);

CREATE TABLE IF NOT EXISTS admin_users (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id INTEGER UNIQUE NOT NULL,
    created_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS waste_reports (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id INTEGER NOT NULL,
    title TEXT NOT NULL,
    description TEXT,
    location TEXT,
    waste_size TEXT NOT NULL,
    status TEXT NOT NULL DEFAULT 'pending',
    created_at TEXT NOT NULL,
    FOREIGN KEY(user_id) REFERENCES users(id) ON DELETE CASCADE
);

CREATE TABLE IF NOT EXISTS rewards (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    title TEXT NOT NULL,
    description TEXT,
    token_cost INTEGER NOT NULL CHECK (token_cost > 0),
    created_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS redeemed_rewards (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id INTEGER NOT NULL,
    reward_id INTEGER NOT NULL,
    status TEXT NOT NULL DEFAULT 'pending',
    created_at TEXT NOT NULL,
    FOREIGN KEY(reward_id) REFERENCES rewards(id)
);

CREATE TABLE IF NOT EXISTS collection_events (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    title TEXT NOT NULL,
    location TEXT NOT NULL,
    date TEXT NOT NULL,
    time_range TEXT,
    status TEXT NOT NULL DEFAULT 'active' CHECK (status IN ('active', 'completed', 'cancelled')),
    participants INTEGER NOT NULL DEFAULT 0 CHECK (participants >= 0),
    waste_small INTEGER NOT NULL DEFAULT 0 CHECK (waste_small >= 0),
    waste_medium INTEGER NOT NULL DEFAULT 0 CHECK (waste_medium >= 0),
    waste_large INTEGER NOT NULL DEFAULT 0 CHECK (waste_large >= 0),
    created_at TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_collection_events_date ON collection_events(date);
"""


def utcnow() -> str:
    return datetime.now(timezone.utc).isoformat()


def create_schema(conn: sqlite3.Connection) -> None:
    conn.executescript(SCHEMA)
    conn.commit()


def init_db(db_path: str) -> None:
    if db_path != ":memory:" and not db_path.startswith("file:"):
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)

    conn = sqlite3.connect(db_path, check_same_thread=False)
    try:
        create_schema(conn)
    finally:
        conn.close()


def store_errors(method):
    """sqlite3.Error -> StoreError, чтобы core не знал про sqlite."""
    @functools.wraps(method)
    def wrapper(*args, **kwargs):
        try:
            return method(*args, **kwargs)
        except sqlite3.Error as e:
            raise StoreError(str(e)) from e
    return wrapper


def commit(conn: sqlite3.Connection) -> None:
    # вызов уже отменён по таймауту: откатываем вместо коммита
    if call_cancelled():
        conn.rollback()
        raise StoreError("Store call cancelled after timeout, changes rolled back")
    conn.commit()


@contextmanager
def write_transaction(conn: sqlite3.Connection) -> Iterator[sqlite3.Cursor]:
    # BEGIN IMMEDIATE берёт блокировку на запись сразу, до чтения
    cur = conn.cursor()
    cur.execute("BEGIN IMMEDIATE")
    try:
        yield cur
    except BaseException:
        conn.rollback()
        raise
    else:
        commit(conn)


class SQLiteRepository:
    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn
        self.conn.row_factory = sqlite3.Row

    def cancel(self) -> None:
        # прерывает выполняющийся запрос на этом соединении
        self.conn.interrupt()


class SQLiteUserRepository(SQLiteRepository, UserRepository):

    def _row_to_user(self, row: sqlite3.Row) -> User:
        return User(
            id=row["id"],
            email=row["email"],
            password_hash=row["password_hash"],
            is_admin=bool(row["is_admin"]),
            created_at=row["created_at"],
            full_name=row["full_name"],
        )

    @store_errors
    def create_user(self, email: str, password_hash: str, is_admin: bool = False,
                    full_name: Optional[str] = None) -> User:
        created_at = utcnow()
        cur = self.conn.cursor()
        cur.execute(
            "INSERT INTO users (email, password_hash, is_admin, created_at, full_name) VALUES (?, ?, ?, ?, ?)",
            (email, password_hash, 1 if is_admin else 0, created_at, full_name),
        )
        commit(self.conn)
        return User(id=cur.lastrowid, email=email, password_hash=password_hash,
                    is_admin=is_admin, created_at=created_at, full_name=full_name)

    @store_errors
    def get_by_email(self, email: str) -> Optional[User]:
        cur = self.conn.cursor()
        cur.execute("SELECT * FROM users WHERE email = ?", (email,))
        row = cur.fetchone()
        return self._row_to_user(row) if row else None

    @store_errors
    def get_by_id(self, user_id: int) -> Optional[User]:
        cur = self.conn.cursor()
        cur.execute("SELECT * FROM users WHERE id = ?", (user_id,))
        row = cur.fetchone()
        return self._row_to_user(row) if row else None


class SQLiteAdminRepository(SQLiteRepository, AdminRepository):

    def _row_to_membership(self, row: sqlite3.Row) -> AdminMembership:
        return AdminMembership(id=row["id"], user_id=row["user_id"], created_at=row["created_at"])

    @store_errors
    def find_membership(self, user_id: int) -> Optional[AdminMembership]:
        cur = self.conn.cursor()
        cur.execute("SELECT * FROM admin_users WHERE user_id = ?", (int(user_id),))
        row = cur.fetchone()
        return self._row_to_membership(row) if row else None

    @store_errors
    def insert_membership(self, user_id: int) -> AdminMembership:
        cur = self.conn.cursor()
        # UNIQUE(user_id): повторная вставка ничего не меняет
        cur.execute(
            "INSERT OR IGNORE INTO admin_users (user_id, created_at) VALUES (?, ?)",
            (int(user_id), utcnow()),
        )
        commit(self.conn)
        cur.execute("SELECT * FROM admin_users WHERE user_id = ?", (int(user_id),))
        return self._row_to_membership(cur.fetchone())

    @store_errors
    def list_memberships(self) -> List[AdminMembership]:
        cur = self.conn.cursor()
        cur.execute("SELECT * FROM admin_users ORDER BY id")
        return [self._row_to_membership(r) for r in cur.fetchall()]


class SQLiteAdminProcedure(SQLiteRepository, AdminProcedure):
    """is_admin(user_id) поверх флага users.is_admin."""

    @store_errors
    def is_admin(self, user_id: int) -> bool:
        cur = self.conn.cursor()
        cur.execute("SELECT is_admin FROM users WHERE id = ?", (int(user_id),))
        row = cur.fetchone()
        return bool(row and row[0])
