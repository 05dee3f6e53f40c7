import sqlite3

import pytest

from config.settings import settings
from infrastructure.db.sqlite import (
    SQLiteAdminProcedure,
    SQLiteAdminRepository,
    SQLiteUserRepository,
    create_schema,
)
from infrastructure.db.sqlite_events import SQLiteEventRepository
from infrastructure.db.sqlite_reports import SQLiteReportRepository
from infrastructure.db.sqlite_rewards import SQLiteRewardRepository
from infrastructure.db.sqlite_tokens import SQLiteTokenRepository

ADMIN_EMAIL = "admin@wastewise.org"


@pytest.fixture(autouse=True)
def admin_email(monkeypatch):
    monkeypatch.setattr(settings, "ADMIN_EMAIL", ADMIN_EMAIL)
    return ADMIN_EMAIL


@pytest.fixture
def conn():
    connection = sqlite3.connect(":memory:", check_same_thread=False)
    connection.row_factory = sqlite3.Row
    create_schema(connection)
    yield connection
    connection.close()


@pytest.fixture
def token_repo(conn):
    return SQLiteTokenRepository(conn)


@pytest.fixture
def user_repo(conn):
    return SQLiteUserRepository(conn)


@pytest.fixture
def admin_repo(conn):
    return SQLiteAdminRepository(conn)


@pytest.fixture
def procedure(conn):
    return SQLiteAdminProcedure(conn)


@pytest.fixture
def report_repo(conn):
    return SQLiteReportRepository(conn)


@pytest.fixture
def reward_repo(conn):
    return SQLiteRewardRepository(conn)


@pytest.fixture
def event_repo(conn):
    return SQLiteEventRepository(conn)


@pytest.fixture
def count_rows(conn):
    def _count(table: str) -> int:
        return conn.execute(f"SELECT COUNT(*) FROM {table}").fetchone()[0]
    return _count
