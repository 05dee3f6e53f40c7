import sqlite3
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends, Header, HTTPException, status
from jose import JWTError, jwt
from loguru import logger

from config.settings import settings
from core.entities.user import User
from core.use_cases.admin_use_cases import AdminResolution, TIER_EMAIL, ensure_membership, resolve_admin
from infrastructure.db.sqlite import SQLiteAdminProcedure, SQLiteAdminRepository, SQLiteUserRepository
from infrastructure.db.sqlite_events import SQLiteEventRepository
from infrastructure.db.sqlite_reports import SQLiteReportRepository
from infrastructure.db.sqlite_rewards import SQLiteRewardRepository
from infrastructure.db.sqlite_tokens import SQLiteTokenRepository
from infrastructure.web.session_identity import SessionIdentityProvider


def get_db():
    conn = sqlite3.connect(settings.DB_PATH, check_same_thread=False, timeout=settings.STORE_TIMEOUT_SEC)
    conn.row_factory = sqlite3.Row
    try:
        yield conn
    finally:
        conn.close()

def get_user_repo(conn: sqlite3.Connection = Depends(get_db)) -> SQLiteUserRepository:
    return SQLiteUserRepository(conn)

def get_token_repo(conn: sqlite3.Connection = Depends(get_db)) -> SQLiteTokenRepository:
    return SQLiteTokenRepository(conn)

def get_admin_repo(conn: sqlite3.Connection = Depends(get_db)) -> SQLiteAdminRepository:
    return SQLiteAdminRepository(conn)

def get_admin_procedure(conn: sqlite3.Connection = Depends(get_db)) -> SQLiteAdminProcedure:
    return SQLiteAdminProcedure(conn)

def get_report_repo(conn: sqlite3.Connection = Depends(get_db)) -> SQLiteReportRepository:
    return SQLiteReportRepository(conn)

def get_reward_repo(conn: sqlite3.Connection = Depends(get_db)) -> SQLiteRewardRepository:
    return SQLiteRewardRepository(conn)

def get_event_repo(conn: sqlite3.Connection = Depends(get_db)) -> SQLiteEventRepository:
    return SQLiteEventRepository(conn)

# jwt авторизация
def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)

def get_bearer_token(authorization: Optional[str] = Header(None)) -> str:
    if not authorization or not authorization.startswith("Bearer "):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return authorization.split(" ", 1)[1]

async def get_current_user(
    token: str = Depends(get_bearer_token),
    repo: SQLiteUserRepository = Depends(get_user_repo),
) -> User:
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
        sub = payload.get("sub")
        if sub is None:
            raise credentials_exception
        user_id = int(sub)
    except (JWTError, ValueError):
        raise credentials_exception

    user = repo.get_by_id(user_id)
    if user is None:
        raise credentials_exception
    return user

async def get_admin_resolution(
    current_user: User = Depends(get_current_user),
    admin_repo: SQLiteAdminRepository = Depends(get_admin_repo),
    procedure: SQLiteAdminProcedure = Depends(get_admin_procedure),
) -> AdminResolution:
    resolution = await resolve_admin(
        current_user.id,
        SessionIdentityProvider(current_user),
        admin_repo,
        procedure,
        settings.ADMIN_EMAIL,
    )
    # вход по email: заводим строку в admin_users, дальше хватит проверки членства
    if resolution.granted and resolution.tier == TIER_EMAIL:
        if not await ensure_membership(admin_repo, current_user.id):
            logger.warning("Admin {} matched by email but membership row was not written", current_user.id)
    return resolution

async def require_admin(
    current_user: User = Depends(get_current_user),
    resolution: AdminResolution = Depends(get_admin_resolution),
) -> User:
    if not resolution.granted:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin access required")
    return current_user
