from typing import List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from core.entities.user import User
from core.use_cases.token_use_cases import get_token_summary, leaderboard, list_transactions
from infrastructure.db.sqlite import SQLiteUserRepository
from infrastructure.db.sqlite_reports import SQLiteReportRepository
from infrastructure.db.sqlite_tokens import SQLiteTokenRepository
from infrastructure.web.dependencies import get_current_user, get_report_repo, get_token_repo, get_user_repo


router = APIRouter(prefix="", tags=["tokens"])


class TokenSummaryResponse(BaseModel):
    balance: int
    level: int
    next_level_target: Optional[int] = None
    tokens_to_next_level: int
    progress_percent: int

class TransactionItem(BaseModel):
    id: int
    amount: int
    description: str
    transaction_type: str
    source_type: str
    source_id: Optional[int] = None
    created_at: str

class LeaderboardItem(BaseModel):
    rank: int
    user_id: int
    name: str
    tokens: int
    level: int
    reports_approved: int


@router.get("/tokens", response_model=TokenSummaryResponse)
async def get_tokens(
    current_user: User = Depends(get_current_user),
    repo: SQLiteTokenRepository = Depends(get_token_repo),
):
    summary = await get_token_summary(repo, current_user.id)
    return TokenSummaryResponse(
        balance=summary.balance,
        level=summary.level,
        next_level_target=summary.next_level_target,
        tokens_to_next_level=summary.tokens_to_next_level,
        progress_percent=summary.progress_percent,
    )

@router.get("/transactions", response_model=List[TransactionItem])
async def get_transactions(
    limit: int = 50,
    offset: int = 0,
    current_user: User = Depends(get_current_user),
    repo: SQLiteTokenRepository = Depends(get_token_repo),
):
    txs = await list_transactions(repo, current_user.id, limit=limit, offset=offset)
    return [
        TransactionItem(
            id=tx.id,
            amount=tx.amount,
            description=tx.description,
            transaction_type=tx.kind,
            source_type=tx.source_type,
            source_id=tx.source_id,
            created_at=tx.created_at,
        )
        for tx in txs
    ]

@router.get("/leaderboard", response_model=List[LeaderboardItem])
async def get_leaderboard(
    limit: int = 10,
    token_repo: SQLiteTokenRepository = Depends(get_token_repo),
    user_repo: SQLiteUserRepository = Depends(get_user_repo),
    report_repo: SQLiteReportRepository = Depends(get_report_repo),
):
    entries = await leaderboard(token_repo, user_repo, report_repo, limit=limit)
    return [LeaderboardItem(**vars(entry)) for entry in entries]
