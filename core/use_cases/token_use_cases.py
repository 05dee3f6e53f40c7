from dataclasses import dataclass
from typing import List, Optional

from loguru import logger

from core.entities.token_account import (
    level_floor,
    level_for_balance,
    next_level_target,
)
from core.entities.transaction import EARNED, SOURCE_WASTE_REPORT, TokenTransaction
from core.entities.waste_report import tokens_for_waste_size
from core.repositories.report_repository import ReportRepository
from core.repositories.token_repository import TokenRepository
from core.repositories.user_repository import UserRepository
from core.use_cases.store_calls import call_store


@dataclass
class TokenSummary:
    user_id: int
    balance: int
    level: int
    next_level_target: Optional[int]
    tokens_to_next_level: int
    progress_percent: int


@dataclass
class ReconcileResult:
    user_id: int
    ledger_balance: int
    account_balance: Optional[int]
    drift: int
    repaired: bool


@dataclass
class LeaderboardEntry:
    rank: int
    user_id: int
    name: str
    tokens: int
    level: int
    reports_approved: int


async def award_for_report(repo: TokenRepository, user_id: int, waste_size: str, report_title: str) -> bool:
    # сначала запись в журнал, потом счёт; сбой после журнала чинит reconcile_balance
    if not user_id:
        logger.info("No user to award tokens to")
        return False

    amount = tokens_for_waste_size(waste_size)
    if amount == 0:
        logger.info("No tokens to award for waste size: {!r}", waste_size)
        return False

    try:
        await call_store(
            repo.insert_transaction,
            user_id=user_id,
            amount=amount,
            description=f"Waste report: {report_title}",
            kind=EARNED,
            source_type=SOURCE_WASTE_REPORT,
        )
    except Exception as e:
        logger.error("Error creating token transaction for user {}: {}", user_id, e)
        return False

    try:
        account = await call_store(repo.credit_account, user_id, amount)
    except Exception as e:
        logger.error(
            "Ledger credited {} tokens to user {} but the account update failed, balance is now behind: {}",
            amount, user_id, e,
        )
        return False

    logger.info("Awarded {} tokens to user {} (balance={}, level={})", amount, user_id, account.balance, account.level)
    return True


def summarize(user_id: int, balance: int) -> TokenSummary:
    level = level_for_balance(balance)
    target = next_level_target(level)
    if target is None:
        return TokenSummary(user_id, balance, level, None, 0, 100)
    floor = level_floor(level)
    progress = int((balance - floor) * 100 / (target - floor))
    return TokenSummary(
        user_id=user_id,
        balance=balance,
        level=level,
        next_level_target=target,
        tokens_to_next_level=target - balance,
        progress_percent=max(0, min(100, progress)),
    )


async def get_token_summary(repo: TokenRepository, user_id: int) -> TokenSummary:
    account = await call_store(repo.get_account, user_id)
    # нет счёта - как в интерфейсе, показываем 0 токенов и первый уровень
    balance = account.balance if account else 0
    summary = summarize(user_id, balance)
    if account and account.level != summary.level:
        logger.warning("Stored level {} for user {} does not match balance {}", account.level, user_id, balance)
    return summary


async def list_transactions(repo: TokenRepository, user_id: int, limit: int = 50, offset: int = 0) -> List[TokenTransaction]:
    limit = max(1, min(100, int(limit)))
    offset = max(0, int(offset))
    return await call_store(repo.list_transactions, user_id, limit=limit, offset=offset)


async def reconcile_balance(repo: TokenRepository, user_id: int, apply: bool = False) -> ReconcileResult:
    earned, spent = await call_store(repo.ledger_totals, user_id)
    ledger_balance = earned - spent
    account = await call_store(repo.get_account, user_id)
    account_balance = account.balance if account else None
    drift = ledger_balance - (account_balance or 0)

    if drift == 0 and (account is None or account.level == level_for_balance(account.balance)):
        return ReconcileResult(user_id, ledger_balance, account_balance, 0, False)

    logger.warning("Ledger/balance drift for user {}: ledger={} account={}", user_id, ledger_balance, account_balance)
    if not apply:
        return ReconcileResult(user_id, ledger_balance, account_balance, drift, False)

    if ledger_balance < 0:
        raise ValueError("Ledger balance is negative, refusing to repair")
    repaired = await call_store(repo.set_balance, user_id, ledger_balance)
    logger.info("Reconciled user {}: balance {} -> {}", user_id, account_balance, repaired.balance)
    return ReconcileResult(user_id, ledger_balance, account_balance, drift, True)


async def leaderboard(
    token_repo: TokenRepository,
    user_repo: UserRepository,
    report_repo: ReportRepository,
    limit: int = 10,
) -> List[LeaderboardEntry]:
    limit = max(1, min(100, int(limit)))
    accounts = await call_store(token_repo.top_accounts, limit)
    approved = await call_store(report_repo.count_by_user, "approved")
    entries = []
    for rank, account in enumerate(accounts, start=1):
        user = await call_store(user_repo.get_by_id, account.user_id)
        name = ((user.full_name if user else None) or "").strip() or "Anonymous User"
        entries.append(LeaderboardEntry(
            rank=rank,
            user_id=account.user_id,
            name=name,
            tokens=account.balance,
            level=account.level,
            reports_approved=approved.get(account.user_id, 0),
        ))
    return entries
