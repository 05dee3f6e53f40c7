import asyncio

import pytest

from core.repositories.errors import StoreError
from core.use_cases.reward_use_cases import (
    InsufficientTokensError,
    RewardNotFoundError,
    create_reward,
    list_rewards,
    redeem_reward,
)
from core.use_cases.token_use_cases import award_for_report, get_token_summary, list_transactions, reconcile_balance
from infrastructure.db.sqlite_rewards import SQLiteRewardRepository
from infrastructure.db.sqlite_tokens import SQLiteTokenRepository


class FailingAccountRepo(SQLiteTokenRepository):
    def credit_account(self, user_id, amount):
        raise StoreError("account unavailable")


class DrainedAccountRepo(SQLiteTokenRepository):
    # баланс ушёл между проверкой и списанием
    def debit_account(self, user_id, amount):
        raise ValueError("Insufficient tokens")


class SpentLedgerDownRepo(SQLiteTokenRepository):
    def insert_transaction(self, *args, **kwargs):
        if kwargs.get("kind") == "spent":
            raise StoreError("ledger unavailable")
        return super().insert_transaction(*args, **kwargs)


class FailingRedemptionRepo(SQLiteRewardRepository):
    def create_redemption(self, user_id, reward_id):
        raise StoreError("redeemed_rewards unavailable")


def test_rewards_listed_by_cost(reward_repo):
    asyncio.run(create_reward(reward_repo, "Tote bag", 120))
    asyncio.run(create_reward(reward_repo, "Seed pack", 20, "Native wildflowers"))
    assert [r.title for r in asyncio.run(list_rewards(reward_repo))] == ["Seed pack", "Tote bag"]


@pytest.mark.parametrize("title, cost", [("", 10), ("Mug", 0), ("Mug", -5)])
def test_create_reward_validates(reward_repo, title, cost):
    with pytest.raises(ValueError):
        asyncio.run(create_reward(reward_repo, title, cost))


def test_redeem_spends_tokens_and_records_ledger(reward_repo, token_repo):
    reward = asyncio.run(create_reward(reward_repo, "Seed pack", 20))
    token_repo.set_balance(1, 160)

    result = asyncio.run(redeem_reward(reward_repo, token_repo, 1, reward.id))

    assert result.account.balance == 140
    assert result.account.level == 2
    assert result.redemption.status == "pending"
    tx = token_repo.list_transactions(1)[0]
    assert (tx.kind, tx.amount, tx.source_type) == ("spent", 20, "reward_redemption")
    assert tx.source_id == result.redemption.id
    assert tx.description == "Redeemed: Seed pack"


def test_redeem_with_too_few_tokens(reward_repo, token_repo, count_rows):
    reward = asyncio.run(create_reward(reward_repo, "Tote bag", 120))
    token_repo.set_balance(1, 100)

    with pytest.raises(InsufficientTokensError, match="20 more tokens"):
        asyncio.run(redeem_reward(reward_repo, token_repo, 1, reward.id))
    assert count_rows("redeemed_rewards") == 0
    assert count_rows("token_transactions") == 0


def test_redeem_unknown_reward(reward_repo, token_repo):
    with pytest.raises(RewardNotFoundError):
        asyncio.run(redeem_reward(reward_repo, token_repo, 1, 404))


def test_debit_race_leaves_no_redemption_or_ledger_entry(conn, reward_repo, count_rows):
    reward = asyncio.run(create_reward(reward_repo, "Seed pack", 20))
    repo = DrainedAccountRepo(conn)
    repo.set_balance(1, 50)

    with pytest.raises(InsufficientTokensError):
        asyncio.run(redeem_reward(reward_repo, repo, 1, reward.id))
    assert count_rows("redeemed_rewards") == 0
    assert count_rows("token_transactions") == 0
    assert repo.get_account(1).balance == 50


def test_redemption_write_failure_refunds_balance(conn, token_repo, count_rows):
    rewards = FailingRedemptionRepo(conn)
    reward = asyncio.run(create_reward(rewards, "Seed pack", 20))
    token_repo.set_balance(1, 50)

    with pytest.raises(StoreError):
        asyncio.run(redeem_reward(rewards, token_repo, 1, reward.id))
    assert token_repo.get_account(1).balance == 50
    assert count_rows("redeemed_rewards") == 0
    assert count_rows("token_transactions") == 0


def test_ledger_failure_cancels_redemption_and_refunds(conn, reward_repo):
    repo = SpentLedgerDownRepo(conn)
    reward = asyncio.run(create_reward(reward_repo, "Seed pack", 20))
    repo.set_balance(1, 50)

    with pytest.raises(StoreError):
        asyncio.run(redeem_reward(reward_repo, repo, 1, reward.id))
    assert repo.get_account(1).balance == 50
    assert repo.ledger_totals(1) == (0, 0)
    statuses = [r[0] for r in conn.execute("SELECT status FROM redeemed_rewards")]
    assert statuses == ["cancelled"]


def test_summary_for_user_without_account(token_repo):
    summary = asyncio.run(get_token_summary(token_repo, 77))
    assert (summary.balance, summary.level, summary.next_level_target) == (0, 1, 50)


def test_transactions_newest_first_and_clamped(token_repo):
    for title in ("one", "two", "three"):
        asyncio.run(award_for_report(token_repo, 1, "small", title))
    txs = asyncio.run(list_transactions(token_repo, 1, limit=0))
    assert [t.description for t in txs] == ["Waste report: three"]
    txs = asyncio.run(list_transactions(token_repo, 1, limit=500))
    assert len(txs) == 3


def test_reconcile_consistent_account(token_repo):
    asyncio.run(award_for_report(token_repo, 1, "medium", "x"))
    result = asyncio.run(reconcile_balance(token_repo, 1))
    assert result.drift == 0
    assert result.repaired is False
    assert result.ledger_balance == 15


def test_reconcile_repairs_partial_failure(conn):
    failing = FailingAccountRepo(conn)
    repo = SQLiteTokenRepository(conn)
    asyncio.run(award_for_report(repo, 1, "large", "a"))
    asyncio.run(award_for_report(failing, 1, "medium", "b"))
    assert repo.get_account(1).balance == 30

    report = asyncio.run(reconcile_balance(repo, 1))
    assert (report.ledger_balance, report.account_balance, report.drift) == (45, 30, 15)
    assert report.repaired is False
    assert repo.get_account(1).balance == 30

    fixed = asyncio.run(reconcile_balance(repo, 1, apply=True))
    assert fixed.repaired is True
    assert repo.get_account(1).balance == 45

    again = asyncio.run(reconcile_balance(repo, 1, apply=True))
    assert again.drift == 0
    assert again.repaired is False


def test_reconcile_creates_missing_account(conn):
    failing = FailingAccountRepo(conn)
    asyncio.run(award_for_report(failing, 4, "large", "a"))
    repo = SQLiteTokenRepository(conn)

    result = asyncio.run(reconcile_balance(repo, 4, apply=True))

    assert result.account_balance is None
    assert result.repaired is True
    account = repo.get_account(4)
    assert (account.balance, account.level) == (30, 1)
