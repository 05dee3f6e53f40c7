from dataclasses import dataclass
from typing import List, Optional

from loguru import logger

from core.entities.reward import Redemption, Reward
from core.entities.token_account import TokenAccount
from core.entities.transaction import SOURCE_REWARD_REDEMPTION, SPENT
from core.repositories.reward_repository import RewardRepository
from core.repositories.token_repository import TokenRepository
from core.use_cases.store_calls import call_store


class InsufficientTokensError(ValueError):
    pass


class RewardNotFoundError(LookupError):
    pass


@dataclass
class RedemptionResult:
    redemption: Redemption
    reward: Reward
    account: TokenAccount


async def create_reward(repo: RewardRepository, title: str, token_cost: int, description: Optional[str] = None) -> Reward:
    title = (title or "").strip()
    if not title:
        raise ValueError("Title is required")
    if token_cost <= 0:
        raise ValueError("token_cost must be positive")
    return await call_store(repo.create_reward, title=title, description=description, token_cost=int(token_cost))


async def list_rewards(repo: RewardRepository) -> List[Reward]:
    return await call_store(repo.list_rewards)


async def redeem_reward(
    reward_repo: RewardRepository,
    token_repo: TokenRepository,
    user_id: int,
    reward_id: int,
) -> RedemptionResult:
    reward = await call_store(reward_repo.get_reward, reward_id)
    if reward is None:
        raise RewardNotFoundError(f"Reward {reward_id} not found")

    account = await call_store(token_repo.get_account, user_id)
    balance = account.balance if account else 0
    if balance < reward.token_cost:
        raise InsufficientTokensError(
            f"You need {reward.token_cost - balance} more tokens to redeem this reward"
        )

    # сначала списание под блокировкой: если баланса уже нет, ничего не записано
    try:
        updated = await call_store(token_repo.debit_account, user_id, reward.token_cost)
    except ValueError:
        raise InsufficientTokensError("Not enough tokens")

    redemption = None
    try:
        redemption = await call_store(reward_repo.create_redemption, user_id, reward.id)
        await call_store(
            token_repo.insert_transaction,
            user_id=user_id,
            amount=reward.token_cost,
            description=f"Redeemed: {reward.title}",
            kind=SPENT,
            source_type=SOURCE_REWARD_REDEMPTION,
            source_id=redemption.id,
        )
    except Exception as e:
        logger.error("Redemption of reward {} by user {} failed after the debit (redemption={}): {}",
                     reward.id, user_id, redemption.id if redemption else None, e)
        await _undo_redemption(reward_repo, token_repo, user_id, reward, redemption)
        raise

    logger.info("User {} redeemed reward {} for {} tokens", user_id, reward.id, reward.token_cost)
    return RedemptionResult(redemption=redemption, reward=reward, account=updated)


async def _undo_redemption(reward_repo, token_repo, user_id, reward, redemption) -> None:
    if redemption is not None:
        try:
            await call_store(reward_repo.set_redemption_status, redemption.id, "cancelled")
        except Exception as e:
            logger.error("Redemption {} left pending without a ledger entry: {}", redemption.id, e)
    try:
        await call_store(token_repo.credit_account, user_id, reward.token_cost)
    except Exception as e:
        # журнал без записи spent: reconcile_balance вернёт токены
        logger.error("Refund of {} tokens to user {} failed, run reconcile: {}", reward.token_cost, user_id, e)
