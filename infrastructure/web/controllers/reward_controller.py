from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from core.entities.reward import Reward
from core.entities.user import User
from core.use_cases.reward_use_cases import (
    InsufficientTokensError,
    RewardNotFoundError,
    create_reward,
    list_rewards,
    redeem_reward,
)
from infrastructure.db.sqlite_rewards import SQLiteRewardRepository
from infrastructure.db.sqlite_tokens import SQLiteTokenRepository
from infrastructure.web.dependencies import get_current_user, get_reward_repo, get_token_repo, require_admin


router = APIRouter(prefix="/rewards", tags=["rewards"])


class RewardRequest(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    token_cost: int = Field(..., gt=0)

class RewardResponse(BaseModel):
    id: int
    title: str
    description: Optional[str] = None
    token_cost: int
    created_at: str

class RedeemResponse(BaseModel):
    redemption_id: int
    reward_id: int
    status: str
    spent: int
    balance: int
    level: int


def _to_response(reward: Reward) -> RewardResponse:
    return RewardResponse(**vars(reward))


@router.get("", response_model=List[RewardResponse])
async def get_rewards(repo: SQLiteRewardRepository = Depends(get_reward_repo)):
    return [_to_response(r) for r in await list_rewards(repo)]

@router.post("", response_model=RewardResponse, status_code=201)
async def add_reward(
    payload: RewardRequest,
    admin: User = Depends(require_admin),
    repo: SQLiteRewardRepository = Depends(get_reward_repo),
):
    try:
        reward = await create_reward(repo, payload.title, payload.token_cost, payload.description)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return _to_response(reward)

@router.post("/{reward_id}/redeem", response_model=RedeemResponse)
async def redeem(
    reward_id: int,
    current_user: User = Depends(get_current_user),
    reward_repo: SQLiteRewardRepository = Depends(get_reward_repo),
    token_repo: SQLiteTokenRepository = Depends(get_token_repo),
):
    try:
        result = await redeem_reward(reward_repo, token_repo, current_user.id, reward_id)
    except RewardNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except InsufficientTokensError as e:
        raise HTTPException(status_code=402, detail=str(e))
    return RedeemResponse(
        redemption_id=result.redemption.id,
        reward_id=result.reward.id,
        status=result.redemption.status,
        spent=result.reward.token_cost,
        balance=result.account.balance,
        level=result.account.level,
    )
