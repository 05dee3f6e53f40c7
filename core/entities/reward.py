from dataclasses import dataclass
from typing import Optional


@dataclass
class Reward:
    id: Optional[int]
    title: str
    description: Optional[str]
    token_cost: int
    created_at: str


@dataclass
class Redemption:
    id: Optional[int]
    user_id: int
    reward_id: int
    status: str             # pending | delivered | cancelled
    created_at: str
