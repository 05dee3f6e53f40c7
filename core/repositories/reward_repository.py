from abc import ABC, abstractmethod
from typing import Optional, List
from core.entities.reward import Reward, Redemption


class RewardRepository(ABC):
    @abstractmethod
    def create_reward(self, title: str, description: Optional[str], token_cost: int) -> Reward:...

    @abstractmethod
    def get_reward(self, reward_id: int) -> Optional[Reward]:...

    @abstractmethod
    def list_rewards(self) -> List[Reward]:...

    @abstractmethod
    def create_redemption(self, user_id: int, reward_id: int) -> Redemption:...

    @abstractmethod
    def set_redemption_status(self, redemption_id: int, status: str) -> None:...
