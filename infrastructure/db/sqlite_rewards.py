import sqlite3
from typing import List, Optional

from core.entities.reward import Redemption, Reward
from core.repositories.reward_repository import RewardRepository
from infrastructure.db.sqlite import SQLiteRepository, commit, store_errors, utcnow


class SQLiteRewardRepository(SQLiteRepository, RewardRepository):

    def _row_to_reward(self, row: sqlite3.Row) -> Reward:
        return Reward(
            id=row["id"],
            title=row["title"],
            description=row["description"],
            token_cost=int(row["token_cost"]),
            created_at=row["created_at"],
        )

    @store_errors
    def create_reward(self, title: str, description: Optional[str], token_cost: int) -> Reward:
        created_at = utcnow()
        cur = self.conn.cursor()
        cur.execute(
            "INSERT INTO rewards (title, description, token_cost, created_at) VALUES (?, ?, ?, ?)",
            (title, description, int(token_cost), created_at),
        )
        commit(self.conn)
        return Reward(id=cur.lastrowid, title=title, description=description,
                      token_cost=int(token_cost), created_at=created_at)

    @store_errors
    def get_reward(self, reward_id: int) -> Optional[Reward]:
        cur = self.conn.cursor()
        cur.execute("SELECT * FROM rewards WHERE id = ?", (int(reward_id),))
        row = cur.fetchone()
        return self._row_to_reward(row) if row else None

    @store_errors
    def list_rewards(self) -> List[Reward]:
        cur = self.conn.cursor()
        cur.execute("SELECT * FROM rewards ORDER BY token_cost ASC, id ASC")
        return [self._row_to_reward(r) for r in cur.fetchall()]

    @store_errors
    def create_redemption(self, user_id: int, reward_id: int) -> Redemption:
        created_at = utcnow()
        cur = self.conn.cursor()
        cur.execute(
            "INSERT INTO redeemed_rewards (user_id, reward_id, status, created_at) VALUES (?, ?, 'pending', ?)",
            (int(user_id), int(reward_id), created_at),
        )
        commit(self.conn)
        return Redemption(id=cur.lastrowid, user_id=user_id, reward_id=reward_id,
                          status="pending", created_at=created_at)

    @store_errors
    def set_redemption_status(self, redemption_id: int, status: str) -> None:
        cur = self.conn.cursor()
        cur.execute("UPDATE redeemed_rewards SET status = ? WHERE id = ?", (status, int(redemption_id)))
        commit(self.conn)
