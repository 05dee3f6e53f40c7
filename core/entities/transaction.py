from dataclasses import dataclass
from typing import Optional

EARNED = "earned"
SPENT = "spent"

SOURCE_WASTE_REPORT = "waste_report"
SOURCE_REWARD_REDEMPTION = "reward_redemption"


@dataclass
class TokenTransaction:
    id: Optional[int]
    user_id: int
    amount: int             # всегда > 0, направление задаёт kind
    description: str
    kind: str               # "earned" | "spent"
    source_type: str        # "waste_report" | "reward_redemption"
    created_at: str
    source_id: Optional[int] = None

    @property
    def signed_amount(self) -> int:
        return self.amount if self.kind == EARNED else -self.amount
