from dataclasses import dataclass
from typing import Optional


@dataclass
class AdminMembership:
    id: Optional[int]
    user_id: int
    created_at: str
