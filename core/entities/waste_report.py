from dataclasses import dataclass
from typing import Dict, Optional

# политика начисления: размер кучи мусора -> токены
WASTE_SIZE_TOKENS: Dict[str, int] = {
    "small": 5,
    "medium": 15,
    "large": 30,
}

REPORT_STATUSES = ("pending", "approved", "rejected", "collected")


def tokens_for_waste_size(waste_size: str) -> int:
    return WASTE_SIZE_TOKENS.get(waste_size, 0)


@dataclass
class WasteReport:
    id: Optional[int]
    user_id: int
    title: str
    description: Optional[str]
    location: Optional[str]
    waste_size: str         # small | medium | large
    status: str             # pending | approved | rejected | collected
    created_at: str
