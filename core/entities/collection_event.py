from dataclasses import dataclass
from typing import Optional

EVENT_STATUSES = ("active", "completed", "cancelled")


@dataclass
class CollectionEvent:
    id: Optional[int]
    title: str
    location: str
    date: str               # YYYY-MM-DD
    time_range: Optional[str]
    status: str             # active | completed | cancelled
    participants: int
    waste_small: int        # собрано куч по размерам
    waste_medium: int
    waste_large: int
    created_at: str
