from dataclasses import dataclass
from typing import Optional, Tuple

MAX_LEVEL = 5

# (порог, уровень), проверяются сверху вниз, первое совпадение выигрывает
LEVEL_THRESHOLDS: Tuple[Tuple[int, int], ...] = (
    (500, 5),
    (300, 4),
    (150, 3),
    (50, 2),
)


def level_for_balance(balance: int) -> int:
    for threshold, level in LEVEL_THRESHOLDS:
        if balance >= threshold:
            return level
    return 1


def level_floor(level: int) -> int:
    for threshold, lvl in LEVEL_THRESHOLDS:
        if lvl == level:
            return threshold
    return 0


def next_level_target(level: int) -> Optional[int]:
    if level >= MAX_LEVEL:
        return None
    return level_floor(level + 1)


@dataclass
class TokenAccount:
    user_id: int
    balance: int
    level: int
    updated_at: Optional[str] = None
