from dataclasses import dataclass
from typing import Optional


@dataclass
class User:
    id: Optional[int]
    email: str
    password_hash: str
    is_admin: bool          # флаг, который читает процедура is_admin
    created_at: str
    full_name: Optional[str] = None
