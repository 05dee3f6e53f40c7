from typing import Optional

from core.entities.user import User
from core.services.identity_provider import IdentityProvider


class SessionIdentityProvider(IdentityProvider):
    """Личность из текущего bearer токена запроса."""
    def __init__(self, user: Optional[User]):
        self.user = user

    def current_email(self) -> Optional[str]:
        return self.user.email if self.user else None
