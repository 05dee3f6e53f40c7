from abc import ABC, abstractmethod
from typing import Optional


class IdentityProvider(ABC):
    """Кто сейчас аутентифицирован в сессии."""

    @abstractmethod
    def current_email(self) -> Optional[str]: ...
