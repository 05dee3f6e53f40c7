from abc import ABC, abstractmethod


class AdminProcedure(ABC):
    """Удалённая процедура is_admin(user_id), независимая от CRUD репозиториев."""

    @abstractmethod
    def is_admin(self, user_id: int) -> bool: ...
