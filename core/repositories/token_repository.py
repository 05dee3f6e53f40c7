from abc import ABC, abstractmethod
from typing import Optional, List, Tuple
from core.entities.token_account import TokenAccount
from core.entities.transaction import TokenTransaction


class TokenRepository(ABC):
    """user_tokens + token_transactions."""

    @abstractmethod
    def insert_transaction(self, user_id: int, amount: int, description: str, kind: str,
                           source_type: str, source_id: Optional[int] = None) -> TokenTransaction:...

    @abstractmethod
    def list_transactions(self, user_id: int, limit: int = 100, offset: int = 0) -> List[TokenTransaction]:...

    @abstractmethod
    def ledger_totals(self, user_id: int) -> Tuple[int, int]:
        """(earned, spent) по всему журналу пользователя."""

    @abstractmethod
    def get_account(self, user_id: int) -> Optional[TokenAccount]:...

    @abstractmethod
    def credit_account(self, user_id: int, amount: int) -> TokenAccount:
        """Создаёт счёт при отсутствии, иначе прибавляет amount и пересчитывает уровень."""

    @abstractmethod
    def debit_account(self, user_id: int, amount: int) -> TokenAccount:...

    @abstractmethod
    def set_balance(self, user_id: int, balance: int) -> TokenAccount:...

    @abstractmethod
    def top_accounts(self, limit: int = 10) -> List[TokenAccount]:...
