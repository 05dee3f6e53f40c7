from abc import ABC, abstractmethod
from typing import Optional, List
from core.entities.admin_membership import AdminMembership


class AdminRepository(ABC):
    @abstractmethod
    def find_membership(self, user_id: int) -> Optional[AdminMembership]:...

    @abstractmethod
    def insert_membership(self, user_id: int) -> AdminMembership:...

    @abstractmethod
    def list_memberships(self) -> List[AdminMembership]:...
