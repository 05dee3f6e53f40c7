from abc import ABC, abstractmethod
from typing import Optional, List, Dict
from core.entities.waste_report import WasteReport


class ReportRepository(ABC):
    @abstractmethod
    def create_report(self, user_id: int, title: str, description: Optional[str],
                      location: Optional[str], waste_size: str) -> WasteReport:...

    @abstractmethod
    def get_report(self, report_id: int) -> Optional[WasteReport]:...

    @abstractmethod
    def update_status(self, report_id: int, status: str) -> WasteReport:...

    @abstractmethod
    def list_reports(self, user_id: Optional[int] = None, status: Optional[str] = None,
                     limit: int = 100, offset: int = 0) -> List[WasteReport]:...

    @abstractmethod
    def count_by_user(self, status: str) -> Dict[int, int]:...
