from abc import ABC, abstractmethod
from typing import Optional, List
from core.entities.collection_event import CollectionEvent


class EventRepository(ABC):
    @abstractmethod
    def create_event(self, title: str, location: str, date: str, time_range: Optional[str], status: str,
                     participants: int, waste_small: int, waste_medium: int, waste_large: int) -> CollectionEvent:...

    @abstractmethod
    def get_event(self, event_id: int) -> Optional[CollectionEvent]:...

    @abstractmethod
    def update_event(self, event_id: int, title: str, location: str, date: str, time_range: Optional[str],
                     status: str, participants: int, waste_small: int, waste_medium: int,
                     waste_large: int) -> Optional[CollectionEvent]:...

    @abstractmethod
    def delete_event(self, event_id: int) -> bool:...

    @abstractmethod
    def list_events(self, status: Optional[str] = None) -> List[CollectionEvent]:...
