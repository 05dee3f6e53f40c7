from datetime import date as date_type
from typing import List, Optional

from loguru import logger

from core.entities.collection_event import EVENT_STATUSES, CollectionEvent
from core.repositories.event_repository import EventRepository
from core.use_cases.store_calls import call_store


class EventNotFoundError(LookupError):
    pass


def _clean_fields(title: str, location: str, date: str, time_range: Optional[str], status: str,
                  participants: int, waste_small: int, waste_medium: int, waste_large: int) -> dict:
    title = (title or "").strip()
    location = (location or "").strip()
    if not title:
        raise ValueError("Title is required")
    if not location:
        raise ValueError("Location is required")
    try:
        day = date_type.fromisoformat(str(date))
    except ValueError:
        raise ValueError(f"Invalid date: {date!r}, expected YYYY-MM-DD")
    status = (status or "active").strip().lower()
    if status not in EVENT_STATUSES:
        raise ValueError("Invalid status")
    counts = {
        "participants": participants or 0,
        "waste_small": waste_small or 0,
        "waste_medium": waste_medium or 0,
        "waste_large": waste_large or 0,
    }
    for name, value in counts.items():
        if int(value) < 0:
            raise ValueError(f"{name} must not be negative")
    return dict(
        title=title,
        location=location,
        date=day.isoformat(),
        time_range=(time_range or "").strip() or None,
        status=status,
        **{name: int(value) for name, value in counts.items()},
    )


async def create_event(
    repo: EventRepository,
    title: str,
    location: str,
    date: str,
    time_range: Optional[str] = None,
    status: str = "active",
    participants: int = 0,
    waste_small: int = 0,
    waste_medium: int = 0,
    waste_large: int = 0,
) -> CollectionEvent:
    fields = _clean_fields(title, location, date, time_range, status,
                           participants, waste_small, waste_medium, waste_large)
    event = await call_store(repo.create_event, **fields)
    logger.info("Collection event {} created for {}", event.id, event.date)
    return event


async def update_event(
    repo: EventRepository,
    event_id: int,
    title: str,
    location: str,
    date: str,
    time_range: Optional[str] = None,
    status: str = "active",
    participants: int = 0,
    waste_small: int = 0,
    waste_medium: int = 0,
    waste_large: int = 0,
) -> CollectionEvent:
    # правка заменяет все поля события целиком
    fields = _clean_fields(title, location, date, time_range, status,
                           participants, waste_small, waste_medium, waste_large)
    event = await call_store(repo.update_event, event_id, **fields)
    if event is None:
        raise EventNotFoundError(f"Event {event_id} not found")
    logger.info("Collection event {} updated, status={}", event_id, event.status)
    return event


async def delete_event(repo: EventRepository, event_id: int) -> None:
    if not await call_store(repo.delete_event, event_id):
        raise EventNotFoundError(f"Event {event_id} not found")
    logger.info("Collection event {} deleted", event_id)


async def get_event(repo: EventRepository, event_id: int) -> CollectionEvent:
    event = await call_store(repo.get_event, event_id)
    if event is None:
        raise EventNotFoundError(f"Event {event_id} not found")
    return event


async def list_events(repo: EventRepository, status: Optional[str] = None) -> List[CollectionEvent]:
    if status is not None and status not in EVENT_STATUSES:
        raise ValueError("Invalid status")
    return await call_store(repo.list_events, status)
