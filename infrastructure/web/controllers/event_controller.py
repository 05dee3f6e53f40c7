import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from core.entities.collection_event import CollectionEvent
from core.entities.user import User
from core.use_cases.event_use_cases import (
    EventNotFoundError,
    create_event,
    delete_event,
    get_event,
    list_events,
    update_event,
)
from infrastructure.db.sqlite_events import SQLiteEventRepository
from infrastructure.web.dependencies import get_event_repo, require_admin


router = APIRouter(prefix="/events", tags=["events"])


class EventRequest(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    location: str = Field(..., min_length=1, max_length=200)
    date: datetime.date
    time_range: Optional[str] = None
    status: str = "active"  # active | completed | cancelled
    participants: int = Field(0, ge=0)
    waste_small: int = Field(0, ge=0)
    waste_medium: int = Field(0, ge=0)
    waste_large: int = Field(0, ge=0)

class EventResponse(BaseModel):
    id: int
    title: str
    location: str
    date: str
    time_range: Optional[str] = None
    status: str
    participants: int
    waste_small: int
    waste_medium: int
    waste_large: int
    created_at: str


def _to_response(event: CollectionEvent) -> EventResponse:
    return EventResponse(**vars(event))

def _fields(payload: EventRequest) -> dict:
    fields = payload.model_dump()
    fields["date"] = payload.date.isoformat()
    return fields


@router.get("", response_model=List[EventResponse])
async def get_events(status: Optional[str] = None, repo: SQLiteEventRepository = Depends(get_event_repo)):
    try:
        events = await list_events(repo, status)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return [_to_response(e) for e in events]

@router.get("/{event_id}", response_model=EventResponse)
async def get_one(event_id: int, repo: SQLiteEventRepository = Depends(get_event_repo)):
    try:
        return _to_response(await get_event(repo, event_id))
    except EventNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))

@router.post("", response_model=EventResponse, status_code=201)
async def add_event(
    payload: EventRequest,
    admin: User = Depends(require_admin),
    repo: SQLiteEventRepository = Depends(get_event_repo),
):
    try:
        event = await create_event(repo, **_fields(payload))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return _to_response(event)

@router.put("/{event_id}", response_model=EventResponse)
async def edit_event(
    event_id: int,
    payload: EventRequest,
    admin: User = Depends(require_admin),
    repo: SQLiteEventRepository = Depends(get_event_repo),
):
    try:
        event = await update_event(repo, event_id, **_fields(payload))
    except EventNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return _to_response(event)

@router.delete("/{event_id}", status_code=204)
async def remove_event(
    event_id: int,
    admin: User = Depends(require_admin),
    repo: SQLiteEventRepository = Depends(get_event_repo),
):
    try:
        await delete_event(repo, event_id)
    except EventNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
