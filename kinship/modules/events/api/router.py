from typing import Any, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from kinship.core.exceptions import ForbiddenError, NotFoundError
from kinship.core.pagination import build_pagination
from kinship.db.session import get_db
from kinship.deps import get_current_user
from kinship.modules.user_management.models.user import User
from kinship.modules.events.models.event import Event
from kinship.modules.events.schemas.event import (
    AttendanceResponse,
    AttendanceUpdate,
    Event as EventSchema,
    EventCreate,
    EventDetail,
    EventList,
    EventUpdate,
)
from kinship.modules.events.services.attendance import get_attendance, remove_attendance, set_attendance
from kinship.modules.events.services.event import (
    create_event,
    delete_event,
    get_event,
    list_events,
    to_event_schemas,
    update_event,
)

router = APIRouter()

def _validate_event(db: Session, event_id: str) -> Event:
    """Validate event exists and return it or raise NotFoundError"""
    event = get_event(db, event_id)
    if not event:
        raise NotFoundError("Event not found")
    return event

def _validate_organizer(event: Event, user_id: str) -> None:
    if event.organizer_id != user_id:
        raise ForbiddenError("Only the organizer can modify this event")

@router.get("", response_model=EventList)
def read_events(
    db: Session = Depends(get_db),
    group_id: Optional[str] = Query(None),
    upcoming: bool = Query(False),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    current_user: User = Depends(get_current_user),
) -> Any:
    """List events of a group, or of every group the caller belongs to"""
    events, total = list_events(
        db, current_user.id, group_id=group_id, upcoming=upcoming, page=page, limit=limit
    )
    return {
        "events": to_event_schemas(db, events),
        "pagination": build_pagination(page, limit, total),
    }

@router.post("", response_model=EventSchema, status_code=status.HTTP_201_CREATED)
def create_new_event(
    *,
    db: Session = Depends(get_db),
    event_in: EventCreate,
    current_user: User = Depends(get_current_user),
) -> Any:
    event = create_event(db, event_in, current_user.id)
    return to_event_schemas(db, [event])[0]

@router.get("/{event_id}", response_model=EventDetail)
def read_event(
    event_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> Any:
    """Get an event with the caller's RSVP status"""
    event = _validate_event(db, event_id)
    attendance = get_attendance(db, event.id, current_user.id)
    return EventDetail(
        **to_event_schemas(db, [event])[0].model_dump(),
        user_attendance=attendance.status if attendance else None,
    )

@router.put("/{event_id}", response_model=EventSchema)
def update_event_by_id(
    *,
    db: Session = Depends(get_db),
    event_id: str,
    event_in: EventUpdate,
    current_user: User = Depends(get_current_user),
) -> Any:
    event = _validate_event(db, event_id)
    _validate_organizer(event, current_user.id)
    event = update_event(db, event, event_in)
    return to_event_schemas(db, [event])[0]

@router.delete("/{event_id}")
def delete_event_by_id(
    event_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> Any:
    event = _validate_event(db, event_id)
    _validate_organizer(event, current_user.id)
    delete_event(db, event)
    return {"message": "Event deleted successfully"}

@router.post("/{event_id}/attendance", response_model=AttendanceResponse)
def update_attendance(
    *,
    db: Session = Depends(get_db),
    event_id: str,
    attendance_in: AttendanceUpdate,
    current_user: User = Depends(get_current_user),
) -> Any:
    """Set the caller's RSVP status"""
    event = _validate_event(db, event_id)
    attendance = set_attendance(db, event, current_user.id, attendance_in.status)
    return {"message": "Attendance updated successfully", "status": attendance.status}

@router.delete("/{event_id}/attendance")
def delete_attendance(
    event_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> Any:
    """Remove the caller's RSVP"""
    event = _validate_event(db, event_id)
    remove_attendance(db, event, current_user.id)
    return {"message": "Attendance removed successfully"}
