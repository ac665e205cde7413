from typing import List, Optional, Tuple
from datetime import datetime, timezone
import uuid
import logging
from sqlalchemy.orm import Session

from kinship.core.exceptions import ForbiddenError, InvalidInputError, NotFoundError
from kinship.core.pagination import page_offset
from kinship.db.session import utcnow
from kinship.modules.events.models.event import Event, EventAttendance
from kinship.modules.events.schemas.event import (
    Event as EventSchema,
    EventCreate,
    EventUpdate,
    GroupRef,
)
from kinship.modules.groups.models.group import Group
from kinship.modules.groups.services.group import get_group
from kinship.modules.groups.services.membership import get_active_group_ids, is_active_member
from kinship.modules.user_management.schemas.user import UserSummary
from kinship.modules.user_management.services.user import get_users_by_ids

logger = logging.getLogger(__name__)

MAX_ATTENDEES_LIMIT = 10000
NULLABLE_FIELDS = ("location", "virtual_link", "max_attendees")

def to_naive_utc(value: datetime) -> datetime:
    """Stored timestamps are naive UTC; convert aware input before comparing"""
    if value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value

def _validate_details(
    start_date: datetime,
    end_date: datetime,
    is_virtual: bool,
    location: Optional[str],
    virtual_link: Optional[str],
    max_attendees: Optional[int],
) -> None:
    if end_date <= start_date:
        raise InvalidInputError("End date must be after start date")
    if is_virtual and not virtual_link:
        raise InvalidInputError("Virtual link is required for virtual events")
    if not is_virtual and not location:
        raise InvalidInputError("Location is required for in-person events")
    if max_attendees is not None and not 1 <= max_attendees <= MAX_ATTENDEES_LIMIT:
        raise InvalidInputError(f"Max attendees must be between 1 and {MAX_ATTENDEES_LIMIT}")

def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    return value.strip() or None

def get_event(db: Session, event_id: str) -> Optional[Event]:
    """Get event by ID"""
    return db.query(Event).filter(Event.id == event_id).first()

def list_events(
    db: Session,
    viewer_id: str,
    group_id: Optional[str] = None,
    upcoming: bool = False,
    page: int = 1,
    limit: int = 10,
) -> Tuple[List[Event], int]:
    """Events of one group, or of every group the viewer is active in, soonest first"""
    query = db.query(Event)
    if group_id:
        query = query.filter(Event.group_id == group_id)
    else:
        group_ids = get_active_group_ids(db, viewer_id)
        if not group_ids:
            return [], 0
        query = query.filter(Event.group_id.in_(group_ids))

    if upcoming:
        query = query.filter(Event.start_date >= utcnow())

    total = query.count()
    events = (
        query.order_by(Event.start_date.asc(), Event.id.asc())
        .offset(page_offset(page, limit))
        .limit(limit)
        .all()
    )
    return events, total

def create_event(db: Session, event_in: EventCreate, organizer_id: str) -> Event:
    """Create an event in a group the organizer belongs to"""
    title = _clean(event_in.title)
    description = _clean(event_in.description)
    if not title or not description:
        raise InvalidInputError("Title, description, start date, end date, and group are required")

    if not get_group(db, event_in.group_id):
        raise NotFoundError("Group not found")
    if not is_active_member(db, event_in.group_id, organizer_id):
        raise ForbiddenError("You must be a member of this group to create events")

    start_date = to_naive_utc(event_in.start_date)
    end_date = to_naive_utc(event_in.end_date)
    if start_date < utcnow():
        raise InvalidInputError("Event start date must be in the future")

    location = _clean(event_in.location)
    virtual_link = _clean(event_in.virtual_link)
    _validate_details(start_date, end_date, event_in.is_virtual, location, virtual_link, event_in.max_attendees)

    event = Event(
        id=str(uuid.uuid4()),
        group_id=event_in.group_id,
        organizer_id=organizer_id,
        title=title,
        description=description,
        start_date=start_date,
        end_date=end_date,
        location=location,
        is_virtual=event_in.is_virtual,
        virtual_link=virtual_link,
        max_attendees=event_in.max_attendees,
        attendee_count=0,
        going_count=0,
        maybe_count=0,
        not_going_count=0,
    )
    db.add(event)
    db.commit()
    db.refresh(event)
    logger.info(f"Created event {event.id} in group {event.group_id}")
    return event

def update_event(db: Session, event: Event, event_in: EventUpdate) -> Event:
    """Apply a partial update, then re-check the time window and location rules"""
    changes = {}
    for field, value in event_in.model_dump(exclude_unset=True).items():
        if isinstance(value, str):
            value = _clean(value)
        elif isinstance(value, datetime):
            value = to_naive_utc(value)
        if value is None and field not in NULLABLE_FIELDS:
            continue
        changes[field] = value

    _validate_details(
        changes.get("start_date", event.start_date),
        changes.get("end_date", event.end_date),
        changes.get("is_virtual", event.is_virtual),
        changes.get("location", event.location),
        changes.get("virtual_link", event.virtual_link),
        changes.get("max_attendees", event.max_attendees),
    )

    for field, value in changes.items():
        setattr(event, field, value)

    db.commit()
    db.refresh(event)
    return event

def delete_event(db: Session, event: Event) -> None:
    """Delete event and its attendance records"""
    event_id = event.id
    db.query(EventAttendance).filter(EventAttendance.event_id == event_id).delete(synchronize_session=False)
    db.delete(event)
    db.commit()
    logger.info(f"Deleted event {event_id}")

def to_event_schemas(db: Session, events: List[Event]) -> List[EventSchema]:
    """Project events with organizer and group references"""
    users = get_users_by_ids(db, [event.organizer_id for event in events])
    group_ids = {event.group_id for event in events}
    groups = {}
    if group_ids:
        groups = {g.id: g for g in db.query(Group).filter(Group.id.in_(list(group_ids))).all()}

    result = []
    for event in events:
        organizer = users.get(event.organizer_id)
        group = groups.get(event.group_id)
        result.append(EventSchema(
            id=event.id,
            title=event.title,
            description=event.description,
            start_date=event.start_date,
            end_date=event.end_date,
            location=event.location,
            is_virtual=bool(event.is_virtual),
            virtual_link=event.virtual_link,
            max_attendees=event.max_attendees,
            group_id=event.group_id,
            group=GroupRef(id=group.id, name=group.name) if group else None,
            organizer=UserSummary.model_validate(organizer) if organizer else None,
            attendee_count=event.attendee_count,
            going_count=event.going_count,
            maybe_count=event.maybe_count,
            not_going_count=event.not_going_count,
            created_at=event.created_at,
            updated_at=event.updated_at,
        ))
    return result
