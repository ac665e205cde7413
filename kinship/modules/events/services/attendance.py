"""
RSVP state machine.

A user has at most one attendance row per event. Its absence is the
``none`` state; otherwise the row holds going, maybe or not_going. Every
transition writes the attendance row first and then moves the event
counters through ``apply_attendance_transition``.

The capacity check reads ``going_count`` and then writes without a lock,
so two requests racing for the last seat can both be accepted. Run
``recount_event`` to see the true numbers after such a race.
"""
from typing import Optional
import uuid
import logging
from sqlalchemy.orm import Session

from kinship.core.exceptions import InvalidInputError
from kinship.modules.counters.services.counters import apply_attendance_transition
from kinship.modules.events.models.event import Event, EventAttendance, ATTENDANCE_STATUSES

logger = logging.getLogger(__name__)

def get_attendance(db: Session, event_id: str, user_id: str) -> Optional[EventAttendance]:
    return (
        db.query(EventAttendance)
        .filter(EventAttendance.event_id == event_id, EventAttendance.user_id == user_id)
        .first()
    )

def _check_capacity(event: Event, previous: Optional[str]) -> None:
    # Someone already going keeps their seat
    if previous == "going" or event.max_attendees is None:
        return
    if event.going_count >= event.max_attendees:
        logger.warning(f"Event {event.id} is full ({event.going_count}/{event.max_attendees})")
        raise InvalidInputError("Event is at full capacity")

def set_attendance(db: Session, event: Event, user_id: str, status: Optional[str]) -> EventAttendance:
    """Move the user to the given status, creating the attendance row if needed"""
    if status not in ATTENDANCE_STATUSES:
        raise InvalidInputError("Valid status is required (going, maybe, or not_going)")

    attendance = get_attendance(db, event.id, user_id)
    previous = attendance.status if attendance else None

    if status == "going":
        _check_capacity(event, previous)

    if attendance is not None:
        attendance.status = status
    else:
        attendance = EventAttendance(
            id=str(uuid.uuid4()),
            event_id=event.id,
            user_id=user_id,
            status=status,
        )
        db.add(attendance)

    db.flush()
    apply_attendance_transition(db, event.id, previous, status)
    db.commit()
    db.refresh(attendance)
    return attendance

def remove_attendance(db: Session, event: Event, user_id: str) -> None:
    """Delete the user's attendance row and take it out of the counters"""
    attendance = get_attendance(db, event.id, user_id)
    if attendance is None:
        raise InvalidInputError("No attendance record found")

    previous = attendance.status
    db.delete(attendance)
    db.flush()
    apply_attendance_transition(db, event.id, previous, None)
    db.commit()
