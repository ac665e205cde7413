from sqlalchemy import Boolean, Column, String, DateTime, Text, Integer, ForeignKey, UniqueConstraint, CheckConstraint, Index

from kinship.db.session import Base, utcnow

ATTENDANCE_STATUSES = ("going", "maybe", "not_going")

class Event(Base):
    __tablename__ = "events"

    id = Column(String, primary_key=True, index=True)
    group_id = Column(String, ForeignKey("groups.id"), nullable=False)
    organizer_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=False)
    start_date = Column(DateTime, nullable=False, index=True)
    end_date = Column(DateTime, nullable=False)
    location = Column(String(200), nullable=True)
    is_virtual = Column(Boolean, default=False)
    virtual_link = Column(String(500), nullable=True)
    max_attendees = Column(Integer, nullable=True)

    # Denormalized from event_attendance; attendee_count is going + maybe
    attendee_count = Column(Integer, default=0, nullable=False)
    going_count = Column(Integer, default=0, nullable=False)
    maybe_count = Column(Integer, default=0, nullable=False)
    not_going_count = Column(Integer, default=0, nullable=False)

    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    __table_args__ = (
        CheckConstraint("end_date > start_date", name="event_window_ordered"),
        Index("ix_events_group_start", "group_id", "start_date"),
    )

class EventAttendance(Base):
    __tablename__ = "event_attendance"

    id = Column(String, primary_key=True, index=True)
    event_id = Column(String, ForeignKey("events.id"), nullable=False)
    user_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)
    status = Column(String, nullable=False)  # going, maybe, not_going
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    __table_args__ = (
        UniqueConstraint("event_id", "user_id", name="unique_event_attendance"),
        Index("ix_event_attendance_event_status", "event_id", "status"),
    )
