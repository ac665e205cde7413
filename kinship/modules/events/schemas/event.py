from typing import Optional, List
from datetime import datetime
from pydantic import BaseModel, Field

from kinship.core.pagination import Pagination
from kinship.modules.user_management.schemas.user import UserSummary

class EventCreate(BaseModel):
    title: str = Field(..., max_length=200)
    description: str = Field(..., max_length=2000)
    start_date: datetime
    end_date: datetime
    location: Optional[str] = Field(None, max_length=200)
    is_virtual: bool = False
    virtual_link: Optional[str] = Field(None, max_length=500)
    max_attendees: Optional[int] = None
    group_id: str

class EventUpdate(BaseModel):
    title: Optional[str] = Field(None, max_length=200)
    description: Optional[str] = Field(None, max_length=2000)
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    location: Optional[str] = Field(None, max_length=200)
    is_virtual: Optional[bool] = None
    virtual_link: Optional[str] = Field(None, max_length=500)
    max_attendees: Optional[int] = None

class GroupRef(BaseModel):
    id: str
    name: str

class Event(BaseModel):
    """Event returned to client"""
    id: str
    title: str
    description: str
    start_date: datetime
    end_date: datetime
    location: Optional[str] = None
    is_virtual: bool
    virtual_link: Optional[str] = None
    max_attendees: Optional[int] = None
    group_id: str
    group: Optional[GroupRef] = None
    organizer: Optional[UserSummary] = None
    attendee_count: int
    going_count: int
    maybe_count: int
    not_going_count: int
    created_at: datetime
    updated_at: datetime

class EventDetail(Event):
    user_attendance: Optional[str] = None

class EventList(BaseModel):
    events: List[Event]
    pagination: Pagination

class AttendanceUpdate(BaseModel):
    status: Optional[str] = None

class AttendanceResponse(BaseModel):
    message: str
    status: str
