from typing import List
from datetime import datetime
from pydantic import BaseModel

class UserSummary(BaseModel):
    """Compact user shape embedded in posts, events, friendships and messages"""
    id: str
    name: str
    email: str

    class Config:
        from_attributes = True

class User(UserSummary):
    """User model returned to client"""
    created_at: datetime

class UserSearchResponse(BaseModel):
    users: List[UserSummary]
    total: int
