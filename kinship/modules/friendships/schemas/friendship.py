from typing import Optional, List, Literal
from datetime import datetime
from pydantic import BaseModel

from kinship.modules.user_management.schemas.user import UserSummary

class FriendshipRequestCreate(BaseModel):
    recipient_id: str

class FriendshipRequestUpdate(BaseModel):
    action: Literal["accept", "decline"]

class Friendship(BaseModel):
    """Friendship edge returned to client"""
    id: str
    requester: UserSummary
    recipient: UserSummary
    status: str
    created_at: datetime
    updated_at: datetime

class FriendshipMessage(BaseModel):
    message: str
    friendship: Friendship

class Friend(UserSummary):
    friendship_id: str
    friended_at: datetime

class FriendList(BaseModel):
    friends: List[Friend]
    total: int

class FriendRequestItem(BaseModel):
    id: str
    type: Literal["incoming", "outgoing"]
    requester: Optional[UserSummary] = None
    recipient: Optional[UserSummary] = None
    created_at: datetime

class FriendRequestList(BaseModel):
    requests: List[FriendRequestItem]
    total: int

class Suggestion(UserSummary):
    reason: str
    reason_label: str

class SuggestionList(BaseModel):
    suggestions: List[Suggestion]
    total: int
