from typing import Optional, List
from datetime import datetime
from pydantic import BaseModel, Field

from kinship.core.pagination import Pagination
from kinship.modules.user_management.schemas.user import UserSummary

class ConversationCreate(BaseModel):
    recipient_id: Optional[str] = None

class MessageCreate(BaseModel):
    content: str = Field(..., max_length=2000)

class Message(BaseModel):
    """Direct message returned to client"""
    id: str
    conversation_id: str
    sender_id: str
    sender: Optional[UserSummary] = None
    content: str
    read_by: List[str] = []
    created_at: datetime

class LastMessage(BaseModel):
    id: str
    content: str
    sender_id: str
    created_at: datetime

class Conversation(BaseModel):
    id: str
    participants: List[UserSummary]
    other_participant: Optional[UserSummary] = None
    last_message: Optional[LastMessage] = None
    last_activity: datetime
    unread_count: int = 0
    created_at: datetime
    updated_at: datetime

class ConversationList(BaseModel):
    conversations: List[Conversation]
    total: int
    poll_interval_seconds: int

class ConversationMessage(BaseModel):
    message: str
    conversation: Conversation

class MessageList(BaseModel):
    messages: List[Message]
    pagination: Pagination

class MessageSent(BaseModel):
    message: str
    data: Message
