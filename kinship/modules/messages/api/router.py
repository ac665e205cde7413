from typing import Any

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from kinship.core.config import settings
from kinship.core.exceptions import NotFoundError
from kinship.core.pagination import build_pagination
from kinship.db.session import get_db
from kinship.deps import get_current_user
from kinship.modules.user_management.models.user import User
from kinship.modules.messages.models.message import Conversation
from kinship.modules.messages.schemas.message import (
    ConversationCreate,
    ConversationList,
    ConversationMessage,
    MessageCreate,
    MessageList,
    MessageSent,
)
from kinship.modules.messages.services.message import (
    ensure_participant,
    get_conversation,
    get_messages,
    get_or_create_conversation,
    list_conversation_schemas,
    mark_as_read,
    send_message,
    to_conversation_schema,
    to_message_schemas,
)

router = APIRouter()

def _validate_conversation(db: Session, conversation_id: str, user_id: str) -> Conversation:
    """Validate conversation exists and the user takes part in it"""
    conversation = get_conversation(db, conversation_id)
    if not conversation:
        raise NotFoundError("Conversation not found")
    ensure_participant(conversation, user_id)
    return conversation

@router.get("", response_model=ConversationList)
def read_conversations(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> Any:
    """Get the caller's conversations; clients re-poll at poll_interval_seconds"""
    conversations = list_conversation_schemas(db, current_user.id)
    return {
        "conversations": conversations,
        "total": len(conversations),
        "poll_interval_seconds": settings.MESSAGE_POLL_INTERVAL_SECONDS,
    }

@router.post("", response_model=ConversationMessage, status_code=status.HTTP_201_CREATED)
def open_conversation(
    *,
    db: Session = Depends(get_db),
    conversation_in: ConversationCreate,
    current_user: User = Depends(get_current_user),
) -> Any:
    """Create or get the conversation with another user"""
    conversation = get_or_create_conversation(db, current_user.id, conversation_in.recipient_id)
    return {
        "message": "Conversation ready",
        "conversation": to_conversation_schema(db, conversation, current_user.id),
    }

@router.get("/{conversation_id}/messages", response_model=MessageList)
def read_messages(
    conversation_id: str,
    db: Session = Depends(get_db),
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=100),
    current_user: User = Depends(get_current_user),
) -> Any:
    conversation = _validate_conversation(db, conversation_id, current_user.id)
    messages, total = get_messages(db, conversation.id, page=page, limit=limit)
    return {
        "messages": to_message_schemas(db, messages),
        "pagination": build_pagination(page, limit, total),
    }

@router.post("/{conversation_id}/messages", response_model=MessageSent, status_code=status.HTTP_201_CREATED)
def create_message(
    *,
    db: Session = Depends(get_db),
    conversation_id: str,
    message_in: MessageCreate,
    current_user: User = Depends(get_current_user),
) -> Any:
    conversation = _validate_conversation(db, conversation_id, current_user.id)
    message = send_message(db, conversation, current_user.id, message_in.content)
    return {"message": "Message sent successfully", "data": to_message_schemas(db, [message])[0]}

@router.post("/{conversation_id}/read")
def read_all_messages(
    conversation_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> Any:
    """Mark every message from the other participant as read"""
    conversation = _validate_conversation(db, conversation_id, current_user.id)
    updated = mark_as_read(db, conversation, current_user.id)
    return {"message": "Messages marked as read", "updated": updated}
