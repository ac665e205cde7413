from typing import Dict, List, Optional, Tuple
import uuid
import logging
from sqlalchemy.orm import Session
from sqlalchemy import or_

from kinship.core.exceptions import ForbiddenError, InvalidInputError, NotFoundError
from kinship.core.pagination import page_offset
from kinship.db.session import utcnow
from kinship.modules.friendships.models.friendship import make_pair_key
from kinship.modules.messages.models.message import Conversation, Message
from kinship.modules.messages.schemas.message import (
    Conversation as ConversationSchema,
    LastMessage,
    Message as MessageSchema,
)
from kinship.modules.posts.services.post import clean_content
from kinship.modules.user_management.schemas.user import UserSummary
from kinship.modules.user_management.services.user import get_user, get_users_by_ids

logger = logging.getLogger(__name__)

def _participants(conversation: Conversation) -> Tuple[str, str]:
    return conversation.participant_one_id, conversation.participant_two_id

def get_conversation(db: Session, conversation_id: str) -> Optional[Conversation]:
    return db.query(Conversation).filter(Conversation.id == conversation_id).first()

def ensure_participant(conversation: Conversation, user_id: str) -> None:
    if user_id not in _participants(conversation):
        raise ForbiddenError("You are not part of this conversation")

def get_or_create_conversation(db: Session, user_id: str, recipient_id: Optional[str]) -> Conversation:
    """The pair's conversation, created on first use"""
    if not recipient_id:
        raise InvalidInputError("Recipient ID is required")
    if recipient_id == user_id:
        raise InvalidInputError("Cannot create conversation with yourself")
    if not get_user(db, recipient_id):
        raise NotFoundError("User not found")

    pair_key = make_pair_key(user_id, recipient_id)
    conversation = db.query(Conversation).filter(Conversation.pair_key == pair_key).first()
    if conversation is None:
        conversation = Conversation(
            id=str(uuid.uuid4()),
            participant_one_id=user_id,
            participant_two_id=recipient_id,
            pair_key=pair_key,
        )
        db.add(conversation)
        db.commit()
        db.refresh(conversation)
        logger.info(f"Created conversation {conversation.id}")
    return conversation

def get_conversations(db: Session, user_id: str) -> List[Conversation]:
    """Conversations of the user, most recently active first"""
    return (
        db.query(Conversation)
        .filter(or_(Conversation.participant_one_id == user_id, Conversation.participant_two_id == user_id))
        .order_by(Conversation.last_activity.desc(), Conversation.id.desc())
        .all()
    )

def count_unread(db: Session, conversation_id: str, user_id: str) -> int:
    """Messages from the other participant that the user has not read"""
    messages = (
        db.query(Message)
        .filter(Message.conversation_id == conversation_id, Message.sender_id != user_id)
        .all()
    )
    return sum(1 for message in messages if user_id not in (message.read_by or []))

def get_messages(db: Session, conversation_id: str, page: int = 1, limit: int = 50) -> Tuple[List[Message], int]:
    """The newest page of messages, returned oldest first for display"""
    query = db.query(Message).filter(Message.conversation_id == conversation_id)
    total = query.count()
    messages = (
        query.order_by(Message.created_at.desc(), Message.id.desc())
        .offset(page_offset(page, limit))
        .limit(limit)
        .all()
    )
    messages.reverse()
    return messages, total

def send_message(db: Session, conversation: Conversation, sender_id: str, content: str) -> Message:
    content = clean_content(content, label="Message content")
    now = utcnow()
    message = Message(
        id=str(uuid.uuid4()),
        conversation_id=conversation.id,
        sender_id=sender_id,
        content=content,
        read_by=[sender_id],
        created_at=now,
    )
    db.add(message)
    db.flush()

    conversation.last_message_id = message.id
    conversation.last_activity = now
    db.commit()
    db.refresh(message)
    return message

def mark_as_read(db: Session, conversation: Conversation, user_id: str) -> int:
    """Add the user to read_by on every message from the other side; returns how many changed"""
    messages = (
        db.query(Message)
        .filter(Message.conversation_id == conversation.id, Message.sender_id != user_id)
        .all()
    )
    updated = 0
    for message in messages:
        read_by = list(message.read_by or [])
        if user_id not in read_by:
            read_by.append(user_id)
            message.read_by = read_by
            updated += 1
    db.commit()
    return updated

def to_message_schemas(db: Session, messages: List[Message]) -> List[MessageSchema]:
    users = get_users_by_ids(db, [message.sender_id for message in messages])
    result = []
    for message in messages:
        sender = users.get(message.sender_id)
        result.append(MessageSchema(
            id=message.id,
            conversation_id=message.conversation_id,
            sender_id=message.sender_id,
            sender=UserSummary.model_validate(sender) if sender else None,
            content=message.content,
            read_by=list(message.read_by or []),
            created_at=message.created_at,
        ))
    return result

def to_conversation_schema(db: Session, conversation: Conversation, user_id: str,
                           users: Optional[Dict] = None) -> ConversationSchema:
    if users is None:
        users = get_users_by_ids(db, _participants(conversation))

    participants = [
        UserSummary.model_validate(users[participant_id])
        for participant_id in _participants(conversation)
        if participant_id in users
    ]
    other = next((p for p in participants if p.id != user_id), None)

    last_message = None
    if conversation.last_message_id:
        message = db.query(Message).filter(Message.id == conversation.last_message_id).first()
        if message:
            last_message = LastMessage(
                id=message.id,
                content=message.content,
                sender_id=message.sender_id,
                created_at=message.created_at,
            )

    return ConversationSchema(
        id=conversation.id,
        participants=participants,
        other_participant=other,
        last_message=last_message,
        last_activity=conversation.last_activity,
        unread_count=count_unread(db, conversation.id, user_id),
        created_at=conversation.created_at,
        updated_at=conversation.updated_at,
    )

def list_conversation_schemas(db: Session, user_id: str) -> List[ConversationSchema]:
    conversations = get_conversations(db, user_id)
    user_ids = [uid for conversation in conversations for uid in _participants(conversation)]
    users = get_users_by_ids(db, user_ids)
    return [to_conversation_schema(db, conversation, user_id, users) for conversation in conversations]
