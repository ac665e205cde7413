from sqlalchemy import Column, String, DateTime, Text, ForeignKey, JSON, UniqueConstraint, Index

from kinship.db.session import Base, utcnow

# Direct conversations only: exactly two participants, one row per pair
class Conversation(Base):
    __tablename__ = "conversations"

    id = Column(String, primary_key=True, index=True)
    participant_one_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)
    participant_two_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)
    pair_key = Column(String, nullable=False)
    last_message_id = Column(String, nullable=True)
    last_activity = Column(DateTime, default=utcnow, index=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    __table_args__ = (
        UniqueConstraint("pair_key", name="unique_conversation_pair"),
    )

class Message(Base):
    __tablename__ = "messages"

    id = Column(String, primary_key=True, index=True)
    conversation_id = Column(String, ForeignKey("conversations.id"), nullable=False)
    sender_id = Column(String, ForeignKey("users.id"), nullable=False)
    content = Column(Text, nullable=False)
    read_by = Column(JSON, default=list, nullable=False)
    created_at = Column(DateTime, default=utcnow)

    __table_args__ = (
        Index("ix_messages_conversation_created", "conversation_id", "created_at"),
    )
