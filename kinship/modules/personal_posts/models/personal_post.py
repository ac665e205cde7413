from sqlalchemy import Boolean, Column, String, DateTime, Text, Integer, ForeignKey, JSON, Index

from kinship.db.session import Base, utcnow

class PersonalPost(Base):
    """Post written on a user's wall; target_user_id is the wall owner"""
    __tablename__ = "personal_posts"

    id = Column(String, primary_key=True, index=True)
    author_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)
    target_user_id = Column(String, ForeignKey("users.id"), nullable=False)
    content = Column(Text, nullable=False)
    likes = Column(JSON, default=list, nullable=False)
    like_count = Column(Integer, default=0, nullable=False)
    comment_count = Column(Integer, default=0, nullable=False)
    is_edited = Column(Boolean, default=False)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    __table_args__ = (
        Index("ix_personal_posts_target_created", "target_user_id", "created_at"),
    )
