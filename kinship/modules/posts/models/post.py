from sqlalchemy import Boolean, Column, String, DateTime, Text, Integer, ForeignKey, JSON, Index

from kinship.db.session import Base, utcnow

class Post(Base):
    """Post published inside a group"""
    __tablename__ = "posts"

    id = Column(String, primary_key=True, index=True)
    group_id = Column(String, ForeignKey("groups.id"), nullable=False)
    author_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)
    content = Column(Text, nullable=False)
    # Set of user ids stored as a JSON array; like_count is written with it
    likes = Column(JSON, default=list, nullable=False)
    like_count = Column(Integer, default=0, nullable=False)
    comment_count = Column(Integer, default=0, nullable=False)
    is_edited = Column(Boolean, default=False)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    __table_args__ = (
        Index("ix_posts_group_created", "group_id", "created_at"),
    )
