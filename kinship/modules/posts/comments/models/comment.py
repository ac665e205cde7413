from sqlalchemy import Boolean, Column, String, DateTime, Text, Integer, ForeignKey, JSON, Index

from kinship.db.session import Base, utcnow

class Comment(Base):
    __tablename__ = "comments"

    id = Column(String, primary_key=True, index=True)
    post_id = Column(String, ForeignKey("posts.id"), nullable=False)
    author_id = Column(String, ForeignKey("users.id"), nullable=False)
    parent_comment_id = Column(String, ForeignKey("comments.id"), nullable=True, index=True)
    content = Column(Text, nullable=False)
    likes = Column(JSON, default=list, nullable=False)
    like_count = Column(Integer, default=0, nullable=False)
    is_edited = Column(Boolean, default=False)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    __table_args__ = (
        Index("ix_comments_post_created", "post_id", "created_at"),
    )
