from typing import Optional, List
from datetime import datetime
from pydantic import BaseModel, Field

from kinship.core.pagination import Pagination
from kinship.modules.user_management.schemas.user import UserSummary

class CommentCreate(BaseModel):
    content: str = Field(..., max_length=2000)
    parent_comment_id: Optional[str] = None

class Comment(BaseModel):
    """Comment returned to client"""
    id: str
    post_id: str
    parent_comment_id: Optional[str] = None
    author: Optional[UserSummary] = None
    content: str
    likes: List[str] = []
    like_count: int
    is_edited: bool
    created_at: datetime
    updated_at: datetime

class CommentMessage(BaseModel):
    message: str
    comment: Comment

class CommentList(BaseModel):
    comments: List[Comment]
    pagination: Pagination
