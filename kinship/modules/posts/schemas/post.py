from typing import Optional, List
from datetime import datetime
from pydantic import BaseModel, Field

from kinship.core.pagination import Pagination
from kinship.modules.user_management.schemas.user import UserSummary

class PostCreate(BaseModel):
    content: str = Field(..., max_length=5000)
    group_id: str

class PostUpdate(BaseModel):
    content: str = Field(..., max_length=5000)

class Post(BaseModel):
    """Group post returned to client"""
    id: str
    group_id: str
    author: Optional[UserSummary] = None
    content: str
    likes: List[str] = []
    like_count: int
    comment_count: int
    is_edited: bool
    created_at: datetime
    updated_at: datetime

class PostList(BaseModel):
    posts: List[Post]
    pagination: Pagination

class LikeResponse(BaseModel):
    message: str
    like_count: int

class LikeToggleResponse(BaseModel):
    message: str
    liked: bool
    like_count: int
