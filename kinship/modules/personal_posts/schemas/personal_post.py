from typing import Optional, List
from datetime import datetime
from pydantic import BaseModel, Field

from kinship.core.pagination import Pagination
from kinship.modules.user_management.schemas.user import UserSummary

class PersonalPostCreate(BaseModel):
    content: str = Field(..., max_length=5000)
    target_user_id: Optional[str] = None

class PersonalPost(BaseModel):
    """Wall post returned to client"""
    id: str
    author: Optional[UserSummary] = None
    target_user: Optional[UserSummary] = None
    content: str
    likes: List[str] = []
    like_count: int
    comment_count: int
    is_edited: bool
    created_at: datetime
    updated_at: datetime

class PersonalPostMessage(BaseModel):
    message: str
    post: PersonalPost

class PersonalPostList(BaseModel):
    posts: List[PersonalPost]
    pagination: Pagination
