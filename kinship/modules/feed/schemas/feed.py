from typing import Annotated, List, Literal, Optional, Union
from datetime import datetime
from pydantic import BaseModel, Field

from kinship.core.pagination import Pagination
from kinship.modules.user_management.schemas.user import UserSummary

class FeedGroupRef(BaseModel):
    id: str
    name: str
    description: str

class FeedItemBase(BaseModel):
    id: str
    content: str
    author: Optional[UserSummary] = None
    likes: List[str] = []
    like_count: int
    comment_count: int
    is_edited: bool
    created_at: datetime
    updated_at: datetime

class GroupFeedItem(FeedItemBase):
    type: Literal["group"] = "group"
    group: Optional[FeedGroupRef] = None

class PersonalFeedItem(FeedItemBase):
    type: Literal["personal"] = "personal"
    target_user: Optional[UserSummary] = None

FeedItem = Annotated[Union[GroupFeedItem, PersonalFeedItem], Field(discriminator="type")]

class FeedResponse(BaseModel):
    """Unified feed page returned to client"""
    posts: List[FeedItem]
    pagination: Pagination
