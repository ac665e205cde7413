from typing import Optional, List
from datetime import datetime
from pydantic import BaseModel, Field, field_validator

from kinship.core.pagination import Pagination
from kinship.modules.user_management.schemas.user import UserSummary

class GroupBase(BaseModel):
    name: str = Field(..., min_length=3, max_length=100)
    description: str = Field(..., min_length=10, max_length=500)
    category: str
    is_private: bool = False
    location: Optional[str] = Field(None, max_length=100)
    tags: List[str] = []
    rules: Optional[str] = None

    @field_validator("name", "description")
    @classmethod
    def strip_text(cls, v):
        return v.strip()

    @field_validator("tags")
    @classmethod
    def clean_tags(cls, v):
        return [tag.strip().lower() for tag in v if tag and tag.strip()]

class GroupCreate(GroupBase):
    pass

class GroupUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=3, max_length=100)
    description: Optional[str] = Field(None, min_length=10, max_length=500)
    category: Optional[str] = None
    is_private: Optional[bool] = None
    location: Optional[str] = Field(None, max_length=100)
    tags: Optional[List[str]] = None
    rules: Optional[str] = None

class Group(BaseModel):
    """Group returned to client"""
    id: str
    name: str
    description: str
    category: str
    is_private: bool
    location: Optional[str] = None
    tags: List[str] = []
    rules: Optional[str] = None
    created_by: str
    member_count: int
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True

class Membership(BaseModel):
    id: str
    group_id: str
    user_id: str
    role: str
    is_active: bool
    joined_at: datetime

    class Config:
        from_attributes = True

class GroupDetail(Group):
    user_membership: Optional[Membership] = None

class GroupList(BaseModel):
    groups: List[Group]
    pagination: Pagination

class Member(UserSummary):
    role: str
    joined_at: datetime

class MemberList(BaseModel):
    members: List[Member]
    total: int

class CategoryList(BaseModel):
    categories: List[str]
