from sqlalchemy import Boolean, Column, String, DateTime, Text, Integer, ForeignKey, JSON, UniqueConstraint, CheckConstraint, Index

from kinship.db.session import Base, utcnow

GROUP_CATEGORIES = (
    "technology", "sports", "hobbies", "education", "business",
    "social", "health", "arts", "other",
)

MEMBERSHIP_ROLES = ("owner", "admin", "moderator", "member")

class Group(Base):
    __tablename__ = "groups"

    id = Column(String, primary_key=True, index=True)
    name = Column(String(100), nullable=False, index=True)
    description = Column(String(500), nullable=False)
    category = Column(String, nullable=False, index=True)
    is_private = Column(Boolean, default=False)
    rules = Column(Text, nullable=True)
    location = Column(String(100), nullable=True)
    tags = Column(JSON, default=list)
    created_by = Column(String, ForeignKey("users.id"), nullable=False)
    # Denormalized: number of active memberships
    member_count = Column(Integer, default=1, nullable=False)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    __table_args__ = (
        CheckConstraint("member_count >= 0", name="group_member_count_non_negative"),
    )

# Leaving flips is_active; a membership row is never duplicated for the same pair
class GroupMembership(Base):
    __tablename__ = "group_memberships"

    id = Column(String, primary_key=True, index=True)
    group_id = Column(String, ForeignKey("groups.id"), nullable=False)
    user_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)
    role = Column(String, default="member", nullable=False)  # owner, admin, moderator, member
    is_active = Column(Boolean, default=True, nullable=False)
    joined_at = Column(DateTime, default=utcnow)

    __table_args__ = (
        UniqueConstraint("group_id", "user_id", name="unique_group_membership"),
        Index("ix_group_memberships_group_active", "group_id", "is_active"),
    )
