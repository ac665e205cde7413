from typing import List, Optional, Tuple
import uuid
import logging
from sqlalchemy.orm import Session
from sqlalchemy import func, or_

from kinship.core.exceptions import ConflictError, InvalidInputError
from kinship.core.pagination import page_offset
from kinship.modules.events.models.event import Event, EventAttendance
from kinship.modules.groups.models.group import Group, GroupMembership, GROUP_CATEGORIES
from kinship.modules.groups.schemas.group import GroupCreate, GroupUpdate
from kinship.modules.posts.comments.models.comment import Comment
from kinship.modules.posts.models.post import Post

logger = logging.getLogger(__name__)

def _validate_category(category: str) -> str:
    category = category.strip().lower()
    if category not in GROUP_CATEGORIES:
        raise InvalidInputError(f"Category must be one of: {', '.join(GROUP_CATEGORIES)}")
    return category

def _ensure_unique_name(db: Session, name: str, exclude_group_id: Optional[str] = None) -> None:
    query = db.query(Group).filter(func.lower(Group.name) == name.lower())
    if exclude_group_id:
        query = query.filter(Group.id != exclude_group_id)
    if query.first():
        raise ConflictError("A group with this name already exists")

def get_group(db: Session, group_id: str) -> Optional[Group]:
    """Get group by ID"""
    return db.query(Group).filter(Group.id == group_id).first()

def list_groups(
    db: Session,
    page: int = 1,
    limit: int = 10,
    category: Optional[str] = None,
    search: Optional[str] = None,
    include_private: bool = True,
) -> Tuple[List[Group], int]:
    """Groups newest first, with the total before paging"""
    query = db.query(Group)
    if category and category != "all":
        query = query.filter(Group.category == category.lower())
    if search:
        pattern = f"%{search.strip()}%"
        query = query.filter(or_(Group.name.ilike(pattern), Group.description.ilike(pattern)))
    if not include_private:
        query = query.filter(Group.is_private == False)

    total = query.count()
    groups = (
        query.order_by(Group.created_at.desc(), Group.id.desc())
        .offset(page_offset(page, limit))
        .limit(limit)
        .all()
    )
    return groups, total

def create_group(db: Session, group_in: GroupCreate, creator_id: str) -> Group:
    """Create a group with its creator as the owning member"""
    category = _validate_category(group_in.category)
    _ensure_unique_name(db, group_in.name)

    group = Group(
        id=str(uuid.uuid4()),
        name=group_in.name,
        description=group_in.description,
        category=category,
        is_private=group_in.is_private,
        location=group_in.location,
        tags=group_in.tags,
        rules=group_in.rules,
        created_by=creator_id,
        member_count=1,
    )
    db.add(group)
    db.add(GroupMembership(
        id=str(uuid.uuid4()),
        group_id=group.id,
        user_id=creator_id,
        role="owner",
        is_active=True,
    ))
    db.commit()
    db.refresh(group)
    logger.info(f"Created group {group.id} owned by {creator_id}")
    return group

def update_group(db: Session, group: Group, group_in: GroupUpdate) -> Group:
    update_data = group_in.model_dump(exclude_unset=True)

    if update_data.get("name") is not None:
        update_data["name"] = update_data["name"].strip()
        _ensure_unique_name(db, update_data["name"], exclude_group_id=group.id)
    if update_data.get("category") is not None:
        update_data["category"] = _validate_category(update_data["category"])

    for field, value in update_data.items():
        setattr(group, field, value)

    db.commit()
    db.refresh(group)
    return group

def delete_group(db: Session, group: Group) -> None:
    """
    Delete group and everything hanging off it: memberships, events with
    their attendance, posts with their comments
    """
    group_id = group.id
    event_ids = [row.id for row in db.query(Event.id).filter(Event.group_id == group_id).all()]
    post_ids = [row.id for row in db.query(Post.id).filter(Post.group_id == group_id).all()]

    db.query(EventAttendance).filter(EventAttendance.event_id.in_(event_ids)).delete(synchronize_session=False)
    db.query(Event).filter(Event.group_id == group_id).delete(synchronize_session=False)
    db.query(Comment).filter(Comment.post_id.in_(post_ids)).delete(synchronize_session=False)
    db.query(Post).filter(Post.group_id == group_id).delete(synchronize_session=False)
    db.query(GroupMembership).filter(GroupMembership.group_id == group_id).delete(synchronize_session=False)

    db.delete(group)
    db.commit()
    logger.info(f"Deleted group {group_id}")
