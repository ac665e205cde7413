from typing import List, Optional
import uuid
import logging
from sqlalchemy.orm import Session

from kinship.core.exceptions import ForbiddenError, InvalidInputError
from kinship.db.session import utcnow
from kinship.modules.counters.services.counters import apply_member_delta
from kinship.modules.groups.models.group import Group, GroupMembership
from kinship.modules.groups.schemas.group import Member
from kinship.modules.user_management.services.user import get_users_by_ids

logger = logging.getLogger(__name__)

def get_membership(db: Session, group_id: str, user_id: str) -> Optional[GroupMembership]:
    """The single membership row for the pair, active or not"""
    return (
        db.query(GroupMembership)
        .filter(GroupMembership.group_id == group_id, GroupMembership.user_id == user_id)
        .first()
    )

def get_active_membership(db: Session, group_id: str, user_id: str) -> Optional[GroupMembership]:
    membership = get_membership(db, group_id, user_id)
    if membership is None or not membership.is_active:
        return None
    return membership

def is_active_member(db: Session, group_id: str, user_id: str) -> bool:
    return get_active_membership(db, group_id, user_id) is not None

def get_active_group_ids(db: Session, user_id: str) -> List[str]:
    """Ids of every group the user currently belongs to"""
    rows = (
        db.query(GroupMembership.group_id)
        .filter(GroupMembership.user_id == user_id, GroupMembership.is_active == True)
        .all()
    )
    return [row.group_id for row in rows]

def join_group(db: Session, group: Group, user_id: str) -> GroupMembership:
    """Join, or reactivate a previous membership, and bump member_count"""
    membership = get_membership(db, group.id, user_id)

    if membership is not None:
        if membership.is_active:
            raise InvalidInputError("You are already a member of this group")
        membership.is_active = True
        membership.joined_at = utcnow()
        logger.info(f"Reactivated membership of user {user_id} in group {group.id}")
    else:
        membership = GroupMembership(
            id=str(uuid.uuid4()),
            group_id=group.id,
            user_id=user_id,
            role="member",
            is_active=True,
        )
        db.add(membership)
        logger.info(f"User {user_id} joined group {group.id}")

    db.flush()
    apply_member_delta(db, group.id, 1)
    db.commit()
    db.refresh(membership)
    return membership

def leave_group(db: Session, group: Group, user_id: str) -> GroupMembership:
    """Deactivate the membership; owners are refused before any counter changes"""
    membership = get_active_membership(db, group.id, user_id)
    if membership is None:
        raise InvalidInputError("You are not a member of this group")

    if membership.role == "owner":
        logger.warning(f"Owner {user_id} tried to leave group {group.id}")
        raise ForbiddenError("Group owner cannot leave the group. Transfer ownership or delete the group.")

    membership.is_active = False
    db.flush()
    apply_member_delta(db, group.id, -1)
    db.commit()
    db.refresh(membership)
    logger.info(f"User {user_id} left group {group.id}")
    return membership

def get_members(db: Session, group_id: str) -> List[Member]:
    """Active members, earliest joiners first"""
    memberships = (
        db.query(GroupMembership)
        .filter(GroupMembership.group_id == group_id, GroupMembership.is_active == True)
        .order_by(GroupMembership.joined_at.asc(), GroupMembership.id.asc())
        .all()
    )
    users = get_users_by_ids(db, [m.user_id for m in memberships])
    return [
        Member(
            id=m.user_id,
            name=users[m.user_id].name,
            email=users[m.user_id].email,
            role=m.role,
            joined_at=m.joined_at,
        )
        for m in memberships
        if m.user_id in users
    ]
