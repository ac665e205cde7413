"""
Friend suggestions.

Candidates come from three strategies tried in a fixed order:
people who share an active group with the viewer, then friends of
the viewer's friends, then the newest users on the platform. Anyone
the viewer already has a friendship edge with, in any status, is
never suggested.
"""
from typing import Dict, List, Set
import logging
from sqlalchemy.orm import Session
from sqlalchemy import or_

from kinship.modules.friendships.models.friendship import Friendship
from kinship.modules.friendships.schemas.friendship import Suggestion
from kinship.modules.friendships.services.friendship import get_connected_user_ids
from kinship.modules.groups.models.group import GroupMembership
from kinship.modules.user_management.models.user import User
from kinship.modules.user_management.services.user import get_users_by_ids

logger = logging.getLogger(__name__)

REASON_LABELS = {
    "mutual_groups": "In your groups",
    "friends_of_friends": "Friend of a friend",
    "new_users": "New to the platform",
}
DEFAULT_REASON_LABEL = "Suggested for you"

def get_reason_label(reason: str) -> str:
    return REASON_LABELS.get(reason, DEFAULT_REASON_LABEL)

def _mutual_group_candidates(db: Session, viewer_id: str, excluded: Set[str], limit: int) -> List[str]:
    group_ids = [
        row.group_id for row in
        db.query(GroupMembership.group_id)
        .filter(GroupMembership.user_id == viewer_id, GroupMembership.is_active == True)
        .all()
    ]
    if not group_ids:
        return []

    rows = (
        db.query(GroupMembership.user_id)
        .join(User, User.id == GroupMembership.user_id)
        .filter(
            GroupMembership.group_id.in_(group_ids),
            GroupMembership.is_active == True,
            User.is_active == True,
            GroupMembership.user_id.notin_(list(excluded)),
        )
        .order_by(GroupMembership.joined_at.asc(), GroupMembership.id.asc())
        .all()
    )

    candidates = []
    for row in rows:
        if row.user_id not in candidates:
            candidates.append(row.user_id)
            if len(candidates) >= limit:
                break
    return candidates

def _friends_of_friends_candidates(db: Session, viewer_id: str, excluded: Set[str]) -> List[str]:
    friend_ids = get_connected_user_ids(db, viewer_id, status="accepted")
    if not friend_ids:
        return []
    friends = list(friend_ids)

    edges = (
        db.query(Friendship.requester_id, Friendship.recipient_id)
        .filter(
            Friendship.status == "accepted",
            or_(Friendship.requester_id.in_(friends), Friendship.recipient_id.in_(friends)),
        )
        .order_by(Friendship.updated_at.desc(), Friendship.id.asc())
        .all()
    )

    candidates = []
    for requester_id, recipient_id in edges:
        # One end is always a friend and therefore excluded
        for user_id in (requester_id, recipient_id):
            if user_id not in excluded and user_id not in candidates:
                candidates.append(user_id)
    if not candidates:
        return []

    active = {
        row.id for row in
        db.query(User.id).filter(User.id.in_(candidates), User.is_active == True).all()
    }
    return [user_id for user_id in candidates if user_id in active]

def _new_user_candidates(db: Session, excluded: Set[str], limit: int) -> List[str]:
    rows = (
        db.query(User.id)
        .filter(User.id.notin_(list(excluded)), User.is_active == True)
        .order_by(User.created_at.desc(), User.id.desc())
        .limit(limit)
        .all()
    )
    return [row.id for row in rows]

def get_suggestions(db: Session, viewer_id: str, limit: int = 10) -> List[Suggestion]:
    """Ranked suggestions for the viewer, at most limit long"""
    excluded = get_connected_user_ids(db, viewer_id)
    excluded.add(viewer_id)

    ranked: Dict[str, str] = {}

    for user_id in _mutual_group_candidates(db, viewer_id, excluded, limit):
        ranked[user_id] = "mutual_groups"

    for user_id in _friends_of_friends_candidates(db, viewer_id, excluded | set(ranked)):
        ranked[user_id] = "friends_of_friends"

    if len(ranked) < limit:
        for user_id in _new_user_candidates(db, excluded | set(ranked), limit - len(ranked)):
            ranked[user_id] = "new_users"

    chosen = list(ranked.items())[:limit]
    users = get_users_by_ids(db, [user_id for user_id, _ in chosen])

    suggestions = []
    for user_id, reason in chosen:
        user = users.get(user_id)
        if user is None:
            continue
        suggestions.append(Suggestion(
            id=user.id,
            name=user.name,
            email=user.email,
            reason=reason,
            reason_label=get_reason_label(reason),
        ))

    logger.debug(f"Built {len(suggestions)} suggestions for user {viewer_id}")
    return suggestions
