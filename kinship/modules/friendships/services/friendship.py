from typing import List, Optional, Set
import uuid
import logging
from sqlalchemy.orm import Session
from sqlalchemy import or_

from kinship.core.exceptions import ConflictError, ForbiddenError, InvalidInputError, NotFoundError
from kinship.modules.friendships.models.friendship import Friendship, make_pair_key
from kinship.modules.friendships.schemas.friendship import (
    Friend, FriendRequestItem, Friendship as FriendshipSchema
)
from kinship.modules.user_management.schemas.user import UserSummary
from kinship.modules.user_management.services.user import get_user, get_users_by_ids

logger = logging.getLogger(__name__)

def _other_party(friendship: Friendship, user_id: str) -> str:
    return friendship.recipient_id if friendship.requester_id == user_id else friendship.requester_id

def _involving(user_id: str):
    """Filter for every edge where the user is either party"""
    return or_(Friendship.requester_id == user_id, Friendship.recipient_id == user_id)

# Lookups
def get_friendship_by_id(db: Session, friendship_id: str) -> Optional[Friendship]:
    """Get friendship edge by ID"""
    return db.query(Friendship).filter(Friendship.id == friendship_id).first()

def get_friendship_between(db: Session, user_id: str, other_id: str) -> Optional[Friendship]:
    """Get the single edge between two users, in either direction"""
    return db.query(Friendship).filter(Friendship.pair_key == make_pair_key(user_id, other_id)).first()

def get_connected_user_ids(db: Session, user_id: str, status: Optional[str] = None) -> Set[str]:
    """Ids of users sharing an edge with user_id, optionally restricted to one status"""
    query = db.query(Friendship.requester_id, Friendship.recipient_id).filter(_involving(user_id))
    if status is not None:
        query = query.filter(Friendship.status == status)

    connected = set()
    for requester_id, recipient_id in query.all():
        connected.add(recipient_id if requester_id == user_id else requester_id)
    return connected

def get_friend_ids(db: Session, user_id: str) -> Set[str]:
    """Ids of accepted friends"""
    return get_connected_user_ids(db, user_id, status="accepted")

def check_friendship(db: Session, user_id: str, other_id: str) -> bool:
    """Check if two users are accepted friends"""
    friendship = get_friendship_between(db, user_id, other_id)
    return friendship is not None and friendship.status == "accepted"

# Request lifecycle
def send_friend_request(db: Session, requester_id: str, recipient_id: str) -> Friendship:
    """Create a pending edge, or re-open a declined one"""
    if requester_id == recipient_id:
        raise InvalidInputError("Cannot send friend request to yourself")

    if not get_user(db, recipient_id):
        raise NotFoundError("User not found")

    existing = get_friendship_between(db, requester_id, recipient_id)
    if existing:
        if existing.status == "accepted":
            raise InvalidInputError("You are already friends with this user")
        if existing.status == "pending":
            raise ConflictError("Friend request already pending")
        if existing.status == "blocked":
            raise ForbiddenError("Cannot send friend request to this user")

        # Declined: reuse the pair row so the pair stays unique
        existing.requester_id = requester_id
        existing.recipient_id = recipient_id
        existing.status = "pending"
        db.commit()
        db.refresh(existing)
        logger.info(f"Re-opened friend request {existing.id}: {requester_id} -> {recipient_id}")
        return existing

    friendship = Friendship(
        id=str(uuid.uuid4()),
        requester_id=requester_id,
        recipient_id=recipient_id,
        pair_key=make_pair_key(requester_id, recipient_id),
        status="pending",
    )
    db.add(friendship)
    db.commit()
    db.refresh(friendship)
    logger.info(f"Created friend request {friendship.id}: {requester_id} -> {recipient_id}")
    return friendship

def respond_to_friend_request(db: Session, friendship: Friendship, user_id: str, action: str) -> Friendship:
    """Accept or decline; only the recipient of a pending request may respond"""
    if friendship.recipient_id != user_id:
        raise ForbiddenError("You can only respond to friend requests sent to you")

    if friendship.status != "pending":
        raise InvalidInputError("This friend request has already been responded to")

    friendship.status = "accepted" if action == "accept" else "declined"
    db.commit()
    db.refresh(friendship)
    logger.info(f"Friend request {friendship.id} {friendship.status}")
    return friendship

def delete_friendship(db: Session, friendship: Friendship, user_id: str) -> str:
    """Cancel a pending request (requester only) or end an accepted friendship (either party)"""
    is_requester = friendship.requester_id == user_id
    is_recipient = friendship.recipient_id == user_id

    if not is_requester and not is_recipient:
        raise ForbiddenError("You are not part of this friendship")

    if friendship.status == "pending":
        if not is_requester:
            raise ForbiddenError("Only the requester can cancel a pending friend request")
        message = "Friend request cancelled successfully"
    elif friendship.status == "accepted":
        message = "Friendship ended successfully"
    else:
        raise InvalidInputError("Cannot delete this friendship")

    friendship_id, status = friendship.id, friendship.status
    db.delete(friendship)
    db.commit()
    logger.info(f"Deleted friendship {friendship_id} ({status})")
    return message

# Read models
def to_friendship_schema(db: Session, friendship: Friendship) -> FriendshipSchema:
    """Build the client shape with both parties populated"""
    users = get_users_by_ids(db, [friendship.requester_id, friendship.recipient_id])
    return FriendshipSchema(
        id=friendship.id,
        requester=UserSummary.model_validate(users[friendship.requester_id]),
        recipient=UserSummary.model_validate(users[friendship.recipient_id]),
        status=friendship.status,
        created_at=friendship.created_at,
        updated_at=friendship.updated_at,
    )

def get_friends(db: Session, user_id: str) -> List[Friend]:
    """Accepted friends, most recently befriended first"""
    friendships = (
        db.query(Friendship)
        .filter(_involving(user_id), Friendship.status == "accepted")
        .order_by(Friendship.updated_at.desc(), Friendship.id.desc())
        .all()
    )
    users = get_users_by_ids(db, [_other_party(f, user_id) for f in friendships])

    friends = []
    for friendship in friendships:
        friend = users.get(_other_party(friendship, user_id))
        if friend is None:
            logger.warning(f"Friendship {friendship.id} references a missing user")
            continue
        friends.append(Friend(
            id=friend.id,
            name=friend.name,
            email=friend.email,
            friendship_id=friendship.id,
            friended_at=friendship.updated_at,
        ))
    return friends

def get_friend_requests(db: Session, user_id: str, direction: str = "incoming") -> List[FriendRequestItem]:
    """Pending requests; direction is incoming, outgoing or both"""
    query = db.query(Friendship).filter(Friendship.status == "pending")
    if direction == "incoming":
        query = query.filter(Friendship.recipient_id == user_id)
    elif direction == "outgoing":
        query = query.filter(Friendship.requester_id == user_id)
    elif direction == "both":
        query = query.filter(_involving(user_id))
    else:
        raise InvalidInputError("type must be one of: incoming, outgoing, both")

    friendships = query.order_by(Friendship.created_at.desc(), Friendship.id.desc()).all()
    users = get_users_by_ids(
        db, [f.requester_id for f in friendships] + [f.recipient_id for f in friendships]
    )

    requests = []
    for friendship in friendships:
        if friendship.recipient_id == user_id:
            requests.append(FriendRequestItem(
                id=friendship.id,
                type="incoming",
                requester=UserSummary.model_validate(users[friendship.requester_id]),
                created_at=friendship.created_at,
            ))
        else:
            requests.append(FriendRequestItem(
                id=friendship.id,
                type="outgoing",
                recipient=UserSummary.model_validate(users[friendship.recipient_id]),
                created_at=friendship.created_at,
            ))
    return requests

def block_user(db: Session, user_id: str, other_id: str) -> Friendship:
    """Mark the pair as blocked, creating the edge if none exists"""
    if user_id == other_id:
        raise InvalidInputError("Cannot block yourself")

    if not get_user(db, other_id):
        raise NotFoundError("User not found")

    friendship = get_friendship_between(db, user_id, other_id)
    if friendship is None:
        friendship = Friendship(
            id=str(uuid.uuid4()),
            pair_key=make_pair_key(user_id, other_id),
        )
        db.add(friendship)

    # The blocker becomes the requester so the edge records who blocked whom
    friendship.requester_id = user_id
    friendship.recipient_id = other_id
    friendship.status = "blocked"
    db.commit()
    db.refresh(friendship)
    logger.info(f"User {user_id} blocked {other_id}")
    return friendship
