from typing import Any

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from kinship.core.config import settings
from kinship.core.exceptions import NotFoundError
from kinship.db.session import get_db
from kinship.deps import get_current_user
from kinship.modules.user_management.models.user import User
from kinship.modules.friendships.models.friendship import Friendship
from kinship.modules.friendships.schemas.friendship import (
    Friendship as FriendshipSchema,
    FriendshipMessage,
    FriendshipRequestCreate,
    FriendshipRequestUpdate,
    FriendList,
    FriendRequestList,
    SuggestionList,
)
from kinship.modules.friendships.services.friendship import (
    block_user,
    delete_friendship,
    get_friend_requests,
    get_friends,
    get_friendship_by_id,
    respond_to_friend_request,
    send_friend_request,
    to_friendship_schema,
)
from kinship.modules.friendships.services.suggestion import get_suggestions

router = APIRouter()

def _validate_friendship(db: Session, friendship_id: str) -> Friendship:
    """Validate friendship exists and return it or raise NotFoundError"""
    friendship = get_friendship_by_id(db, friendship_id)
    if not friendship:
        raise NotFoundError("Friend request not found")
    return friendship

@router.get("", response_model=FriendList)
def list_friends(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> Any:
    """Get the current user's accepted friends"""
    friends = get_friends(db, current_user.id)
    return {"friends": friends, "total": len(friends)}

@router.post("", response_model=FriendshipMessage, status_code=status.HTTP_201_CREATED)
def create_friend_request(
    *,
    db: Session = Depends(get_db),
    request_in: FriendshipRequestCreate,
    current_user: User = Depends(get_current_user),
) -> Any:
    """Send a friend request"""
    friendship = send_friend_request(db, current_user.id, request_in.recipient_id)
    return {
        "message": "Friend request sent successfully",
        "friendship": to_friendship_schema(db, friendship),
    }

@router.get("/requests", response_model=FriendRequestList)
def list_friend_requests(
    db: Session = Depends(get_db),
    type: str = Query("incoming", description="incoming, outgoing or both"),
    current_user: User = Depends(get_current_user),
) -> Any:
    """Get pending friend requests"""
    requests = get_friend_requests(db, current_user.id, direction=type)
    return {"requests": requests, "total": len(requests)}

@router.get("/suggestions", response_model=SuggestionList)
def list_friend_suggestions(
    db: Session = Depends(get_db),
    limit: int = Query(settings.SUGGESTIONS_DEFAULT_LIMIT, ge=1, le=settings.SUGGESTIONS_MAX_LIMIT),
    current_user: User = Depends(get_current_user),
) -> Any:
    """Get ranked friend suggestions"""
    suggestions = get_suggestions(db, current_user.id, limit=limit)
    return {"suggestions": suggestions, "total": len(suggestions)}

@router.post("/block/{user_id}", response_model=FriendshipSchema)
def block(
    user_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> Any:
    """Block a user; blocked users are never suggested and cannot send requests"""
    friendship = block_user(db, current_user.id, user_id)
    return to_friendship_schema(db, friendship)

@router.put("/requests/{friendship_id}", response_model=FriendshipMessage)
def answer_friend_request(
    *,
    db: Session = Depends(get_db),
    friendship_id: str,
    request_in: FriendshipRequestUpdate,
    current_user: User = Depends(get_current_user),
) -> Any:
    """Accept or decline a friend request"""
    friendship = _validate_friendship(db, friendship_id)
    friendship = respond_to_friend_request(db, friendship, current_user.id, request_in.action)
    verb = "accepted" if request_in.action == "accept" else "declined"
    return {
        "message": f"Friend request {verb} successfully",
        "friendship": to_friendship_schema(db, friendship),
    }

@router.delete("/requests/{friendship_id}")
def remove_friend_request(
    friendship_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> Any:
    """Cancel a pending request or end a friendship"""
    friendship = _validate_friendship(db, friendship_id)
    message = delete_friendship(db, friendship, current_user.id)
    return {"message": message}
