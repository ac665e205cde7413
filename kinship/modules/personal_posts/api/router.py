from typing import Any, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from kinship.core.exceptions import InvalidInputError, NotFoundError
from kinship.core.pagination import build_pagination
from kinship.db.session import get_db
from kinship.deps import get_current_user
from kinship.modules.user_management.models.user import User
from kinship.modules.personal_posts.schemas.personal_post import (
    PersonalPostCreate,
    PersonalPostList,
    PersonalPostMessage,
)
from kinship.modules.personal_posts.services.personal_post import (
    create_personal_post,
    get_personal_post,
    list_wall_posts,
    to_personal_post_schemas,
    toggle_personal_post_like,
)
from kinship.modules.posts.schemas.post import LikeToggleResponse

router = APIRouter()

@router.post("", response_model=PersonalPostMessage, status_code=status.HTTP_201_CREATED)
def create_wall_post(
    *,
    db: Session = Depends(get_db),
    post_in: PersonalPostCreate,
    current_user: User = Depends(get_current_user),
) -> Any:
    """Post on a user's wall"""
    post = create_personal_post(db, post_in, current_user.id)
    return {
        "message": "Personal post created successfully",
        "post": to_personal_post_schemas(db, [post])[0],
    }

@router.get("", response_model=PersonalPostList)
def read_wall_posts(
    db: Session = Depends(get_db),
    target_user_id: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    current_user: User = Depends(get_current_user),
) -> Any:
    """Get the posts on a user's wall"""
    if not target_user_id:
        raise InvalidInputError("Target user ID is required")
    posts, total = list_wall_posts(db, target_user_id, page=page, limit=limit)
    return {
        "posts": to_personal_post_schemas(db, posts),
        "pagination": build_pagination(page, limit, total),
    }

@router.post("/{post_id}/like", response_model=LikeToggleResponse)
def toggle_like_on_wall_post(
    post_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> Any:
    """Like or unlike a wall post"""
    post = get_personal_post(db, post_id)
    if not post:
        raise NotFoundError("Post not found")
    liked = toggle_personal_post_like(db, post, current_user.id)
    return {
        "message": "Post liked" if liked else "Post unliked",
        "liked": liked,
        "like_count": post.like_count,
    }
