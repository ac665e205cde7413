from typing import Any

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from kinship.core.exceptions import InvalidInputError, NotFoundError
from kinship.core.pagination import build_pagination
from kinship.db.session import get_db
from kinship.deps import get_current_user
from kinship.modules.user_management.models.user import User
from kinship.modules.posts.comments.models.comment import Comment
from kinship.modules.posts.comments.schemas.comment import CommentCreate, CommentList, CommentMessage
from kinship.modules.posts.comments.services.comment import (
    create_comment,
    get_comment,
    get_comments_by_post,
    to_comment_schemas,
    toggle_comment_like,
)
from kinship.modules.posts.models.post import Post
from kinship.modules.posts.schemas.post import LikeToggleResponse
from kinship.modules.posts.services.post import get_post

router = APIRouter()

def _validate_post(db: Session, post_id: str) -> Post:
    """Validate post exists and return it or raise NotFoundError"""
    post = get_post(db, post_id=post_id)
    if not post:
        raise NotFoundError("Post not found")
    return post

def _validate_comment(db: Session, comment_id: str, post_id: str) -> Comment:
    """Validate comment exists and belongs to the post"""
    comment = get_comment(db, comment_id=comment_id)
    if not comment:
        raise NotFoundError("Comment not found")
    if comment.post_id != post_id:
        raise InvalidInputError("Comment does not belong to the specified post")
    return comment

@router.get("", response_model=CommentList)
def read_comments(
    post_id: str,
    db: Session = Depends(get_db),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    current_user: User = Depends(get_current_user),
) -> Any:
    """Get top-level comments for a post"""
    _validate_post(db, post_id)
    comments, total = get_comments_by_post(db, post_id, page=page, limit=limit)
    return {
        "comments": to_comment_schemas(db, comments),
        "pagination": build_pagination(page, limit, total),
    }

@router.post("", response_model=CommentMessage, status_code=status.HTTP_201_CREATED)
def create_new_comment(
    *,
    post_id: str,
    db: Session = Depends(get_db),
    comment_in: CommentCreate,
    current_user: User = Depends(get_current_user),
) -> Any:
    """Create a comment or a reply on a post"""
    post = _validate_post(db, post_id)
    comment = create_comment(db, post, comment_in, current_user.id)
    return {
        "message": "Comment created successfully",
        "comment": to_comment_schemas(db, [comment])[0],
    }

@router.post("/{comment_id}/like", response_model=LikeToggleResponse)
def toggle_like_on_comment(
    post_id: str,
    comment_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> Any:
    """Like or unlike a comment"""
    _validate_post(db, post_id)
    comment = _validate_comment(db, comment_id, post_id)
    liked = toggle_comment_like(db, comment, current_user.id)
    return {
        "message": "Comment liked" if liked else "Comment unliked",
        "liked": liked,
        "like_count": comment.like_count,
    }
