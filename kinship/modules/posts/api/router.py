from typing import Any, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from kinship.core.exceptions import ForbiddenError, NotFoundError
from kinship.core.pagination import build_pagination
from kinship.db.session import get_db
from kinship.deps import get_current_user
from kinship.modules.user_management.models.user import User
from kinship.modules.posts.models.post import Post
from kinship.modules.posts.schemas.post import (
    LikeResponse,
    Post as PostSchema,
    PostCreate,
    PostList,
    PostUpdate,
)
from kinship.modules.posts.services.post import (
    create_post,
    delete_post,
    get_post,
    like_post,
    list_posts,
    to_post_schemas,
    unlike_post,
    update_post,
)

router = APIRouter()

def _validate_post(db: Session, post_id: str) -> Post:
    """Validate post exists and return it or raise NotFoundError"""
    post = get_post(db, post_id=post_id)
    if not post:
        raise NotFoundError("Post not found")
    return post

def _validate_ownership(post: Post, user_id: str) -> None:
    """Validate user is the author of the post or raise ForbiddenError"""
    if post.author_id != user_id:
        raise ForbiddenError()

@router.get("", response_model=PostList)
def read_posts(
    db: Session = Depends(get_db),
    group_id: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    current_user: User = Depends(get_current_user),
) -> Any:
    """
    List posts of a group, or of every group the caller belongs to.
    """
    posts, total = list_posts(db, current_user.id, group_id=group_id, page=page, limit=limit)
    return {
        "posts": to_post_schemas(db, posts),
        "pagination": build_pagination(page, limit, total),
    }

@router.post("", response_model=PostSchema, status_code=status.HTTP_201_CREATED)
def create_new_post(
    *,
    db: Session = Depends(get_db),
    post_in: PostCreate,
    current_user: User = Depends(get_current_user),
) -> Any:
    """
    Create new post in a group.
    """
    post = create_post(db, post_in, current_user.id)
    return to_post_schemas(db, [post])[0]

@router.get("/{post_id}", response_model=PostSchema)
def read_post_by_id(
    *,
    db: Session = Depends(get_db),
    post_id: str,
    current_user: User = Depends(get_current_user),
) -> Any:
    """
    Get post by ID.
    """
    post = _validate_post(db, post_id)
    return to_post_schemas(db, [post])[0]

@router.put("/{post_id}", response_model=PostSchema)
def update_post_by_id(
    *,
    db: Session = Depends(get_db),
    post_id: str,
    post_in: PostUpdate,
    current_user: User = Depends(get_current_user),
) -> Any:
    """
    Update a post.
    """
    post = _validate_post(db, post_id)
    _validate_ownership(post, current_user.id)
    post = update_post(db, post, post_in)
    return to_post_schemas(db, [post])[0]

@router.delete("/{post_id}")
def delete_post_by_id(
    *,
    db: Session = Depends(get_db),
    post_id: str,
    current_user: User = Depends(get_current_user),
) -> Any:
    """
    Delete a post.
    """
    post = _validate_post(db, post_id)
    _validate_ownership(post, current_user.id)
    delete_post(db, post)
    return {"message": "Post deleted successfully"}

@router.post("/{post_id}/like", response_model=LikeResponse)
def like(
    post_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> Any:
    post = _validate_post(db, post_id)
    post = like_post(db, post, current_user.id)
    return {"message": "Post liked successfully", "like_count": post.like_count}

@router.delete("/{post_id}/like", response_model=LikeResponse)
def unlike(
    post_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> Any:
    post = _validate_post(db, post_id)
    post = unlike_post(db, post, current_user.id)
    return {"message": "Post unliked successfully", "like_count": post.like_count}
