from typing import List, Optional, Tuple
import uuid
import logging
from sqlalchemy.orm import Session

from kinship.core.exceptions import ForbiddenError, InvalidInputError, NotFoundError
from kinship.core.pagination import page_offset
from kinship.modules.counters.services.counters import add_like, remove_like
from kinship.modules.groups.services.group import get_group
from kinship.modules.groups.services.membership import get_active_group_ids, is_active_member
from kinship.modules.posts.comments.models.comment import Comment
from kinship.modules.posts.models.post import Post
from kinship.modules.posts.schemas.post import Post as PostSchema, PostCreate, PostUpdate
from kinship.modules.user_management.schemas.user import UserSummary
from kinship.modules.user_management.services.user import get_users_by_ids

logger = logging.getLogger(__name__)

def clean_content(content: Optional[str], label: str = "Content") -> str:
    """Strip surrounding whitespace and reject blank text"""
    content = (content or "").strip()
    if not content:
        raise InvalidInputError(f"{label} is required")
    return content

def get_post(db: Session, post_id: str) -> Optional[Post]:
    """Get post by ID"""
    return db.query(Post).filter(Post.id == post_id).first()

def list_posts(
    db: Session, viewer_id: str, group_id: Optional[str] = None, page: int = 1, limit: int = 10
) -> Tuple[List[Post], int]:
    """Posts of one group, or of every group the viewer is active in"""
    query = db.query(Post)
    if group_id:
        group = get_group(db, group_id)
        if not group:
            raise NotFoundError("Group not found")
        if group.is_private and not is_active_member(db, group_id, viewer_id):
            raise ForbiddenError("This group is private")
        query = query.filter(Post.group_id == group_id)
    else:
        group_ids = get_active_group_ids(db, viewer_id)
        if not group_ids:
            return [], 0
        query = query.filter(Post.group_id.in_(group_ids))

    total = query.count()
    posts = (
        query.order_by(Post.created_at.desc(), Post.id.desc())
        .offset(page_offset(page, limit))
        .limit(limit)
        .all()
    )
    return posts, total

def create_post(db: Session, post_in: PostCreate, author_id: str) -> Post:
    """Create a post in a group the author belongs to"""
    content = clean_content(post_in.content)

    if not get_group(db, post_in.group_id):
        raise NotFoundError("Group not found")
    if not is_active_member(db, post_in.group_id, author_id):
        raise ForbiddenError("You must be a member of this group to post")

    post = Post(
        id=str(uuid.uuid4()),
        group_id=post_in.group_id,
        author_id=author_id,
        content=content,
        likes=[],
        like_count=0,
        comment_count=0,
    )
    db.add(post)
    db.commit()
    db.refresh(post)
    logger.info(f"Created post {post.id} in group {post.group_id}")
    return post

def update_post(db: Session, post: Post, post_in: PostUpdate) -> Post:
    post.content = clean_content(post_in.content)
    post.is_edited = True
    db.commit()
    db.refresh(post)
    return post

def delete_post(db: Session, post: Post) -> None:
    """
    Delete post and all of its comments
    """
    post_id = post.id
    db.query(Comment).filter(Comment.post_id == post_id).delete(synchronize_session=False)
    db.delete(post)
    db.commit()
    logger.info(f"Deleted post {post_id}")

def like_post(db: Session, post: Post, user_id: str) -> Post:
    if not add_like(post, user_id):
        raise InvalidInputError("You have already liked this post")
    db.commit()
    db.refresh(post)
    return post

def unlike_post(db: Session, post: Post, user_id: str) -> Post:
    if not remove_like(post, user_id):
        raise InvalidInputError("You have not liked this post")
    db.commit()
    db.refresh(post)
    return post

def to_post_schemas(db: Session, posts: List[Post]) -> List[PostSchema]:
    """Project posts to the client shape with authors loaded in one query"""
    users = get_users_by_ids(db, [post.author_id for post in posts])
    result = []
    for post in posts:
        author = users.get(post.author_id)
        result.append(PostSchema(
            id=post.id,
            group_id=post.group_id,
            author=UserSummary.model_validate(author) if author else None,
            content=post.content,
            likes=list(post.likes or []),
            like_count=post.like_count,
            comment_count=post.comment_count,
            is_edited=bool(post.is_edited),
            created_at=post.created_at,
            updated_at=post.updated_at,
        ))
    return result
