from typing import List, Optional, Tuple
import uuid
import logging
from sqlalchemy.orm import Session

from kinship.core.exceptions import NotFoundError
from kinship.core.pagination import page_offset
from kinship.modules.counters.services.counters import apply_comment_delta, toggle_like
from kinship.modules.posts.comments.models.comment import Comment
from kinship.modules.posts.comments.schemas.comment import Comment as CommentSchema, CommentCreate
from kinship.modules.posts.models.post import Post
from kinship.modules.posts.services.post import clean_content
from kinship.modules.user_management.schemas.user import UserSummary
from kinship.modules.user_management.services.user import get_users_by_ids

logger = logging.getLogger(__name__)

def get_comment(db: Session, comment_id: str) -> Optional[Comment]:
    """Get comment by ID"""
    return db.query(Comment).filter(Comment.id == comment_id).first()

def get_comments_by_post(db: Session, post_id: str, page: int = 1, limit: int = 20) -> Tuple[List[Comment], int]:
    """Top-level comments of a post, oldest first"""
    query = db.query(Comment).filter(Comment.post_id == post_id, Comment.parent_comment_id == None)
    total = query.count()
    comments = (
        query.order_by(Comment.created_at.asc(), Comment.id.asc())
        .offset(page_offset(page, limit))
        .limit(limit)
        .all()
    )
    return comments, total

def create_comment(db: Session, post: Post, comment_in: CommentCreate, author_id: str) -> Comment:
    """Add a comment or reply and bump the post's comment_count"""
    content = clean_content(comment_in.content, label="Comment content")

    if comment_in.parent_comment_id:
        parent = get_comment(db, comment_in.parent_comment_id)
        if not parent or parent.post_id != post.id:
            raise NotFoundError("Parent comment not found")

    comment = Comment(
        id=str(uuid.uuid4()),
        post_id=post.id,
        author_id=author_id,
        parent_comment_id=comment_in.parent_comment_id,
        content=content,
        likes=[],
        like_count=0,
    )
    db.add(comment)
    db.flush()
    apply_comment_delta(db, post.id, 1)
    db.commit()
    db.refresh(comment)
    logger.info(f"Created comment {comment.id} on post {post.id}")
    return comment

def toggle_comment_like(db: Session, comment: Comment, user_id: str) -> bool:
    """Flip the user's like on a comment; returns whether it is now liked"""
    liked = toggle_like(comment, user_id)
    db.commit()
    db.refresh(comment)
    return liked

def to_comment_schemas(db: Session, comments: List[Comment]) -> List[CommentSchema]:
    users = get_users_by_ids(db, [comment.author_id for comment in comments])
    result = []
    for comment in comments:
        author = users.get(comment.author_id)
        result.append(CommentSchema(
            id=comment.id,
            post_id=comment.post_id,
            parent_comment_id=comment.parent_comment_id,
            author=UserSummary.model_validate(author) if author else None,
            content=comment.content,
            likes=list(comment.likes or []),
            like_count=comment.like_count,
            is_edited=bool(comment.is_edited),
            created_at=comment.created_at,
            updated_at=comment.updated_at,
        ))
    return result
