from typing import List, Optional, Tuple
import uuid
import logging
from sqlalchemy.orm import Session

from kinship.core.exceptions import InvalidInputError, NotFoundError
from kinship.core.pagination import page_offset
from kinship.modules.counters.services.counters import toggle_like
from kinship.modules.personal_posts.models.personal_post import PersonalPost
from kinship.modules.personal_posts.schemas.personal_post import PersonalPost as PersonalPostSchema, PersonalPostCreate
from kinship.modules.posts.services.post import clean_content
from kinship.modules.user_management.schemas.user import UserSummary
from kinship.modules.user_management.services.user import get_user, get_users_by_ids

logger = logging.getLogger(__name__)

def get_personal_post(db: Session, post_id: str) -> Optional[PersonalPost]:
    return db.query(PersonalPost).filter(PersonalPost.id == post_id).first()

def create_personal_post(db: Session, post_in: PersonalPostCreate, author_id: str) -> PersonalPost:
    """Write a post on a user's wall"""
    content = clean_content(post_in.content)
    if not post_in.target_user_id:
        raise InvalidInputError("Target user ID is required")
    if not get_user(db, post_in.target_user_id):
        raise NotFoundError("Target user not found")

    post = PersonalPost(
        id=str(uuid.uuid4()),
        author_id=author_id,
        target_user_id=post_in.target_user_id,
        content=content,
        likes=[],
        like_count=0,
        comment_count=0,
    )
    db.add(post)
    db.commit()
    db.refresh(post)
    logger.info(f"Created personal post {post.id} on the wall of {post.target_user_id}")
    return post

def list_wall_posts(db: Session, target_user_id: str, page: int = 1, limit: int = 10) -> Tuple[List[PersonalPost], int]:
    """Posts on one user's wall, newest first"""
    query = db.query(PersonalPost).filter(PersonalPost.target_user_id == target_user_id)
    total = query.count()
    posts = (
        query.order_by(PersonalPost.created_at.desc(), PersonalPost.id.desc())
        .offset(page_offset(page, limit))
        .limit(limit)
        .all()
    )
    return posts, total

def toggle_personal_post_like(db: Session, post: PersonalPost, user_id: str) -> bool:
    liked = toggle_like(post, user_id)
    db.commit()
    db.refresh(post)
    return liked

def to_personal_post_schemas(db: Session, posts: List[PersonalPost]) -> List[PersonalPostSchema]:
    users = get_users_by_ids(
        db, [post.author_id for post in posts] + [post.target_user_id for post in posts]
    )
    result = []
    for post in posts:
        author = users.get(post.author_id)
        target = users.get(post.target_user_id)
        result.append(PersonalPostSchema(
            id=post.id,
            author=UserSummary.model_validate(author) if author else None,
            target_user=UserSummary.model_validate(target) if target else None,
            content=post.content,
            likes=list(post.likes or []),
            like_count=post.like_count,
            comment_count=post.comment_count,
            is_edited=bool(post.is_edited),
            created_at=post.created_at,
            updated_at=post.updated_at,
        ))
    return result
