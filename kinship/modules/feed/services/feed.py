"""
Unified feed.

Merges two sources into one timeline for a viewer:

* group posts from every group the viewer is an active member of
* personal posts whose author and target are both the viewer or one of
  the viewer's accepted friends

Each source is read newest first into a window large enough to cover the
requested page, the windows are merged and re-sorted, and the page is cut
from the merged list. Totals are counted separately from the windows.
"""
from typing import List, Optional, Set, Tuple
import logging
from sqlalchemy.orm import Session

from kinship.core.config import settings
from kinship.core.pagination import build_pagination
from kinship.modules.feed.schemas.feed import FeedGroupRef, FeedResponse, GroupFeedItem, PersonalFeedItem
from kinship.modules.friendships.services.friendship import get_friend_ids
from kinship.modules.groups.models.group import Group
from kinship.modules.groups.services.membership import get_active_group_ids
from kinship.modules.personal_posts.models.personal_post import PersonalPost
from kinship.modules.posts.models.post import Post
from kinship.modules.user_management.schemas.user import UserSummary
from kinship.modules.user_management.services.user import get_users_by_ids

logger = logging.getLogger(__name__)

GROUP = "group"
PERSONAL = "personal"

def feed_window(page: int, page_size: int) -> int:
    """Rows to read from each source so the merged list covers the page"""
    return max(page * page_size, page_size * settings.FEED_OVERFETCH_FACTOR)

def _group_posts_query(db: Session, group_ids: List[str]):
    if not group_ids:
        return None
    return db.query(Post).filter(Post.group_id.in_(group_ids))

def _personal_posts_query(db: Session, viewer_id: str, friend_ids: Set[str]):
    # One filter, so a self-post matching both ends is still one row
    circle = list(friend_ids | {viewer_id})
    return db.query(PersonalPost).filter(
        PersonalPost.author_id.in_(circle),
        PersonalPost.target_user_id.in_(circle),
    )

def _read_window(query, model, window: int) -> list:
    if query is None:
        return []
    return query.order_by(model.created_at.desc(), model.id.desc()).limit(window).all()

def _count(query) -> int:
    return query.count() if query is not None else 0

def merge_sources(tagged: List[Tuple[str, object]]) -> List[Tuple[str, object]]:
    """Newest first; equal timestamps fall back to id, descending"""
    return sorted(tagged, key=lambda item: (item[1].created_at, item[1].id), reverse=True)

def _project(db: Session, page_rows: List[Tuple[str, object]]) -> list:
    user_ids = []
    group_ids = set()
    for kind, row in page_rows:
        user_ids.append(row.author_id)
        if kind == GROUP:
            group_ids.add(row.group_id)
        else:
            user_ids.append(row.target_user_id)

    users = get_users_by_ids(db, user_ids)
    groups = {}
    if group_ids:
        groups = {g.id: g for g in db.query(Group).filter(Group.id.in_(list(group_ids))).all()}

    def summary(user_id: str) -> Optional[UserSummary]:
        user = users.get(user_id)
        return UserSummary.model_validate(user) if user else None

    items = []
    for kind, row in page_rows:
        common = dict(
            id=row.id,
            content=row.content,
            author=summary(row.author_id),
            likes=list(row.likes or []),
            like_count=row.like_count,
            comment_count=row.comment_count,
            is_edited=bool(row.is_edited),
            created_at=row.created_at,
            updated_at=row.updated_at,
        )
        if kind == GROUP:
            group = groups.get(row.group_id)
            ref = FeedGroupRef(id=group.id, name=group.name, description=group.description) if group else None
            items.append(GroupFeedItem(group=ref, **common))
        else:
            items.append(PersonalFeedItem(target_user=summary(row.target_user_id), **common))
    return items

def get_unified_feed(db: Session, viewer_id: str, page: int = 1, page_size: int = 10) -> FeedResponse:
    """One page of the viewer's merged group and personal timeline"""
    friend_ids = get_friend_ids(db, viewer_id)
    group_ids = get_active_group_ids(db, viewer_id)

    group_query = _group_posts_query(db, group_ids)
    personal_query = _personal_posts_query(db, viewer_id, friend_ids)

    window = feed_window(page, page_size)
    tagged = [(GROUP, post) for post in _read_window(group_query, Post, window)]
    tagged += [(PERSONAL, post) for post in _read_window(personal_query, PersonalPost, window)]

    start = (page - 1) * page_size
    page_rows = merge_sources(tagged)[start:start + page_size]

    total = _count(group_query) + _count(personal_query)
    logger.debug(
        f"Feed for {viewer_id}: page {page}, {len(group_ids)} groups, "
        f"{len(friend_ids)} friends, {total} posts"
    )
    return FeedResponse(
        posts=_project(db, page_rows),
        pagination=build_pagination(page, page_size, total),
    )
