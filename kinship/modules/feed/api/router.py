from typing import Any
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from kinship.core.config import settings
from kinship.db.session import get_db
from kinship.deps import get_current_user
from kinship.modules.user_management.models.user import User
from kinship.modules.feed.schemas.feed import FeedResponse
from kinship.modules.feed.services.feed import get_unified_feed

router = APIRouter()

@router.get("/unified", response_model=FeedResponse)
def read_unified_feed(
    *,
    db: Session = Depends(get_db),
    page: int = Query(1, ge=1),
    limit: int = Query(settings.FEED_DEFAULT_PAGE_SIZE, ge=1, le=settings.FEED_MAX_PAGE_SIZE),
    current_user: User = Depends(get_current_user),
) -> Any:
    """Get group and personal posts merged into one timeline"""
    return get_unified_feed(db, current_user.id, page=page, page_size=limit)
