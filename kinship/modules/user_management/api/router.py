from typing import Any

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from kinship.core.exceptions import NotFoundError
from kinship.db.session import get_db
from kinship.deps import get_current_user
from kinship.modules.user_management.models.user import User
from kinship.modules.user_management.schemas.user import User as UserSchema, UserSearchResponse
from kinship.modules.user_management.services.user import get_user, search_users

router = APIRouter()

def _validate_user(db: Session, user_id: str) -> User:
    """Validate user exists and return user object or raise NotFoundError"""
    user = get_user(db, user_id=user_id)
    if not user:
        raise NotFoundError("User not found")
    return user

@router.get("/search", response_model=UserSearchResponse)
def search_for_users(
    *,
    db: Session = Depends(get_db),
    q: str = Query("", description="Search query for name or email"),
    limit: int = Query(10, ge=1, le=50),
    current_user: User = Depends(get_current_user),
) -> Any:
    """Search for users by name or email"""
    users = search_users(db, q, exclude_user_id=current_user.id, limit=limit)
    return {"users": users, "total": len(users)}

@router.get("/{user_id}", response_model=UserSchema)
def read_user_by_id(
    user_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> Any:
    """Get a specific user by id"""
    return _validate_user(db, user_id)
