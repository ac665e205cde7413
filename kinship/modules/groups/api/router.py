from typing import Any, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from kinship.core.exceptions import ForbiddenError, NotFoundError
from kinship.core.pagination import build_pagination
from kinship.db.session import get_db
from kinship.deps import get_current_user, get_current_user_optional
from kinship.modules.user_management.models.user import User
from kinship.modules.groups.models.group import Group, GROUP_CATEGORIES
from kinship.modules.groups.schemas.group import (
    CategoryList,
    Group as GroupSchema,
    GroupCreate,
    GroupDetail,
    GroupList,
    GroupUpdate,
    MemberList,
    Membership,
)
from kinship.modules.groups.services.group import (
    create_group,
    delete_group,
    get_group,
    list_groups,
    update_group,
)
from kinship.modules.groups.services.membership import (
    get_active_membership,
    get_members,
    join_group,
    leave_group,
)

router = APIRouter()

def _validate_group(db: Session, group_id: str) -> Group:
    """Validate group exists and return it or raise NotFoundError"""
    group = get_group(db, group_id)
    if not group:
        raise NotFoundError("Group not found")
    return group

def _validate_group_access(db: Session, group: Group, viewer: Optional[User]):
    """Private groups are readable by active members only; returns the viewer's membership"""
    membership = get_active_membership(db, group.id, viewer.id) if viewer else None
    if group.is_private and membership is None:
        raise ForbiddenError("This group is private")
    return membership

@router.get("", response_model=GroupList)
def read_groups(
    db: Session = Depends(get_db),
    category: Optional[str] = Query(None),
    search: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    current_user: Optional[User] = Depends(get_current_user_optional),
) -> Any:
    """List groups; anonymous callers only see public ones"""
    groups, total = list_groups(
        db,
        page=page,
        limit=limit,
        category=category,
        search=search,
        include_private=current_user is not None,
    )
    return {"groups": groups, "pagination": build_pagination(page, limit, total)}

@router.get("/categories", response_model=CategoryList)
def read_categories() -> Any:
    return {"categories": list(GROUP_CATEGORIES)}

@router.post("", response_model=GroupSchema, status_code=status.HTTP_201_CREATED)
def create_new_group(
    *,
    db: Session = Depends(get_db),
    group_in: GroupCreate,
    current_user: User = Depends(get_current_user),
) -> Any:
    """Create a group owned by the caller"""
    return create_group(db, group_in, current_user.id)

@router.get("/{group_id}", response_model=GroupDetail)
def read_group(
    group_id: str,
    db: Session = Depends(get_db),
    current_user: Optional[User] = Depends(get_current_user_optional),
) -> Any:
    """Get a group with the caller's membership, if any"""
    group = _validate_group(db, group_id)
    membership = _validate_group_access(db, group, current_user)

    detail = GroupDetail.model_validate(group)
    if membership is not None:
        detail.user_membership = Membership.model_validate(membership)
    return detail

@router.put("/{group_id}", response_model=GroupSchema)
def update_group_by_id(
    *,
    db: Session = Depends(get_db),
    group_id: str,
    group_in: GroupUpdate,
    current_user: User = Depends(get_current_user),
) -> Any:
    """Update a group; owners and admins only"""
    group = _validate_group(db, group_id)
    membership = get_active_membership(db, group.id, current_user.id)
    if membership is None or membership.role not in ("owner", "admin"):
        raise ForbiddenError("You do not have permission to update this group")
    return update_group(db, group, group_in)

@router.delete("/{group_id}")
def delete_group_by_id(
    group_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> Any:
    """Delete a group and its content; owner only"""
    group = _validate_group(db, group_id)
    membership = get_active_membership(db, group.id, current_user.id)
    if membership is None or membership.role != "owner":
        raise ForbiddenError("Only the group owner can delete the group")
    delete_group(db, group)
    return {"message": "Group deleted successfully"}

@router.post("/{group_id}/join")
def join(
    group_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> Any:
    group = _validate_group(db, group_id)
    join_group(db, group, current_user.id)
    return {"message": "Successfully joined the group"}

@router.delete("/{group_id}/join")
def leave(
    group_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> Any:
    group = _validate_group(db, group_id)
    leave_group(db, group, current_user.id)
    return {"message": "Successfully left the group"}

@router.get("/{group_id}/members", response_model=MemberList)
def read_group_members(
    group_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> Any:
    """List active members of a group"""
    group = _validate_group(db, group_id)
    _validate_group_access(db, group, current_user)
    members = get_members(db, group.id)
    return {"members": members, "total": len(members)}
