from typing import Dict, Iterable, List, Optional
import uuid
from sqlalchemy import or_
from sqlalchemy.orm import Session

from kinship.core.security import get_password_hash
from kinship.modules.user_management.models.user import User

def get_user(db: Session, user_id: str) -> Optional[User]:
    """Get user by ID"""
    return db.query(User).filter(User.id == user_id).first()

def get_user_by_email(db: Session, email: str) -> Optional[User]:
    """Get user by email"""
    return db.query(User).filter(User.email == email.lower()).first()

def get_users_by_ids(db: Session, user_ids: Iterable[str]) -> Dict[str, User]:
    """Load several users at once, keyed by id"""
    user_ids = list(set(user_ids))
    if not user_ids:
        return {}
    users = db.query(User).filter(User.id.in_(user_ids)).all()
    return {user.id: user for user in users}

def create_user(db: Session, name: str, email: str, password: str) -> User:
    """Create a new user with a hashed password"""
    user = User(
        id=str(uuid.uuid4()),
        name=name.strip(),
        email=email.strip().lower(),
        hashed_password=get_password_hash(password),
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user

def search_users(db: Session, query: str, exclude_user_id: str, limit: int = 10) -> List[User]:
    """Case-insensitive match on name or email, excluding the caller"""
    query = (query or "").strip()
    if len(query) < 2:
        return []

    pattern = f"%{query}%"
    return (
        db.query(User)
        .filter(
            User.id != exclude_user_id,
            or_(User.name.ilike(pattern), User.email.ilike(pattern)),
        )
        .order_by(User.name.asc())
        .limit(limit)
        .all()
    )
