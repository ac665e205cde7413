from typing import Optional

from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from kinship.core.config import settings
from kinship.core.exceptions import UnauthorizedError
from kinship.core.security import verify_access_token
from kinship.db.session import get_db
from kinship.modules.user_management.models.user import User
from kinship.modules.user_management.services.user import get_user

# OAuth2 token URL; auto_error is off so a missing token maps to our 401 body
oauth2_scheme = OAuth2PasswordBearer(tokenUrl=f"{settings.API_V1_STR}/auth/login", auto_error=False)

def _resolve_user(db: Session, token: Optional[str]) -> Optional[User]:
    if not token:
        return None
    user_id = verify_access_token(token)
    if not user_id:
        return None
    user = get_user(db, user_id=user_id)
    if not user or not user.is_active:
        return None
    return user

def get_current_user(db: Session = Depends(get_db), token: Optional[str] = Depends(oauth2_scheme)) -> User:
    """
    Dependency for getting current authenticated user
    """
    user = _resolve_user(db, token)
    if user is None:
        raise UnauthorizedError("Could not validate credentials")
    return user

def get_current_user_optional(
    db: Session = Depends(get_db), token: Optional[str] = Depends(oauth2_scheme)
) -> Optional[User]:
    """
    Dependency for endpoints that anonymous callers may also read
    """
    return _resolve_user(db, token)
