import logging
from typing import Dict

from sqlalchemy.orm import Session

from kinship.core.exceptions import ConflictError, UnauthorizedError
from kinship.core.security import create_access_token, verify_password
from kinship.modules.auth.schemas.auth import LoginRequest, SignupRequest
from kinship.modules.user_management.services.user import create_user, get_user_by_email

logger = logging.getLogger("kinship")

def _token_for(user_id: str) -> Dict[str, str]:
    return {"access_token": create_access_token(user_id), "token_type": "bearer"}

def signup(db: Session, signup_in: SignupRequest) -> Dict[str, str]:
    """Register a new account and return a bearer token for it"""
    if get_user_by_email(db, signup_in.email):
        raise ConflictError("An account with this email already exists")

    user = create_user(db, signup_in.name, signup_in.email, signup_in.password)
    logger.info(f"Created user {user.id}")
    return _token_for(user.id)

def login(db: Session, login_in: LoginRequest) -> Dict[str, str]:
    """Check credentials and return a bearer token"""
    user = get_user_by_email(db, login_in.email)
    if not user or not verify_password(login_in.password, user.hashed_password):
        logger.warning(f"Failed login for {login_in.email}")
        raise UnauthorizedError("Invalid email or password")

    if not user.is_active:
        raise UnauthorizedError("Inactive user")

    return _token_for(user.id)
