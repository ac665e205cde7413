"""Authentication router: email/password signup and login"""
from typing import Any

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from kinship.db.session import get_db
from kinship.deps import get_current_user
from kinship.modules.auth.schemas.auth import Token, SignupRequest, LoginRequest
from kinship.modules.auth.services.auth import signup, login
from kinship.modules.user_management.models.user import User
from kinship.modules.user_management.schemas.user import User as UserSchema

router = APIRouter()

@router.post("/signup", response_model=Token, status_code=status.HTTP_201_CREATED)
def create_account(
    *,
    db: Session = Depends(get_db),
    signup_in: SignupRequest,
) -> Any:
    """Create an account and return an access token"""
    return signup(db, signup_in)

@router.post("/login", response_model=Token)
def login_with_password(
    *,
    db: Session = Depends(get_db),
    login_in: LoginRequest,
) -> Any:
    """Exchange email and password for an access token"""
    return login(db, login_in)

@router.get("/me", response_model=UserSchema)
def read_current_user(
    current_user: User = Depends(get_current_user),
) -> Any:
    """Get current user"""
    return current_user
