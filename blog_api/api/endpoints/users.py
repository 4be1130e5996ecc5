from datetime import datetime, UTC
from typing import Annotated
from fastapi import APIRouter, Depends, status
from sqlalchemy import select
from sqlalchemy.orm import Session
from blog_api.core.errors import ConflictError, ForbiddenError, UnauthenticatedError, ValidationFailedError
from blog_api.core.security import (
    get_password_hash,
    verify_password,
    create_access_token,
    get_current_active_user,
)
from blog_api.db.database import get_session
from blog_api.models.user import User
from blog_api.schemas.common import MessageResponse
from blog_api.schemas.user import UserCreate, UserResponse, Token, UserUpdate, UserLogin, PasswordChange

router = APIRouter()

@router.post("/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
def create_user(
    user_in: UserCreate,
    session: Annotated[Session, Depends(get_session)]
) -> User:
    """Create a new user"""
    # Check if username already exists
    result = session.execute(
        select(User).where(User.username == user_in.username)
    )
    if result.scalar_one_or_none():
        raise ConflictError("Username already exists")

    # Check if email already exists
    result = session.execute(
        select(User).where(User.email == user_in.email)
    )
    if result.scalar_one_or_none():
        raise ConflictError("Email already registered")

    user = User(
        username=user_in.username,
        email=user_in.email,
        password_hash=get_password_hash(user_in.password),
        full_name=user_in.full_name,
        bio=user_in.bio
    )
    session.add(user)
    session.commit()
    session.refresh(user)
    return user

@router.post("/login", response_model=Token)
def login(
    user_in: UserLogin,
    session: Annotated[Session, Depends(get_session)]
) -> dict:
    """Login a user"""
    result = session.execute(
        select(User).where(User.username == user_in.username)
    )
    user = result.scalar_one_or_none()

    if not user or not verify_password(user_in.password, user.password_hash):
        raise UnauthenticatedError("Incorrect username or password")
    if not user.is_active:
        raise ForbiddenError("Inactive user")

    # Update last login time
    user.last_login = datetime.now(UTC)
    session.commit()

    access_token = create_access_token(data={"sub": user.id})
    return {"access_token": access_token, "token_type": "bearer"}

@router.get("/me", response_model=UserResponse)
def read_users_me(
    current_user: Annotated[User, Depends(get_current_active_user)]
) -> User:
    """Get the current user"""
    return current_user

@router.put("/me", response_model=UserResponse)
def update_user_me(
    user_update: UserUpdate,
    current_user: Annotated[User, Depends(get_current_active_user)],
    session: Annotated[Session, Depends(get_session)]
) -> User:
    """Update the current user's profile"""
    if user_update.full_name is not None:
        current_user.full_name = user_update.full_name
    if user_update.bio is not None:
        current_user.bio = user_update.bio
    if user_update.profile_image is not None:
        current_user.profile_image = user_update.profile_image
    session.commit()
    session.refresh(current_user)
    return current_user

@router.put("/me/password", response_model=MessageResponse)
def change_password(
    password_in: PasswordChange,
    current_user: Annotated[User, Depends(get_current_active_user)],
    session: Annotated[Session, Depends(get_session)]
) -> dict:
    """Change the current user's password"""
    if not verify_password(password_in.current_password, current_user.password_hash):
        raise ValidationFailedError("Current password is incorrect")
    current_user.password_hash = get_password_hash(password_in.new_password)
    session.commit()
    return {"message": "Password changed successfully"}
