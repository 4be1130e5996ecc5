from datetime import datetime, timedelta, UTC
from typing import Annotated
from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy import select
from sqlalchemy.orm import Session
from blog_api.core.config import get_settings
from blog_api.core.errors import ForbiddenError, UnauthenticatedError
from blog_api.db.database import get_session
from blog_api.models.user import User

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

# OAuth2
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="api/users/login", auto_error=False)

def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Check a password against its hash"""
    return pwd_context.verify(plain_password, hashed_password)

def get_password_hash(password: str) -> str:
    """Hash a password"""
    return pwd_context.hash(password)

def create_access_token(data: dict, expires_delta: timedelta | None = None) -> str:
    """Create a signed access token"""
    settings = get_settings()
    to_encode = data.copy()
    expire = datetime.now(UTC) + (expires_delta or timedelta(minutes=settings.access_token_expire_minutes))
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.secret_key, algorithm=settings.jwt_algorithm)

def _resolve_principal(token: str | None, session: Session) -> User | None:
    """Map a bearer token to its user, None when the token is unusable"""
    if not token:
        return None
    settings = get_settings()
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError:
        return None
    user_id = payload.get("sub")
    if user_id is None:
        return None
    result = session.execute(select(User).where(User.id == user_id))
    return result.scalar_one_or_none()

def get_current_user(
    token: Annotated[str | None, Depends(oauth2_scheme)],
    session: Session = Depends(get_session)
) -> User:
    """Get the authenticated user"""
    user = _resolve_principal(token, session)
    if user is None:
        raise UnauthenticatedError()
    return user

def get_current_active_user(
    current_user: Annotated[User, Depends(get_current_user)]
) -> User:
    """Get the authenticated user, rejecting deactivated accounts"""
    if not current_user.is_active:
        raise ForbiddenError("Inactive user")
    return current_user

def get_optional_current_user(
    token: Annotated[str | None, Depends(oauth2_scheme)],
    session: Session = Depends(get_session)
) -> User | None:
    """Get the current user if a valid token was sent"""
    user = _resolve_principal(token, session)
    if user is None or not user.is_active:
        return None
    return user

def require_admin(
    current_user: Annotated[User, Depends(get_current_active_user)]
) -> User:
    """Get the current user, requiring the admin role"""
    if not current_user.is_admin:
        raise ForbiddenError("Access denied. Admin privileges required.")
    return current_user
