from datetime import datetime
from typing import Optional, List
from pydantic import BaseModel, EmailStr, Field
from blog_api.models.user import UserRole
from blog_api.schemas.common import PageMeta

class UserBase(BaseModel):
    username: str = Field(..., min_length=3, max_length=30, pattern=r"^[A-Za-z0-9_]+$")
    email: EmailStr
    full_name: str = Field(default="", max_length=100)
    bio: str | None = None

class UserCreate(UserBase):
    password: str = Field(..., min_length=8)

class UserLogin(BaseModel):
    username: str
    password: str

class UserUpdate(BaseModel):
    full_name: str | None = Field(default=None, max_length=100)
    bio: str | None = None
    profile_image: str | None = None

class PasswordChange(BaseModel):
    current_password: str
    new_password: str = Field(..., min_length=8)

class UserInDB(UserBase):
    id: str
    profile_image: str = ""
    role: UserRole
    created_at: datetime
    last_login: datetime | None = None
    is_active: bool

    class Config:
        from_attributes = True

class UserResponse(UserInDB):
    pass

class AdminUserResponse(UserResponse):
    post_count: int = 0

class AdminUserPage(PageMeta):
    users: List[AdminUserResponse]

class RoleUpdate(BaseModel):
    role: UserRole

class Token(BaseModel):
    access_token: str
    token_type: str
