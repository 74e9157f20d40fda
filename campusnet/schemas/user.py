from datetime import datetime
from pydantic import BaseModel, EmailStr, Field

class UserBase(BaseModel):
    username: str = Field(..., min_length=3, max_length=50)
    email: EmailStr
    name: str | None = Field(default=None, max_length=100)
    department: str | None = None
    bio: str | None = None

class UserCreate(UserBase):
    password: str = Field(..., min_length=8)

class UserLogin(BaseModel):
    username: str
    password: str

class UserUpdate(BaseModel):
    name: str | None = Field(default=None, max_length=100)
    department: str | None = None
    bio: str | None = None

class UserInDB(UserBase):
    id: str
    created_at: datetime
    last_login: datetime | None = None
    is_active: bool
    is_banned: bool = False
    is_admin: bool = False

    class Config:
        from_attributes = True

class UserResponse(UserInDB):
    pass

class FollowResponse(BaseModel):
    """Follow toggle result"""
    following: bool
    followers_count: int

class Token(BaseModel):
    access_token: str
    token_type: str

class AdminUserUpdate(BaseModel):
    """Moderation changes applied by an admin"""
    name: str | None = Field(default=None, max_length=100)
    department: str | None = None
    is_active: bool | None = None
    is_banned: bool | None = None
    is_admin: bool | None = None
