"""Authentication schemas for sign-up, sign-in and session lookup."""
from typing import Optional
from datetime import datetime
from pydantic import BaseModel, EmailStr, Field


class UserCreate(BaseModel):
    """Schema for user registration."""
    email: EmailStr = Field(..., description="Email address")
    password: str = Field(..., min_length=6, max_length=100, description="Password")
    name: Optional[str] = Field(None, max_length=100, description="Display name")


class UserLogin(BaseModel):
    """Schema for JSON login."""
    email: EmailStr
    password: str


class UserUpdate(BaseModel):
    """Schema for updating user profile."""
    name: Optional[str] = Field(None, max_length=100)


class Token(BaseModel):
    """Schema for JWT token response."""
    access_token: str
    token_type: str = "bearer"


class SessionUser(BaseModel):
    """The user as exposed by a session lookup."""
    id: str
    email: str
    name: Optional[str] = None

    class Config:
        from_attributes = True


class SessionResponse(BaseModel):
    """Current session: {user: {...}} or {user: null}."""
    user: Optional[SessionUser] = None


class UserResponse(SessionUser):
    """Schema for user information response."""
    is_active: bool
    created_at: datetime
    last_login_at: Optional[datetime] = None
