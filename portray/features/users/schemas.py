"""
Pydantic schemas for user and authentication requests and responses.
"""
from datetime import datetime
from pydantic import BaseModel, ConfigDict, EmailStr, Field


class UserBase(BaseModel):
    """Base user schema with common fields."""
    email: EmailStr
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)


class UserCreate(UserBase):
    """Schema for creating a new user."""
    password: str = Field(..., min_length=8, max_length=128)
    role_id: str | None = Field(None, description="Role assigned to the user")
    is_system_admin: bool = False
    is_active: bool = True


class UserUpdate(BaseModel):
    """Schema for updating user information. Only provided fields change."""
    email: EmailStr | None = None
    first_name: str | None = Field(None, min_length=1, max_length=100)
    last_name: str | None = Field(None, min_length=1, max_length=100)
    password: str | None = Field(None, min_length=8, max_length=128)
    role_id: str | None = None
    is_system_admin: bool | None = None


class UserResponse(UserBase):
    """Schema for user responses."""
    id: str
    role_id: str | None = None
    role_name: str | None = None
    is_active: bool
    is_system_admin: bool
    last_login_at: datetime | None = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class CurrentUserResponse(UserResponse):
    """The authenticated user, including the grants of their role."""
    role_permissions: list[str] = []


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)
    remember_me: bool = False


class TokenResponse(BaseModel):
    token: str
    expires_at: datetime


class LoginResponse(TokenResponse):
    user: CurrentUserResponse
