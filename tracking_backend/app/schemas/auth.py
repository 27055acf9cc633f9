"""
Authentication Pydantic schemas.

Defines request and response schemas for the admin auth endpoints.
"""

from pydantic import BaseModel, Field
from datetime import datetime


class UserLogin(BaseModel):
    """
    Schema for admin login.

    Supports login with either username or email.
    """
    username: str = Field(..., min_length=1, description="Username or email")
    password: str = Field(..., min_length=1, description="Password")


class TokenResponse(BaseModel):
    """
    Schema for JWT token response.

    Returned by a successful login.
    """
    access_token: str = Field(..., description="JWT access token")
    token_type: str = Field(default="bearer", description="Token type")
    user_id: int = Field(..., description="User ID")
    username: str = Field(..., description="Username")
    email: str = Field(..., description="Email address")


class UserResponse(BaseModel):
    """
    Schema for the current admin.

    Used by GET /auth/me endpoint.
    """
    id: int
    email: str
    username: str
    is_active: bool
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
