"""
Pydantic schemas for users
"""

from pydantic import BaseModel, EmailStr, Field
from typing import Optional
from datetime import datetime
import uuid

from mandi_saas.models.user import UserRole, UserStatus


class UserLogin(BaseModel):
    """User login schema"""
    email: Optional[EmailStr] = None
    password: Optional[str] = Field(default=None, max_length=100)


class UserResponse(BaseModel):
    """User response model"""
    id: uuid.UUID
    name: str
    email: str
    role: UserRole
    status: UserStatus
    tenant_id: Optional[uuid.UUID]
    last_login_at: Optional[datetime] = None


class LoginResponse(BaseModel):
    """Login result with the issued token"""
    success: bool = True
    message: str = "Login successful"
    user: UserResponse
    token: str
