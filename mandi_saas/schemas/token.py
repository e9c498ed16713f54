"""
Pydantic schemas for authentication and tokens
"""

from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime


class TokenPayload(BaseModel):
    """JWT token payload"""
    sub: str = Field(..., description="User ID")
    email: str = Field(..., description="User email")
    role: str = Field(..., description="User role")
    tenant_id: Optional[str] = Field(default=None, description="Tenant ID (empty for super admins)")
    exp: datetime = Field(..., description="Expiration time")
    iat: Optional[datetime] = Field(default=None, description="Issued at")

    @property
    def user_id(self) -> str:
        return self.sub
