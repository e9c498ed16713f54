"""
User model with roles and tenant scoping
"""

from sqlmodel import Field, SQLModel
from sqlalchemy import Column, JSON
from datetime import datetime, timedelta
from typing import Optional, List
from enum import Enum
import hashlib
import secrets
import uuid

from mandi_saas.core.clock import utcnow

RESET_TOKEN_TTL = timedelta(hours=1)


class UserRole(str, Enum):
    """User roles for RBAC"""
    SUPER_ADMIN = "super_admin"
    ADMIN = "admin"
    USER = "user"
    MANAGER = "manager"
    DATA_ENTRY = "data_entry"
    ACCOUNTANT = "accountant"
    GROWER = "grower"
    BUYER = "buyer"
    VIEWER = "viewer"


class UserStatus(str, Enum):
    """Status of a user account"""
    ACTIVE = "active"
    INACTIVE = "inactive"
    BLOCKED = "blocked"


def _hash_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


class User(SQLModel, table=True):
    """User model with tenant isolation"""

    __tablename__ = "users"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    tenant_id: Optional[uuid.UUID] = Field(
        default=None,
        foreign_key="tenants.id",
        nullable=True,
        index=True,
        description="Tenant ID for multi-tenant isolation (empty for super admins)"
    )

    # Profile
    name: str = Field(nullable=False, max_length=100)
    email: str = Field(unique=True, index=True, nullable=False, max_length=255)
    phone: str = Field(nullable=False, max_length=20)

    # Authentication
    password_hash: str = Field(nullable=False)

    # RBAC
    role: UserRole = Field(default=UserRole.USER, nullable=False, index=True)
    permissions: List[str] = Field(default_factory=list, sa_column=Column(JSON))

    # Status
    status: UserStatus = Field(default=UserStatus.ACTIVE, nullable=False, index=True)
    last_login_at: Optional[datetime] = None

    # Password reset
    reset_password_token: Optional[str] = Field(default=None, nullable=True)
    reset_password_expires: Optional[datetime] = Field(default=None, nullable=True)

    # Timestamps
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: Optional[datetime] = None

    def is_active(self) -> bool:
        return self.status == UserStatus.ACTIVE

    def generate_password_reset_token(self, now: Optional[datetime] = None) -> str:
        """Store a hashed reset token valid for one hour and return the raw token"""
        now = now or utcnow()
        token = secrets.token_hex(20)
        self.reset_password_token = _hash_token(token)
        self.reset_password_expires = now + RESET_TOKEN_TTL
        return token

    def compare_reset_password_token(self, token: str, now: Optional[datetime] = None) -> bool:
        """Check a raw reset token against the stored hash and expiry"""
        if not self.reset_password_token or not self.reset_password_expires:
            return False
        if (now or utcnow()) > self.reset_password_expires:
            return False
        return secrets.compare_digest(self.reset_password_token, _hash_token(token))
