"""
Tenant (mandi) model - Multi-tenancy foundation
"""

from sqlmodel import Field, SQLModel
from datetime import datetime
from typing import Optional
from enum import Enum
import uuid

from mandi_saas.core.clock import utcnow


class TenantStatus(str, Enum):
    """Status of a mandi account"""
    ACTIVE = "active"
    INACTIVE = "inactive"       # Administratively disabled
    SUSPENDED = "suspended"     # Subscription grace period exhausted


class Tenant(SQLModel, table=True):
    """Subscribing organization (mandi)"""

    __tablename__ = "tenants"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    name: str = Field(index=True, max_length=255)
    status: TenantStatus = Field(
        default=TenantStatus.ACTIVE,
        index=True,
        description="Account status, suspended by the subscription worker"
    )

    # Current subscription (history lives in subscriptions.tenant_id)
    subscription_id: Optional[uuid.UUID] = Field(
        default=None,
        nullable=True,
        index=True,
        description="Current subscription of this tenant"
    )

    # Timestamps
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: Optional[datetime] = None

    def is_suspended(self) -> bool:
        """Check if tenant is suspended"""
        return self.status == TenantStatus.SUSPENDED
