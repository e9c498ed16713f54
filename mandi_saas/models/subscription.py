"""
Subscription model

One billing term of a tenant. A tenant keeps its whole subscription history;
only the subscription worker moves a record from active to expired.
"""

from sqlmodel import Field, SQLModel
from sqlalchemy import Column, Numeric
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Optional
from enum import Enum
import uuid

from mandi_saas.core.clock import utcnow

ONE_DAY = timedelta(days=1)


class SubscriptionPlan(str, Enum):
    """Commercial plan"""
    FREE = "free"
    PRO = "pro"
    ENTERPRISE = "enterprise"


class SubscriptionPlanType(str, Enum):
    """Billing cadence"""
    MONTHLY = "monthly"
    YEARLY = "yearly"
    ENTERPRISE = "enterprise"


class SubscriptionStatus(str, Enum):
    """Status of a subscription"""
    ACTIVE = "active"
    EXPIRED = "expired"
    CANCELLED = "cancelled"     # User/admin initiated, never set by the worker
    SUSPENDED = "suspended"


def ceil_days(delta: timedelta) -> int:
    """Round a time span up to whole days (6.01 days -> 7, -0.5 days -> 0)"""
    return -(-delta // ONE_DAY)


class Subscription(SQLModel, table=True):
    """Billing term of a tenant"""

    __tablename__ = "subscriptions"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    tenant_id: uuid.UUID = Field(
        foreign_key="tenants.id",
        index=True,
        description="Tenant this subscription belongs to"
    )

    # Plan
    plan: SubscriptionPlan = Field(description="Plan: free, pro, enterprise")
    plan_type: SubscriptionPlanType = Field(description="Billing cadence: monthly, yearly, enterprise")
    amount: Decimal = Field(
        description="Price of the term",
        sa_column=Column(Numeric(10, 2), nullable=False)
    )

    # Term
    start_date: datetime = Field(description="Start of the billing term")
    end_date: datetime = Field(index=True, description="End of the billing term")
    status: SubscriptionStatus = Field(
        default=SubscriptionStatus.ACTIVE,
        index=True,
        description="Current status of the subscription"
    )
    auto_renew: bool = Field(default=False, index=True)
    grace_period_days: int = Field(
        default=0,
        description="Days after end_date during which access continues"
    )

    # Features
    max_users: int = Field(default=1)
    storage_gb: int = Field(default=1)
    whatsapp_enabled: bool = Field(default=False)
    priority_support: bool = Field(default=False)

    # Timestamps
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: Optional[datetime] = None

    def grace_period_ends_at(self) -> datetime:
        """End of the grace period following end_date"""
        return self.end_date + timedelta(days=self.grace_period_days)

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        """Check if the billing term is over"""
        return (now or utcnow()) > self.end_date

    def is_in_grace_period(self, now: Optional[datetime] = None) -> bool:
        """Check if the term is over but the grace period is still running"""
        now = now or utcnow()
        return self.end_date < now <= self.grace_period_ends_at()

    def is_past_grace_period(self, now: Optional[datetime] = None) -> bool:
        """Check if the grace period is over"""
        return (now or utcnow()) > self.grace_period_ends_at()

    def days_until_expiry(self, now: Optional[datetime] = None) -> int:
        """Whole days left until end_date, rounded up; negative once expired"""
        return ceil_days(self.end_date - (now or utcnow()))
