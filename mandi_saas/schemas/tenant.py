"""
Pydantic schemas for tenants and subscriptions
"""

from pydantic import BaseModel
from typing import Optional
from datetime import datetime
from decimal import Decimal
import uuid

from mandi_saas.models.tenant import TenantStatus
from mandi_saas.models.subscription import (
    Subscription, SubscriptionPlan, SubscriptionPlanType, SubscriptionStatus
)


class TenantResponse(BaseModel):
    """Tenant response model"""
    id: uuid.UUID
    name: str
    status: TenantStatus
    subscription_id: Optional[uuid.UUID]
    created_at: datetime


class SubscriptionResponse(BaseModel):
    """Subscription with derived lifecycle facts"""
    id: uuid.UUID
    tenant_id: uuid.UUID
    plan: SubscriptionPlan
    plan_type: SubscriptionPlanType
    amount: Decimal
    start_date: datetime
    end_date: datetime
    status: SubscriptionStatus
    auto_renew: bool
    grace_period_days: int
    max_users: int
    storage_gb: int
    whatsapp_enabled: bool
    priority_support: bool

    is_expired: bool
    is_in_grace_period: bool
    days_until_expiry: int

    @classmethod
    def from_subscription(cls, subscription: Subscription, now: datetime) -> "SubscriptionResponse":
        return cls(
            id=subscription.id,
            tenant_id=subscription.tenant_id,
            plan=subscription.plan,
            plan_type=subscription.plan_type,
            amount=subscription.amount,
            start_date=subscription.start_date,
            end_date=subscription.end_date,
            status=subscription.status,
            auto_renew=subscription.auto_renew,
            grace_period_days=subscription.grace_period_days,
            max_users=subscription.max_users,
            storage_gb=subscription.storage_gb,
            whatsapp_enabled=subscription.whatsapp_enabled,
            priority_support=subscription.priority_support,
            is_expired=subscription.is_expired(now),
            is_in_grace_period=subscription.is_in_grace_period(now),
            days_until_expiry=subscription.days_until_expiry(now),
        )
