"""
Value types produced by the subscription lifecycle engine and worker
"""

from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional
from datetime import datetime
from decimal import Decimal
from enum import Enum
import uuid

from mandi_saas.models.notification import NotificationChannel, NotificationStatus
from mandi_saas.models.subscription import SubscriptionStatus
from mandi_saas.models.tenant import TenantStatus


class LifecycleEventType(str, Enum):
    """Time-boundary transitions evaluated on every tick"""
    EXPIRING_SOON = "expiring_soon"
    EXPIRED = "expired"
    SUSPENDED = "suspended"
    AUTO_RENEWAL_REMINDER = "auto_renewal_reminder"


class NotificationRequest(BaseModel):
    """Instruction to deliver one message to one recipient"""
    tenant_id: uuid.UUID
    recipient_id: uuid.UUID
    recipient_type: str = "user"
    channel: NotificationChannel = NotificationChannel.EMAIL
    subject: str
    message: str
    data: Dict[str, Any] = Field(default_factory=dict)
    status: NotificationStatus = NotificationStatus.PENDING


class SubscriptionStatusChange(BaseModel):
    subscription_id: uuid.UUID
    from_status: SubscriptionStatus
    to_status: SubscriptionStatus


class TenantStatusChange(BaseModel):
    tenant_id: uuid.UUID
    from_status: TenantStatus
    to_status: TenantStatus


class LifecycleDecision(BaseModel):
    """Effects due for one subscription at one instant"""
    subscription_id: uuid.UUID
    events: List[LifecycleEventType] = Field(default_factory=list)
    subscription_changes: List[SubscriptionStatusChange] = Field(default_factory=list)
    tenant_changes: List[TenantStatusChange] = Field(default_factory=list)
    notifications: List[NotificationRequest] = Field(default_factory=list)

    def is_empty(self) -> bool:
        return not self.events

    def merge(self, other: "LifecycleDecision") -> "LifecycleDecision":
        """Combine with another decision for the same subscription"""
        return LifecycleDecision(
            subscription_id=self.subscription_id,
            events=self.events + other.events,
            subscription_changes=self.subscription_changes + other.subscription_changes,
            tenant_changes=self.tenant_changes + other.tenant_changes,
            notifications=self.notifications + other.notifications,
        )


class MonthlyReportStats(BaseModel):
    total_tenants: int
    active_tenants: int
    suspended_tenants: int
    active_subscriptions: int
    expired_subscriptions: int
    total_revenue: Decimal


class MonthlyReport(BaseModel):
    """Platform summary for one calendar month"""
    month: str
    period_start: datetime
    period_end: datetime
    stats: MonthlyReportStats
    generated_at: datetime


class TickError(BaseModel):
    """Failure isolated to one record or one pass"""
    pass_name: str
    subscription_id: Optional[uuid.UUID] = None
    error_type: str
    message: str


class TickSummary(BaseModel):
    """Outcome of one worker tick"""
    started_at: datetime
    finished_at: Optional[datetime] = None
    subscriptions_evaluated: int = 0
    events: Dict[LifecycleEventType, int] = Field(
        default_factory=lambda: {event: 0 for event in LifecycleEventType}
    )
    notifications_emitted: int = 0
    errors: List[TickError] = Field(default_factory=list)
    report: Optional[MonthlyReport] = None
    timed_out: bool = False

    @property
    def error_count(self) -> int:
        return len(self.errors)

    def record_event(self, event: LifecycleEventType) -> None:
        self.events[event] = self.events.get(event, 0) + 1

    def record_error(
        self,
        pass_name: str,
        error: Exception,
        subscription_id: Optional[uuid.UUID] = None,
    ) -> None:
        self.errors.append(TickError(
            pass_name=pass_name,
            subscription_id=subscription_id,
            error_type=type(error).__name__,
            message=str(error),
        ))
