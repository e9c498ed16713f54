"""
Schemas module
"""

from mandi_saas.schemas.token import TokenPayload
from mandi_saas.schemas.user import LoginResponse, UserLogin, UserResponse
from mandi_saas.schemas.tenant import SubscriptionResponse, TenantResponse
from mandi_saas.schemas.lifecycle import (
    LifecycleDecision,
    LifecycleEventType,
    MonthlyReport,
    MonthlyReportStats,
    NotificationRequest,
    TickSummary,
)

__all__ = [
    "TokenPayload",
    "LoginResponse",
    "UserLogin",
    "UserResponse",
    "SubscriptionResponse",
    "TenantResponse",
    "LifecycleDecision",
    "LifecycleEventType",
    "MonthlyReport",
    "MonthlyReportStats",
    "NotificationRequest",
    "TickSummary",
]
