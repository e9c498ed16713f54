"""
Subscription lifecycle engine

Pure decision logic: given a subscription, its tenant, the tenant's admin
users and the current time, work out which lifecycle events are due and the
status changes and notifications each one implies. Nothing here touches the
database; the subscription worker applies the returned decisions.

Events:
- EXPIRING_SOON: active, not yet ended, whole days left in the reminder set
- EXPIRED: active and past end_date -> subscription becomes expired
- SUSPENDED: expired, past the grace period, tenant not yet suspended
  -> tenant becomes suspended
- AUTO_RENEWAL_REMINDER: active, auto-renewing, ending within the window
"""

from datetime import datetime, timedelta
from decimal import Decimal
from typing import Iterable, List, Optional, Sequence
import uuid

from mandi_saas.core.exceptions import InvalidSubscriptionError
from mandi_saas.models.subscription import Subscription, SubscriptionPlanType, SubscriptionStatus
from mandi_saas.models.tenant import Tenant, TenantStatus
from mandi_saas.models.user import User
from mandi_saas.schemas.lifecycle import (
    LifecycleDecision,
    LifecycleEventType,
    NotificationRequest,
    SubscriptionStatusChange,
    TenantStatusChange,
)

EXPIRY_REMINDER_DAYS = (7, 5, 3, 2, 1)
AUTO_RENEWAL_WINDOW_DAYS = 3


def validate_subscription(subscription: Optional[Subscription]) -> None:
    """Reject records the engine cannot reason about"""
    if subscription is None:
        raise InvalidSubscriptionError("Subscription is required")
    if subscription.start_date is None or subscription.end_date is None:
        raise InvalidSubscriptionError(f"Subscription {subscription.id} has no start or end date")
    if subscription.start_date >= subscription.end_date:
        raise InvalidSubscriptionError(
            f"Subscription {subscription.id} starts on or after its end date"
        )
    if subscription.grace_period_days is None or subscription.grace_period_days < 0:
        raise InvalidSubscriptionError(
            f"Subscription {subscription.id} has a negative grace period"
        )
    if subscription.amount is None or Decimal(subscription.amount) < 0:
        raise InvalidSubscriptionError(f"Subscription {subscription.id} has a negative amount")


def format_date(value: datetime) -> str:
    return value.strftime("%d/%m/%Y")


def _plan_type(subscription: Subscription) -> str:
    return SubscriptionPlanType(subscription.plan_type).value


def _notify_admins(
    subscription: Subscription,
    recipients: Iterable[User],
    subject: str,
    message: str,
    data: dict,
) -> List[NotificationRequest]:
    return [
        NotificationRequest(
            tenant_id=subscription.tenant_id,
            recipient_id=admin.id,
            subject=subject,
            message=message,
            data={"subscription_id": str(subscription.id), **data},
        )
        for admin in recipients
    ]


def evaluate_expiring_soon(
    subscription: Subscription,
    recipients: Sequence[User],
    now: datetime,
    reminder_days: Iterable[int] = EXPIRY_REMINDER_DAYS,
) -> LifecycleDecision:
    """Reminder on each configured day count before end_date"""
    validate_subscription(subscription)
    decision = LifecycleDecision(subscription_id=subscription.id)

    if subscription.status != SubscriptionStatus.ACTIVE or now > subscription.end_date:
        return decision

    days_remaining = subscription.days_until_expiry(now)
    if days_remaining not in set(reminder_days):
        return decision

    decision.events.append(LifecycleEventType.EXPIRING_SOON)
    decision.notifications = _notify_admins(
        subscription,
        recipients,
        subject=f"Subscription Expiring in {days_remaining} Days",
        message=(
            f"Your {_plan_type(subscription)} subscription will expire on "
            f"{format_date(subscription.end_date)}. "
            "Please renew to continue using our services."
        ),
        data={"days_remaining": days_remaining, "amount": str(subscription.amount)},
    )
    return decision


def evaluate_expiry(
    subscription: Subscription,
    recipients: Sequence[User],
    now: datetime,
) -> LifecycleDecision:
    """Active subscription past its end date becomes expired"""
    validate_subscription(subscription)
    decision = LifecycleDecision(subscription_id=subscription.id)

    if subscription.status != SubscriptionStatus.ACTIVE or not subscription.is_expired(now):
        return decision

    decision.events.append(LifecycleEventType.EXPIRED)
    decision.subscription_changes.append(SubscriptionStatusChange(
        subscription_id=subscription.id,
        from_status=SubscriptionStatus.ACTIVE,
        to_status=SubscriptionStatus.EXPIRED,
    ))
    decision.notifications = _notify_admins(
        subscription,
        recipients,
        subject="Subscription Expired",
        message=(
            f"Your subscription has expired. You have {subscription.grace_period_days} "
            "days grace period to renew. After that, your account will be suspended."
        ),
        data={"grace_period_days": subscription.grace_period_days},
    )
    return decision


def evaluate_suspension(
    subscription: Subscription,
    tenant: Tenant,
    recipients: Sequence[User],
    now: datetime,
    status: Optional[SubscriptionStatus] = None,
    current_subscription_id: Optional[uuid.UUID] = None,
) -> LifecycleDecision:
    """Suspend the tenant once the grace period after expiry is over

    Fires once: a tenant that is already suspended produces no decision.
    Only the tenant's current subscription can suspend it; an old expired
    term left in the history after a renewal is ignored. The current
    subscription is `current_subscription_id` when given, else the one the
    tenant references.
    `status` overrides the stored status when an expiry decided in the same
    evaluation has not been persisted yet.
    """
    validate_subscription(subscription)
    if tenant is None or tenant.id != subscription.tenant_id:
        raise InvalidSubscriptionError(
            f"Subscription {subscription.id} evaluated against the wrong tenant"
        )
    decision = LifecycleDecision(subscription_id=subscription.id)

    if (status or subscription.status) != SubscriptionStatus.EXPIRED:
        return decision
    if not subscription.is_past_grace_period(now):
        return decision
    if tenant.status == TenantStatus.SUSPENDED:
        return decision
    current_id = current_subscription_id or tenant.subscription_id
    if current_id is not None and current_id != subscription.id:
        return decision

    decision.events.append(LifecycleEventType.SUSPENDED)
    decision.tenant_changes.append(TenantStatusChange(
        tenant_id=tenant.id,
        from_status=tenant.status,
        to_status=TenantStatus.SUSPENDED,
    ))
    decision.notifications = _notify_admins(
        subscription,
        recipients,
        subject="Account Suspended",
        message=(
            "Your account has been suspended due to expired subscription. "
            "Please renew to reactivate your account."
        ),
        data={},
    )
    return decision


def evaluate_auto_renewal(
    subscription: Subscription,
    recipients: Sequence[User],
    now: datetime,
    window_days: int = AUTO_RENEWAL_WINDOW_DAYS,
) -> LifecycleDecision:
    """Heads-up before an auto-renewing subscription is charged again"""
    validate_subscription(subscription)
    decision = LifecycleDecision(subscription_id=subscription.id)

    if subscription.status != SubscriptionStatus.ACTIVE or not subscription.auto_renew:
        return decision
    remaining = subscription.end_date - now
    if remaining < timedelta(0) or remaining > timedelta(days=window_days):
        return decision

    decision.events.append(LifecycleEventType.AUTO_RENEWAL_REMINDER)
    decision.notifications = _notify_admins(
        subscription,
        recipients,
        subject="Auto-Renewal Reminder",
        message=(
            f"Your {_plan_type(subscription)} subscription will auto-renew on "
            f"{format_date(subscription.end_date)} for ₹{subscription.amount}. "
            "You can disable auto-renewal from settings."
        ),
        data={"amount": str(subscription.amount)},
    )
    return decision


def evaluate_subscription(
    subscription: Subscription,
    tenant: Tenant,
    recipients: Sequence[User],
    now: datetime,
    reminder_days: Iterable[int] = EXPIRY_REMINDER_DAYS,
    renewal_window_days: int = AUTO_RENEWAL_WINDOW_DAYS,
    current_subscription_id: Optional[uuid.UUID] = None,
) -> LifecycleDecision:
    """Evaluate every event for one record in tick order"""
    decision = evaluate_expiring_soon(subscription, recipients, now, reminder_days)

    expiry = evaluate_expiry(subscription, recipients, now)
    decision = decision.merge(expiry)
    status = SubscriptionStatus.EXPIRED if expiry.subscription_changes else subscription.status

    decision = decision.merge(evaluate_suspension(
        subscription, tenant, recipients, now, status, current_subscription_id
    ))
    return decision.merge(evaluate_auto_renewal(subscription, recipients, now, renewal_window_days))
