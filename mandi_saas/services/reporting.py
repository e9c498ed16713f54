"""
Monthly platform report
"""

from datetime import datetime, timedelta
from typing import Optional, Tuple

import structlog

from mandi_saas.core.clock import utcnow
from mandi_saas.models.subscription import SubscriptionStatus
from mandi_saas.models.tenant import TenantStatus
from mandi_saas.schemas.lifecycle import MonthlyReport, MonthlyReportStats
from mandi_saas.services.repositories import SubscriptionRepository, TenantRepository

logger = structlog.get_logger(__name__)


def is_report_day(now: datetime) -> bool:
    """Reports are produced on the first day of each month"""
    return now.day == 1


def month_bounds(now: datetime) -> Tuple[datetime, datetime]:
    """First and last instant of the calendar month containing `now`"""
    start = datetime(now.year, now.month, 1)
    if now.month == 12:
        next_month = datetime(now.year + 1, 1, 1)
    else:
        next_month = datetime(now.year, now.month + 1, 1)
    return start, next_month - timedelta(microseconds=1)


def generate_monthly_report(
    subscriptions: SubscriptionRepository,
    tenants: TenantRepository,
    now: Optional[datetime] = None,
) -> MonthlyReport:
    """Tenant and subscription counts plus revenue for the month of `now`"""
    now = now or utcnow()
    start, end = month_bounds(now)

    stats = MonthlyReportStats(
        total_tenants=tenants.count_total(),
        active_tenants=tenants.count_by_status(TenantStatus.ACTIVE),
        suspended_tenants=tenants.count_by_status(TenantStatus.SUSPENDED),
        active_subscriptions=subscriptions.count_by_status(SubscriptionStatus.ACTIVE),
        expired_subscriptions=subscriptions.count_by_status(SubscriptionStatus.EXPIRED),
        total_revenue=subscriptions.sum_successful_payments(start, end),
    )

    report = MonthlyReport(
        month=now.strftime("%B %Y"),
        period_start=start,
        period_end=end,
        stats=stats,
        generated_at=utcnow(),
    )
    logger.info(f"Monthly report generated for {report.month}: {stats.model_dump_json()}")
    return report
