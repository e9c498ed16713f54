"""
Subscription lifecycle worker

One tick runs four passes over the subscriptions table, each reading the
current persisted status:
1. expiring soon reminders (active, ending within the lookahead window)
2. expiry (active, ended) -> subscription expired
3. suspension (expired, grace period over) -> tenant suspended
4. auto-renewal reminders (active, auto-renewing, ending within the window)
On the first day of the month the monthly report is generated as well.

Failures are isolated per record and per pass and collected in the tick
summary; a tick never aborts because of one bad record.

Usage:
    python -m mandi_saas.workers.subscription_worker          # run on schedule
    python -m mandi_saas.workers.subscription_worker --once   # single tick
"""

import argparse
import asyncio
import signal
import time
from datetime import datetime, timedelta
from typing import Callable, List, Optional, Sequence

from sqlmodel import Session
import structlog

from mandi_saas.core.clock import Clock, utcnow
from mandi_saas.core.config import Settings, get_settings
from mandi_saas.core.database import get_worker_engine
from mandi_saas.core.exceptions import TenantNotFoundError
from mandi_saas.core.logging_config import configure_logging
from mandi_saas.models.subscription import Subscription, SubscriptionStatus
from mandi_saas.models.tenant import Tenant
from mandi_saas.models.user import User
from mandi_saas.schemas.lifecycle import LifecycleDecision, TickSummary
from mandi_saas.services.lifecycle import (
    evaluate_auto_renewal,
    evaluate_expiring_soon,
    evaluate_expiry,
    evaluate_suspension,
)
from mandi_saas.services.notifications import DatabaseNotificationSink
from mandi_saas.services.reporting import generate_monthly_report, is_report_day
from mandi_saas.services.repositories import (
    SubscriptionRepository,
    TenantRepository,
    UserRepository,
)
from mandi_saas.workers.scheduler import LifecycleScheduler, build_tick_lock

logger = structlog.get_logger(__name__)

PASS_EXPIRING_SOON = "expiring_soon"
PASS_EXPIRE = "expire"
PASS_SUSPEND = "suspend"
PASS_AUTO_RENEWAL = "auto_renewal"
PASS_NOTIFY = "notify"
PASS_REPORT = "monthly_report"

Evaluator = Callable[[Subscription, Tenant, List[User]], LifecycleDecision]


class SubscriptionLifecycleWorker:
    """Applies lifecycle decisions for every due subscription"""

    def __init__(
        self,
        session: Session,
        notification_sink=None,
        clock: Clock = utcnow,
        settings: Optional[Settings] = None,
    ):
        self.session = session
        self.settings = settings or get_settings()
        self.subscriptions = SubscriptionRepository(session)
        self.tenants = TenantRepository(session)
        self.users = UserRepository(session)
        self.notifications = notification_sink or DatabaseNotificationSink(session)
        self.clock = clock
        self._deadline: Optional[float] = None

    def run_tick(self, now: Optional[datetime] = None, deadline: Optional[float] = None) -> TickSummary:
        """Run all passes once; `deadline` is a time.monotonic() value"""
        now = now or self.clock()
        self._deadline = deadline
        summary = TickSummary(started_at=now)
        logger.info(f"Starting subscription lifecycle tick at {now.isoformat()}")

        passes = (
            (PASS_EXPIRING_SOON, self.check_expiring_subscriptions),
            (PASS_EXPIRE, self.expire_subscriptions),
            (PASS_SUSPEND, self.suspend_expired_accounts),
            (PASS_AUTO_RENEWAL, self.send_auto_renewal_reminders),
        )
        for pass_name, run_pass in passes:
            if self._out_of_time(summary):
                break
            try:
                run_pass(now, summary)
            except Exception as e:
                self.session.rollback()
                logger.error(f"Pass {pass_name} failed: {e}")
                summary.record_error(pass_name, e)

        if is_report_day(now) and not self._out_of_time(summary):
            try:
                summary.report = generate_monthly_report(self.subscriptions, self.tenants, now)
            except Exception as e:
                self.session.rollback()
                logger.error(f"Monthly report failed: {e}")
                summary.record_error(PASS_REPORT, e)

        summary.finished_at = self.clock()
        logger.info(
            f"Subscription lifecycle tick complete: {summary.subscriptions_evaluated} evaluated, "
            f"{summary.notifications_emitted} notifications, {summary.error_count} errors"
        )
        return summary

    # Passes

    def check_expiring_subscriptions(self, now: datetime, summary: TickSummary) -> None:
        window_end = now + timedelta(days=self.settings.EXPIRY_LOOKAHEAD_DAYS)
        candidates = self.subscriptions.find_by_status_and_date_range(
            SubscriptionStatus.ACTIVE, now, window_end
        )
        logger.info(f"Found {len(candidates)} expiring subscriptions")
        reminder_days = self.settings.EXPIRY_REMINDER_DAYS

        def evaluate(subscription, tenant, admins):
            return evaluate_expiring_soon(subscription, admins, now, reminder_days)

        self._process(PASS_EXPIRING_SOON, candidates, evaluate, summary)

    def expire_subscriptions(self, now: datetime, summary: TickSummary) -> None:
        candidates = self.subscriptions.find_by_status(SubscriptionStatus.ACTIVE, end_before=now)
        logger.info(f"Found {len(candidates)} expired subscriptions")

        def evaluate(subscription, tenant, admins):
            return evaluate_expiry(subscription, admins, now)

        self._process(PASS_EXPIRE, candidates, evaluate, summary)

    def suspend_expired_accounts(self, now: datetime, summary: TickSummary) -> None:
        candidates = self.subscriptions.find_by_status(SubscriptionStatus.EXPIRED)
        logger.info(f"Checking {len(candidates)} expired subscriptions for grace period end")

        def evaluate(subscription, tenant, admins):
            current = self.subscriptions.find_current_for_tenant(tenant.id)
            return evaluate_suspension(
                subscription, tenant, admins, now,
                current_subscription_id=current.id if current else None,
            )

        self._process(PASS_SUSPEND, candidates, evaluate, summary)

    def send_auto_renewal_reminders(self, now: datetime, summary: TickSummary) -> None:
        window_days = self.settings.AUTO_RENEWAL_WINDOW_DAYS
        candidates = self.subscriptions.find_by_status_and_date_range(
            SubscriptionStatus.ACTIVE, now, now + timedelta(days=window_days), auto_renew=True
        )
        logger.info(f"Found {len(candidates)} auto-renewal subscriptions")

        def evaluate(subscription, tenant, admins):
            return evaluate_auto_renewal(subscription, admins, now, window_days)

        self._process(PASS_AUTO_RENEWAL, candidates, evaluate, summary)

    # Helpers

    def _process(
        self,
        pass_name: str,
        candidates: Sequence[Subscription],
        evaluate: Evaluator,
        summary: TickSummary,
    ) -> None:
        # Ids are read up front; a rollback expires every loaded candidate
        records = [(s, s.id, s.tenant_id) for s in candidates]
        for subscription, subscription_id, tenant_id in records:
            if self._out_of_time(summary):
                return
            summary.subscriptions_evaluated += 1
            try:
                tenant = self.tenants.find_by_id(tenant_id)
                if tenant is None:
                    raise TenantNotFoundError(
                        f"Tenant {tenant_id} not found for subscription {subscription_id}"
                    )
                admins = self.users.find_admins(tenant_id)
                decision = evaluate(subscription, tenant, admins)
                self._apply(decision, subscription, summary)
            except Exception as e:
                self.session.rollback()
                logger.error(f"[{pass_name}] Skipped subscription {subscription_id}: {e}")
                summary.record_error(pass_name, e, subscription_id=subscription_id)

    def _apply(self, decision: LifecycleDecision, subscription: Subscription, summary: TickSummary) -> None:
        if decision.is_empty():
            return

        for change in decision.subscription_changes:
            subscription.status = change.to_status
            self.subscriptions.save(subscription)
            logger.info(
                f"Subscription {change.subscription_id} {change.from_status.value} -> "
                f"{change.to_status.value} for tenant {subscription.tenant_id}"
            )

        for change in decision.tenant_changes:
            self.tenants.update_status(change.tenant_id, change.to_status)
            logger.info(f"Tenant {change.tenant_id} {change.from_status.value} -> {change.to_status.value}")

        for event in decision.events:
            summary.record_event(event)

        for request in decision.notifications:
            try:
                self.notifications.submit(request)
                summary.notifications_emitted += 1
            except Exception as e:
                self.session.rollback()
                logger.error(f"Failed to queue '{request.subject}' for {request.recipient_id}: {e}")
                summary.record_error(PASS_NOTIFY, e, subscription_id=decision.subscription_id)

    def _out_of_time(self, summary: TickSummary) -> bool:
        if summary.timed_out:
            return True
        if self._deadline is None or time.monotonic() < self._deadline:
            return False
        logger.warning("Subscription lifecycle tick ran past its deadline, skipping remaining work")
        summary.timed_out = True
        return True


def run_subscription_worker(
    now: Optional[datetime] = None,
    deadline: Optional[float] = None,
) -> TickSummary:
    """Run one tick against the configured database"""
    with Session(get_worker_engine()) as session:
        worker = SubscriptionLifecycleWorker(session)
        return worker.run_tick(now=now, deadline=deadline)


async def serve(settings: Optional[Settings] = None) -> None:
    """Run the tick on schedule until SIGINT/SIGTERM"""
    settings = settings or get_settings()
    scheduler = LifecycleScheduler(
        tick=run_subscription_worker,
        lock=build_tick_lock(settings),
        settings=settings,
    )
    stop = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, stop.set)

    scheduler.start()
    try:
        await stop.wait()
    finally:
        scheduler.shutdown()


def main(argv: Optional[Sequence[str]] = None) -> None:
    """Main entry point for the subscription worker"""
    parser = argparse.ArgumentParser(description="Subscription lifecycle worker")
    parser.add_argument("--once", action="store_true", help="run a single tick and exit")
    args = parser.parse_args(argv)

    settings = get_settings()
    configure_logging(settings.LOG_LEVEL, settings.LOG_JSON)

    if args.once:
        summary = run_subscription_worker()
        logger.info(f"Results: {summary.model_dump_json()}")
        return

    asyncio.run(serve(settings))


if __name__ == "__main__":
    main()
