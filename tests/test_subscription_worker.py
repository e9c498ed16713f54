"""
Integration tests for the subscription lifecycle worker
"""

import time
import pytest
from datetime import datetime, timedelta
from decimal import Decimal
from unittest.mock import Mock
from sqlalchemy import delete
from sqlmodel import Session, select
import uuid

from mandi_saas.models import (
    Notification,
    NotificationStatus,
    Subscription,
    SubscriptionStatus,
    Tenant,
    TenantStatus,
    UserRole,
)
from mandi_saas.schemas.lifecycle import LifecycleEventType
from mandi_saas.workers.subscription_worker import (
    PASS_EXPIRE,
    PASS_NOTIFY,
    SubscriptionLifecycleWorker,
    main,
)


def notifications(db: Session):
    return list(db.exec(select(Notification)).all())


def subjects(db: Session):
    return sorted(n.subject for n in notifications(db))


@pytest.fixture
def tenant(make_tenant):
    return make_tenant()


@pytest.fixture
def admin(make_user, tenant):
    return make_user(tenant, role=UserRole.ADMIN)


@pytest.fixture
def worker(db, now):
    return SubscriptionLifecycleWorker(db, clock=lambda: now)


def test_expiring_soon_reminder(db, worker, now, tenant, admin, make_user, make_subscription):
    """Test only admin users receive the expiring soon reminder"""
    make_user(tenant, role=UserRole.DATA_ENTRY)
    subscription = make_subscription(tenant, now + timedelta(days=5))

    summary = worker.run_tick()

    queued = notifications(db)
    assert len(queued) == 1
    assert queued[0].recipient_id == admin.id
    assert queued[0].tenant_id == tenant.id
    assert queued[0].subject == "Subscription Expiring in 5 Days"
    assert queued[0].status == NotificationStatus.PENDING
    assert queued[0].data["subscription_id"] == str(subscription.id)
    assert summary.events[LifecycleEventType.EXPIRING_SOON] == 1
    assert summary.notifications_emitted == 1
    assert summary.error_count == 0

    db.refresh(subscription)
    assert subscription.status == SubscriptionStatus.ACTIVE


def test_expire_subscription(db, worker, now, tenant, admin, make_subscription):
    """Test an ended subscription is persisted as expired with one notice"""
    subscription = make_subscription(tenant, now - timedelta(days=1), grace_period_days=3)

    summary = worker.run_tick()

    db.refresh(subscription)
    assert subscription.status == SubscriptionStatus.EXPIRED
    assert subscription.updated_at is not None
    assert subjects(db) == ["Subscription Expired"]
    assert summary.events[LifecycleEventType.EXPIRED] == 1
    assert summary.events[LifecycleEventType.SUSPENDED] == 0

    db.refresh(tenant)
    assert tenant.status == TenantStatus.ACTIVE


def test_second_tick_does_not_repeat(db, worker, now, tenant, admin, make_subscription):
    """Test expiry and suspension notices are not sent again on the next tick"""
    make_subscription(tenant, now - timedelta(days=1), grace_period_days=3)
    make_subscription(
        tenant, now - timedelta(days=10), status=SubscriptionStatus.EXPIRED, grace_period_days=3
    )

    worker.run_tick()
    first = subjects(db)
    summary = worker.run_tick(now=now + timedelta(hours=6))

    assert subjects(db) == first
    assert summary.notifications_emitted == 0


def test_suspend_after_grace_period(db, worker, now, tenant, admin, make_subscription):
    """Test the tenant is suspended once, then left alone"""
    make_subscription(
        tenant, now - timedelta(days=4), status=SubscriptionStatus.EXPIRED, grace_period_days=3
    )

    summary = worker.run_tick()

    db.refresh(tenant)
    assert tenant.status == TenantStatus.SUSPENDED
    assert subjects(db) == ["Account Suspended"]
    assert summary.events[LifecycleEventType.SUSPENDED] == 1

    summary = worker.run_tick(now=now + timedelta(days=1))

    assert subjects(db) == ["Account Suspended"]
    assert summary.events[LifecycleEventType.SUSPENDED] == 0


def test_zero_grace_period_suspends_in_same_tick(db, worker, now, tenant, admin, make_subscription):
    """Test expiry and suspension both happen when there is no grace period"""
    make_subscription(tenant, now - timedelta(hours=1), grace_period_days=0)

    summary = worker.run_tick()

    db.refresh(tenant)
    assert tenant.status == TenantStatus.SUSPENDED
    assert subjects(db) == ["Account Suspended", "Subscription Expired"]
    assert summary.events[LifecycleEventType.EXPIRED] == 1
    assert summary.events[LifecycleEventType.SUSPENDED] == 1


def test_old_expired_term_does_not_suspend(db, worker, now, tenant, admin, make_subscription):
    """Test a renewed tenant is not suspended by its previous term"""
    make_subscription(
        tenant, now - timedelta(days=40), status=SubscriptionStatus.EXPIRED, grace_period_days=3
    )
    make_subscription(tenant, now + timedelta(days=20))

    worker.run_tick()

    db.refresh(tenant)
    assert tenant.status == TenantStatus.ACTIVE
    assert notifications(db) == []


def test_auto_renewal_and_expiring_soon(db, worker, now, tenant, admin, make_subscription):
    """Test both reminders are queued for an auto-renewing subscription"""
    make_subscription(tenant, now + timedelta(days=2), auto_renew=True, amount=Decimal("1499.00"))

    summary = worker.run_tick()

    assert subjects(db) == ["Auto-Renewal Reminder", "Subscription Expiring in 2 Days"]
    renewal = [n for n in notifications(db) if n.subject == "Auto-Renewal Reminder"][0]
    assert "₹1499.00" in renewal.message
    assert summary.events[LifecycleEventType.AUTO_RENEWAL_REMINDER] == 1


def test_cancelled_subscription_is_ignored(db, worker, now, tenant, admin, make_subscription):
    """Test cancelled subscriptions are never touched"""
    subscription = make_subscription(
        tenant, now - timedelta(days=30), status=SubscriptionStatus.CANCELLED, grace_period_days=0
    )

    summary = worker.run_tick()

    db.refresh(subscription)
    db.refresh(tenant)
    assert subscription.status == SubscriptionStatus.CANCELLED
    assert tenant.status == TenantStatus.ACTIVE
    assert notifications(db) == []
    assert summary.subscriptions_evaluated == 0


def test_missing_tenant_is_isolated(db, worker, now, tenant, admin, make_subscription):
    """Test a record with a missing tenant is skipped and the tick continues"""
    make_subscription(tenant, now + timedelta(days=5))
    orphan = make_subscription(tenant, now - timedelta(days=1), current=False)
    # Point the orphan at a tenant that does not exist
    orphan.tenant_id = uuid.uuid4()
    db.add(orphan)
    db.commit()

    summary = worker.run_tick()

    assert summary.error_count == 1
    error = summary.errors[0]
    assert error.pass_name == PASS_EXPIRE
    assert error.subscription_id == orphan.id
    assert error.error_type == "TenantNotFoundError"
    assert subjects(db) == ["Subscription Expiring in 5 Days"]

    db.refresh(orphan)
    assert orphan.status == SubscriptionStatus.ACTIVE


def test_sink_failure_is_recorded(db, now, tenant, admin, make_user, make_subscription):
    """Test a failing notification sink does not abort the tick"""
    second_admin = make_user(tenant, role=UserRole.ADMIN)
    sink = Mock()
    sink.submit.side_effect = [ConnectionError("smtp down"), None]
    worker = SubscriptionLifecycleWorker(db, notification_sink=sink, clock=lambda: now)
    subscription = make_subscription(tenant, now - timedelta(days=1))

    summary = worker.run_tick()

    assert sink.submit.call_count == 2
    assert {call.args[0].recipient_id for call in sink.submit.call_args_list} == {
        admin.id, second_admin.id
    }
    assert summary.notifications_emitted == 1
    assert summary.error_count == 1
    assert summary.errors[0].pass_name == PASS_NOTIFY
    assert summary.errors[0].error_type == "ConnectionError"

    db.refresh(subscription)
    assert subscription.status == SubscriptionStatus.EXPIRED


def test_report_on_first_of_month(db, tenant, make_subscription, make_payment):
    """Test the monthly report is generated on the 1st only"""
    first = datetime(2025, 7, 1, 6, 0, 0)
    subscription = make_subscription(tenant, first + timedelta(days=20))
    make_payment(subscription, Decimal("999.00"), first)
    worker = SubscriptionLifecycleWorker(db, clock=lambda: first)

    summary = worker.run_tick()

    assert summary.report is not None
    assert summary.report.month == "July 2025"
    assert summary.report.stats.total_revenue == Decimal("999.00")
    assert summary.report.stats.active_subscriptions == 1

    summary = worker.run_tick(now=first + timedelta(days=1))

    assert summary.report is None


def test_deadline_passed_skips_work(db, worker, now, tenant, admin, make_subscription):
    """Test an exhausted deadline stops the tick before any record"""
    subscription = make_subscription(tenant, now - timedelta(days=1))

    summary = worker.run_tick(deadline=time.monotonic() - 1)

    assert summary.timed_out is True
    assert summary.subscriptions_evaluated == 0
    assert notifications(db) == []
    assert summary.finished_at is not None

    db.refresh(subscription)
    assert subscription.status == SubscriptionStatus.ACTIVE


def test_summary_counts(db, worker, now, make_tenant, make_user, make_subscription):
    """Test the summary adds up across tenants and passes"""
    for days in (5, 3, 4):
        tenant = make_tenant(name=f"Mandi {days}")
        make_user(tenant, role=UserRole.ADMIN)
        make_subscription(tenant, now + timedelta(days=days))

    summary = worker.run_tick()

    assert summary.started_at == now
    assert summary.subscriptions_evaluated == 3
    assert summary.events[LifecycleEventType.EXPIRING_SOON] == 2
    assert summary.notifications_emitted == 2


def test_main_once(monkeypatch):
    """Test --once runs a single tick"""
    run = Mock()
    run.return_value.model_dump_json.return_value = "{}"
    monkeypatch.setattr("mandi_saas.workers.subscription_worker.run_subscription_worker", run)
    monkeypatch.setattr("mandi_saas.workers.subscription_worker.configure_logging", Mock())

    main(["--once"])

    run.assert_called_once_with()


def test_renewed_tenant_without_reference_is_not_suspended(
    db, worker, now, tenant, admin, make_subscription
):
    """Test the latest-ending term decides suspension when the tenant has no reference"""
    make_subscription(
        tenant, now - timedelta(days=40), status=SubscriptionStatus.EXPIRED,
        grace_period_days=3, current=False,
    )
    make_subscription(tenant, now + timedelta(days=20), current=False)
    assert tenant.subscription_id is None

    summary = worker.run_tick()

    db.refresh(tenant)
    assert tenant.status == TenantStatus.ACTIVE
    assert notifications(db) == []
    assert summary.events[LifecycleEventType.SUSPENDED] == 0


def test_unreferenced_current_term_past_grace_suspends(
    db, worker, now, tenant, admin, make_subscription
):
    """Test a tenant whose latest term is past grace is suspended without a reference"""
    make_subscription(
        tenant, now - timedelta(days=40), status=SubscriptionStatus.EXPIRED,
        grace_period_days=3, current=False,
    )
    make_subscription(
        tenant, now - timedelta(days=10), status=SubscriptionStatus.EXPIRED,
        grace_period_days=3, current=False,
    )

    summary = worker.run_tick()

    db.refresh(tenant)
    assert tenant.status == TenantStatus.SUSPENDED
    assert subjects(db) == ["Account Suspended"]
    assert summary.events[LifecycleEventType.SUSPENDED] == 1


def test_failures_do_not_abort_the_pass(db, worker, now, make_tenant, make_subscription, monkeypatch):
    """Test a failed record and a vanished record are skipped and the pass continues"""
    subscriptions = [
        make_subscription(make_tenant(name=f"Mandi {days}"), now - timedelta(days=days))
        for days in (3, 2, 1)
    ]
    first_id, vanished_id, last_id = [s.id for s in subscriptions]
    find_by_id = worker.tenants.find_by_id
    calls = []

    def flaky_find_by_id(tenant_id):
        calls.append(tenant_id)
        if len(calls) == 1:
            db.execute(delete(Subscription).where(Subscription.id == vanished_id))
            db.commit()
            raise RuntimeError("connection reset")
        return find_by_id(tenant_id)

    monkeypatch.setattr(worker.tenants, "find_by_id", flaky_find_by_id)

    summary = worker.run_tick()

    assert [(e.pass_name, e.subscription_id) for e in summary.errors] == [
        (PASS_EXPIRE, first_id),
        (PASS_EXPIRE, vanished_id),
    ]
    assert summary.errors[0].error_type == "RuntimeError"
    assert summary.events[LifecycleEventType.EXPIRED] == 1
    assert db.get(Subscription, last_id).status == SubscriptionStatus.EXPIRED
    assert db.get(Subscription, first_id).status == SubscriptionStatus.ACTIVE
