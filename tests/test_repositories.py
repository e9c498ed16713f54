"""
Tests for repository queries used by the worker
"""

import pytest
from datetime import timedelta
import uuid

from mandi_saas.core.exceptions import TenantNotFoundError
from mandi_saas.models import SubscriptionStatus, TenantStatus, UserRole
from mandi_saas.services.repositories import (
    SubscriptionRepository,
    TenantRepository,
    UserRepository,
)


def test_find_by_status_and_date_range(db, now, make_tenant, make_subscription):
    """Test the range is inclusive and filters on status and auto-renew"""
    tenant = make_tenant()
    edge = make_subscription(tenant, now + timedelta(days=7))
    renewing = make_subscription(tenant, now + timedelta(days=2), auto_renew=True)
    make_subscription(tenant, now + timedelta(days=7, seconds=1))
    make_subscription(tenant, now + timedelta(days=3), status=SubscriptionStatus.CANCELLED)

    repo = SubscriptionRepository(db)
    found = repo.find_by_status_and_date_range(SubscriptionStatus.ACTIVE, now, now + timedelta(days=7))
    renewals = repo.find_by_status_and_date_range(
        SubscriptionStatus.ACTIVE, now, now + timedelta(days=7), auto_renew=True
    )

    assert [s.id for s in found] == [renewing.id, edge.id]
    assert [s.id for s in renewals] == [renewing.id]


def test_find_by_status_end_before(db, now, make_tenant, make_subscription):
    """Test end_before is strict"""
    tenant = make_tenant()
    ended = make_subscription(tenant, now - timedelta(seconds=1))
    make_subscription(tenant, now)

    found = SubscriptionRepository(db).find_by_status(SubscriptionStatus.ACTIVE, end_before=now)

    assert [s.id for s in found] == [ended.id]


def test_find_current_for_tenant(db, now, make_tenant, make_subscription):
    """Test the tenant's referenced subscription wins over later ones"""
    tenant = make_tenant()
    current = make_subscription(tenant, now + timedelta(days=5))
    make_subscription(tenant, now + timedelta(days=60), current=False)

    assert SubscriptionRepository(db).find_current_for_tenant(tenant.id).id == current.id


def test_find_current_falls_back_to_latest(db, now, make_tenant, make_subscription):
    """Test the latest-ending subscription is used without a reference"""
    tenant = make_tenant()
    make_subscription(tenant, now + timedelta(days=5), current=False)
    latest = make_subscription(tenant, now + timedelta(days=60), current=False)

    assert SubscriptionRepository(db).find_current_for_tenant(tenant.id).id == latest.id


def test_update_status(db, make_tenant):
    """Test tenant status updates and repeated updates are no-ops"""
    tenant = make_tenant()
    repo = TenantRepository(db)

    updated = repo.update_status(tenant.id, TenantStatus.SUSPENDED)
    stamp = updated.updated_at
    again = repo.update_status(tenant.id, TenantStatus.SUSPENDED)

    assert again.status == TenantStatus.SUSPENDED
    assert again.updated_at == stamp


def test_update_status_missing_tenant(db):
    """Test updating an unknown tenant raises"""
    with pytest.raises(TenantNotFoundError):
        TenantRepository(db).update_status(uuid.uuid4(), TenantStatus.SUSPENDED)


def test_find_admins(db, make_tenant, make_user):
    """Test only admins of the given tenant are returned"""
    tenant = make_tenant()
    other = make_tenant(name="Other Mandi")
    admin = make_user(tenant, role=UserRole.ADMIN)
    make_user(tenant, role=UserRole.ACCOUNTANT)
    make_user(other, role=UserRole.ADMIN)

    assert [u.id for u in UserRepository(db).find_admins(tenant.id)] == [admin.id]


def test_naive_datetimes_round_trip(db, now, make_tenant, make_subscription):
    """Test naive UTC datetimes are stored and read back unchanged"""
    subscription = make_subscription(make_tenant(), now + timedelta(days=5))
    db.expire_all()

    stored = SubscriptionRepository(db).find_by_status(SubscriptionStatus.ACTIVE)[0]

    assert stored.end_date == now + timedelta(days=5)
    assert stored.end_date.tzinfo is None
    assert stored.id == subscription.id
