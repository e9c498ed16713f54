"""
Test configuration for pytest
"""

import pytest
import os
from datetime import datetime, timedelta
from decimal import Decimal
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, Session
from typing import Generator
import uuid

# Test environment variables
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["REDIS_URL"] = "redis://localhost:6379"
os.environ["JWT_SECRET_KEY"] = "test-jwt-secret"
os.environ["LOG_JSON"] = "false"

import mandi_saas.models  # noqa: E402,F401
from mandi_saas.core.auth import hash_password  # noqa: E402
from mandi_saas.models import (  # noqa: E402
    Subscription,
    SubscriptionPayment,
    SubscriptionPaymentStatus,
    SubscriptionPlan,
    SubscriptionPlanType,
    SubscriptionStatus,
    Tenant,
    TenantStatus,
    User,
    UserRole,
    UserStatus,
)

TEST_PASSWORD = "Secret@123"

# Single shared connection so the API test client sees the same in-memory database
test_engine = create_engine(
    "sqlite:///:memory:",
    echo=False,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)


@pytest.fixture(scope="function")
def db() -> Generator[Session, None, None]:
    """Create a clean database session for each test"""
    SQLModel.metadata.create_all(test_engine)

    with Session(test_engine) as session:
        yield session

    SQLModel.metadata.drop_all(test_engine)


@pytest.fixture
def now() -> datetime:
    """Fixed tick time, mid-month so no report is generated"""
    return datetime(2025, 6, 15, 12, 0, 0)


@pytest.fixture
def password_hash() -> str:
    return hash_password(TEST_PASSWORD)


@pytest.fixture
def make_tenant(db: Session):
    def _make_tenant(name: str = "Azadpur Mandi", status: TenantStatus = TenantStatus.ACTIVE) -> Tenant:
        tenant = Tenant(name=name, status=status)
        db.add(tenant)
        db.commit()
        db.refresh(tenant)
        return tenant

    return _make_tenant


@pytest.fixture
def make_user(db: Session, password_hash: str):
    def _make_user(
        tenant: Tenant = None,
        role: UserRole = UserRole.ADMIN,
        status: UserStatus = UserStatus.ACTIVE,
        email: str = None,
    ) -> User:
        user = User(
            tenant_id=tenant.id if tenant else None,
            name=f"{role.value.title()} User",
            email=email or f"{role.value}-{uuid.uuid4().hex[:8]}@example.com",
            phone="9876543210",
            password_hash=password_hash,
            role=role,
            status=status,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make_user


@pytest.fixture
def make_subscription(db: Session):
    def _make_subscription(
        tenant: Tenant,
        end_date: datetime,
        start_date: datetime = None,
        status: SubscriptionStatus = SubscriptionStatus.ACTIVE,
        grace_period_days: int = 7,
        auto_renew: bool = False,
        amount: Decimal = Decimal("999.00"),
        plan_type: SubscriptionPlanType = SubscriptionPlanType.MONTHLY,
        current: bool = True,
    ) -> Subscription:
        subscription = Subscription(
            tenant_id=tenant.id,
            plan=SubscriptionPlan.PRO,
            plan_type=plan_type,
            amount=amount,
            start_date=start_date or end_date - timedelta(days=30),
            end_date=end_date,
            status=status,
            auto_renew=auto_renew,
            grace_period_days=grace_period_days,
        )
        db.add(subscription)
        db.commit()
        db.refresh(subscription)

        if current:
            tenant.subscription_id = subscription.id
            db.add(tenant)
            db.commit()
            db.refresh(tenant)
        return subscription

    return _make_subscription


@pytest.fixture
def make_payment(db: Session):
    def _make_payment(
        subscription: Subscription,
        amount: Decimal,
        payment_date: datetime,
        status: SubscriptionPaymentStatus = SubscriptionPaymentStatus.SUCCESS,
    ) -> SubscriptionPayment:
        payment = SubscriptionPayment(
            tenant_id=subscription.tenant_id,
            subscription_id=subscription.id,
            amount=amount,
            payment_date=payment_date,
            payment_method="upi",
            transaction_id=f"TXN-{uuid.uuid4().hex[:12]}",
            status=status,
        )
        db.add(payment)
        db.commit()
        db.refresh(payment)
        return payment

    return _make_payment
