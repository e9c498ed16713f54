"""
Repositories over the SQLModel session

The subscription worker and the API only reach the database through these.
"""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional
import uuid

from sqlalchemy import func
from sqlmodel import Session, select

from mandi_saas.core.clock import utcnow
from mandi_saas.core.exceptions import TenantNotFoundError
from mandi_saas.models.subscription import Subscription, SubscriptionStatus
from mandi_saas.models.subscription_payment import SubscriptionPayment, SubscriptionPaymentStatus
from mandi_saas.models.tenant import Tenant, TenantStatus
from mandi_saas.models.user import User, UserRole


class SubscriptionRepository:
    """Read/write access to subscriptions and their payments"""

    def __init__(self, session: Session):
        self.session = session

    def find_by_status_and_date_range(
        self,
        status: SubscriptionStatus,
        start: datetime,
        end: datetime,
        auto_renew: Optional[bool] = None,
    ) -> List[Subscription]:
        """Subscriptions in a status whose end_date falls in [start, end]"""
        statement = select(Subscription).where(
            Subscription.status == status,
            Subscription.end_date >= start,
            Subscription.end_date <= end,
        )
        if auto_renew is not None:
            statement = statement.where(Subscription.auto_renew == auto_renew)
        return list(self.session.exec(statement.order_by(Subscription.end_date)).all())

    def find_by_status(
        self,
        status: SubscriptionStatus,
        end_before: Optional[datetime] = None,
    ) -> List[Subscription]:
        """Subscriptions in a status, optionally ending strictly before a time"""
        statement = select(Subscription).where(Subscription.status == status)
        if end_before is not None:
            statement = statement.where(Subscription.end_date < end_before)
        return list(self.session.exec(statement.order_by(Subscription.end_date)).all())

    def find_current_for_tenant(self, tenant_id: uuid.UUID) -> Optional[Subscription]:
        """Tenant's referenced subscription, else its latest-ending one"""
        tenant = self.session.get(Tenant, tenant_id)
        if tenant and tenant.subscription_id:
            subscription = self.session.get(Subscription, tenant.subscription_id)
            if subscription:
                return subscription

        return self.session.exec(
            select(Subscription)
            .where(Subscription.tenant_id == tenant_id)
            .order_by(Subscription.end_date.desc())
        ).first()

    def save(self, subscription: Subscription) -> Subscription:
        subscription.updated_at = utcnow()
        self.session.add(subscription)
        self.session.commit()
        self.session.refresh(subscription)
        return subscription

    def count_by_status(self, status: SubscriptionStatus) -> int:
        return self.session.exec(
            select(func.count(Subscription.id)).where(Subscription.status == status)
        ).one()

    def sum_successful_payments(self, start: datetime, end: datetime) -> Decimal:
        """Sum of successful payment amounts with payment_date in [start, end]"""
        total = self.session.exec(
            select(func.sum(SubscriptionPayment.amount)).where(
                SubscriptionPayment.status == SubscriptionPaymentStatus.SUCCESS,
                SubscriptionPayment.payment_date >= start,
                SubscriptionPayment.payment_date <= end,
            )
        ).one()
        return Decimal(str(total or 0)).quantize(Decimal("0.01"))


class TenantRepository:
    """Read/write access to tenant status"""

    def __init__(self, session: Session):
        self.session = session

    def find_by_id(self, tenant_id: uuid.UUID) -> Optional[Tenant]:
        return self.session.get(Tenant, tenant_id)

    def list_tenants(self, skip: int = 0, limit: int = 100) -> List[Tenant]:
        return list(self.session.exec(select(Tenant).offset(skip).limit(limit)).all())

    def update_status(self, tenant_id: uuid.UUID, status: TenantStatus) -> Tenant:
        """Set tenant status; setting the current status again is a no-op"""
        tenant = self.session.get(Tenant, tenant_id)
        if tenant is None:
            raise TenantNotFoundError(f"Tenant {tenant_id} not found")
        if tenant.status == status:
            return tenant

        tenant.status = status
        tenant.updated_at = utcnow()
        self.session.add(tenant)
        self.session.commit()
        self.session.refresh(tenant)
        return tenant

    def count_by_status(self, status: TenantStatus) -> int:
        return self.session.exec(
            select(func.count(Tenant.id)).where(Tenant.status == status)
        ).one()

    def count_total(self) -> int:
        return self.session.exec(select(func.count(Tenant.id))).one()


class UserRepository:
    """Lookups of users by tenant and email"""

    def __init__(self, session: Session):
        self.session = session

    def find_admins(self, tenant_id: uuid.UUID) -> List[User]:
        """Admin-role users of a tenant, the recipients of lifecycle notices"""
        return list(self.session.exec(
            select(User).where(User.tenant_id == tenant_id, User.role == UserRole.ADMIN)
        ).all())

    def find_by_email(self, email: str) -> Optional[User]:
        return self.session.exec(
            select(User).where(User.email == email.strip().lower())
        ).first()

    def find_super_admin(self) -> Optional[User]:
        return self.session.exec(
            select(User).where(User.role == UserRole.SUPER_ADMIN)
        ).first()

    def save(self, user: User) -> User:
        user.updated_at = utcnow()
        self.session.add(user)
        self.session.commit()
        self.session.refresh(user)
        return user
