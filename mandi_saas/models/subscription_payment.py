"""
Subscription payment history
"""

from sqlmodel import Field, SQLModel
from sqlalchemy import Column, Numeric
from datetime import datetime
from decimal import Decimal
from enum import Enum
import uuid

from mandi_saas.core.clock import utcnow


class SubscriptionPaymentStatus(str, Enum):
    """Status of a subscription payment"""
    SUCCESS = "success"
    FAILED = "failed"
    PENDING = "pending"


class SubscriptionPayment(SQLModel, table=True):
    """Payment made against a subscription"""

    __tablename__ = "subscription_payments"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    tenant_id: uuid.UUID = Field(foreign_key="tenants.id", index=True)
    subscription_id: uuid.UUID = Field(foreign_key="subscriptions.id", index=True)

    amount: Decimal = Field(sa_column=Column(Numeric(10, 2), nullable=False))
    payment_date: datetime = Field(index=True)
    payment_method: str = Field(max_length=50)
    transaction_id: str = Field(max_length=100, index=True)
    status: SubscriptionPaymentStatus = Field(index=True)

    created_at: datetime = Field(default_factory=utcnow)

    def is_successful(self) -> bool:
        """Check if payment was captured"""
        return self.status == SubscriptionPaymentStatus.SUCCESS
