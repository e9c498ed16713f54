"""
Notification model

Outbound messages queued by the subscription worker. Delivery is handled
outside this service; the worker only ever inserts pending rows.
"""

from sqlmodel import Field, SQLModel
from sqlalchemy import Column, JSON, Text
from datetime import datetime
from typing import Any, Dict, Optional
from enum import Enum
import uuid

from mandi_saas.core.clock import utcnow


class NotificationChannel(str, Enum):
    """Delivery channel"""
    EMAIL = "email"
    SMS = "sms"
    WHATSAPP = "whatsapp"
    IN_APP = "in_app"


class NotificationStatus(str, Enum):
    """Delivery status"""
    PENDING = "pending"
    SENT = "sent"
    FAILED = "failed"


class Notification(SQLModel, table=True):
    """Queued notification"""

    __tablename__ = "notifications"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    tenant_id: uuid.UUID = Field(foreign_key="tenants.id", index=True)
    recipient_id: uuid.UUID = Field(index=True)
    recipient_type: str = Field(default="user", max_length=20)

    channel: NotificationChannel = Field(default=NotificationChannel.EMAIL)
    subject: str = Field(max_length=255)
    message: str = Field(sa_column=Column(Text, nullable=False))
    data: Optional[Dict[str, Any]] = Field(default=None, sa_column=Column(JSON, nullable=True))

    status: NotificationStatus = Field(default=NotificationStatus.PENDING, index=True)
    created_at: datetime = Field(default_factory=utcnow, index=True)
    sent_at: Optional[datetime] = None
