"""
Notification sink

Queues notification requests as pending rows; delivery and retries belong to
whatever drains the notifications table.
"""

from sqlmodel import Session
import structlog

from mandi_saas.models.notification import Notification
from mandi_saas.schemas.lifecycle import NotificationRequest

logger = structlog.get_logger(__name__)


class DatabaseNotificationSink:
    """Append-only sink backed by the notifications table"""

    def __init__(self, session: Session):
        self.session = session

    def submit(self, request: NotificationRequest) -> Notification:
        notification = Notification(**request.model_dump())
        self.session.add(notification)
        self.session.commit()
        logger.info(f"Notification queued for {request.recipient_id}: {request.subject}")
        return notification
