"""
Authentication and tenant dependencies for FastAPI
"""

from fastapi import Depends, HTTPException, Request, Response, status
from sqlmodel import Session
from typing import Optional
import uuid
import structlog

from mandi_saas.core.auth import verify_token
from mandi_saas.core.clock import utcnow
from mandi_saas.core.config import get_settings
from mandi_saas.core.database import get_session
from mandi_saas.models.subscription import Subscription
from mandi_saas.models.tenant import Tenant, TenantStatus
from mandi_saas.models.user import UserRole
from mandi_saas.schemas.token import TokenPayload
from mandi_saas.services.repositories import SubscriptionRepository, TenantRepository

logger = structlog.get_logger(__name__)
settings = get_settings()

SUBSCRIPTION_WARNING_HEADER = "X-Subscription-Warning"


def get_token(request: Request) -> Optional[str]:
    """Bearer token from the Authorization header, else the auth cookie"""
    auth_header = request.headers.get("authorization")
    if auth_header and auth_header.lower().startswith("bearer "):
        return auth_header[7:].strip()
    return request.cookies.get(settings.AUTH_COOKIE_NAME)


async def get_current_user(token: Optional[str] = Depends(get_token)) -> TokenPayload:
    """Get the authenticated user's token payload"""
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="No token provided",
            headers={"WWW-Authenticate": "Bearer"},
        )

    payload = verify_token(token)
    if payload is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    logger.debug(f"User authenticated: {payload.sub}")
    return payload


def require_roles(*roles: UserRole):
    """Dependency factory restricting an endpoint to some roles"""
    allowed = {role.value for role in roles}

    async def check_role(user: TokenPayload = Depends(get_current_user)) -> TokenPayload:
        if user.role not in allowed:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Forbidden - Insufficient permissions",
            )
        return user

    return check_role


require_super_admin = require_roles(UserRole.SUPER_ADMIN)
require_mandi_admin = require_roles(UserRole.ADMIN, UserRole.MANAGER)


class TenantContext:
    """Tenant and subscription resolved for the current request"""

    def __init__(
        self,
        user: TokenPayload,
        tenant: Optional[Tenant] = None,
        subscription: Optional[Subscription] = None,
    ):
        self.user = user
        self.tenant = tenant
        self.subscription = subscription

    @property
    def tenant_id(self) -> Optional[uuid.UUID]:
        return self.tenant.id if self.tenant else None


async def verify_tenant_access(
    response: Response,
    user: TokenPayload = Depends(get_current_user),
    session: Session = Depends(get_session),
) -> TenantContext:
    """Check the user's mandi is active and its subscription usable"""
    if user.role == UserRole.SUPER_ADMIN.value:
        return TenantContext(user)

    if not user.tenant_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No tenant associated with user",
        )

    tenant_id = uuid.UUID(user.tenant_id)
    tenant = TenantRepository(session).find_by_id(tenant_id)
    if not tenant:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Mandi not found")

    if tenant.status == TenantStatus.SUSPENDED:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Your account has been suspended. Please contact support.",
        )

    subscription = SubscriptionRepository(session).find_current_for_tenant(tenant_id)
    if not subscription:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="No active subscription found",
        )

    now = utcnow()
    if subscription.is_expired(now):
        if not subscription.is_in_grace_period(now):
            raise HTTPException(
                status_code=status.HTTP_402_PAYMENT_REQUIRED,
                detail="Your subscription has expired. Please renew to continue.",
            )

        grace_days_left = subscription.days_until_expiry(now) + subscription.grace_period_days
        response.headers[SUBSCRIPTION_WARNING_HEADER] = (
            f"Your subscription expired on {subscription.end_date.strftime('%d/%m/%Y')}. "
            f"Grace period ends in {grace_days_left} days."
        )
        logger.info(f"Tenant {tenant_id} accessing during grace period")

    return TenantContext(user, tenant, subscription)
