"""
Subscription API endpoints
"""

from fastapi import APIRouter, Depends, HTTPException, status

from mandi_saas.core.clock import utcnow
from mandi_saas.core.dependencies import TenantContext, verify_tenant_access
from mandi_saas.schemas.tenant import SubscriptionResponse

router = APIRouter()


@router.get("/current", response_model=SubscriptionResponse)
async def get_current_subscription(context: TenantContext = Depends(verify_tenant_access)):
    """Current subscription of the caller's mandi"""
    if context.subscription is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No subscription for this user"
        )
    return SubscriptionResponse.from_subscription(context.subscription, utcnow())
