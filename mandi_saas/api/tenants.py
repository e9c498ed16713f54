"""
Tenant API endpoints (platform administration)
"""

from fastapi import APIRouter, Depends, HTTPException, status
from sqlmodel import Session
from typing import List
import structlog
import uuid

from mandi_saas.core.database import get_session
from mandi_saas.core.dependencies import require_super_admin
from mandi_saas.models.tenant import Tenant
from mandi_saas.schemas.tenant import TenantResponse
from mandi_saas.services.repositories import TenantRepository

logger = structlog.get_logger(__name__)
router = APIRouter(dependencies=[Depends(require_super_admin)])


def _tenant_response(tenant: Tenant) -> TenantResponse:
    return TenantResponse(
        id=tenant.id,
        name=tenant.name,
        status=tenant.status,
        subscription_id=tenant.subscription_id,
        created_at=tenant.created_at,
    )


@router.get("/", response_model=List[TenantResponse])
async def list_tenants(
    skip: int = 0,
    limit: int = 100,
    session: Session = Depends(get_session)
):
    """List all tenants"""
    return [_tenant_response(t) for t in TenantRepository(session).list_tenants(skip, limit)]


@router.get("/{tenant_id}", response_model=TenantResponse)
async def get_tenant(
    tenant_id: uuid.UUID,
    session: Session = Depends(get_session)
):
    """Get tenant by ID"""
    tenant = TenantRepository(session).find_by_id(tenant_id)
    if not tenant:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Tenant not found"
        )
    return _tenant_response(tenant)
