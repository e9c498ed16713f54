"""
Platform report endpoints
"""

from fastapi import APIRouter, Depends
from sqlmodel import Session

from mandi_saas.core.database import get_session
from mandi_saas.core.dependencies import require_super_admin
from mandi_saas.schemas.lifecycle import MonthlyReport
from mandi_saas.services.reporting import generate_monthly_report
from mandi_saas.services.repositories import SubscriptionRepository, TenantRepository

router = APIRouter(dependencies=[Depends(require_super_admin)])


@router.get("/monthly", response_model=MonthlyReport)
async def get_monthly_report(session: Session = Depends(get_session)):
    """Report for the current calendar month"""
    return generate_monthly_report(SubscriptionRepository(session), TenantRepository(session))
