from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from referral_ledger.api.database import get_session
from .service import CommissionService


def get_commission_service(session: AsyncSession = Depends(get_session)) -> CommissionService:
    return CommissionService(session)
