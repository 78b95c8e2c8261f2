from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from referral_ledger.api.database import get_session
from .service import PayoutService


def get_payout_service(session: AsyncSession = Depends(get_session)) -> PayoutService:
    return PayoutService(session)
