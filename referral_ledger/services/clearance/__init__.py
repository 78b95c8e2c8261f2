from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from referral_ledger.api.database import get_session
from .service import ClearanceService


def get_clearance_service(session: AsyncSession = Depends(get_session)) -> ClearanceService:
    return ClearanceService(session)
