from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from referral_ledger.api.database import get_session
from .service import LedgerService


def get_ledger_service(session: AsyncSession = Depends(get_session)) -> LedgerService:
    return LedgerService(session)
