from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from referral_ledger.api.database import get_session
from .service import OrderService


def get_order_service(session: AsyncSession = Depends(get_session)) -> OrderService:
    return OrderService(session)
