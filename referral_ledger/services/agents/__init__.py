from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from referral_ledger.api.database import get_session
from .service import AgentService


def get_agent_service(session: AsyncSession = Depends(get_session)) -> AgentService:
    return AgentService(session)
