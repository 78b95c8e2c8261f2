import uuid
from datetime import datetime
from decimal import Decimal
from typing import List

from pydantic import BaseModel

from referral_ledger.api.routers.commissions.schemas import CommissionRead


class AgentCreate(BaseModel):
    email: str
    full_name: str | None = None
    referral_code: str | None = None


class AgentRead(BaseModel):
    id: uuid.UUID
    email: str
    full_name: str | None = None
    referral_code: str
    commission_rate_override: Decimal | None = None
    is_active: bool
    created_at: datetime

    class Config:
        from_attributes = True


class RateOverrideUpdate(BaseModel):
    rate: Decimal | None = None


class ActiveUpdate(BaseModel):
    is_active: bool


class LedgerSummaryRead(BaseModel):
    agent_id: uuid.UUID
    total_cleared: int
    total_pending: int
    total_reversed: int
    total_paid_out: int
    total_in_payout: int
    available: int

    class Config:
        from_attributes = True


class AgentList(BaseModel):
    items: List[AgentRead]


class CommissionList(BaseModel):
    items: List[CommissionRead]
