import uuid
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field

from referral_ledger.api.models import CommissionStatus


class CommissionRead(BaseModel):
    id: uuid.UUID
    order_id: uuid.UUID
    agent_id: uuid.UUID
    rate: Decimal
    base_amount_cents: int
    commission_amount_cents: int
    status: CommissionStatus
    reason: str | None = None
    created_at: datetime
    cleared_at: datetime | None = None
    reversed_at: datetime | None = None

    class Config:
        from_attributes = True


class ReverseRequest(BaseModel):
    reason: str | None = None


class ClearMaturedRequest(BaseModel):
    older_than_days: int | None = Field(None, ge=0)


class ClearMaturedResult(BaseModel):
    cleared: list[uuid.UUID]
