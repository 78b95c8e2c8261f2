import uuid
from datetime import datetime
from typing import List

from pydantic import BaseModel

from referral_ledger.api.models import PayoutStatus


class PayoutRequestCreate(BaseModel):
    agent_id: uuid.UUID | None = None  # admins may request on an agent's behalf
    bank_account_iban: str
    bank_account_name: str
    note: str | None = None


class PayoutRequested(BaseModel):
    payout_id: uuid.UUID
    amount_cents: int
    status: PayoutStatus


class PayoutAdvance(BaseModel):
    status: PayoutStatus


class PayoutRead(BaseModel):
    id: uuid.UUID
    agent_id: uuid.UUID
    amount_cents: int
    status: PayoutStatus
    bank_account_iban: str
    bank_account_name: str
    note: str | None = None
    requested_at: datetime
    approved_at: datetime | None = None
    paid_at: datetime | None = None
    rejected_at: datetime | None = None
    released_at: datetime | None = None

    class Config:
        from_attributes = True


class PayoutList(BaseModel):
    items: List[PayoutRead]
