import uuid
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field

from referral_ledger.api.models import OrderStatus


class OrderCreate(BaseModel):
    amount_cents: int | None = Field(None, description="Order total in cents")
    total_amount: Decimal | None = Field(None, description="Order total in major units, e.g. 12.34")
    customer_ref: str | None = None
    attribution_marker: str | None = None
    external_id: str | None = Field(None, description="Idempotency key; generated when omitted")


class OrderCreated(BaseModel):
    order_id: uuid.UUID
    external_id: str
    agent_id: uuid.UUID | None
    total_amount_cents: int


class OrderRead(BaseModel):
    id: uuid.UUID
    external_id: str
    total_amount_cents: int
    customer_ref: str | None
    agent_id: uuid.UUID | None
    status: OrderStatus
    anomaly: str | None
    created_at: datetime
    refunded_at: datetime | None = None

    class Config:
        from_attributes = True
