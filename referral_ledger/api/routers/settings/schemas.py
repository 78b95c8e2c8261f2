from decimal import Decimal

from pydantic import BaseModel


class CommissionRate(BaseModel):
    commission_rate: Decimal


class CommissionRateUpdate(BaseModel):
    rate: Decimal
