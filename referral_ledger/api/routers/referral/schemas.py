import uuid
from datetime import datetime

from pydantic import BaseModel


class ResolveResponse(BaseModel):
    agent_id: uuid.UUID
    marker: str
    expires_at: datetime


class VisitCreate(BaseModel):
    referral_code: str
    visitor_ip: str | None = None
    user_agent: str | None = None
    page_url: str | None = None


class VisitRead(BaseModel):
    id: uuid.UUID
    agent_id: uuid.UUID
    referral_code: str
    visited_at: datetime

    class Config:
        from_attributes = True
