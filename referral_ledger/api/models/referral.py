import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import UUID, DateTime, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from referral_ledger.utils.clock import utcnow
from .base import Base


class ReferralVisit(Base):
    __tablename__ = "referral_visits"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    agent_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("agents.id"), nullable=False, index=True)
    referral_code: Mapped[str] = mapped_column(String, nullable=False)
    visitor_ip: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    user_agent: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    page_url: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    visited_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)

    # Relationships
    agent: Mapped["Agent"] = relationship()
