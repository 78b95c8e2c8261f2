import enum
import uuid
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import UUID, DateTime, Enum, ForeignKey, Integer, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from referral_ledger.utils.clock import utcnow
from .base import Base


class CommissionStatus(enum.Enum):
    PENDING_CLEARANCE = "PENDING_CLEARANCE"
    CLEARED = "CLEARED"
    REVERSED = "REVERSED"


class Commission(Base):
    __tablename__ = "commissions"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    order_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("orders.id"), nullable=False, unique=True)
    agent_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("agents.id"), nullable=False, index=True)
    rate: Mapped[Decimal] = mapped_column(Numeric(6, 4), nullable=False)
    base_amount_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    commission_amount_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    status: Mapped[CommissionStatus] = mapped_column(
        Enum(CommissionStatus, name="commissionstatus"),
        default=CommissionStatus.PENDING_CLEARANCE,
        nullable=False,
        index=True,
    )
    reason: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
    cleared_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    reversed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    # Relationships
    order: Mapped["Order"] = relationship(back_populates="commission")
    agent: Mapped["Agent"] = relationship(back_populates="commissions")
    payout_links: Mapped[List["PayoutCommission"]] = relationship(back_populates="commission")
