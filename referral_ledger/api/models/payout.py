import enum
import uuid
from datetime import datetime
from typing import List, Optional

from sqlalchemy import UUID, DateTime, Enum, ForeignKey, Index, Integer, String, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from referral_ledger.utils.clock import utcnow
from .base import Base


class PayoutStatus(enum.Enum):
    REQUESTED = "REQUESTED"
    APPROVED = "APPROVED"
    PAID = "PAID"
    REJECTED = "REJECTED"


class Payout(Base):
    __tablename__ = "payouts"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    agent_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("agents.id"), nullable=False, index=True)
    amount_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    status: Mapped[PayoutStatus] = mapped_column(
        Enum(PayoutStatus, name="payoutstatus"), default=PayoutStatus.REQUESTED, nullable=False
    )
    bank_account_iban: Mapped[str] = mapped_column(String, nullable=False)
    bank_account_name: Mapped[str] = mapped_column(String, nullable=False)
    note: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    requested_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
    approved_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    paid_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    rejected_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    released_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    # Relationships
    agent: Mapped["Agent"] = relationship(back_populates="payouts")
    commission_links: Mapped[List["PayoutCommission"]] = relationship(back_populates="payout")


class PayoutCommission(Base):
    """Claim of one cleared commission by one payout.

    While ``released_at`` is null the commission is out of the available pool.
    """

    __tablename__ = "payout_commissions"
    __table_args__ = (
        # a commission can be held by at most one unreleased payout
        Index(
            "uq_payout_commissions_active_claim",
            "commission_id",
            unique=True,
            postgresql_where=text("released_at IS NULL"),
            sqlite_where=text("released_at IS NULL"),
        ),
    )

    payout_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("payouts.id"), primary_key=True)
    commission_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("commissions.id"), primary_key=True)
    amount_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    released_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    # Relationships
    payout: Mapped["Payout"] = relationship(back_populates="commission_links")
    commission: Mapped["Commission"] = relationship(back_populates="payout_links")
