import enum
import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import UUID, DateTime, Enum, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from referral_ledger.utils.clock import utcnow
from .base import Base


class OrderStatus(enum.Enum):
    PAID = "PAID"
    REFUNDED = "REFUNDED"


class Order(Base):
    __tablename__ = "orders"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    external_id: Mapped[str] = mapped_column(String, nullable=False, unique=True, index=True)
    total_amount_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    customer_ref: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    agent_id: Mapped[Optional[uuid.UUID]] = mapped_column(ForeignKey("agents.id"), nullable=True, index=True)
    status: Mapped[OrderStatus] = mapped_column(Enum(OrderStatus, name="orderstatus"), default=OrderStatus.PAID, nullable=False)
    # attribution that could not be honoured (e.g. invalid rate)
    anomaly: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
    refunded_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    # Relationships
    agent: Mapped[Optional["Agent"]] = relationship(back_populates="orders")
    commission: Mapped[Optional["Commission"]] = relationship(back_populates="order")
