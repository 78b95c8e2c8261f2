import logging
import uuid
from datetime import timedelta

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from referral_ledger.api.models import Commission, CommissionStatus, Order, OrderStatus
from referral_ledger.config import Settings
from referral_ledger.services.errors import InvalidStateTransition, NotFound
from referral_ledger.utils.clock import utcnow


class ClearanceService:
    """
    Commission state machine: PENDING_CLEARANCE -> CLEARED | REVERSED.

    Every transition is a compare-and-swap on the current status, so two racing
    calls cannot both move the same commission.
    """

    def __init__(self, session: AsyncSession, settings: Settings | None = None):
        self.session = session
        self.settings = settings or Settings()

    async def _transition(self, commission_id: uuid.UUID, target: CommissionStatus, reason: str | None = None) -> Commission:
        now = utcnow()
        values = {"status": target}
        if target == CommissionStatus.CLEARED:
            values["cleared_at"] = now
        else:
            values["reversed_at"] = now
        if reason is not None:
            values["reason"] = reason

        stmt = (
            update(Commission)
            .where(Commission.id == commission_id, Commission.status == CommissionStatus.PENDING_CLEARANCE)
            .values(**values)
            .returning(Commission.id)
        )
        moved = (await self.session.execute(stmt)).scalar_one_or_none()
        if moved is None:
            current = await self.session.scalar(select(Commission.status).where(Commission.id == commission_id))
            if current is None:
                raise NotFound(f"Commission {commission_id} not found")
            raise InvalidStateTransition(
                f"Cannot move commission {commission_id} from {current.value} to {target.value}"
            )

        commission = await self.session.get(Commission, commission_id, populate_existing=True)
        logging.info(f"Commission {commission_id} {target.value} ({commission.commission_amount_cents} cents)")
        return commission

    async def clear_commission(self, commission_id: uuid.UUID) -> Commission:
        try:
            commission = await self._transition(commission_id, CommissionStatus.CLEARED)
        except (NotFound, InvalidStateTransition):
            await self.session.rollback()
            raise
        await self.session.commit()
        return commission

    async def reverse_commission(self, commission_id: uuid.UUID, reason: str | None = None) -> Commission:
        try:
            commission = await self._transition(commission_id, CommissionStatus.REVERSED, reason=reason)
        except (NotFound, InvalidStateTransition):
            await self.session.rollback()
            raise
        await self.session.commit()
        return commission

    async def reverse_in_transaction(self, commission_id: uuid.UUID, reason: str) -> Commission:
        """Reverse without committing, for callers that own the transaction."""
        return await self._transition(commission_id, CommissionStatus.REVERSED, reason=reason)

    async def clear_matured(self, older_than_days: int | None = None) -> list[uuid.UUID]:
        """
        Clears pending commissions of still-paid orders created at least
        ``older_than_days`` ago. Triggered externally, never on a timer.
        """
        days = self.settings.env.CLEARANCE_WINDOW_DAYS if older_than_days is None else older_than_days
        cutoff = utcnow() - timedelta(days=days)
        logging.info(f"Clearing commissions pending since before {cutoff.isoformat()}")

        candidates = await self.session.execute(
            select(Commission.id)
            .join(Order, Commission.order_id == Order.id)
            .where(
                Commission.status == CommissionStatus.PENDING_CLEARANCE,
                Commission.created_at <= cutoff,
                Order.status == OrderStatus.PAID,
            )
        )

        cleared = []
        for commission_id in candidates.scalars().all():
            try:
                await self._transition(commission_id, CommissionStatus.CLEARED)
            except InvalidStateTransition:
                # moved by a concurrent call since the select
                logging.info(f"Commission {commission_id} no longer pending, skipped")
                continue
            cleared.append(commission_id)

        await self.session.commit()
        logging.info(f"Cleared {len(cleared)} matured commissions")
        return cleared
