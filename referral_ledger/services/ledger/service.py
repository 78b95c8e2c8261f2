import uuid
from dataclasses import dataclass

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from referral_ledger.api.models import Commission, CommissionStatus, Payout, PayoutStatus
from referral_ledger.services.agents.service import AgentService
from referral_ledger.services.payouts.service import PayoutService


@dataclass
class LedgerSummary:
    agent_id: uuid.UUID
    total_cleared: int
    total_pending: int
    total_reversed: int
    total_paid_out: int
    total_in_payout: int
    available: int


class LedgerService:
    """Read-only totals derived from the ledger rows; nothing here is stored."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.agents = AgentService(session)
        self.payouts = PayoutService(session)

    async def get_agent_ledger_summary(self, agent_id: uuid.UUID) -> LedgerSummary:
        await self.agents.get_agent(agent_id)

        commission_rows = await self.session.execute(
            select(Commission.status, func.coalesce(func.sum(Commission.commission_amount_cents), 0))
            .where(Commission.agent_id == agent_id)
            .group_by(Commission.status)
        )
        by_status = {status: int(total) for status, total in commission_rows.all()}

        payout_rows = await self.session.execute(
            select(Payout.status, func.coalesce(func.sum(Payout.amount_cents), 0))
            .where(Payout.agent_id == agent_id)
            .group_by(Payout.status)
        )
        payouts = {status: int(total) for status, total in payout_rows.all()}

        return LedgerSummary(
            agent_id=agent_id,
            total_cleared=by_status.get(CommissionStatus.CLEARED, 0),
            total_pending=by_status.get(CommissionStatus.PENDING_CLEARANCE, 0),
            total_reversed=by_status.get(CommissionStatus.REVERSED, 0),
            total_paid_out=payouts.get(PayoutStatus.PAID, 0),
            total_in_payout=payouts.get(PayoutStatus.REQUESTED, 0) + payouts.get(PayoutStatus.APPROVED, 0),
            available=await self.payouts.available_cents(agent_id),
        )
