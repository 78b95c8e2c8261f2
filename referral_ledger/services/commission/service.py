import logging
import uuid
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from referral_ledger.api.models import Agent, Commission, CommissionStatus, Order
from referral_ledger.services.errors import InvalidRate, NotFound
from referral_ledger.services.settings.service import SettingsService
from referral_ledger.utils.money import calculate_commission


class CommissionService:
    def __init__(self, session: AsyncSession, settings_service: SettingsService | None = None):
        self.session = session
        self.settings_service = settings_service or SettingsService(session)

    async def resolve_rate(self, agent: Agent) -> Decimal:
        """
        Effective rate for an agent: its override when set, otherwise the global
        default as it stands in the current transaction.
        """
        if agent.commission_rate_override is not None:
            rate = Decimal(agent.commission_rate_override)
        else:
            rate = await self.settings_service.get_default_rate()
        if not rate.is_finite() or rate < 0 or rate > 1:
            raise InvalidRate(f"Resolved rate {rate} for agent {agent.id} is outside [0, 1]")
        return rate

    async def create_for_order(self, order: Order, agent: Agent) -> Commission:
        """
        Adds the single PENDING_CLEARANCE commission for an attributed order.
        Does not commit: the caller owns the order transaction.
        """
        rate = await self.resolve_rate(agent)
        amount = calculate_commission(order.total_amount_cents, rate)

        commission = Commission(
            order_id=order.id,
            agent_id=agent.id,
            rate=rate,
            base_amount_cents=order.total_amount_cents,
            commission_amount_cents=amount,
            status=CommissionStatus.PENDING_CLEARANCE,
        )
        self.session.add(commission)
        await self.session.flush()

        logging.info(
            f"Commission {commission.id}: {amount} cents ({rate} of {order.total_amount_cents}) "
            f"for agent {agent.id}, order {order.external_id}"
        )
        return commission

    async def get_commission(self, commission_id: uuid.UUID) -> Commission:
        commission = await self.session.get(Commission, commission_id)
        if not commission:
            raise NotFound(f"Commission {commission_id} not found")
        return commission

    async def get_for_order(self, order_id: uuid.UUID) -> Commission | None:
        return await self.session.scalar(select(Commission).where(Commission.order_id == order_id))

    async def list_for_agent(self, agent_id: uuid.UUID, status: CommissionStatus | None = None) -> list[Commission]:
        query = select(Commission).where(Commission.agent_id == agent_id)
        if status is not None:
            query = query.where(Commission.status == status)
        result = await self.session.execute(query.order_by(Commission.created_at.desc()))
        return list(result.scalars().all())
