import logging
import uuid

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from referral_ledger.api.models import Agent, Commission, CommissionStatus, Payout, PayoutCommission, PayoutStatus
from referral_ledger.services.errors import InvalidBankDetails, InvalidStateTransition, NoFundsAvailable, NotFound
from referral_ledger.utils.clock import utcnow


# (from, to) -> timestamp column stamped by the transition
TRANSITIONS = {
    (PayoutStatus.REQUESTED, PayoutStatus.APPROVED): "approved_at",
    (PayoutStatus.APPROVED, PayoutStatus.PAID): "paid_at",
    (PayoutStatus.REQUESTED, PayoutStatus.REJECTED): "rejected_at",
}


class PayoutService:
    def __init__(self, session: AsyncSession):
        self.session = session

    def _unreleased_claims(self):
        return select(PayoutCommission.commission_id).where(PayoutCommission.released_at.is_(None))

    async def _available_commissions(self, agent_id: uuid.UUID) -> list[tuple[uuid.UUID, int]]:
        """Cleared commissions of the agent that no unreleased payout holds."""
        result = await self.session.execute(
            select(Commission.id, Commission.commission_amount_cents)
            .where(
                Commission.agent_id == agent_id,
                Commission.status == CommissionStatus.CLEARED,
                Commission.id.not_in(self._unreleased_claims()),
            )
            .order_by(Commission.cleared_at.asc())
        )
        return [(row.id, row.commission_amount_cents) for row in result.all()]

    async def available_cents(self, agent_id: uuid.UUID) -> int:
        total = await self.session.scalar(
            select(func.coalesce(func.sum(Commission.commission_amount_cents), 0)).where(
                Commission.agent_id == agent_id,
                Commission.status == CommissionStatus.CLEARED,
                Commission.id.not_in(self._unreleased_claims()),
            )
        )
        return int(total or 0)

    async def request_payout(
        self,
        agent_id: uuid.UUID,
        bank_account_iban: str,
        bank_account_name: str,
        note: str | None = None,
    ) -> Payout:
        """
        Claims every available cleared commission of the agent into one new
        REQUESTED payout.

        Runs as one transaction: the agent row is locked while the available set
        is computed and claimed, and the partial unique index on active claims
        rejects a concurrent claimer that slipped past the lock.
        """
        iban = (bank_account_iban or "").strip()
        name = (bank_account_name or "").strip()
        if not iban or not name:
            raise InvalidBankDetails("Bank account details are required")

        agent = await self.session.get(Agent, agent_id, with_for_update=True)
        if not agent:
            await self.session.rollback()
            raise NotFound(f"Agent {agent_id} not found")

        claimable = await self._available_commissions(agent_id)
        amount = sum(cents for _, cents in claimable)
        if amount <= 0:
            await self.session.rollback()
            raise NoFundsAvailable(f"No funds available for payout for agent {agent_id}")

        payout = Payout(
            agent_id=agent_id,
            amount_cents=amount,
            status=PayoutStatus.REQUESTED,
            bank_account_iban=iban,
            bank_account_name=name,
            note=note,
        )
        self.session.add(payout)
        try:
            await self.session.flush()
            for commission_id, cents in claimable:
                self.session.add(PayoutCommission(payout_id=payout.id, commission_id=commission_id, amount_cents=cents))
            await self.session.commit()
        except IntegrityError:
            await self.session.rollback()
            logging.warning(f"Payout request for agent {agent_id} lost a race for its commissions")
            raise NoFundsAvailable(f"No funds available for payout for agent {agent_id}")

        logging.info(f"Payout {payout.id} requested by agent {agent_id}: {amount} cents from {len(claimable)} commissions")
        return payout

    async def get_payout(self, payout_id: uuid.UUID) -> Payout:
        payout = await self.session.get(Payout, payout_id)
        if not payout:
            raise NotFound(f"Payout {payout_id} not found")
        return payout

    async def advance_payout(self, payout_id: uuid.UUID, target: PayoutStatus) -> Payout:
        """
        REQUESTED -> APPROVED -> PAID, or REQUESTED -> REJECTED.
        Asking for the status the payout already has is a no-op.
        """
        payout = await self.get_payout(payout_id)
        current = payout.status
        if current == target:
            logging.info(f"Payout {payout_id} already {target.value}")
            return payout

        stamp = TRANSITIONS.get((current, target))
        if stamp is None:
            raise InvalidStateTransition(f"Cannot move payout {payout_id} from {current.value} to {target.value}")

        stmt = (
            update(Payout)
            .where(Payout.id == payout_id, Payout.status == current)
            .values(status=target, **{stamp: utcnow()})
            .returning(Payout.id)
        )
        moved = (await self.session.execute(stmt)).scalar_one_or_none()
        if moved is None:
            await self.session.rollback()
            payout = await self.get_payout(payout_id)
            await self.session.refresh(payout)
            if payout.status == target:
                return payout
            raise InvalidStateTransition(f"Cannot move payout {payout_id} from {payout.status.value} to {target.value}")

        await self.session.commit()
        await self.session.refresh(payout)
        logging.info(f"Payout {payout_id} {current.value} -> {target.value} ({payout.amount_cents} cents)")
        return payout

    async def release_payout(self, payout_id: uuid.UUID) -> Payout:
        """
        Returns the commissions held by a REJECTED payout to the available pool.
        Rejection alone never does this.
        """
        payout = await self.get_payout(payout_id)
        if payout.status != PayoutStatus.REJECTED:
            raise InvalidStateTransition(f"Only rejected payouts can be released, payout {payout_id} is {payout.status.value}")
        if payout.released_at is not None:
            logging.info(f"Payout {payout_id} already released")
            return payout

        now = utcnow()
        moved = (
            await self.session.execute(
                update(Payout)
                .where(Payout.id == payout_id, Payout.released_at.is_(None))
                .values(released_at=now)
                .returning(Payout.id)
            )
        ).scalar_one_or_none()
        if moved is None:
            await self.session.rollback()
            payout = await self.get_payout(payout_id)
            await self.session.refresh(payout)
            return payout

        await self.session.execute(
            update(PayoutCommission)
            .where(PayoutCommission.payout_id == payout_id, PayoutCommission.released_at.is_(None))
            .values(released_at=now)
        )
        await self.session.commit()
        await self.session.refresh(payout)
        logging.info(f"Payout {payout_id} released {payout.amount_cents} cents back to agent {payout.agent_id}")
        return payout

    async def list_payouts(self, statuses: list[PayoutStatus] | None = None) -> list[Payout]:
        query = select(Payout)
        if statuses:
            query = query.where(Payout.status.in_(statuses))
        result = await self.session.execute(query.order_by(Payout.requested_at.asc()))
        return list(result.scalars().all())

    async def history_for_agent(self, agent_id: uuid.UUID) -> list[Payout]:
        result = await self.session.execute(
            select(Payout).where(Payout.agent_id == agent_id).order_by(Payout.requested_at.desc())
        )
        return list(result.scalars().all())

    async def commissions_in_payout(self, payout_id: uuid.UUID) -> list[uuid.UUID]:
        result = await self.session.execute(
            select(PayoutCommission.commission_id).where(PayoutCommission.payout_id == payout_id)
        )
        return list(result.scalars().all())
