import logging
import uuid

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from referral_ledger.api.models import Agent, CommissionStatus, Order, OrderStatus
from referral_ledger.services.clearance.service import ClearanceService
from referral_ledger.services.commission.service import CommissionService
from referral_ledger.services.errors import DuplicateOrder, InvalidRate, NotFound, ValidationError
from referral_ledger.services.referral.service import ReferralService
from referral_ledger.utils.clock import utcnow
from referral_ledger.utils.money import validate_amount_cents


MAX_EXTERNAL_ID_LENGTH = 128


class OrderService:
    def __init__(
        self,
        session: AsyncSession,
        referrals: ReferralService | None = None,
        commissions: CommissionService | None = None,
        clearance: ClearanceService | None = None,
    ):
        self.session = session
        self.referrals = referrals or ReferralService(session)
        self.commissions = commissions or CommissionService(session)
        self.clearance = clearance or ClearanceService(session)

    @staticmethod
    def _new_external_id() -> str:
        return f"ord_{uuid.uuid4().hex}"

    async def create_order(
        self,
        amount_cents: int,
        customer_ref: str | None = None,
        attribution_marker: str | None = None,
        external_id: str | None = None,
    ) -> Order:
        """
        Records a completed purchase and, when the marker attributes it to an
        agent, its commission, in one transaction.

        A bad or expired marker never fails the sale: the order is simply
        recorded without an agent.
        """
        amount = validate_amount_cents(amount_cents)
        if external_id is not None:
            external_id = external_id.strip()
            if not external_id or len(external_id) > MAX_EXTERNAL_ID_LENGTH:
                raise ValidationError("external_id must be 1-128 characters")
        else:
            external_id = self._new_external_id()

        # 1. Idempotency: a retried submission must not count twice
        exists = await self.session.scalar(select(Order.id).where(Order.external_id == external_id))
        if exists:
            raise DuplicateOrder(f"Order {external_id} already recorded")

        # 2. Attribution
        agent_id = await self.referrals.decode_marker(attribution_marker)

        order = Order(
            external_id=external_id,
            total_amount_cents=amount,
            customer_ref=customer_ref,
            agent_id=agent_id,
            status=OrderStatus.PAID,
        )
        self.session.add(order)

        try:
            await self.session.flush()

            # 3. Commission, inside the same transaction as the order
            if agent_id is not None:
                agent = await self.session.get(Agent, agent_id)
                try:
                    await self.commissions.create_for_order(order, agent)
                except InvalidRate as e:
                    order.agent_id = None
                    order.anomaly = f"attribution to agent {agent_id} dropped: {e}"
                    logging.error(f"Order {external_id} recorded without commission: {e}")

            await self.session.commit()
        except IntegrityError:
            # lost a race with a concurrent submission of the same external id
            await self.session.rollback()
            raise DuplicateOrder(f"Order {external_id} already recorded")

        if order.agent_id is None:
            logging.info(f"Order {external_id} recorded unattributed ({amount} cents)")
        else:
            logging.info(f"Order {external_id} recorded for agent {order.agent_id} ({amount} cents)")
        return order

    async def get_order(self, order_id: uuid.UUID) -> Order:
        order = await self.session.get(Order, order_id)
        if not order:
            raise NotFound(f"Order {order_id} not found")
        return order

    async def refund_order(self, order_id: uuid.UUID) -> Order:
        """
        Marks an order refunded and reverses its commission if still pending.
        Refunding an already refunded order is a no-op.
        """
        order = await self.get_order(order_id)
        if order.status == OrderStatus.REFUNDED:
            logging.info(f"Order {order.external_id} already refunded")
            return order

        order.status = OrderStatus.REFUNDED
        order.refunded_at = utcnow()

        commission = await self.commissions.get_for_order(order.id)
        if commission is not None:
            if commission.status == CommissionStatus.PENDING_CLEARANCE:
                await self.clearance.reverse_in_transaction(commission.id, reason=f"order {order.external_id} refunded")
            else:
                logging.warning(
                    f"Order {order.external_id} refunded but commission {commission.id} "
                    f"is already {commission.status.value}; left unchanged"
                )

        await self.session.commit()
        logging.info(f"Order {order.external_id} refunded")
        return order
