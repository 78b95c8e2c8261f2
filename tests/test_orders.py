import asyncio
import uuid
from decimal import Decimal

import pytest
from sqlalchemy import func, select

from referral_ledger.api.models import Agent, Commission, CommissionStatus, Order, OrderStatus
from referral_ledger.services.clearance.service import ClearanceService
from referral_ledger.services.commission.service import CommissionService
from referral_ledger.services.errors import DuplicateOrder, InvalidAmount, NotFound, ValidationError
from referral_ledger.services.orders.service import OrderService
from referral_ledger.services.settings.service import SettingsService


async def count(session, column):
    return await session.scalar(select(func.count(column)))


class TestCreateOrder:

    async def test_attributed_order_gets_default_rate_commission(self, session, agent, place_order):
        agent_id = agent.id
        order = await place_order(1000, agent_id=agent_id)

        assert order.agent_id == agent_id
        assert order.status == OrderStatus.PAID
        commission = await CommissionService(session).get_for_order(order.id)
        assert commission.status == CommissionStatus.PENDING_CLEARANCE
        assert commission.rate == Decimal("0.10")
        assert commission.base_amount_cents == 1000
        assert commission.commission_amount_cents == 100

    async def test_override_rate_wins(self, session, override_agent, place_order):
        order = await place_order(1000, agent_id=override_agent.id)
        commission = await CommissionService(session).get_for_order(order.id)
        assert commission.rate == Decimal("0.15")
        assert commission.commission_amount_cents == 150

    async def test_commission_rounds_half_up(self, session, agent, place_order):
        order = await place_order(999, agent_id=agent.id)
        commission = await CommissionService(session).get_for_order(order.id)
        assert commission.commission_amount_cents == 100

    async def test_rate_is_read_at_order_time(self, session, agent, place_order):
        agent_id = agent.id
        first = await place_order(1000, agent_id=agent_id)
        await SettingsService(session).set_default_rate("0.2")
        second = await place_order(1000, agent_id=agent_id)

        commissions = CommissionService(session)
        assert (await commissions.get_for_order(first.id)).commission_amount_cents == 100
        assert (await commissions.get_for_order(second.id)).commission_amount_cents == 200

    async def test_unattributed_order_has_no_commission(self, session, place_order):
        order = await place_order(2500)
        assert order.agent_id is None
        assert order.external_id.startswith("ord_")
        assert await count(session, Commission.id) == 0

    async def test_bad_marker_still_records_order(self, session, agent):
        order = await OrderService(session).create_order(1000, attribution_marker="forged.marker.value")
        assert order.agent_id is None
        assert await count(session, Order.id) == 1
        assert await count(session, Commission.id) == 0

    async def test_invalid_amount_writes_nothing(self, session, agent, marker_for):
        with pytest.raises(InvalidAmount):
            await OrderService(session).create_order(0, attribution_marker=marker_for(agent.id))
        assert await count(session, Order.id) == 0

    async def test_oversized_amount_is_rejected_before_writing(self, session):
        with pytest.raises(InvalidAmount):
            await OrderService(session).create_order(10**19, external_id="shop-huge")
        assert await count(session, Order.id) == 0

    @pytest.mark.parametrize("external_id", ["", "   ", "x" * 129])
    async def test_invalid_external_id(self, session, external_id):
        with pytest.raises(ValidationError):
            await OrderService(session).create_order(1000, external_id=external_id)

    async def test_duplicate_external_id_counts_once(self, session, agent, place_order):
        agent_id = agent.id
        await place_order(1000, agent_id=agent_id, external_id="shop-1001")
        with pytest.raises(DuplicateOrder):
            await place_order(1000, agent_id=agent_id, external_id="shop-1001")

        assert await count(session, Order.id) == 1
        assert await count(session, Commission.id) == 1

    async def test_concurrent_duplicates_count_once(self, db, agent, marker_for):
        token = marker_for(agent.id)

        async def submit():
            async with db.session_factory() as s:
                try:
                    await OrderService(s).create_order(1000, attribution_marker=token, external_id="shop-2002")
                    return "created"
                except DuplicateOrder:
                    return "duplicate"

        results = await asyncio.gather(submit(), submit())
        assert sorted(results) == ["created", "duplicate"]

        async with db.session_factory() as s:
            assert await count(s, Order.id) == 1
            assert await count(s, Commission.id) == 1

    async def test_invalid_rate_keeps_order_and_flags_anomaly(self, session, agent, place_order):
        agent_id = agent.id
        stored = await session.get(Agent, agent_id)
        stored.commission_rate_override = Decimal("1.5")
        await session.commit()

        order = await place_order(1000, agent_id=agent_id)

        assert order.agent_id is None
        assert "attribution" in order.anomaly
        assert await count(session, Commission.id) == 0


class TestRefund:

    async def test_refund_reverses_pending_commission(self, session, agent, place_order):
        order = await place_order(1000, agent_id=agent.id)
        order_id = order.id

        refunded = await OrderService(session).refund_order(order_id)

        assert refunded.status == OrderStatus.REFUNDED
        assert refunded.refunded_at is not None
        commission = await CommissionService(session).get_for_order(order_id)
        assert commission.status == CommissionStatus.REVERSED
        assert "refunded" in commission.reason

    async def test_refund_after_clearance_leaves_commission(self, session, agent, place_order):
        order = await place_order(1000, agent_id=agent.id)
        order_id = order.id
        commission = await CommissionService(session).get_for_order(order_id)
        await ClearanceService(session).clear_commission(commission.id)

        await OrderService(session).refund_order(order_id)

        commission = await CommissionService(session).get_for_order(order_id)
        assert commission.status == CommissionStatus.CLEARED

    async def test_refund_twice_is_noop(self, session, place_order):
        order = await place_order(1000)
        service = OrderService(session)
        first = await service.refund_order(order.id)
        refunded_at = first.refunded_at
        second = await service.refund_order(order.id)
        assert second.refunded_at == refunded_at

    async def test_refund_unknown_order(self, session):
        with pytest.raises(NotFound):
            await OrderService(session).refund_order(uuid.uuid4())
