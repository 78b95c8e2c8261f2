import uuid

from fastapi import APIRouter, Cookie, Depends

from referral_ledger.api.routers.errors import to_http
from referral_ledger.api.routers.referral.routes import MARKER_COOKIE
from referral_ledger.api.security import require_admin
from referral_ledger.services.errors import InvalidAmount, LedgerError
from referral_ledger.services.orders import get_order_service
from referral_ledger.services.orders.service import OrderService
from referral_ledger.utils.money import parse_amount_to_cents
from .schemas import OrderCreate, OrderCreated, OrderRead

router = APIRouter()


def _amount_cents(dto: OrderCreate) -> int:
    if dto.amount_cents is not None and dto.total_amount is not None:
        raise InvalidAmount("Give either amount_cents or total_amount, not both")
    if dto.amount_cents is not None:
        return dto.amount_cents
    if dto.total_amount is not None:
        return parse_amount_to_cents(dto.total_amount)
    raise InvalidAmount("Total amount is required")


@router.post("", response_model=OrderCreated, status_code=201, summary="Record a completed purchase")
async def create_order(
    dto: OrderCreate,
    affiliate_ref: str | None = Cookie(None, alias=MARKER_COOKIE),
    service: OrderService = Depends(get_order_service),
):
    try:
        order = await service.create_order(
            amount_cents=_amount_cents(dto),
            customer_ref=dto.customer_ref,
            attribution_marker=dto.attribution_marker or affiliate_ref,
            external_id=dto.external_id,
        )
    except LedgerError as e:
        raise to_http(e)
    return OrderCreated(
        order_id=order.id,
        external_id=order.external_id,
        agent_id=order.agent_id,
        total_amount_cents=order.total_amount_cents,
    )


@router.get("/{order_id}", response_model=OrderRead, summary="Get an order", dependencies=[Depends(require_admin)])
async def get_order(order_id: uuid.UUID, service: OrderService = Depends(get_order_service)):
    try:
        return await service.get_order(order_id)
    except LedgerError as e:
        raise to_http(e)


@router.post("/{order_id}/refund", response_model=OrderRead, summary="Mark an order refunded", dependencies=[Depends(require_admin)])
async def refund_order(order_id: uuid.UUID, service: OrderService = Depends(get_order_service)):
    try:
        return await service.refund_order(order_id)
    except LedgerError as e:
        raise to_http(e)
