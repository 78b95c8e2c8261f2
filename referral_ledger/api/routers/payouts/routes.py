import uuid
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query, status

from referral_ledger.api.models import PayoutStatus
from referral_ledger.api.routers.errors import to_http
from referral_ledger.api.security import Caller, ensure_self_or_admin, get_caller, require_admin
from referral_ledger.services.errors import LedgerError
from referral_ledger.services.payouts import get_payout_service
from referral_ledger.services.payouts.service import PayoutService
from .schemas import PayoutAdvance, PayoutList, PayoutRead, PayoutRequestCreate, PayoutRequested

router = APIRouter()

PENDING_STATUSES = [PayoutStatus.REQUESTED, PayoutStatus.APPROVED]


@router.get("", response_model=PayoutList, summary="List payouts by status", dependencies=[Depends(require_admin)])
async def list_payouts(
    status_filter: List[PayoutStatus] | None = Query(None, alias="status", description="Defaults to REQUESTED and APPROVED"),
    service: PayoutService = Depends(get_payout_service),
):
    items = await service.list_payouts(status_filter or PENDING_STATUSES)
    return PayoutList(items=items)


@router.post("/request", response_model=PayoutRequested, status_code=201, summary="Request a payout of all available funds")
async def request_payout(
    dto: PayoutRequestCreate,
    caller: Caller = Depends(get_caller),
    service: PayoutService = Depends(get_payout_service),
):
    agent_id = dto.agent_id or caller.agent_id
    if agent_id is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Agent identity required")
    ensure_self_or_admin(caller, agent_id)
    try:
        payout = await service.request_payout(agent_id, dto.bank_account_iban, dto.bank_account_name, dto.note)
    except LedgerError as e:
        raise to_http(e)
    return PayoutRequested(payout_id=payout.id, amount_cents=payout.amount_cents, status=payout.status)


@router.get("/history/{agent_id}", response_model=PayoutList, summary="Payout history of an agent")
async def payout_history(
    agent_id: uuid.UUID,
    caller: Caller = Depends(get_caller),
    service: PayoutService = Depends(get_payout_service),
):
    ensure_self_or_admin(caller, agent_id)
    return PayoutList(items=await service.history_for_agent(agent_id))


@router.patch("/{payout_id}", response_model=PayoutRead, summary="Advance a payout", dependencies=[Depends(require_admin)])
async def advance_payout(
    payout_id: uuid.UUID,
    dto: PayoutAdvance,
    service: PayoutService = Depends(get_payout_service),
):
    try:
        return await service.advance_payout(payout_id, dto.status)
    except LedgerError as e:
        raise to_http(e)


@router.post("/{payout_id}/release", response_model=PayoutRead, summary="Release a rejected payout's commissions", dependencies=[Depends(require_admin)])
async def release_payout(
    payout_id: uuid.UUID,
    service: PayoutService = Depends(get_payout_service),
):
    try:
        return await service.release_payout(payout_id)
    except LedgerError as e:
        raise to_http(e)
