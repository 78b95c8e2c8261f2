import uuid

from fastapi import APIRouter, Depends

from referral_ledger.api.routers.errors import to_http
from referral_ledger.services.clearance import get_clearance_service
from referral_ledger.services.clearance.service import ClearanceService
from referral_ledger.services.errors import LedgerError
from .schemas import ClearMaturedRequest, ClearMaturedResult, CommissionRead, ReverseRequest

router = APIRouter()


@router.post("/clear-matured", response_model=ClearMaturedResult, summary="Clear pending commissions past the return window")
async def clear_matured(
    dto: ClearMaturedRequest | None = None,
    service: ClearanceService = Depends(get_clearance_service),
):
    cleared = await service.clear_matured(dto.older_than_days if dto else None)
    return ClearMaturedResult(cleared=cleared)


@router.post("/{commission_id}/clear", response_model=CommissionRead, summary="Clear a pending commission")
async def clear_commission(
    commission_id: uuid.UUID,
    service: ClearanceService = Depends(get_clearance_service),
):
    try:
        return await service.clear_commission(commission_id)
    except LedgerError as e:
        raise to_http(e)


@router.post("/{commission_id}/reverse", response_model=CommissionRead, summary="Reverse a pending commission")
async def reverse_commission(
    commission_id: uuid.UUID,
    dto: ReverseRequest | None = None,
    service: ClearanceService = Depends(get_clearance_service),
):
    try:
        return await service.reverse_commission(commission_id, reason=dto.reason if dto else None)
    except LedgerError as e:
        raise to_http(e)
