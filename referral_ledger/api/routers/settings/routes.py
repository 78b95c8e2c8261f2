from fastapi import APIRouter, Depends

from referral_ledger.api.routers.errors import to_http
from referral_ledger.services.errors import LedgerError
from referral_ledger.services.settings import get_settings_service
from referral_ledger.services.settings.service import SettingsService
from .schemas import CommissionRate, CommissionRateUpdate

router = APIRouter()


@router.get("/commission-rate", response_model=CommissionRate, summary="Global default commission rate")
async def get_commission_rate(service: SettingsService = Depends(get_settings_service)):
    return CommissionRate(commission_rate=await service.read_default_rate())


@router.put("/commission-rate", response_model=CommissionRate, summary="Change the global default commission rate")
async def set_commission_rate(dto: CommissionRateUpdate, service: SettingsService = Depends(get_settings_service)):
    try:
        rate = await service.set_default_rate(dto.rate)
    except LedgerError as e:
        raise to_http(e)
    return CommissionRate(commission_rate=rate)
