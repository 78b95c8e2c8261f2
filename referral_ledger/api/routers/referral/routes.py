from fastapi import APIRouter, Depends, Query, Response

from referral_ledger.api.routers.errors import to_http
from referral_ledger.config import Settings
from referral_ledger.services.errors import LedgerError
from referral_ledger.services.referral import get_referral_service
from referral_ledger.services.referral.service import ReferralService
from .schemas import ResolveResponse, VisitCreate, VisitRead

router = APIRouter()

MARKER_COOKIE = "affiliate_ref"


@router.get("/resolve", response_model=ResolveResponse, summary="Resolve a referral code into an attribution marker")
async def resolve_referral(
    response: Response,
    code: str = Query(..., description="Referral code from the agent's link"),
    service: ReferralService = Depends(get_referral_service),
):
    try:
        marker = await service.resolve_referral(code)
    except LedgerError as e:
        raise to_http(e)

    settings = Settings()
    response.set_cookie(
        MARKER_COOKIE,
        marker.token,
        max_age=settings.attribution_ttl_seconds(),
        httponly=True,
        secure=settings.env.COOKIE_SECURE,
        samesite="lax",
    )
    return ResolveResponse(agent_id=marker.agent_id, marker=marker.token, expires_at=marker.expires_at)


@router.post("/visit", response_model=VisitRead, status_code=201, summary="Record a referral link visit")
async def record_visit(
    dto: VisitCreate,
    service: ReferralService = Depends(get_referral_service),
):
    try:
        return await service.record_visit(dto.referral_code, dto.visitor_ip, dto.user_agent, dto.page_url)
    except LedgerError as e:
        raise to_http(e)
