import uuid

from fastapi import APIRouter, Depends, Query

from referral_ledger.api.models import CommissionStatus
from referral_ledger.api.routers.errors import to_http
from referral_ledger.api.security import Caller, ensure_self_or_admin, get_caller, require_admin
from referral_ledger.services.agents import get_agent_service
from referral_ledger.services.agents.service import AgentService
from referral_ledger.services.commission import get_commission_service
from referral_ledger.services.commission.service import CommissionService
from referral_ledger.services.errors import LedgerError
from referral_ledger.services.ledger import get_ledger_service
from referral_ledger.services.ledger.service import LedgerService
from .schemas import ActiveUpdate, AgentCreate, AgentList, AgentRead, CommissionList, LedgerSummaryRead, RateOverrideUpdate

router = APIRouter()


@router.post("", response_model=AgentRead, status_code=201, summary="Create an agent", dependencies=[Depends(require_admin)])
async def create_agent(dto: AgentCreate, service: AgentService = Depends(get_agent_service)):
    try:
        return await service.create_agent(dto.email, dto.full_name, dto.referral_code)
    except LedgerError as e:
        raise to_http(e)


@router.get("", response_model=AgentList, summary="List agents", dependencies=[Depends(require_admin)])
async def list_agents(service: AgentService = Depends(get_agent_service)):
    return AgentList(items=await service.list_agents())


@router.get("/{agent_id}/summary", response_model=LedgerSummaryRead, summary="Ledger totals of an agent")
async def get_ledger_summary(
    agent_id: uuid.UUID,
    caller: Caller = Depends(get_caller),
    service: LedgerService = Depends(get_ledger_service),
):
    ensure_self_or_admin(caller, agent_id)
    try:
        return await service.get_agent_ledger_summary(agent_id)
    except LedgerError as e:
        raise to_http(e)


@router.get("/{agent_id}/commissions", response_model=CommissionList, summary="Commissions of an agent")
async def list_commissions(
    agent_id: uuid.UUID,
    status: CommissionStatus | None = Query(None),
    caller: Caller = Depends(get_caller),
    service: CommissionService = Depends(get_commission_service),
):
    ensure_self_or_admin(caller, agent_id)
    return CommissionList(items=await service.list_for_agent(agent_id, status))


@router.put("/{agent_id}/commission-override", response_model=AgentRead, summary="Set or clear an agent's rate override", dependencies=[Depends(require_admin)])
async def set_commission_override(
    agent_id: uuid.UUID,
    dto: RateOverrideUpdate,
    service: AgentService = Depends(get_agent_service),
):
    try:
        return await service.set_rate_override(agent_id, dto.rate)
    except LedgerError as e:
        raise to_http(e)


@router.put("/{agent_id}/active", response_model=AgentRead, summary="Activate or deactivate an agent", dependencies=[Depends(require_admin)])
async def set_active(
    agent_id: uuid.UUID,
    dto: ActiveUpdate,
    service: AgentService = Depends(get_agent_service),
):
    try:
        return await service.set_active(agent_id, dto.is_active)
    except LedgerError as e:
        raise to_http(e)
