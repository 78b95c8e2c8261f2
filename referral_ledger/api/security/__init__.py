import secrets
import uuid
from dataclasses import dataclass

from fastapi import Depends, Header, HTTPException, status

from referral_ledger.config import get_env


ADMIN_ROLE = "admin"
AGENT_ROLE = "agent"


@dataclass
class Caller:
    agent_id: uuid.UUID | None
    role: str

    @property
    def is_admin(self) -> bool:
        return self.role == ADMIN_ROLE


async def require_service_key(x_api_key: str | None = Header(None)):
    api_key = get_env().SERVICE_API_KEY
    if not api_key:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="API key not configured")
    if not x_api_key or not secrets.compare_digest(x_api_key, api_key):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid service key")
    return True


async def get_caller(
    x_agent_id: str | None = Header(None),
    x_agent_role: str | None = Header(None),
) -> Caller:
    """
    Identity verified upstream by the auth gateway and forwarded in headers.
    Only trusted behind ``require_service_key``.
    """
    role = (x_agent_role or AGENT_ROLE).lower()
    if role not in (ADMIN_ROLE, AGENT_ROLE):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=f"Unknown role {role}")
    agent_id = None
    if x_agent_id:
        try:
            agent_id = uuid.UUID(x_agent_id)
        except ValueError:
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Malformed agent identity")
    return Caller(agent_id=agent_id, role=role)


async def require_admin(caller: Caller = Depends(get_caller)) -> Caller:
    if not caller.is_admin:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin role required")
    return caller


def ensure_self_or_admin(caller: Caller, agent_id: uuid.UUID) -> None:
    if caller.is_admin:
        return
    if caller.agent_id is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Agent identity required")
    if caller.agent_id != agent_id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Agents can only access their own ledger")
