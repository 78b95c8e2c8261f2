import logging
import uuid

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from referral_ledger.api.models import Agent
from referral_ledger.services.errors import InvalidReferralCode, NotFound, ValidationError
from referral_ledger.utils.money import validate_rate
from referral_ledger.utils.referral import RefCode, normalize_referral_code


ref_code_generator = RefCode()


class AgentService:
    """Administrative agent operations the ledger depends on."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_agent(self, agent_id: uuid.UUID) -> Agent:
        agent = await self.session.get(Agent, agent_id)
        if not agent:
            raise NotFound(f"Agent {agent_id} not found")
        return agent

    async def create_agent(self, email: str, full_name: str | None = None, referral_code: str | None = None) -> Agent:
        exists = await self.session.scalar(select(Agent.id).where(Agent.email == email))
        if exists:
            raise ValidationError("Agent with this email already exists")

        if referral_code is not None:
            normalized = normalize_referral_code(referral_code)
            if normalized is None:
                raise InvalidReferralCode(f"Malformed referral code {referral_code!r}")
            referral_code = normalized
            taken = await self.session.scalar(select(Agent.id).where(Agent.referral_code == referral_code))
            if taken:
                raise ValidationError(f"Referral code {referral_code} is already taken")
        else:
            codes = set((await self.session.execute(select(Agent.referral_code))).scalars().all())
            referral_code = ref_code_generator.generate_ref_code(codes)

        agent = Agent(email=email, full_name=full_name, referral_code=referral_code)
        self.session.add(agent)
        try:
            await self.session.commit()
        except IntegrityError:
            # a concurrent create took the email or the code first
            await self.session.rollback()
            raise ValidationError(f"Agent with email {email} or referral code {referral_code} already exists")
        await self.session.refresh(agent)
        logging.info(f"Created agent {agent.id} with referral code {agent.referral_code}")
        return agent

    async def set_rate_override(self, agent_id: uuid.UUID, rate) -> Agent:
        agent = await self.get_agent(agent_id)
        agent.commission_rate_override = None if rate is None else validate_rate(rate)
        await self.session.commit()
        logging.info(f"Agent {agent_id} commission override set to {agent.commission_rate_override}")
        return agent

    async def set_active(self, agent_id: uuid.UUID, is_active: bool) -> Agent:
        agent = await self.get_agent(agent_id)
        agent.is_active = is_active
        await self.session.commit()
        logging.info(f"Agent {agent_id} active={is_active}")
        return agent

    async def list_agents(self) -> list[Agent]:
        result = await self.session.execute(select(Agent).order_by(Agent.created_at.desc()))
        return list(result.scalars().all())
