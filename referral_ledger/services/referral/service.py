import logging
import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from referral_ledger.api.models import Agent, ReferralVisit
from referral_ledger.services.errors import InvalidReferralCode, UnknownReferralCode
from referral_ledger.utils.referral import normalize_referral_code
from .marker import AttributionMarker, MarkerSigner


class ReferralService:
    def __init__(self, session: AsyncSession, signer: MarkerSigner | None = None):
        self.session = session
        self.signer = signer or MarkerSigner()

    async def _get_active_agent_by_code(self, code: str) -> Agent:
        normalized = normalize_referral_code(code)
        if normalized is None:
            raise InvalidReferralCode(f"Malformed referral code {code!r}")
        agent = await self.session.scalar(
            select(Agent).where(Agent.referral_code == normalized, Agent.is_active.is_(True))
        )
        if not agent:
            raise UnknownReferralCode(f"No active agent owns referral code {normalized}")
        return agent

    async def resolve_referral(self, code: str) -> AttributionMarker:
        """
        Maps a referral code to its agent and issues a fresh attribution marker.
        Writes nothing; resolving the same code again just re-issues the marker.
        """
        agent = await self._get_active_agent_by_code(code)
        marker = self.signer.issue(agent.id)
        logging.info(f"Issued attribution marker for agent {agent.id}, expires {marker.expires_at.isoformat()}")
        return marker

    async def decode_marker(self, token: str | None) -> uuid.UUID | None:
        """
        Agent credited by a marker, or None if the marker is missing, forged,
        expired, or points to an agent that is gone or inactive.
        """
        if not token:
            return None
        agent_id = self.signer.verify(token)
        if agent_id is None:
            logging.warning("Attribution marker rejected (invalid or expired)")
            return None
        agent = await self.session.get(Agent, agent_id)
        if not agent or not agent.is_active:
            logging.warning(f"Attribution marker points to missing or inactive agent {agent_id}")
            return None
        return agent.id

    async def record_visit(
        self,
        code: str,
        visitor_ip: str | None = None,
        user_agent: str | None = None,
        page_url: str | None = None,
    ) -> ReferralVisit:
        agent = await self._get_active_agent_by_code(code)
        visit = ReferralVisit(
            agent_id=agent.id,
            referral_code=agent.referral_code,
            visitor_ip=visitor_ip,
            user_agent=user_agent,
            page_url=page_url,
        )
        self.session.add(visit)
        await self.session.commit()
        logging.info(f"Visit tracked for agent {agent.id}")
        return visit
