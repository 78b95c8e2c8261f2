import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta

from jose import JWTError, jwt

from referral_ledger.config import Settings
from referral_ledger.utils.clock import utcnow


ALGORITHM = "HS256"
MARKER_TYPE = "attribution"


@dataclass
class AttributionMarker:
    token: str
    agent_id: uuid.UUID
    expires_at: datetime


class MarkerSigner:
    """
    Issues and verifies attribution markers.

    A marker is an HS256 JWT carrying only the agent id and its expiry. It is
    opaque to the browser that carries it and is verified on every use.
    """

    def __init__(self, settings: Settings | None = None):
        self.settings = settings or Settings()

    def issue(self, agent_id: uuid.UUID, now: datetime | None = None) -> AttributionMarker:
        issued_at = now or utcnow()
        expires_at = issued_at + timedelta(days=self.settings.env.ATTRIBUTION_TTL_DAYS)
        claims = {
            "sub": str(agent_id),
            "typ": MARKER_TYPE,
            "iat": int(issued_at.timestamp()),
            "exp": int(expires_at.timestamp()),
        }
        token = jwt.encode(claims, self.settings.env.SECRET_KEY, algorithm=ALGORITHM)
        return AttributionMarker(token=token, agent_id=agent_id, expires_at=expires_at)

    def verify(self, token: str) -> uuid.UUID | None:
        """Agent id bound to a valid, unexpired marker; None otherwise."""
        try:
            claims = jwt.decode(token, self.settings.env.SECRET_KEY, algorithms=[ALGORITHM])
        except JWTError:
            return None
        if claims.get("typ") != MARKER_TYPE:
            return None
        try:
            return uuid.UUID(claims["sub"])
        except (KeyError, TypeError, ValueError):
            return None
