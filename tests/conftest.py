"""
Fixtures for ledger tests.

Every test gets its own SQLite database file, so sessions opened from the same
``db`` fixture really are separate connections competing for the same rows.
"""
from decimal import Decimal

import httpx
import pytest

from referral_ledger.api.database import DatabaseManager, get_session
from referral_ledger.config import get_env
from referral_ledger.services.agents.service import AgentService
from referral_ledger.services.clearance.service import ClearanceService
from referral_ledger.services.orders.service import OrderService
from referral_ledger.services.referral.marker import MarkerSigner


SERVICE_KEY = "test-service-key"


@pytest.fixture(autouse=True)
def env(tmp_path, monkeypatch):
    monkeypatch.setenv("DATABASE_URL", f"sqlite+aiosqlite:///{tmp_path / 'ledger.sqlite'}")
    monkeypatch.setenv("SECRET_KEY", "test-secret")
    monkeypatch.setenv("SERVICE_API_KEY", SERVICE_KEY)
    monkeypatch.setenv("DEFAULT_COMMISSION_RATE", "0.10")
    monkeypatch.setenv("ATTRIBUTION_TTL_DAYS", "30")
    monkeypatch.setenv("CLEARANCE_WINDOW_DAYS", "7")
    monkeypatch.setenv("DEBUG", "false")
    get_env.cache_clear()
    yield get_env()
    get_env.cache_clear()


@pytest.fixture
async def db(env):
    manager = DatabaseManager(env.DATABASE_URL)
    await manager.init_models()
    yield manager
    await manager.dispose()


@pytest.fixture
async def session(db):
    async with db.session_factory() as session:
        yield session


@pytest.fixture
async def agent(session):
    """Agent without a rate override."""
    return await AgentService(session).create_agent("dana@example.com", "Dana Levi", referral_code="DANA2024")


@pytest.fixture
async def override_agent(session):
    """Agent with a 15% override."""
    service = AgentService(session)
    created = await service.create_agent("omer@example.com", "Omer Katz", referral_code="OMER2024")
    return await service.set_rate_override(created.id, Decimal("0.15"))


@pytest.fixture
def marker_for():
    signer = MarkerSigner()

    def _marker(agent_id):
        return signer.issue(agent_id).token

    return _marker


@pytest.fixture
def place_order(session, marker_for):
    """Records an order, attributed to ``agent_id`` when given."""

    async def _place(amount_cents, agent_id=None, external_id=None):
        marker = marker_for(agent_id) if agent_id is not None else None
        return await OrderService(session).create_order(
            amount_cents, attribution_marker=marker, external_id=external_id
        )

    return _place


@pytest.fixture
def cleared_commission(session, place_order):
    """Places an attributed order and clears its commission."""

    async def _cleared(agent_id, amount_cents):
        order = await place_order(amount_cents, agent_id=agent_id)
        commission = await OrderService(session).commissions.get_for_order(order.id)
        return await ClearanceService(session).clear_commission(commission.id)

    return _cleared


@pytest.fixture
async def client(db):
    from referral_ledger.api.app import FastAPIManager

    app = FastAPIManager().get_app()

    async def _session_override():
        async with db.session_factory() as session:
            try:
                yield session
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_session] = _session_override
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test", headers={"X-API-Key": SERVICE_KEY}) as c:
        yield c


ADMIN = {"X-Agent-Role": "admin"}


def as_agent(agent_id) -> dict:
    return {"X-Agent-Id": str(agent_id), "X-Agent-Role": "agent"}
