import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import Depends, FastAPI

from referral_ledger.api.database import get_db_manager
from referral_ledger.api.routers.agents import routes as AgentRoutes
from referral_ledger.api.routers.commissions import routes as CommissionRoutes
from referral_ledger.api.routers.orders import routes as OrderRoutes
from referral_ledger.api.routers.payouts import routes as PayoutRoutes
from referral_ledger.api.routers.referral import routes as ReferralRoutes
from referral_ledger.api.routers.settings import routes as SettingsRoutes
from referral_ledger.api.routers.system import routes as SystemRoutes
from referral_ledger.api.security import require_admin, require_service_key
from referral_ledger.config import configure_logging, get_env


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    if get_env().DEBUG:
        # development convenience; production schemas come from alembic
        await get_db_manager().init_models()
        logging.info("Database tables ensured (DEBUG)")
    yield
    await get_db_manager().dispose()


class FastAPIManager:
    def __init__(self):
        self.api = FastAPI(
            version="1.0.0",
            title="Referral Ledger",
            description=(
                "Referral attribution, commission ledger and payout service. "
                "Resolves agent referral codes into signed attribution markers, records orders "
                "and their commissions atomically, tracks commission clearance and reversal, "
                "and manages payout requests without ever paying a commission twice."
            ),
            lifespan=lifespan,
        )
        self.add_routers()

    def add_routers(self):
        self.api.include_router(
            SystemRoutes.router
        )
        self.api.include_router(
            ReferralRoutes.router,
            prefix="/referral",
            dependencies=[Depends(require_service_key)],
            tags=["Referral attribution"]
        )
        self.api.include_router(
            OrderRoutes.router,
            prefix="/orders",
            dependencies=[Depends(require_service_key)],
            tags=["Orders"]
        )
        self.api.include_router(
            CommissionRoutes.router,
            prefix="/commissions",
            dependencies=[Depends(require_service_key), Depends(require_admin)],
            tags=["Commission clearance"]
        )
        self.api.include_router(
            PayoutRoutes.router,
            prefix="/payouts",
            dependencies=[Depends(require_service_key)],
            tags=["Payouts"]
        )
        self.api.include_router(
            AgentRoutes.router,
            prefix="/agents",
            dependencies=[Depends(require_service_key)],
            tags=["Agents and ledger"]
        )
        self.api.include_router(
            SettingsRoutes.router,
            prefix="/settings",
            dependencies=[Depends(require_service_key), Depends(require_admin)],
            tags=["Settings"]
        )

    def start_server(self, host: str = "0.0.0.0", port: int = 8000):
        uvicorn.run(self.api, host=host, port=port)

    def get_app(self) -> FastAPI:
        return self.api
