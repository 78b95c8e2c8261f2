import logging
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from referral_ledger.api.models import COMMISSION_RATE_KEY, Setting
from referral_ledger.config import Settings
from referral_ledger.utils.money import validate_rate


class SettingsService:
    def __init__(self, session: AsyncSession, settings: Settings | None = None):
        self.session = session
        self.settings = settings or Settings()

    async def get_default_rate(self) -> Decimal:
        """
        Global default commission rate, read inside the caller's transaction.
        Seeds the configured default if the row is missing.
        """
        row = await self.session.get(Setting, COMMISSION_RATE_KEY)
        if row is None:
            default = validate_rate(self.settings.env.DEFAULT_COMMISSION_RATE)
            row = Setting(key=COMMISSION_RATE_KEY, value=str(default))
            self.session.add(row)
            await self.session.flush()
            logging.info(f"Seeded default commission rate {default}")
        return Decimal(row.value)

    async def set_default_rate(self, rate) -> Decimal:
        new_rate = validate_rate(rate)
        row = await self.session.get(Setting, COMMISSION_RATE_KEY)
        if row is None:
            row = Setting(key=COMMISSION_RATE_KEY, value=str(new_rate))
            self.session.add(row)
        else:
            row.value = str(new_rate)
        await self.session.commit()
        logging.info(f"Default commission rate set to {new_rate}")
        return new_rate

    async def read_default_rate(self) -> Decimal:
        """``get_default_rate`` as its own transaction, keeping a seeded row."""
        rate = await self.get_default_rate()
        await self.session.commit()
        return rate
