"""Account registration on behalf of the identity layer."""

from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.base import BaseService
from src.database.models import Account, CreditEventKind
from src.modules.credits.ledger import LedgerService
from src.modules.pricing.catalog import PricingCatalogService
from src.modules.pricing.constants import FALLBACK_CREDITS, ServiceCode


class AccountService(BaseService):
    def __init__(self, db: AsyncSession, catalog: PricingCatalogService):
        super().__init__(db)
        self.catalog = catalog
        self.ledger = LedgerService(db)

    async def get_account(self, account_id: UUID) -> Account | None:
        return await self.db.get(Account, account_id)

    async def register_account(
        self,
        account_id: UUID,
        email: str | None = None,
        grant_initial_credits: bool = True,
    ) -> tuple[Account, bool]:
        """Create the account once and grant the starter credits with it.

        Returns the account and whether it was created by this call.
        """
        existing = await self.get_account(account_id)
        if existing is not None:
            return existing, False

        account = Account(id=account_id, email=email)
        self.db.add(account)
        try:
            await self.db.flush()

            if grant_initial_credits:
                initial = await self.catalog.get_credits_or_default(
                    ServiceCode.INITIAL_AUTHOR_CREDITS.value,
                    FALLBACK_CREDITS[ServiceCode.INITIAL_AUTHOR_CREDITS],
                )
                if initial > 0:
                    await self.ledger.add_credits(
                        account_id,
                        initial,
                        CreditEventKind.INITIAL_CREDIT,
                        commit=False,
                    )

            await self.db.commit()
        except IntegrityError:
            # Lost a race with a concurrent registration of the same id
            await self.db.rollback()
            account = await self.get_account(account_id)
            if account is None:
                raise
            return account, False

        self.logger.info(
            "account_registered",
            account_id=str(account_id),
            initial_credits_granted=grant_initial_credits,
        )
        return account, True
