"""Pricing catalog: credits charged per service code."""

from dataclasses import dataclass, field
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.core.exceptions.base import InvalidRequestError, ResourceNotFoundError
from src.api.core.messages import MessageCode
from src.core.base import BaseService
from src.database.models import PricingEntry
from src.modules.pricing.cache import PricingCache
from src.modules.pricing.constants import DEFAULT_PRICING


@dataclass
class FeatureCostLine:
    service_code: str
    credits: int


@dataclass
class FeatureCost:
    total_credits: int
    breakdown: list[FeatureCostLine] = field(default_factory=list)
    missing: list[str] = field(default_factory=list)


class PricingCatalogService(BaseService):
    """Reads go through the shared :class:`PricingCache`; writes invalidate it."""

    def __init__(self, db: AsyncSession, cache: PricingCache):
        super().__init__(db)
        self.cache = cache

    async def get_active_pricing(self) -> list[PricingEntry]:
        result = await self.db.execute(
            select(PricingEntry)
            .where(PricingEntry.is_active.is_(True))
            .order_by(PricingEntry.service_code)
        )
        return list(result.scalars().all())

    async def get_all_pricing(self) -> list[PricingEntry]:
        result = await self.db.execute(
            select(PricingEntry).order_by(PricingEntry.service_code)
        )
        return list(result.scalars().all())

    async def get_pricing_by_id(self, pricing_id: UUID) -> PricingEntry:
        entry = await self.db.get(PricingEntry, pricing_id)
        if entry is None:
            raise ResourceNotFoundError(
                MessageCode.PRICING_NOT_FOUND, details={"pricing_id": str(pricing_id)}
            )
        return entry

    async def get_pricing_by_service_code(
        self, service_code: str
    ) -> PricingEntry | None:
        """Active entry for a service code, or None."""
        result = await self.db.execute(
            select(PricingEntry).where(
                PricingEntry.service_code == service_code,
                PricingEntry.is_active.is_(True),
            )
        )
        return result.scalar_one_or_none()

    async def get_pricing_by_service_codes(
        self, service_codes: list[str]
    ) -> list[PricingEntry]:
        if not service_codes:
            return []
        result = await self.db.execute(
            select(PricingEntry).where(
                PricingEntry.service_code.in_(set(service_codes)),
                PricingEntry.is_active.is_(True),
            )
        )
        return list(result.scalars().all())

    async def get_credits(self, service_code: str) -> int | None:
        cached = self.cache.get(service_code)
        if cached is not None:
            return cached

        entry = await self.get_pricing_by_service_code(service_code)
        if entry is None:
            return None
        self.cache.set(service_code, entry.credits)
        return entry.credits

    async def get_credits_or_default(self, service_code: str, default: int) -> int:
        """Catalog price, or ``default`` when the entry is missing or unreadable.

        The lookup runs in a savepoint, so a failed read leaves the caller's
        transaction usable for the debit that follows.
        """
        cached = self.cache.get(service_code)
        if cached is not None:
            return cached

        try:
            async with self.db.begin_nested():
                credits = await self.get_credits(service_code)
        except SQLAlchemyError as e:
            self.logger.warning(
                "pricing_degraded_mode",
                service_code=service_code,
                fallback_credits=default,
                reason="catalog_unavailable",
                error=str(e),
            )
            return default

        if credits is None:
            self.logger.warning(
                "pricing_degraded_mode",
                service_code=service_code,
                fallback_credits=default,
                reason="no_active_entry",
            )
            return default
        return credits

    async def calculate_credits_for_features(
        self, service_codes: list[str]
    ) -> FeatureCost:
        """Sum the active prices of the requested features. Unknown codes are reported."""
        entries = await self.get_pricing_by_service_codes(service_codes)
        credits_by_code = {entry.service_code: entry.credits for entry in entries}

        cost = FeatureCost(total_credits=0)
        for code in service_codes:
            if code not in credits_by_code:
                cost.missing.append(code)
                continue
            cost.breakdown.append(
                FeatureCostLine(service_code=code, credits=credits_by_code[code])
            )
            cost.total_credits += credits_by_code[code]
        return cost

    async def create_pricing(
        self,
        service_code: str,
        credits: int,
        description: str | None = None,
        is_active: bool = True,
    ) -> PricingEntry:
        if credits < 0:
            raise InvalidRequestError("Pricing credits must not be negative")

        entry = PricingEntry(
            service_code=service_code,
            credits=credits,
            description=description,
            is_active=is_active,
        )
        self.db.add(entry)
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise
        self.cache.invalidate(service_code)
        self.logger.info(
            "pricing_created", service_code=service_code, credits=credits
        )
        return entry

    async def update_pricing(
        self,
        pricing_id: UUID,
        credits: int | None = None,
        description: str | None = None,
        is_active: bool | None = None,
    ) -> PricingEntry:
        entry = await self.get_pricing_by_id(pricing_id)
        if credits is not None:
            if credits < 0:
                raise InvalidRequestError("Pricing credits must not be negative")
            entry.credits = credits
        if description is not None:
            entry.description = description
        if is_active is not None:
            entry.is_active = is_active

        await self.db.commit()
        self.cache.invalidate(entry.service_code)
        self.logger.info(
            "pricing_updated",
            service_code=entry.service_code,
            credits=entry.credits,
            is_active=entry.is_active,
        )
        return entry

    async def deactivate_pricing(self, pricing_id: UUID) -> PricingEntry:
        return await self.update_pricing(pricing_id, is_active=False)

    async def seed_defaults(self) -> list[PricingEntry]:
        """Insert the default service codes that are not in the catalog yet."""
        result = await self.db.execute(select(PricingEntry.service_code))
        existing = set(result.scalars().all())

        created = []
        for code, seed in DEFAULT_PRICING.items():
            if code.value in existing:
                continue
            entry = PricingEntry(
                service_code=code.value,
                credits=seed.credits,
                description=seed.description,
            )
            self.db.add(entry)
            created.append(entry)

        if created:
            await self.db.commit()
            self.cache.clear()
        self.logger.info("pricing_seeded", created=[e.service_code for e in created])
        return created
