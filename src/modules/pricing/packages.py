"""Credit package catalog."""

from decimal import Decimal
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from src.api.core.exceptions.base import InvalidRequestError, ResourceNotFoundError
from src.api.core.messages import MessageCode
from src.core.base import BaseService
from src.database.models import CreditPackage
from src.modules.pricing.constants import DEFAULT_CREDIT_PACKAGES


class CreditPackageService(BaseService):
    async def get_active_packages(self) -> list[CreditPackage]:
        result = await self.db.execute(
            select(CreditPackage)
            .where(CreditPackage.is_active.is_(True))
            .order_by(CreditPackage.price)
        )
        return list(result.scalars().all())

    async def get_all_packages(self) -> list[CreditPackage]:
        result = await self.db.execute(select(CreditPackage).order_by(CreditPackage.price))
        return list(result.scalars().all())

    async def get_package_by_key(
        self, key: str, active_only: bool = True
    ) -> CreditPackage | None:
        stmt = select(CreditPackage).where(CreditPackage.key == key)
        if active_only:
            stmt = stmt.where(CreditPackage.is_active.is_(True))
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def get_package_by_id(self, package_id: UUID) -> CreditPackage:
        package = await self.db.get(CreditPackage, package_id)
        if package is None:
            raise ResourceNotFoundError(
                MessageCode.PACKAGE_NOT_FOUND, details={"package_id": str(package_id)}
            )
        return package

    async def create_package(
        self,
        key: str,
        credits: int,
        price: Decimal,
        popular: bool = False,
        best_value: bool = False,
    ) -> CreditPackage:
        self._validate(credits, price)
        package = CreditPackage(
            key=key,
            credits=credits,
            price=price,
            popular=popular,
            best_value=best_value,
        )
        self.db.add(package)
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise
        self.logger.info("credit_package_created", key=key, credits=credits)
        return package

    async def update_package(
        self,
        package_id: UUID,
        credits: int | None = None,
        price: Decimal | None = None,
        popular: bool | None = None,
        best_value: bool | None = None,
        is_active: bool | None = None,
    ) -> CreditPackage:
        package = await self.get_package_by_id(package_id)
        self._validate(
            credits if credits is not None else package.credits,
            price if price is not None else package.price,
        )
        if credits is not None:
            package.credits = credits
        if price is not None:
            package.price = price
        if popular is not None:
            package.popular = popular
        if best_value is not None:
            package.best_value = best_value
        if is_active is not None:
            package.is_active = is_active

        await self.db.commit()
        self.logger.info(
            "credit_package_updated", key=package.key, is_active=package.is_active
        )
        return package

    async def deactivate_package(self, package_id: UUID) -> CreditPackage:
        return await self.update_package(package_id, is_active=False)

    async def seed_defaults(self) -> list[CreditPackage]:
        result = await self.db.execute(select(CreditPackage.key))
        existing = set(result.scalars().all())

        created = []
        for key, config in DEFAULT_CREDIT_PACKAGES.items():
            if key in existing:
                continue
            package = CreditPackage(
                key=key,
                credits=config.credits,
                price=config.price,
                popular=config.popular,
                best_value=config.best_value,
            )
            self.db.add(package)
            created.append(package)

        if created:
            await self.db.commit()
        self.logger.info("credit_packages_seeded", created=[p.key for p in created])
        return created

    @staticmethod
    def _validate(credits: int, price: Decimal) -> None:
        if credits <= 0:
            raise InvalidRequestError("Package credits must be positive")
        if price <= 0:
            raise InvalidRequestError("Package price must be positive")
