from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Literal

from sqlalchemy import func, select, text
from sqlalchemy.exc import SQLAlchemyError

from src.core.base import BaseService
from src.database.models import CreditPackage, PricingEntry
from src.utils.settings.payments import PaymentSettings


@dataclass
class HealthCheckResult:
    """Result of a health check."""

    service: str
    status: Literal["healthy", "unhealthy", "degraded"]
    connected: bool
    details: dict
    error: str | None = None


@dataclass
class OverallHealthStatus:
    """Overall health status with individual service results."""

    status: Literal["healthy", "degraded", "unhealthy"]
    services: dict[str, HealthCheckResult]
    timestamp: str


class HealthService(BaseService):
    """Service for performing health checks on the engine's dependencies."""

    async def check_database_health(self) -> HealthCheckResult:
        try:
            result = await self.db.execute(text("SELECT 1 as test"))
            test_value = result.scalar()

            return HealthCheckResult(
                service="database",
                status="healthy",
                connected=True,
                details={"test_query_result": test_value},
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Database health check error: {e}")
            return HealthCheckResult(
                service="database",
                status="unhealthy",
                connected=False,
                details={},
                error=str(e),
            )

    async def check_catalog_health(self) -> HealthCheckResult:
        """An empty catalog still works through fallback prices, so it only degrades."""
        try:
            active_pricing = await self.db.scalar(
                select(func.count(PricingEntry.id)).where(
                    PricingEntry.is_active.is_(True)
                )
            )
            active_packages = await self.db.scalar(
                select(func.count(CreditPackage.id)).where(
                    CreditPackage.is_active.is_(True)
                )
            )
        except SQLAlchemyError as e:
            return HealthCheckResult(
                service="catalog",
                status="unhealthy",
                connected=False,
                details={},
                error=str(e),
            )

        details = {
            "active_pricing_entries": active_pricing or 0,
            "active_credit_packages": active_packages or 0,
        }
        healthy = bool(active_pricing) and bool(active_packages)
        return HealthCheckResult(
            service="catalog",
            status="healthy" if healthy else "degraded",
            connected=True,
            details=details,
        )

    def check_payment_configuration(self) -> HealthCheckResult:
        settings = PaymentSettings()
        details = {
            "api_key_configured": bool(settings.REVOLUT_API_SECRET_KEY.get_secret_value()),
            "webhook_secret_configured": bool(
                settings.REVOLUT_WEBHOOK_SECRET.get_secret_value()
            ),
        }
        return HealthCheckResult(
            service="payments",
            status="healthy" if all(details.values()) else "degraded",
            connected=True,
            details=details,
        )

    async def run_all_checks(self) -> OverallHealthStatus:
        results = [
            await self.check_database_health(),
            await self.check_catalog_health(),
            self.check_payment_configuration(),
        ]
        statuses = {result.status for result in results}
        if "unhealthy" in statuses:
            overall = "unhealthy"
        elif "degraded" in statuses:
            overall = "degraded"
        else:
            overall = "healthy"

        return OverallHealthStatus(
            status=overall,
            services={result.service: result for result in results},
            timestamp=datetime.now(timezone.utc).isoformat(),
        )
