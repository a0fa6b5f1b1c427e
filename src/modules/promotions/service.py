"""Promotion code redemption and administration."""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.core.exceptions.base import InvalidRequestError, ResourceNotFoundError
from src.api.core.messages import MessageCode
from src.core.base import BaseService
from src.database.models import CreditEventKind, PromotionCode, PromotionRedemption
from src.database.models.base import as_utc, utcnow
from src.modules.credits.ledger import LedgerService

INVALID_CODE = "invalid_code"
DEFAULT_MAX_REDEMPTIONS_PER_USER = 1

_REQUIRED_FIELDS = frozenset({"credits", "is_active"})
_CLEARABLE_FIELDS = frozenset(
    {
        "description",
        "valid_from",
        "valid_until",
        "max_redemptions_per_user",
        "max_total_redemptions",
    }
)


def normalize_code(raw_code: str | None) -> str:
    return (raw_code or "").strip().upper()


@dataclass
class RedemptionResult:
    ok: bool
    code: str
    credits_granted: int = 0
    new_balance: int | None = None
    error: str | None = None


class PromotionService(BaseService):
    def __init__(self, db: AsyncSession):
        super().__init__(db)
        self.ledger = LedgerService(db)

    async def redeem(self, account_id: UUID, raw_code: str | None) -> RedemptionResult:
        """Grant a promotion's credits to an account.

        Every rejection is reported as ``invalid_code`` so callers cannot probe
        which codes exist; the concrete reason only goes to the log.
        """
        code = normalize_code(raw_code)
        if not code:
            return await self._reject(account_id, code, "empty_code")

        # Row lock serializes cap checks for the same code on PostgreSQL
        result = await self.db.execute(
            select(PromotionCode).where(PromotionCode.code == code).with_for_update()
        )
        promotion = result.scalar_one_or_none()
        if promotion is None:
            return await self._reject(account_id, code, "unknown_code")
        if not promotion.is_active:
            return await self._reject(account_id, code, "inactive")

        now = utcnow()
        valid_from = as_utc(promotion.valid_from)
        valid_until = as_utc(promotion.valid_until)
        if valid_from is not None and now < valid_from:
            return await self._reject(account_id, code, "not_yet_valid")
        if valid_until is not None and now > valid_until:
            return await self._reject(account_id, code, "expired")

        if promotion.max_redemptions_per_user is not None:
            account_redemptions = await self._count_redemptions(
                promotion.id, account_id
            )
            if account_redemptions >= promotion.max_redemptions_per_user:
                return await self._reject(account_id, code, "account_cap_reached")

        if promotion.max_total_redemptions is not None:
            total_redemptions = await self._count_redemptions(promotion.id)
            if total_redemptions >= promotion.max_total_redemptions:
                return await self._reject(account_id, code, "global_cap_reached")

        if promotion.credits <= 0:
            return await self._reject(account_id, code, "non_positive_credits")

        try:
            entry = await self.ledger.add_credits(
                account_id, promotion.credits, CreditEventKind.VOUCHER, commit=False
            )
            self.db.add(
                PromotionRedemption(
                    promotion_code_id=promotion.id,
                    account_id=account_id,
                    credits_granted=promotion.credits,
                    ledger_entry_id=entry.id,
                )
            )
            await self.db.commit()
        except SQLAlchemyError:
            await self.db.rollback()
            raise

        self.logger.info(
            "promotion_redeemed",
            account_id=str(account_id),
            code=code,
            credits_granted=promotion.credits,
            new_balance=entry.balance_after,
        )
        return RedemptionResult(
            ok=True,
            code=code,
            credits_granted=promotion.credits,
            new_balance=entry.balance_after,
        )

    async def get_redemption_count(self, promotion_id: UUID) -> int:
        return await self._count_redemptions(promotion_id)

    async def list_codes(self, include_inactive: bool = True) -> list[PromotionCode]:
        stmt = select(PromotionCode).order_by(PromotionCode.created_at.desc())
        if not include_inactive:
            stmt = stmt.where(PromotionCode.is_active.is_(True))
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def get_code(self, promotion_id: UUID) -> PromotionCode:
        promotion = await self.db.get(PromotionCode, promotion_id)
        if promotion is None:
            raise ResourceNotFoundError(
                MessageCode.PROMOTION_NOT_FOUND,
                details={"promotion_id": str(promotion_id)},
            )
        return promotion

    async def create_code(
        self,
        code: str,
        credits: int,
        description: str | None = None,
        valid_from: datetime | None = None,
        valid_until: datetime | None = None,
        max_redemptions_per_user: int | None = DEFAULT_MAX_REDEMPTIONS_PER_USER,
        max_total_redemptions: int | None = None,
    ) -> PromotionCode:
        normalized = normalize_code(code)
        if not normalized:
            raise InvalidRequestError("Promotion code must not be empty")
        self._validate(credits, valid_from, valid_until)

        promotion = PromotionCode(
            code=normalized,
            credits=credits,
            description=description,
            valid_from=valid_from,
            valid_until=valid_until,
            max_redemptions_per_user=max_redemptions_per_user,
            max_total_redemptions=max_total_redemptions,
        )
        self.db.add(promotion)
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise
        self.logger.info("promotion_created", code=normalized, credits=credits)
        return promotion

    async def update_code(self, promotion_id: UUID, **changes) -> PromotionCode:
        """Apply the given field changes. Unknown fields are ignored.

        ``None`` clears an optional field (``max_redemptions_per_user=None``
        lifts the per-account cap) and is ignored for ``credits`` and
        ``is_active``.
        """
        promotion = await self.get_code(promotion_id)
        for name, value in changes.items():
            if name in _CLEARABLE_FIELDS:
                setattr(promotion, name, value)
            elif name in _REQUIRED_FIELDS and value is not None:
                setattr(promotion, name, value)

        self._validate(
            promotion.credits,
            as_utc(promotion.valid_from),
            as_utc(promotion.valid_until),
        )
        await self.db.commit()
        self.logger.info(
            "promotion_updated", code=promotion.code, is_active=promotion.is_active
        )
        return promotion

    async def deactivate_code(self, promotion_id: UUID) -> PromotionCode:
        return await self.update_code(promotion_id, is_active=False)

    async def _count_redemptions(
        self, promotion_id: UUID, account_id: UUID | None = None
    ) -> int:
        stmt = select(func.count(PromotionRedemption.id)).where(
            PromotionRedemption.promotion_code_id == promotion_id
        )
        if account_id is not None:
            stmt = stmt.where(PromotionRedemption.account_id == account_id)
        return await self.db.scalar(stmt) or 0

    async def _reject(
        self, account_id: UUID, code: str, reason: str
    ) -> RedemptionResult:
        self.logger.info(
            "promotion_rejected", account_id=str(account_id), code=code, reason=reason
        )
        return RedemptionResult(ok=False, code=code, error=INVALID_CODE)

    @staticmethod
    def _validate(
        credits: int, valid_from: datetime | None, valid_until: datetime | None
    ) -> None:
        if credits <= 0:
            raise InvalidRequestError("Promotion credits must be positive")
        if valid_from and valid_until and as_utc(valid_from) >= as_utc(valid_until):
            raise InvalidRequestError("valid_from must be before valid_until")
