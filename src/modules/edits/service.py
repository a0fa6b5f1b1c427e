"""Quota-aware charging for AI text and image edits."""

from dataclasses import dataclass, field
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.core.exceptions.base import InvalidRequestError
from src.core.base import BaseService
from src.database.models import AIEdit, CreditEventKind, EditAction
from src.modules.credits.ledger import LedgerService
from src.modules.edits.quota import edit_count_message, is_chargeable
from src.modules.pricing.catalog import PricingCatalogService
from src.modules.pricing.constants import FALLBACK_CREDITS, ServiceCode

MAX_PREVIEW_EDITS = 100

_ACTION_SERVICE_CODES: dict[EditAction, ServiceCode] = {
    EditAction.TEXT_EDIT: ServiceCode.TEXT_EDIT,
    EditAction.IMAGE_EDIT: ServiceCode.IMAGE_EDIT,
}

_ACTION_EVENT_KINDS: dict[EditAction, CreditEventKind] = {
    EditAction.TEXT_EDIT: CreditEventKind.TEXT_EDIT,
    EditAction.IMAGE_EDIT: CreditEventKind.IMAGE_EDIT,
}


@dataclass
class EditPermission:
    can_edit: bool
    required_credits: int
    current_balance: int
    edit_count: int
    is_free: bool
    message: str


@dataclass
class EditCostLine:
    edit_number: int
    is_free: bool
    credits: int


@dataclass
class EditCostPreview:
    action: EditAction
    edit_count: int
    total_credits: int
    free_edits: int
    paid_edits: int
    breakdown: list[EditCostLine] = field(default_factory=list)


@dataclass
class EditRecordResult:
    edit: AIEdit
    credits_charged: int
    balance_after: int
    edit_count: int


class EditCreditService(BaseService):
    def __init__(self, db: AsyncSession, catalog: PricingCatalogService):
        super().__init__(db)
        self.catalog = catalog
        self.ledger = LedgerService(db)

    async def get_edit_count(self, account_id: UUID, action: EditAction) -> int:
        result = await self.db.scalar(
            select(func.count(AIEdit.id)).where(
                AIEdit.account_id == account_id,
                AIEdit.action == EditAction(action).value,
            )
        )
        return result or 0

    async def get_unit_price(self, action: EditAction) -> int:
        code = _ACTION_SERVICE_CODES[EditAction(action)]
        return await self.catalog.get_credits_or_default(
            code.value, FALLBACK_CREDITS[code]
        )

    async def calculate_required_credits(
        self, account_id: UUID, action: EditAction
    ) -> int:
        """Credits the next edit of this action will cost (0 when free)."""
        edit_count = await self.get_edit_count(account_id, action)
        if not is_chargeable(action, edit_count):
            return 0
        return await self.get_unit_price(action)

    async def check_edit_permission(
        self, account_id: UUID, action: EditAction
    ) -> EditPermission:
        edit_count = await self.get_edit_count(account_id, action)
        unit_price = await self.get_unit_price(action)
        required = unit_price if is_chargeable(action, edit_count) else 0
        balance = await self.ledger.get_balance(account_id)

        return EditPermission(
            can_edit=required == 0 or balance >= required,
            required_credits=required,
            current_balance=balance,
            edit_count=edit_count,
            is_free=required == 0,
            message=edit_count_message(action, edit_count, unit_price),
        )

    async def calculate_multiple_edit_credits(
        self, account_id: UUID, action: EditAction, count: int
    ) -> EditCostPreview:
        """Price the next ``count`` edits without recording anything."""
        if count < 1 or count > MAX_PREVIEW_EDITS:
            raise InvalidRequestError(
                f"Edit count must be between 1 and {MAX_PREVIEW_EDITS}"
            )

        edit_count = await self.get_edit_count(account_id, action)
        unit_price = await self.get_unit_price(action)

        preview = EditCostPreview(
            action=EditAction(action),
            edit_count=edit_count,
            total_credits=0,
            free_edits=0,
            paid_edits=0,
        )
        for offset in range(count):
            charged = is_chargeable(action, edit_count + offset)
            credits = unit_price if charged else 0
            preview.breakdown.append(
                EditCostLine(
                    edit_number=edit_count + offset + 1,
                    is_free=not charged,
                    credits=credits,
                )
            )
            preview.total_credits += credits
            if charged:
                preview.paid_edits += 1
            else:
                preview.free_edits += 1
        return preview

    async def record_successful_edit(
        self,
        account_id: UUID,
        story_id: str,
        action: EditAction,
        metadata: dict | None = None,
    ) -> EditRecordResult:
        """Charge (if due) and log a completed edit in one transaction.

        The charge is recomputed here rather than trusted from an earlier
        permission check.

        Raises:
            InsufficientCreditsError: the edit is chargeable and unaffordable;
                nothing is written.
        """
        action = EditAction(action)
        edit_count = await self.get_edit_count(account_id, action)
        required = 0
        if is_chargeable(action, edit_count):
            required = await self.get_unit_price(action)

        try:
            if required > 0:
                entry = await self.ledger.deduct_credits(
                    account_id,
                    required,
                    _ACTION_EVENT_KINDS[action],
                    story_id=story_id,
                    commit=False,
                )
                balance_after = entry.balance_after
            else:
                balance_after = await self.ledger.get_balance(account_id)

            edit = AIEdit(
                account_id=account_id,
                story_id=story_id,
                action=action.value,
                edit_metadata=metadata,
            )
            self.db.add(edit)
            await self.db.commit()
        except SQLAlchemyError:
            await self.db.rollback()
            raise

        self.logger.info(
            "edit_recorded",
            account_id=str(account_id),
            story_id=story_id,
            action=action.value,
            edit_number=edit_count + 1,
            credits_charged=required,
        )
        return EditRecordResult(
            edit=edit,
            credits_charged=required,
            balance_after=balance_after,
            edit_count=edit_count + 1,
        )
