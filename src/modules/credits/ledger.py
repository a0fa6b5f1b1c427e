"""Append-only credit ledger and the balance projection it maintains."""

from dataclasses import dataclass
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import SQLAlchemyError

from src.api.core.exceptions.base import InsufficientCreditsError, InvalidRequestError
from src.core.base import BaseService
from src.database.models import AccountBalance, CreditEventKind, LedgerEntry
from src.database.models.base import utcnow

INSUFFICIENT_CREDITS = "insufficient_credits"


@dataclass
class DebitResult:
    ok: bool
    balance: int
    required: int
    entry: LedgerEntry | None = None
    error: str | None = None


@dataclass
class BalanceAudit:
    account_id: UUID
    projected_balance: int
    ledger_sum: int
    entry_count: int

    @property
    def consistent(self) -> bool:
        return self.projected_balance == self.ledger_sum


class LedgerService(BaseService):
    """Single writer of both the ledger and the balance projection.

    Every movement is one ledger row plus one balance update inside the same
    transaction. Pass ``commit=False`` to fold the movement into a larger unit
    of work owned by the caller.
    """

    async def get_balance(self, account_id: UUID) -> int:
        result = await self.db.execute(
            select(AccountBalance.total).where(AccountBalance.account_id == account_id)
        )
        total = result.scalar_one_or_none()
        return total or 0

    async def can_afford(self, account_id: UUID, amount: int) -> bool:
        if amount <= 0:
            return True
        return await self.get_balance(account_id) >= amount

    async def append_entry(
        self,
        account_id: UUID,
        amount: int,
        event_kind: CreditEventKind,
        story_id: str | None = None,
        purchase_id: UUID | None = None,
        commit: bool = True,
    ) -> LedgerEntry:
        """Record a signed movement and apply it to the projected balance.

        Debits are applied with a conditional update that only matches while
        the balance covers the amount, so two concurrent debits can never
        overdraw the account.

        Raises:
            InvalidRequestError: amount is zero.
            InsufficientCreditsError: debit larger than the current balance.
        """
        if amount == 0:
            raise InvalidRequestError("Ledger amount must be non-zero")

        try:
            if amount > 0:
                balance_after = await self._increment_balance(account_id, amount)
            else:
                balance_after = await self._decrement_balance(account_id, -amount)
                if balance_after is None:
                    available = await self.get_balance(account_id)
                    raise InsufficientCreditsError(required=-amount, available=available)

            entry = LedgerEntry(
                account_id=account_id,
                amount=amount,
                event_kind=CreditEventKind(event_kind).value,
                story_id=story_id,
                purchase_id=purchase_id,
                balance_after=balance_after,
            )
            self.db.add(entry)
            await self.db.flush()

            if commit:
                await self.db.commit()
        except SQLAlchemyError:
            if commit:
                await self.db.rollback()
            raise

        self.logger.info(
            "ledger_entry_appended",
            account_id=str(account_id),
            amount=amount,
            event_kind=entry.event_kind,
            balance_after=balance_after,
            committed=commit,
        )
        return entry

    async def add_credits(
        self,
        account_id: UUID,
        amount: int,
        event_kind: CreditEventKind,
        purchase_id: UUID | None = None,
        story_id: str | None = None,
        commit: bool = True,
    ) -> LedgerEntry:
        if amount <= 0:
            raise InvalidRequestError("Credit amount must be positive")
        return await self.append_entry(
            account_id,
            amount,
            event_kind,
            story_id=story_id,
            purchase_id=purchase_id,
            commit=commit,
        )

    async def debit(
        self,
        account_id: UUID,
        amount: int,
        event_kind: CreditEventKind,
        story_id: str | None = None,
        commit: bool = True,
    ) -> DebitResult:
        """Try to spend credits, reporting shortfall as a result instead of raising."""
        if amount <= 0:
            raise InvalidRequestError("Debit amount must be positive")

        try:
            entry = await self.append_entry(
                account_id, -amount, event_kind, story_id=story_id, commit=commit
            )
        except InsufficientCreditsError as e:
            self.logger.info(
                "debit_rejected",
                account_id=str(account_id),
                required=amount,
                available=e.available,
                event_kind=CreditEventKind(event_kind).value,
            )
            return DebitResult(
                ok=False,
                balance=e.available,
                required=amount,
                error=INSUFFICIENT_CREDITS,
            )

        return DebitResult(
            ok=True, balance=entry.balance_after, required=amount, entry=entry
        )

    async def deduct_credits(
        self,
        account_id: UUID,
        amount: int,
        event_kind: CreditEventKind,
        story_id: str | None = None,
        commit: bool = True,
    ) -> LedgerEntry:
        """Raising variant of :meth:`debit` for HTTP boundaries."""
        result = await self.debit(
            account_id, amount, event_kind, story_id=story_id, commit=commit
        )
        if not result.ok:
            raise InsufficientCreditsError(required=amount, available=result.balance)
        return result.entry

    async def get_history(
        self, account_id: UUID, limit: int = 50, offset: int = 0
    ) -> tuple[list[LedgerEntry], int]:
        """Ledger entries for an account, newest first, with the total count."""
        total = await self.db.scalar(
            select(func.count(LedgerEntry.id)).where(
                LedgerEntry.account_id == account_id
            )
        )
        result = await self.db.execute(
            select(LedgerEntry)
            .where(LedgerEntry.account_id == account_id)
            .order_by(LedgerEntry.created_at.desc(), LedgerEntry.id.desc())
            .limit(limit)
            .offset(offset)
        )
        return list(result.scalars().all()), total or 0

    async def audit_balance(self, account_id: UUID) -> BalanceAudit:
        """Compare the projection with the ledger sum. Never repairs."""
        result = await self.db.execute(
            select(
                func.coalesce(func.sum(LedgerEntry.amount), 0),
                func.count(LedgerEntry.id),
            ).where(LedgerEntry.account_id == account_id)
        )
        ledger_sum, entry_count = result.one()
        audit = BalanceAudit(
            account_id=account_id,
            projected_balance=await self.get_balance(account_id),
            ledger_sum=int(ledger_sum),
            entry_count=int(entry_count),
        )
        if not audit.consistent:
            self.logger.error(
                "balance_projection_drift",
                account_id=str(account_id),
                projected_balance=audit.projected_balance,
                ledger_sum=audit.ledger_sum,
            )
        return audit

    async def _increment_balance(self, account_id: UUID, amount: int) -> int:
        insert = pg_insert if self.dialect_name == "postgresql" else sqlite_insert
        stmt = insert(AccountBalance).values(
            account_id=account_id, total=amount, last_updated=utcnow()
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[AccountBalance.account_id],
            set_={
                "total": AccountBalance.total + stmt.excluded.total,
                "last_updated": stmt.excluded.last_updated,
            },
        ).returning(AccountBalance.total)
        result = await self.db.execute(stmt)
        return result.scalar_one()

    async def _decrement_balance(self, account_id: UUID, amount: int) -> int | None:
        stmt = (
            update(AccountBalance)
            .where(
                AccountBalance.account_id == account_id,
                AccountBalance.total >= amount,
            )
            .values(total=AccountBalance.total - amount, last_updated=utcnow())
            .returning(AccountBalance.total)
            .execution_options(synchronize_session=False)
        )
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()
