"""Tests for the ledger and its balance projection."""

import asyncio

import pytest
from sqlalchemy import func, select

from src.api.core.exceptions.base import InsufficientCreditsError, InvalidRequestError
from src.database.models import CreditEventKind, LedgerEntry
from src.modules.credits.ledger import INSUFFICIENT_CREDITS, LedgerService


@pytest.mark.asyncio
async def test_unknown_account_has_zero_balance(ledger, test_account):
    assert await ledger.get_balance(test_account.id) == 0
    assert await ledger.can_afford(test_account.id, 1) is False
    assert await ledger.can_afford(test_account.id, 0) is True


@pytest.mark.asyncio
async def test_credit_creates_balance_and_entry(ledger, test_account):
    entry = await ledger.add_credits(
        test_account.id, 10, CreditEventKind.CREDIT_PURCHASE
    )

    assert entry.amount == 10
    assert entry.balance_after == 10
    assert entry.event_kind == CreditEventKind.CREDIT_PURCHASE.value
    assert await ledger.get_balance(test_account.id) == 10


@pytest.mark.asyncio
async def test_debit_records_negative_entry(ledger, test_account):
    await ledger.add_credits(test_account.id, 10, CreditEventKind.VOUCHER)

    result = await ledger.debit(
        test_account.id, 3, CreditEventKind.EBOOK_GENERATION, story_id="story-9"
    )

    assert result.ok is True
    assert result.balance == 7
    assert result.entry.amount == -3
    assert result.entry.story_id == "story-9"
    assert await ledger.get_balance(test_account.id) == 7


@pytest.mark.asyncio
async def test_insufficient_debit_leaves_balance_untouched(
    ledger, db_session, test_account
):
    await ledger.add_credits(test_account.id, 2, CreditEventKind.VOUCHER)

    result = await ledger.debit(test_account.id, 5, CreditEventKind.PRINT_ORDER)

    assert result.ok is False
    assert result.error == INSUFFICIENT_CREDITS
    assert result.balance == 2
    assert result.required == 5
    assert result.entry is None
    assert await ledger.get_balance(test_account.id) == 2

    entry_count = await db_session.scalar(
        select(func.count(LedgerEntry.id)).where(
            LedgerEntry.account_id == test_account.id
        )
    )
    assert entry_count == 1


@pytest.mark.asyncio
async def test_debit_with_no_balance_row_is_rejected(ledger, test_account):
    result = await ledger.debit(test_account.id, 1, CreditEventKind.TEXT_EDIT)

    assert result.ok is False
    assert result.balance == 0


@pytest.mark.asyncio
async def test_deduct_credits_raises_on_shortfall(ledger, test_account):
    await ledger.add_credits(test_account.id, 1, CreditEventKind.VOUCHER)

    with pytest.raises(InsufficientCreditsError) as exc_info:
        await ledger.deduct_credits(test_account.id, 5, CreditEventKind.PRINT_ORDER)

    assert exc_info.value.required == 5
    assert exc_info.value.available == 1
    assert exc_info.value.status_code == 402


@pytest.mark.asyncio
async def test_exact_balance_can_be_spent(ledger, test_account):
    await ledger.add_credits(test_account.id, 5, CreditEventKind.VOUCHER)

    entry = await ledger.deduct_credits(
        test_account.id, 5, CreditEventKind.EBOOK_GENERATION
    )

    assert entry.balance_after == 0
    assert await ledger.get_balance(test_account.id) == 0


@pytest.mark.asyncio
@pytest.mark.parametrize("amount", [0, -1])
async def test_non_positive_amounts_are_rejected(ledger, test_account, amount):
    with pytest.raises(InvalidRequestError):
        await ledger.add_credits(test_account.id, amount, CreditEventKind.VOUCHER)
    with pytest.raises(InvalidRequestError):
        await ledger.debit(test_account.id, amount, CreditEventKind.TEXT_EDIT)


@pytest.mark.asyncio
async def test_append_entry_rejects_zero(ledger, test_account):
    with pytest.raises(InvalidRequestError):
        await ledger.append_entry(test_account.id, 0, CreditEventKind.REFUND)


@pytest.mark.asyncio
async def test_balance_equals_ledger_sum_after_mixed_movements(ledger, test_account):
    movements = [
        (5, CreditEventKind.INITIAL_CREDIT),
        (-3, CreditEventKind.EBOOK_GENERATION),
        (100, CreditEventKind.CREDIT_PURCHASE),
        (-20, CreditEventKind.PRINT_ORDER),
        (10, CreditEventKind.VOUCHER),
        (-1, CreditEventKind.TEXT_EDIT),
    ]
    for amount, kind in movements:
        await ledger.append_entry(test_account.id, amount, kind)

    audit = await ledger.audit_balance(test_account.id)

    assert audit.consistent is True
    assert audit.projected_balance == 91
    assert audit.ledger_sum == 91
    assert audit.entry_count == len(movements)


@pytest.mark.asyncio
async def test_history_is_newest_first_and_paginated(ledger, test_account):
    for amount in (1, 2, 3, 4):
        await ledger.add_credits(test_account.id, amount, CreditEventKind.VOUCHER)

    entries, total = await ledger.get_history(test_account.id, limit=2, offset=0)
    older, _ = await ledger.get_history(test_account.id, limit=2, offset=2)

    assert total == 4
    assert [e.amount for e in entries] == [4, 3]
    assert [e.amount for e in older] == [2, 1]


@pytest.mark.asyncio
async def test_uncommitted_append_is_discarded_on_rollback(
    db_session, ledger, test_account
):
    account_id = test_account.id
    await ledger.add_credits(account_id, 10, CreditEventKind.VOUCHER)

    await ledger.append_entry(
        account_id, -4, CreditEventKind.AUDIOBOOK_GENERATION, commit=False
    )
    await db_session.rollback()

    fresh = LedgerService(db_session)
    assert await fresh.get_balance(account_id) == 10
    assert (await fresh.audit_balance(account_id)).entry_count == 1


@pytest.mark.asyncio
async def test_concurrent_debits_never_overdraw(session_factory, create_account):
    account = await create_account(balance=5)

    async def spend() -> bool:
        async with session_factory() as session:
            result = await LedgerService(session).debit(
                account.id, 3, CreditEventKind.AUDIOBOOK_GENERATION
            )
            return result.ok

    outcomes = await asyncio.gather(spend(), spend())

    assert sorted(outcomes) == [False, True]
    async with session_factory() as session:
        audit = await LedgerService(session).audit_balance(account.id)
    assert audit.projected_balance == 2
    assert audit.consistent is True
