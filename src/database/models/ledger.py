"""Credit ledger models."""

import uuid
from datetime import datetime
from enum import Enum
from uuid import UUID

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String
from sqlalchemy import UUID as SQLAlchemyUUID
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, utcnow


class CreditEventKind(str, Enum):
    INITIAL_CREDIT = "initial_credit"
    CREDIT_PURCHASE = "credit_purchase"
    EBOOK_GENERATION = "ebook_generation"
    AUDIOBOOK_GENERATION = "audiobook_generation"
    PRINT_ORDER = "print_order"
    SELF_PRINT = "self_print"
    TEXT_EDIT = "text_edit"
    IMAGE_EDIT = "image_edit"
    REFUND = "refund"
    VOUCHER = "voucher"
    PROMOTION = "promotion"


class LedgerEntry(Base):
    """Immutable signed credit movement. Rows are never updated or deleted."""

    __tablename__ = "ledger_entries"
    __table_args__ = (
        Index("ix_ledger_entries_account_created", "account_id", "created_at"),
    )

    id: Mapped[UUID] = mapped_column(
        SQLAlchemyUUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    account_id: Mapped[UUID] = mapped_column(
        ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False
    )
    amount: Mapped[int] = mapped_column(Integer, nullable=False)
    event_kind: Mapped[CreditEventKind] = mapped_column(String, nullable=False)
    story_id: Mapped[str | None] = mapped_column(String, nullable=True)
    purchase_id: Mapped[UUID | None] = mapped_column(
        SQLAlchemyUUID(as_uuid=True), nullable=True, index=True
    )
    balance_after: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
