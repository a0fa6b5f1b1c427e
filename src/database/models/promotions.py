"""Promotion code models."""

import uuid
from datetime import datetime
from uuid import UUID

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, String
from sqlalchemy import UUID as SQLAlchemyUUID
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, utcnow


class PromotionCode(Base):
    __tablename__ = "promotion_codes"

    id: Mapped[UUID] = mapped_column(
        SQLAlchemyUUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    # Stored upper-case, matched case-insensitively
    code: Mapped[str] = mapped_column(String, unique=True, nullable=False)
    credits: Mapped[int] = mapped_column(Integer, nullable=False)
    description: Mapped[str | None] = mapped_column(String, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    valid_from: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    valid_until: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    # None means unlimited
    max_redemptions_per_user: Mapped[int | None] = mapped_column(Integer, nullable=True)
    max_total_redemptions: Mapped[int | None] = mapped_column(Integer, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow
    )


class PromotionRedemption(Base):
    __tablename__ = "promotion_redemptions"

    id: Mapped[UUID] = mapped_column(
        SQLAlchemyUUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    promotion_code_id: Mapped[UUID] = mapped_column(
        ForeignKey("promotion_codes.id", ondelete="CASCADE"), nullable=False, index=True
    )
    account_id: Mapped[UUID] = mapped_column(
        ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False, index=True
    )
    credits_granted: Mapped[int] = mapped_column(Integer, nullable=False)
    ledger_entry_id: Mapped[UUID] = mapped_column(
        ForeignKey("ledger_entries.id", ondelete="RESTRICT"), nullable=False
    )
    redeemed_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
