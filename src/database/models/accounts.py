"""Account and balance projection models."""

from datetime import datetime
from uuid import UUID

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Integer, String
from sqlalchemy import UUID as SQLAlchemyUUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, utcnow


class Account(Base):
    __tablename__ = "accounts"

    id: Mapped[UUID] = mapped_column(
        SQLAlchemyUUID(as_uuid=True), primary_key=True, comment="Identity provider ID"
    )
    email: Mapped[str | None] = mapped_column(String, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

    balance = relationship(
        "AccountBalance", back_populates="account", uselist=False, lazy="noload"
    )


class AccountBalance(Base):
    """Projection of the ledger: one row per account, written only by the ledger."""

    __tablename__ = "account_balances"
    __table_args__ = (
        CheckConstraint("total >= 0", name="ck_account_balances_total_non_negative"),
    )

    account_id: Mapped[UUID] = mapped_column(
        ForeignKey("accounts.id", ondelete="CASCADE"), primary_key=True
    )
    total: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    last_updated: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow
    )

    account = relationship("Account", back_populates="balance", lazy="noload")
