"""AI edit audit log."""

import uuid
from datetime import datetime
from enum import Enum
from uuid import UUID

from sqlalchemy import DateTime, ForeignKey, Index, String
from sqlalchemy import UUID as SQLAlchemyUUID
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, JSONType, utcnow


class EditAction(str, Enum):
    TEXT_EDIT = "text_edit"
    IMAGE_EDIT = "image_edit"


class AIEdit(Base):
    """One row per successful edit. The row count per action is the usage count."""

    __tablename__ = "ai_edits"
    __table_args__ = (Index("ix_ai_edits_account_action", "account_id", "action"),)

    id: Mapped[UUID] = mapped_column(
        SQLAlchemyUUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    account_id: Mapped[UUID] = mapped_column(
        ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False
    )
    story_id: Mapped[str] = mapped_column(String, nullable=False)
    action: Mapped[EditAction] = mapped_column(String, nullable=False)
    edit_metadata: Mapped[dict | None] = mapped_column(
        "metadata", JSONType, nullable=True
    )
    requested_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow
    )
