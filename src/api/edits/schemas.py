"""AI edit API schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from src.api.core.messages import APIResponse
from src.database.models import EditAction
from src.modules.edits.service import MAX_PREVIEW_EDITS


class EditPermissionModel(BaseModel):
    action: EditAction
    can_edit: bool
    required_credits: int
    current_balance: int
    edit_count: int
    is_free: bool
    message: str


class EditPreviewRequest(BaseModel):
    action: EditAction
    count: int = Field(ge=1, le=MAX_PREVIEW_EDITS)


class EditCostLineModel(BaseModel):
    edit_number: int
    is_free: bool
    credits: int

    model_config = {"from_attributes": True}


class EditPreviewModel(BaseModel):
    action: EditAction
    edit_count: int
    total_credits: int
    free_edits: int
    paid_edits: int
    breakdown: list[EditCostLineModel]

    model_config = {"from_attributes": True}


class RecordEditRequest(BaseModel):
    story_id: str = Field(min_length=1, max_length=255)
    action: EditAction
    metadata: dict | None = None


class RecordedEditModel(BaseModel):
    id: UUID
    story_id: str
    action: EditAction
    requested_at: datetime
    credits_charged: int
    balance: int
    edit_count: int


# Response type aliases
EditPermissionResponse = APIResponse[EditPermissionModel]
EditPreviewResponse = APIResponse[EditPreviewModel]
RecordedEditResponse = APIResponse[RecordedEditModel]
