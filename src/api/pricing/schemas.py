"""Pricing catalog API schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel

from src.api.core.messages import APIResponse


class PricingEntryModel(BaseModel):
    id: UUID
    service_code: str
    credits: int
    description: str | None
    is_active: bool
    updated_at: datetime

    model_config = {"from_attributes": True}


PricingListResponse = APIResponse[list[PricingEntryModel]]
