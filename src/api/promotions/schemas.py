"""Promotion code API schemas."""

from pydantic import BaseModel, Field

from src.api.core.messages import APIResponse


class RedeemRequest(BaseModel):
    code: str = Field(max_length=64)


class RedemptionModel(BaseModel):
    code: str
    credits_granted: int
    balance: int


RedemptionResponse = APIResponse[RedemptionModel]
