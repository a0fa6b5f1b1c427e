"""Centralized message codes and default messages for API responses."""

from enum import Enum
from typing import Generic, TypeVar

from pydantic import BaseModel


class MessageCode(str, Enum):
    """Centralized message codes for API responses."""

    # Success codes
    SUCCESS = "SUCCESS"
    CREATED = "CREATED"
    UPDATED = "UPDATED"
    DELETED = "DELETED"

    # Identity & Authorization
    AUTH_REQUIRED = "AUTH_REQUIRED"
    FORBIDDEN = "FORBIDDEN"

    # Accounts
    ACCOUNT_REGISTERED = "ACCOUNT_REGISTERED"
    ACCOUNT_NOT_FOUND = "ACCOUNT_NOT_FOUND"

    # Credit ledger
    INSUFFICIENT_CREDITS = "INSUFFICIENT_CREDITS"
    CREDITS_DEDUCTED = "CREDITS_DEDUCTED"
    CREDITS_ADDED = "CREDITS_ADDED"

    # Edits
    EDIT_RECORDED = "EDIT_RECORDED"

    # Pricing & packages
    PRICING_NOT_FOUND = "PRICING_NOT_FOUND"
    PACKAGE_NOT_FOUND = "PACKAGE_NOT_FOUND"

    # Promotions
    PROMOTION_REDEEMED = "PROMOTION_REDEEMED"
    INVALID_PROMOTION_CODE = "INVALID_PROMOTION_CODE"
    PROMOTION_NOT_FOUND = "PROMOTION_NOT_FOUND"

    # Payments
    ORDER_CREATED = "ORDER_CREATED"
    ORDER_NOT_FOUND = "ORDER_NOT_FOUND"
    INVALID_WEBHOOK_SIGNATURE = "INVALID_WEBHOOK_SIGNATURE"
    WEBHOOK_PROCESSED = "WEBHOOK_PROCESSED"
    WEBHOOK_IGNORED = "WEBHOOK_IGNORED"

    # Validation errors
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INVALID_INPUT = "INVALID_INPUT"
    PAYLOAD_TOO_LARGE = "PAYLOAD_TOO_LARGE"

    # Service Errors
    EXTERNAL_SERVICE_ERROR = "EXTERNAL_SERVICE_ERROR"
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"

    # Generic errors
    INTERNAL_ERROR = "INTERNAL_ERROR"
    RESOURCE_NOT_FOUND = "RESOURCE_NOT_FOUND"
    BAD_REQUEST = "BAD_REQUEST"
    CONFLICT = "CONFLICT"


# Default messages for each message code
DEFAULT_MESSAGES = {
    # Success messages
    MessageCode.SUCCESS: "Operation completed successfully",
    MessageCode.CREATED: "Resource created successfully",
    MessageCode.UPDATED: "Resource updated successfully",
    MessageCode.DELETED: "Resource deleted successfully",
    # Identity & Authorization
    MessageCode.AUTH_REQUIRED: "Account identity required",
    MessageCode.FORBIDDEN: "Access denied",
    # Accounts
    MessageCode.ACCOUNT_REGISTERED: "Account registered successfully",
    MessageCode.ACCOUNT_NOT_FOUND: "Account not found",
    # Credit ledger
    MessageCode.INSUFFICIENT_CREDITS: "Insufficient credits",
    MessageCode.CREDITS_DEDUCTED: "Credits deducted successfully",
    MessageCode.CREDITS_ADDED: "Credits added successfully",
    # Edits
    MessageCode.EDIT_RECORDED: "Edit recorded successfully",
    # Pricing & packages
    MessageCode.PRICING_NOT_FOUND: "Pricing entry not found",
    MessageCode.PACKAGE_NOT_FOUND: "Credit package not found",
    # Promotions
    MessageCode.PROMOTION_REDEEMED: "Promotion code redeemed successfully",
    MessageCode.INVALID_PROMOTION_CODE: "Invalid promotion code",
    MessageCode.PROMOTION_NOT_FOUND: "Promotion code not found",
    # Payments
    MessageCode.ORDER_CREATED: "Payment order created successfully",
    MessageCode.ORDER_NOT_FOUND: "Payment order not found",
    MessageCode.INVALID_WEBHOOK_SIGNATURE: "Invalid webhook signature",
    MessageCode.WEBHOOK_PROCESSED: "Webhook processed successfully",
    MessageCode.WEBHOOK_IGNORED: "Webhook acknowledged without changes",
    # Validation errors
    MessageCode.VALIDATION_ERROR: "Validation failed",
    MessageCode.INVALID_INPUT: "Invalid input provided",
    MessageCode.PAYLOAD_TOO_LARGE: "Payload too large",
    # Service Errors
    MessageCode.EXTERNAL_SERVICE_ERROR: "External service error",
    MessageCode.CONFIGURATION_ERROR: "Service is not configured correctly",
    # Generic errors
    MessageCode.INTERNAL_ERROR: "Internal server error",
    MessageCode.RESOURCE_NOT_FOUND: "Resource not found",
    MessageCode.BAD_REQUEST: "Bad request",
    MessageCode.CONFLICT: "Data integrity constraint violated",
}

T = TypeVar("T")


class PaginationInfo(BaseModel):
    """Common pagination information."""

    total: int
    limit: int
    offset: int
    has_more: bool


class Paginated(BaseModel, Generic[T]):
    """Generic paginated response wrapper."""

    items: list[T]
    pagination: PaginationInfo


class APIResponse(BaseModel, Generic[T]):
    """Base API response model with consistent structure and proper typing."""

    message_code: MessageCode
    message: str
    data: T | None = None

    @classmethod
    def success(
        cls,
        message_code: MessageCode = MessageCode.SUCCESS,
        message: str | None = None,
        data: T | None = None,
    ) -> "APIResponse[T]":
        """Create a success response."""
        return cls(
            message_code=message_code,
            message=message or DEFAULT_MESSAGES.get(message_code, "Success"),
            data=data,
        )


def get_default_message(message_code: MessageCode) -> str:
    """Get default message for a message code."""
    return DEFAULT_MESSAGES.get(message_code, "Operation completed")
