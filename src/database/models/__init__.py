"""Database models for the Storyledger credits API."""

from .accounts import Account, AccountBalance
from .base import Base
from .edits import AIEdit, EditAction
from .ledger import CreditEventKind, LedgerEntry
from .payments import (
    PaymentEvent,
    PaymentEventType,
    PaymentMethod,
    PaymentOrder,
    PaymentOrderStatus,
)
from .pricing import CreditPackage, PricingEntry
from .promotions import PromotionCode, PromotionRedemption

# Export all models and enums
__all__ = [
    # Base
    "Base",
    # Enums
    "CreditEventKind",
    "EditAction",
    "PaymentEventType",
    "PaymentOrderStatus",
    # Models
    "Account",
    "AccountBalance",
    "LedgerEntry",
    "PricingEntry",
    "CreditPackage",
    "AIEdit",
    "PromotionCode",
    "PromotionRedemption",
    "PaymentOrder",
    "PaymentEvent",
    "PaymentMethod",
]
