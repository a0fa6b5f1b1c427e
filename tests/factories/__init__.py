"""Test factories for Storyledger credits models."""

from .base import AsyncSQLAlchemyModelFactory
from .accounts import AccountFactory
from .edits import AIEditFactory
from .payments import PaymentOrderFactory
from .pricing import CreditPackageFactory, PricingEntryFactory
from .promotions import PromotionCodeFactory

__all__ = [
    "AsyncSQLAlchemyModelFactory",
    "AccountFactory",
    "AIEditFactory",
    "PaymentOrderFactory",
    "CreditPackageFactory",
    "PricingEntryFactory",
    "PromotionCodeFactory",
]
