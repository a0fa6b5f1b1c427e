"""Pricing catalog seeds and credit package configurations."""

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum


class ServiceCode(str, Enum):
    """Catalog codes for every chargeable operation."""

    INITIAL_AUTHOR_CREDITS = "initial_author_credits"
    EBOOK_GENERATION = "ebook_generation"
    AUDIOBOOK_GENERATION = "audiobook_generation"
    PRINT_ORDER = "print_order"
    SELF_PRINT = "self_print"
    TEXT_EDIT = "text_edit"
    IMAGE_EDIT = "image_edit"


@dataclass(frozen=True)
class PricingSeed:
    credits: int
    description: str


DEFAULT_PRICING: dict[ServiceCode, PricingSeed] = {
    ServiceCode.INITIAL_AUTHOR_CREDITS: PricingSeed(
        credits=5, description="Credits granted to new authors"
    ),
    ServiceCode.EBOOK_GENERATION: PricingSeed(
        credits=5, description="Generate an illustrated ebook"
    ),
    ServiceCode.AUDIOBOOK_GENERATION: PricingSeed(
        credits=3, description="Narrate a story as an audiobook"
    ),
    ServiceCode.PRINT_ORDER: PricingSeed(
        credits=20, description="Order a printed hardcover"
    ),
    ServiceCode.SELF_PRINT: PricingSeed(
        credits=5, description="Download a print-ready PDF"
    ),
    ServiceCode.TEXT_EDIT: PricingSeed(credits=1, description="AI text edit"),
    ServiceCode.IMAGE_EDIT: PricingSeed(credits=1, description="AI image edit"),
}

# Used when the catalog has no active entry or cannot be read
FALLBACK_CREDITS: dict[ServiceCode, int] = {
    ServiceCode.INITIAL_AUTHOR_CREDITS: 5,
    ServiceCode.TEXT_EDIT: 1,
    ServiceCode.IMAGE_EDIT: 1,
}


@dataclass(frozen=True)
class CreditPackageConfig:
    """Configuration for a purchasable credit package."""

    credits: int
    price: Decimal
    popular: bool = False
    best_value: bool = False


DEFAULT_CREDIT_PACKAGES: dict[str, CreditPackageConfig] = {
    "credits5": CreditPackageConfig(credits=5, price=Decimal("5.00")),
    "credits10": CreditPackageConfig(credits=10, price=Decimal("9.00"), popular=True),
    "credits30": CreditPackageConfig(credits=30, price=Decimal("25.00")),
    "credits100": CreditPackageConfig(
        credits=100, price=Decimal("79.00"), best_value=True
    ),
}
