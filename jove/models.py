from dataclasses import dataclass, field
from enum import Enum
from typing import Mapping, Optional

from jove.exceptions import UnknownProductTypeError
from jove.markets import Market


class PriceVariant(str, Enum):
    DEFAULT = "default"
    LAB_GROWN = "lab_grown"
    GOLD = "gold"
    SILVER = "silver"


class PricingMode(str, Enum):
    DIAMOND_TYPE = "diamond_type"
    METAL_TYPE = "metal_type"

    @property
    def variants(self) -> tuple[PriceVariant, ...]:
        if self is PricingMode.DIAMOND_TYPE:
            return (PriceVariant.DEFAULT, PriceVariant.LAB_GROWN)
        return (PriceVariant.DEFAULT, PriceVariant.GOLD, PriceVariant.SILVER)


class EntityKind(str, Enum):
    ITEM = "item"
    OPTION = "option"


class ProductType(str, Enum):
    RING = "ring"
    NECKLACE = "necklace"
    BRACELET = "bracelet"

    @classmethod
    def from_string(cls, value: str) -> "ProductType":
        if not isinstance(value, str):
            raise UnknownProductTypeError(value)
        normalized = value.strip().lower()
        # Catalogue rows and URL folders use the plural
        if normalized.endswith("s"):
            normalized = normalized[:-1]
        for product_type in cls:
            if product_type.value == normalized:
                return product_type
        raise UnknownProductTypeError(value)

    @property
    def folder(self) -> str:
        return f"{self.value}s"


# None is the USD base column; a Market key is that market's stored override.
PriceSlot = tuple[PriceVariant, Optional[Market]]


@dataclass(frozen=True)
class PricedEntity:
    """
    A jewelry item or a customization option with its price overrides.

    Only the slots that are actually set appear in `overrides`; a price of 0
    is a set slot.
    """

    entity_id: str
    kind: EntityKind
    mode: PricingMode
    overrides: Mapping[PriceSlot, float] = field(default_factory=dict)
    family: str = ""


@dataclass(frozen=True)
class OptionLine:
    setting_id: str
    option_id: str
    price: Optional[float]


@dataclass(frozen=True)
class OrderLineTotal:
    base_price: Optional[float]
    option_lines: tuple[OptionLine, ...]
    total: Optional[float]

    @property
    def is_available(self) -> bool:
        return self.total is not None


@dataclass(frozen=True)
class VariantImage:
    product_type: Optional[ProductType]
    path: str
    combination_key: Optional[str]
    found: bool


@dataclass(frozen=True)
class OrderLine:
    product_type: ProductType
    market: Market
    variant: PriceVariant
    totals: OrderLineTotal
    display_price: Optional[str]
    image: VariantImage
    image_url: str
