import logging
import math
from typing import Any, Iterable, Mapping, Optional, Union

from jove.currency import STORED_PRICE_MARKETS
from jove.exceptions import MixedPricingModeError, UnknownPriceFieldError
from jove.markets import Market
from jove.models import (
    EntityKind,
    OptionLine,
    OrderLineTotal,
    PriceSlot,
    PricedEntity,
    PriceVariant,
    PricingMode,
)

logger = logging.getLogger(__name__)

FIELD_PREFIXES: dict[EntityKind, str] = {
    EntityKind.ITEM: "base_price",
    EntityKind.OPTION: "price",
}

# Alternative base-price families stored on items ("" is the standard family).
ITEM_FAMILIES = ("", "black_onyx")

DIAMOND_VARIANTS = frozenset({PriceVariant.LAB_GROWN})
METAL_VARIANTS = frozenset({PriceVariant.GOLD, PriceVariant.SILVER})

OptionCatalog = Mapping[tuple[str, str], PricedEntity]
Selection = Union[Mapping[str, str], Iterable[tuple[str, str]]]


def storage_market(market: Optional[Market]) -> Optional[Market]:
    """The market whose own columns hold prices for `market`, or None for the USD base."""
    if market in STORED_PRICE_MARKETS:
        return market
    return None


def price_field_name(
    kind: EntityKind,
    variant: PriceVariant = PriceVariant.DEFAULT,
    market: Optional[Market] = None,
    family: str = "",
) -> str:
    """
    Column name for one price slot, shared by the resolver and the admin setters.

    >>> price_field_name(EntityKind.OPTION, PriceVariant.GOLD, Market.AU)
    'price_gold_au'
    >>> price_field_name(EntityKind.ITEM, PriceVariant.LAB_GROWN, Market.EU, "black_onyx")
    'black_onyx_base_price_lab_grown'
    """
    name = FIELD_PREFIXES[kind]
    if family:
        name = f"{family}_{name}"
    if variant is not PriceVariant.DEFAULT:
        name = f"{name}_{variant.value}"
    slot_market = storage_market(market)
    if slot_market is not None:
        name = f"{name}_{slot_market.value}"
    return name


def _slot_markets() -> list[Optional[Market]]:
    return [None, *sorted(STORED_PRICE_MARKETS, key=lambda m: m.value)]


def price_field_names(kind: EntityKind, family: str = "") -> list[str]:
    return [
        price_field_name(kind, variant, market, family)
        for variant in PriceVariant
        for market in _slot_markets()
    ]


def all_price_columns(kind: EntityKind) -> list[str]:
    families = ITEM_FAMILIES if kind is EntityKind.ITEM else ("",)
    return [name for family in families for name in price_field_names(kind, family)]


def parse_price_field(kind: EntityKind, field_name: str) -> tuple[str, PriceVariant, Optional[Market]]:
    """
    Inverse of price_field_name.

    Raises:
        UnknownPriceFieldError: If field_name is not a price column of this kind
    """
    families = ITEM_FAMILIES if kind is EntityKind.ITEM else ("",)
    for family in families:
        for variant in PriceVariant:
            for market in _slot_markets():
                if price_field_name(kind, variant, market, family) == field_name:
                    return family, variant, market
    raise UnknownPriceFieldError(field_name, kind.value)


def _coerce_price(value: Any) -> Optional[float]:
    if value is None:
        return None
    try:
        price = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(price):
        return None
    return price


def infer_mode(slots: Iterable[PriceSlot]) -> Optional[PricingMode]:
    variants = {variant for variant, _ in slots}
    if variants & METAL_VARIANTS:
        return PricingMode.METAL_TYPE
    if variants & DIAMOND_VARIANTS:
        return PricingMode.DIAMOND_TYPE
    return None


def entity_from_record(
    record: Mapping[str, Any],
    kind: EntityKind,
    family: str = "",
    mode: Optional[PricingMode] = None,
) -> PricedEntity:
    """
    Build a PricedEntity from a flat catalogue row.

    The mode comes from the `mode` argument, then the row's `pricing_type`,
    then from which override columns are set.

    Raises:
        MixedPricingModeError: If the row prices both the diamond and metal axes
    """
    entity_id = str(record.get("id") or record.get("option_id") or "")

    overrides: dict[PriceSlot, float] = {}
    for variant in PriceVariant:
        for market in _slot_markets():
            price = _coerce_price(record.get(price_field_name(kind, variant, market, family)))
            if price is not None:
                overrides[(variant, market)] = price

    diamond_fields = [
        price_field_name(kind, v, m, family) for v, m in overrides if v in DIAMOND_VARIANTS
    ]
    metal_fields = [
        price_field_name(kind, v, m, family) for v, m in overrides if v in METAL_VARIANTS
    ]
    if diamond_fields and metal_fields:
        logger.warning("Rejecting %s %s: both pricing axes are set", kind.value, entity_id)
        raise MixedPricingModeError(entity_id, diamond_fields, metal_fields)

    if mode is None and record.get("pricing_type"):
        try:
            mode = PricingMode(str(record["pricing_type"]))
        except ValueError:
            logger.warning("Unknown pricing_type %r on %s %s", record["pricing_type"], kind.value, entity_id)
    if mode is None:
        mode = infer_mode(overrides) or PricingMode.DIAMOND_TYPE

    return PricedEntity(entity_id=entity_id, kind=kind, mode=mode, overrides=overrides, family=family)


def entity_to_record(entity: PricedEntity) -> dict[str, Optional[float]]:
    """Flat column view of an entity; unset slots map to None."""
    record: dict[str, Optional[float]] = {}
    for variant in PriceVariant:
        for market in _slot_markets():
            name = price_field_name(entity.kind, variant, market, entity.family)
            record[name] = entity.overrides.get((variant, market))
    return record


def resolve_price(
    entity: PricedEntity,
    market: Market,
    variant: PriceVariant = PriceVariant.DEFAULT,
) -> Optional[float]:
    """
    Resolve the single applicable price, or None when the entity is unavailable.

    A missing variant falls back to the default price of the same market's
    columns. It never reads another market's columns, and 0 is a real price.
    """
    slot_market = storage_market(market)
    price = entity.overrides.get((variant, slot_market))
    if price is not None:
        return price
    if variant is not PriceVariant.DEFAULT:
        logger.debug(
            "No %s price on %s %s for %s, using default",
            variant.value,
            entity.kind.value,
            entity.entity_id,
            market.value,
        )
        return entity.overrides.get((PriceVariant.DEFAULT, slot_market))
    return None


def _own_price(entity: PricedEntity, market: Market, variant: PriceVariant) -> Optional[float]:
    return entity.overrides.get((variant, storage_market(market)))


def _counts_as_available(entity: PricedEntity, price: Optional[float]) -> bool:
    if price is None:
        return False
    # Free options are offered; a zero item price means "not for sale"
    return entity.kind is EntityKind.OPTION or price > 0


def is_available_in_market(entity: PricedEntity, market: Market) -> bool:
    return any(_counts_as_available(entity, _own_price(entity, market, v)) for v in PriceVariant)


def available_variants(entity: PricedEntity, market: Market) -> list[PriceVariant]:
    return [v for v in PriceVariant if _counts_as_available(entity, _own_price(entity, market, v))]


def pricing_variant_for(mode: PricingMode, selection: Mapping[str, str]) -> PriceVariant:
    """Pick the price variant implied by a customer's selection under a pricing mode."""
    if mode is PricingMode.DIAMOND_TYPE:
        diamond_type = str(selection.get("diamond_type") or "").strip().lower().replace("-", "_")
        if diamond_type in ("lab_grown", "lab"):
            return PriceVariant.LAB_GROWN
        return PriceVariant.DEFAULT

    metal = str(selection.get("metal") or "").strip().lower()
    if "silver" in metal:
        return PriceVariant.SILVER
    if "gold" in metal:
        return PriceVariant.GOLD
    return PriceVariant.DEFAULT


def _selection_pairs(selection: Selection) -> list[tuple[str, str]]:
    pairs = selection.items() if isinstance(selection, Mapping) else selection
    return sorted((str(setting_id), str(option_id)) for setting_id, option_id in pairs)


def calculate_total(
    item: PricedEntity,
    options: OptionCatalog,
    selection: Selection,
    market: Market,
    variant: PriceVariant = PriceVariant.DEFAULT,
) -> OrderLineTotal:
    """
    Base price plus every selected option's price, all resolved for one market and variant.

    Selections without a matching option definition contribute nothing. An
    option unavailable in the market contributes 0. The total is None when the
    base item itself is unavailable.
    """
    base_price = resolve_price(item, market, variant)

    lines: list[OptionLine] = []
    for setting_id, option_id in _selection_pairs(selection):
        option = options.get((setting_id, option_id))
        if option is None:
            logger.debug("Skipping unpriced selection %s=%s", setting_id, option_id)
            continue
        lines.append(
            OptionLine(
                setting_id=setting_id,
                option_id=option_id,
                price=resolve_price(option, market, variant),
            )
        )

    if base_price is None:
        return OrderLineTotal(base_price=None, option_lines=tuple(lines), total=None)

    total = math.fsum([base_price, *(line.price or 0.0 for line in lines)])
    return OrderLineTotal(base_price=base_price, option_lines=tuple(lines), total=total)
