import logging
from typing import Mapping, Optional

from jove.assets import public_url
from jove.config import get_settings
from jove.currency import format_market_price
from jove.markets import Market
from jove.models import OrderLine, PricedEntity, ProductType
from jove.pricing import OptionCatalog, calculate_total, pricing_variant_for
from jove.variants import VariantImageResolver, default_resolver

logger = logging.getLogger(__name__)


def build_order_line(
    product_type: ProductType,
    item: PricedEntity,
    options: OptionCatalog,
    selection: Mapping[str, str],
    market: Market,
    resolver: Optional[VariantImageResolver] = None,
    storage_base_url: Optional[str] = None,
) -> OrderLine:
    """
    Price and picture one customized piece for a market.

    Checkout, order confirmation emails and the admin preview all build their
    lines here so that totals and photos agree everywhere.
    """
    variant = pricing_variant_for(item.mode, selection)
    totals = calculate_total(item, options, selection, market, variant)
    display_price = format_market_price(totals.total, market) if totals.total is not None else None

    resolver = resolver or default_resolver(get_settings().whitelist_path)
    image = resolver.resolve(product_type, selection)
    base_url = storage_base_url if storage_base_url is not None else get_settings().storage_public_url

    if totals.total is None:
        logger.info("%s %s is not offered in market %s", product_type.value, item.entity_id, market.value)

    return OrderLine(
        product_type=product_type,
        market=market,
        variant=variant,
        totals=totals,
        display_price=display_price,
        image=image,
        image_url=public_url(image.path, base_url),
    )
