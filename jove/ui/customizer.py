import sqlite3

import pandas as pd
import streamlit as st

from jove.config import get_settings
from jove.currency import format_market_price
from jove.db import list_items, load_filename_mappings, load_item, load_option_catalog
from jove.markets import MARKET_INFO, Market, parse_market
from jove.models import PricingMode, ProductType
from jove.orders import build_order_line
from jove.pricing import OptionCatalog
from jove.variants import default_resolver

NO_CHOICE = "(none)"


def settings_from_catalog(catalog: OptionCatalog) -> dict[str, list[str]]:
    """Option ids offered per setting, in catalogue order."""
    settings: dict[str, list[str]] = {}
    for setting_id, option_id in sorted(catalog):
        settings.setdefault(setting_id, []).append(option_id)
    return settings


def render(conn: sqlite3.Connection) -> None:
    st.subheader("Customizer preview")
    st.caption("What a shopper sees for a selection: price in their market and the matching photo.")

    col1, col2, col3 = st.columns(3)
    with col1:
        product_type = st.selectbox("Product", options=list(ProductType), format_func=lambda p: p.value.title())
    items = list_items(conn, product_type)
    if not items:
        st.info(f"No {product_type.folder} in the catalogue yet.")
        return
    with col2:
        item_id = st.selectbox(
            "Item",
            options=[row["id"] for row in items],
            format_func=lambda iid: next(r["name"] for r in items if r["id"] == iid),
        )
    with col3:
        markets = list(Market)
        default_market = parse_market(get_settings().default_market)
        market = st.selectbox(
            "Market",
            options=markets,
            index=markets.index(default_market),
            format_func=lambda m: f"{MARKET_INFO[m]['flag']} {MARKET_INFO[m]['name']}",
        )

    item = load_item(conn, item_id)
    catalog = load_option_catalog(conn, item_id)

    selection: dict[str, str] = {}
    if item.mode is PricingMode.DIAMOND_TYPE:
        diamond_type = st.radio("Diamond", options=["natural", "lab_grown"], horizontal=True)
        selection["diamond_type"] = diamond_type

    setting_columns = st.columns(3)
    for index, (setting_id, option_ids) in enumerate(settings_from_catalog(catalog).items()):
        with setting_columns[index % 3]:
            choice = st.selectbox(setting_id.replace("_", " ").title(), options=[NO_CHOICE, *option_ids])
        if choice != NO_CHOICE:
            selection[setting_id] = choice

    resolver = default_resolver(get_settings().whitelist_path).with_mappings(
        load_filename_mappings(conn, product_type)
    )
    line = build_order_line(product_type, item, catalog, selection, market, resolver=resolver)

    if line.display_price is None:
        st.warning(f"{item_id} is not sold in {MARKET_INFO[market]['name']}.")
    else:
        st.metric(f"Total ({line.variant.value})", line.display_price)

    if line.totals.option_lines:
        rows = [
            {
                "Setting": option_line.setting_id,
                "Option": option_line.option_id,
                "Price": "Unavailable"
                if option_line.price is None
                else format_market_price(option_line.price, market),
            }
            for option_line in line.totals.option_lines
        ]
        st.dataframe(pd.DataFrame(rows), width="stretch", hide_index=True)

    st.markdown("**Photo**")
    if line.image.found:
        st.caption(f"Combination {line.image.combination_key}")
    else:
        st.caption("No photo for this combination, showing the product preview.")
    st.code(line.image_url)
    if line.image_url.startswith(("http://", "https://")):
        st.image(line.image_url, width=320)
