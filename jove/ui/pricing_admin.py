import io
import sqlite3

import pandas as pd
import streamlit as st

from jove.currency import format_market_price, stored_currency
from jove.db import (
    export_price_sheet,
    import_price_sheet,
    list_items,
    load_item,
    load_option_catalog,
    set_item_price,
    set_option_price,
    set_pricing_mode,
)
from jove.exceptions import PricingError
from jove.markets import MARKET_INFO, Market
from jove.models import PricedEntity, PricingMode
from jove.pricing import ITEM_FAMILIES, available_variants, price_field_name, resolve_price, storage_market


def _format_slot(value: float | None, market: Market) -> str:
    if value is None:
        return "Not set"
    return format_market_price(value, market)


def price_rows(entity: PricedEntity, market: Market) -> list[dict[str, object]]:
    """One row per variant of the entity's mode: the stored column and what shoppers see."""
    offered = set(available_variants(entity, market))
    rows = []
    for variant in entity.mode.variants:
        stored = entity.overrides.get((variant, storage_market(market)))
        resolved = resolve_price(entity, market, variant)
        rows.append(
            {
                "Variant": variant.value,
                "Column": price_field_name(entity.kind, variant, market, entity.family),
                "Stored": stored,
                "Shown to customers": _format_slot(resolved, market),
                "Own price": variant in offered,
            }
        )
    return rows


def _market_label(market: Market) -> str:
    info = MARKET_INFO[market]
    return f"{info['flag']} {info['name']} ({market.value})"


def _render_base_prices(conn: sqlite3.Connection, item_id: str, market: Market, mode: PricingMode) -> None:
    for family in ITEM_FAMILIES:
        entity = load_item(conn, item_id, family)
        st.markdown(f"**{family.replace('_', ' ').title() or 'Standard'} base price**")
        st.dataframe(pd.DataFrame(price_rows(entity, market)), width="stretch", hide_index=True)

    with st.form("base_price_form"):
        col1, col2, col3 = st.columns(3)
        with col1:
            family = st.selectbox("Family", options=list(ITEM_FAMILIES), format_func=lambda f: f or "standard")
        with col2:
            variant = st.selectbox("Variant", options=list(mode.variants), format_func=lambda v: v.value)
        with col3:
            value = st.number_input(f"Price ({stored_currency(market).value})", min_value=0.0, step=10.0)
        clear = st.checkbox("Clear this price instead")
        submitted = st.form_submit_button("Save base price", type="primary")

    if submitted:
        try:
            column = set_item_price(conn, item_id, variant, market, None if clear else value, family)
        except (PricingError, ValueError) as exc:
            st.error(str(exc))
        else:
            st.success(f"Saved {column}.")
            st.rerun()


def _render_option_prices(conn: sqlite3.Connection, item_id: str, market: Market, mode: PricingMode) -> None:
    catalog = load_option_catalog(conn, item_id)
    if not catalog:
        st.info("This item has no customization options yet.")
        return

    rows = []
    for (setting_id, option_id), option in sorted(catalog.items()):
        for row in price_rows(option, market):
            rows.append({"Setting": setting_id, "Option": option_id, **row})
    st.dataframe(pd.DataFrame(rows), width="stretch", hide_index=True)

    with st.form("option_price_form"):
        col1, col2, col3 = st.columns(3)
        with col1:
            key = st.selectbox(
                "Option",
                options=sorted(catalog),
                format_func=lambda k: f"{k[0]} / {k[1]}",
            )
        with col2:
            variant = st.selectbox("Variant", options=list(mode.variants), format_func=lambda v: v.value)
        with col3:
            value = st.number_input(f"Price ({stored_currency(market).value})", min_value=0.0, step=5.0)
        clear = st.checkbox("Clear this price instead")
        submitted = st.form_submit_button("Save option price", type="primary")

    if submitted:
        setting_id, option_id = key
        try:
            column = set_option_price(conn, item_id, setting_id, option_id, variant, market, None if clear else value)
        except (PricingError, ValueError) as exc:
            st.error(str(exc))
        else:
            st.success(f"Saved {column} for {option_id}.")
            st.rerun()


def _render_price_sheet(conn: sqlite3.Connection, item_id: str) -> None:
    sheet = export_price_sheet(conn, item_id)
    st.download_button(
        "Download price sheet (CSV)",
        data=sheet.to_csv(index=False).encode("utf-8"),
        file_name=f"{item_id}-prices.csv",
        mime="text/csv",
    )

    uploaded = st.file_uploader("Import price sheet", type=["csv"])
    if uploaded is not None and st.button("Import prices", type="primary"):
        try:
            df = pd.read_csv(io.BytesIO(uploaded.getvalue()))
            imported = import_price_sheet(conn, df)
        except (PricingError, ValueError) as exc:
            st.error(f"Import failed: {exc}")
        else:
            st.success(f"Imported {imported} option rows.")


def render(conn: sqlite3.Connection) -> None:
    st.subheader("Pricing")
    st.caption("Prices are stored in USD. Australia keeps its own AUD columns.")

    items = list_items(conn)
    if not items:
        st.info("No jewelry items yet. Run scripts/seed.py to load a sample catalogue.")
        return

    col1, col2 = st.columns(2)
    with col1:
        item_id = st.selectbox(
            "Item",
            options=[row["id"] for row in items],
            format_func=lambda iid: next(f"{r['name']} ({r['type']})" for r in items if r["id"] == iid),
        )
    with col2:
        market = st.selectbox("Market", options=list(Market), format_func=_market_label)

    row = next(r for r in items if r["id"] == item_id)
    mode = PricingMode(row["pricing_type"])
    new_mode = st.radio(
        "Pricing mode",
        options=list(PricingMode),
        index=list(PricingMode).index(mode),
        format_func=lambda m: "Natural / lab-grown" if m is PricingMode.DIAMOND_TYPE else "Gold / silver",
        horizontal=True,
    )
    if new_mode is not mode:
        try:
            set_pricing_mode(conn, item_id, new_mode)
        except PricingError as exc:
            st.error(f"{exc}. Clear those prices first.")
        else:
            st.rerun()

    base_tab, options_tab, sheet_tab = st.tabs(["Base prices", "Option prices", "Price sheet"])
    with base_tab:
        _render_base_prices(conn, item_id, market, mode)
    with options_tab:
        _render_option_prices(conn, item_id, market, mode)
    with sheet_tab:
        _render_price_sheet(conn, item_id)
