"""
Tests for order-line composition.
"""
import pytest

from jove.assets import load_whitelist
from jove.db import load_item, load_option_catalog, upsert_item, upsert_option
from jove.markets import Market
from jove.models import EntityKind, PriceVariant, ProductType
from jove.orders import build_order_line
from jove.pricing import entity_from_record
from jove.variants import FALLBACK_PATHS, VariantImageResolver


@pytest.fixture
def bracelet_conn(conn):
    upsert_item(
        conn,
        {
            "id": "bracelet-charm",
            "type": "bracelet",
            "name": "Charm Bracelet",
            "pricing_type": "diamond_type",
            "base_price": 380.0,
            "base_price_lab_grown": 300.0,
        },
    )
    for setting_id, option_id, price in [
        ("first_stone", "diamond", 0.0),
        ("second_stone", "ruby", 60.0),
        ("chain_type", "black_leather", 0.0),
        ("chain_type", "gold_cord", 35.0),
        ("metal", "yellow_gold", 0.0),
    ]:
        upsert_option(
            conn,
            {
                "jewelry_item_id": "bracelet-charm",
                "setting_id": setting_id,
                "option_id": option_id,
                "affects_image_variant": 1,
                "price": price,
            },
        )
    return conn


SELECTION = {
    "diamond_type": "natural",
    "first_stone": "diamond",
    "second_stone": "ruby",
    "chain_type": "gold_cord",
    "metal": "yellow_gold",
}


class TestBuildOrderLine:
    def test_price_and_photo(self, bracelet_conn):
        line = build_order_line(
            ProductType.BRACELET,
            load_item(bracelet_conn, "bracelet-charm"),
            load_option_catalog(bracelet_conn, "bracelet-charm"),
            SELECTION,
            Market.AE,
            storage_base_url="https://cdn.example.com/customization-item",
        )
        assert line.variant is PriceVariant.DEFAULT
        assert line.totals.total == pytest.approx(475.0)
        assert line.display_price == "1,743.25 AED"
        assert line.image.combination_key == "gold-cord-ruby-yellowgold"
        assert line.image_url == (
            "https://cdn.example.com/customization-item/bracelets/bracelet-gold-cord-ruby-yellowgold.webp"
        )

    def test_lab_grown_selection(self, bracelet_conn):
        line = build_order_line(
            ProductType.BRACELET,
            load_item(bracelet_conn, "bracelet-charm"),
            load_option_catalog(bracelet_conn, "bracelet-charm"),
            {**SELECTION, "diamond_type": "lab_grown"},
            Market.LB,
        )
        assert line.variant is PriceVariant.LAB_GROWN
        assert line.display_price == "$395.00"

    def test_unavailable_in_market(self, bracelet_conn):
        line = build_order_line(
            ProductType.BRACELET,
            load_item(bracelet_conn, "bracelet-charm"),
            load_option_catalog(bracelet_conn, "bracelet-charm"),
            SELECTION,
            Market.AU,
        )
        assert line.display_price is None
        assert not line.totals.is_available
        # The photo does not depend on availability
        assert line.image.found

    def test_default_storage_url_from_settings(self, monkeypatch):
        monkeypatch.setenv("JOVE_STORAGE_PUBLIC_URL", "https://assets.example.com/customization-item/")
        item = entity_from_record({"id": "ring", "base_price": 500}, EntityKind.ITEM)
        line = build_order_line(ProductType.RING, item, {}, {"metal": "platinum"}, Market.EU)
        assert line.display_price == "€460.00"
        assert line.image.path == FALLBACK_PATHS[ProductType.RING]
        assert line.image_url == "https://assets.example.com/customization-item/rings/ring-preview.webp"

    def test_custom_resolver(self):
        resolver = VariantImageResolver(load_whitelist(), mappings={"house_ruby": "ruby"})
        item = entity_from_record({"id": "ring", "base_price": 500}, EntityKind.ITEM)
        line = build_order_line(
            ProductType.RING,
            item,
            {},
            {"metal": "white_gold", "first_stone": "house_ruby"},
            Market.LB,
            resolver=resolver,
            storage_base_url="/customization-item",
        )
        assert line.image_url == "/customization-item/rings/Ring%20ruby%20white%20gold.webp"
