"""
Pytest fixtures shared across the pricing tests.
Provides sample catalogue records and an on-disk sqlite catalogue per test.
"""
import pytest

from jove.config import get_settings
from jove.db import get_connection, init_db, upsert_item, upsert_option
from jove.variants import default_resolver


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path, monkeypatch):
    """Point every test at its own catalogue file and a fresh settings cache."""
    for key in (
        "JOVE_STORAGE_PUBLIC_URL",
        "JOVE_DEFAULT_MARKET",
        "JOVE_WHITELIST_PATH",
        "JOVE_LOG_LEVEL",
        "JOVE_ASSET_PROBE_TIMEOUT",
    ):
        monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("JOVE_DB_PATH", str(tmp_path / "catalogue.db"))
    get_settings.cache_clear()
    default_resolver.cache_clear()
    yield
    get_settings.cache_clear()
    default_resolver.cache_clear()


@pytest.fixture
def ring_record():
    """Diamond-type ring with an AU override and a black onyx family price."""
    return {
        "id": "ring-solitaire",
        "type": "ring",
        "name": "Solitaire Ring",
        "pricing_type": "diamond_type",
        "base_price": 1200.0,
        "base_price_lab_grown": 800.0,
        "base_price_au": 1850.0,
        "black_onyx_base_price": 1300.0,
    }


@pytest.fixture
def necklace_record():
    """Metal-type necklace priced in USD only."""
    return {
        "id": "necklace-pendant",
        "type": "necklace",
        "name": "Pendant Necklace",
        "pricing_type": "metal_type",
        "base_price": 450.0,
        "base_price_gold": 650.0,
        "base_price_silver": 300.0,
    }


@pytest.fixture
def conn(tmp_path):
    connection = get_connection(tmp_path / "catalogue.db")
    init_db(connection)
    yield connection
    connection.close()


@pytest.fixture
def seeded_conn(conn, ring_record, necklace_record):
    """Catalogue with a ring and a necklace plus a handful of options."""
    upsert_item(conn, ring_record)
    upsert_item(conn, necklace_record)
    upsert_option(
        conn,
        {
            "jewelry_item_id": "ring-solitaire",
            "setting_id": "first_stone",
            "option_id": "ruby",
            "option_name": "Ruby",
            "filename_slug": "ruby",
            "affects_image_variant": 1,
            "price": 150.0,
            "price_lab_grown": 100.0,
        },
    )
    upsert_option(
        conn,
        {
            "jewelry_item_id": "ring-solitaire",
            "setting_id": "metal",
            "option_id": "yellow_gold",
            "option_name": "Yellow Gold",
            "affects_image_variant": 1,
            "price": 0.0,
            "price_au": 0.0,
        },
    )
    upsert_option(
        conn,
        {
            "jewelry_item_id": "ring-solitaire",
            "setting_id": "engraving",
            "option_id": "initials",
            "option_name": "Initials",
            "price": 25.0,
        },
    )
    upsert_option(
        conn,
        {
            "jewelry_item_id": "necklace-pendant",
            "setting_id": "chain_type",
            "option_id": "black_leather",
            "option_name": "Black Leather",
            "filename_slug": "black-leather",
            "affects_image_variant": 1,
            "price": 0.0,
            "price_gold": 20.0,
        },
    )
    return conn
