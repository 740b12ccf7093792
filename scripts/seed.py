"""
Initialises the local SQLite catalogue and loads a small sample of items.
Run this once before first use; re-running refreshes the sample rows.
"""

from jove.db import get_connection, init_db, upsert_item, upsert_option
from jove.logging_config import setup_logging

SAMPLE_ITEMS = [
    {
        "id": "ring-solitaire",
        "type": "ring",
        "name": "Solitaire Ring",
        "pricing_type": "diamond_type",
        "base_price": 1200.0,
        "base_price_lab_grown": 800.0,
        "base_price_au": 1850.0,
        "base_price_lab_grown_au": 1200.0,
    },
    {
        "id": "necklace-pendant",
        "type": "necklace",
        "name": "Pendant Necklace",
        "pricing_type": "metal_type",
        "base_price": 450.0,
        "base_price_gold": 650.0,
        "base_price_silver": 300.0,
        "base_price_au": 700.0,
    },
    {
        "id": "bracelet-charm",
        "type": "bracelet",
        "name": "Charm Bracelet",
        "pricing_type": "diamond_type",
        "base_price": 380.0,
        "black_onyx_base_price": 420.0,
        "base_price_au": 560.0,
    },
]

STONES = ["blue_sapphire", "pink_sapphire", "emerald", "ruby"]

SAMPLE_OPTIONS = [
    *[
        {"jewelry_item_id": "ring-solitaire", "setting_id": "first_stone", "option_id": stone,
         "affects_image_variant": 1, "price": 150.0, "price_lab_grown": 100.0}
        for stone in STONES
    ],
    {"jewelry_item_id": "ring-solitaire", "setting_id": "metal", "option_id": "white_gold",
     "affects_image_variant": 1, "price": 0.0, "price_au": 0.0},
    {"jewelry_item_id": "ring-solitaire", "setting_id": "metal", "option_id": "yellow_gold",
     "affects_image_variant": 1, "price": 0.0, "price_au": 0.0},
    {"jewelry_item_id": "ring-solitaire", "setting_id": "engraving", "option_id": "initials",
     "price": 25.0, "price_au": 40.0},
    *[
        {"jewelry_item_id": "necklace-pendant", "setting_id": "first_stone", "option_id": stone,
         "affects_image_variant": 1, "price": 90.0, "price_gold": 120.0}
        for stone in STONES
    ],
    {"jewelry_item_id": "necklace-pendant", "setting_id": "chain_type", "option_id": "black_leather",
     "affects_image_variant": 1, "price": 0.0},
    {"jewelry_item_id": "necklace-pendant", "setting_id": "chain_type", "option_id": "yellow_gold_chain",
     "affects_image_variant": 1, "price": 80.0, "price_gold": 95.0},
    {"jewelry_item_id": "necklace-pendant", "setting_id": "metal", "option_id": "yellow_gold",
     "affects_image_variant": 1, "price": 0.0},
    {"jewelry_item_id": "necklace-pendant", "setting_id": "metal", "option_id": "white_gold",
     "affects_image_variant": 1, "price": 0.0},
    *[
        {"jewelry_item_id": "bracelet-charm", "setting_id": "second_stone", "option_id": f"bracelet_second_{stone}",
         "affects_image_variant": 1, "price": 60.0, "price_lab_grown": 40.0}
        for stone in STONES
    ],
    {"jewelry_item_id": "bracelet-charm", "setting_id": "first_stone", "option_id": "diamond",
     "affects_image_variant": 1, "price": 0.0},
    {"jewelry_item_id": "bracelet-charm", "setting_id": "chain_type", "option_id": "black_leather",
     "affects_image_variant": 1, "price": 0.0},
    {"jewelry_item_id": "bracelet-charm", "setting_id": "chain_type", "option_id": "gold_cord",
     "affects_image_variant": 1, "price": 35.0, "price_au": 55.0},
    {"jewelry_item_id": "bracelet-charm", "setting_id": "metal", "option_id": "yellow_gold",
     "affects_image_variant": 1, "price": 0.0},
    {"jewelry_item_id": "bracelet-charm", "setting_id": "metal", "option_id": "white_gold",
     "affects_image_variant": 1, "price": 0.0},
]


def main() -> None:
    setup_logging()
    conn = get_connection()
    init_db(conn)
    for item in SAMPLE_ITEMS:
        upsert_item(conn, item)
    for option in SAMPLE_OPTIONS:
        upsert_option(conn, option)
    print(f"Catalogue seeded with {len(SAMPLE_ITEMS)} items and {len(SAMPLE_OPTIONS)} options.")


if __name__ == "__main__":
    main()
