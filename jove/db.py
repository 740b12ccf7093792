import logging
import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from jove.config import get_settings
from jove.exceptions import CatalogueRecordNotFoundError, MixedPricingModeError
from jove.markets import Market
from jove.models import EntityKind, PricedEntity, PriceVariant, PricingMode, ProductType
from jove.pricing import (
    DIAMOND_VARIANTS,
    METAL_VARIANTS,
    OptionCatalog,
    all_price_columns,
    entity_from_record,
    parse_price_field,
    price_field_name,
)

logger = logging.getLogger(__name__)

ITEM_PRICE_COLUMNS = all_price_columns(EntityKind.ITEM)
OPTION_PRICE_COLUMNS = all_price_columns(EntityKind.OPTION)

PRICE_SHEET_KEY_COLUMNS = ["jewelry_item_id", "setting_id", "option_id", "option_name"]


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _as_flag(value: Any, default: bool) -> int:
    if value is None:
        return 1 if default else 0
    if isinstance(value, str):
        return 1 if value.strip().lower() in ("1", "true", "yes", "y") else 0
    return 1 if value else 0


def get_connection(db_path: Path | None = None) -> sqlite3.Connection:
    target = db_path or get_settings().db_path
    target.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(target)
    conn.row_factory = sqlite3.Row
    return conn


def _price_columns_sql(columns: list[str]) -> str:
    return ",\n".join(f"            {column} REAL" for column in columns)


def _add_missing_columns(conn: sqlite3.Connection, table: str, columns: list[str]) -> None:
    existing = [row["name"] for row in conn.execute(f"PRAGMA table_info({table})").fetchall()]
    for column in columns:
        if column not in existing:
            conn.execute(f"ALTER TABLE {table} ADD COLUMN {column} REAL")


def init_db(conn: sqlite3.Connection) -> None:
    cursor = conn.cursor()

    cursor.execute(
        f"""
        CREATE TABLE IF NOT EXISTS jewelry_items (
            id TEXT PRIMARY KEY,
            type TEXT NOT NULL,
            name TEXT NOT NULL,
            pricing_type TEXT NOT NULL DEFAULT 'diamond_type',
            is_active INTEGER NOT NULL DEFAULT 1,
{_price_columns_sql(ITEM_PRICE_COLUMNS)},
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL
        )
        """
    )

    cursor.execute(
        f"""
        CREATE TABLE IF NOT EXISTS customization_options (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            jewelry_item_id TEXT NOT NULL,
            setting_id TEXT NOT NULL,
            option_id TEXT NOT NULL,
            option_name TEXT NOT NULL,
            filename_slug TEXT,
            affects_image_variant INTEGER NOT NULL DEFAULT 0,
            is_active INTEGER NOT NULL DEFAULT 1,
{_price_columns_sql(OPTION_PRICE_COLUMNS)},
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL,
            UNIQUE (jewelry_item_id, setting_id, option_id),
            FOREIGN KEY (jewelry_item_id) REFERENCES jewelry_items(id)
        )
        """
    )

    # Catalogues created before a market got stored columns
    _add_missing_columns(conn, "jewelry_items", ITEM_PRICE_COLUMNS)
    _add_missing_columns(conn, "customization_options", OPTION_PRICE_COLUMNS)

    conn.commit()


def upsert_item(conn: sqlite3.Connection, item: dict[str, Any]) -> None:
    now = utc_now_iso()
    prices = {column: item.get(column) for column in ITEM_PRICE_COLUMNS}
    columns = ["id", "type", "name", "pricing_type", "is_active", *prices, "created_at", "updated_at"]
    updates = ", ".join(
        f"{column} = excluded.{column}" for column in columns if column not in ("id", "created_at")
    )
    conn.execute(
        f"""
        INSERT INTO jewelry_items ({", ".join(columns)})
        VALUES ({", ".join("?" for _ in columns)})
        ON CONFLICT(id) DO UPDATE SET {updates}
        """,
        (
            item["id"],
            ProductType.from_string(item["type"]).value,
            item["name"],
            PricingMode(item.get("pricing_type") or PricingMode.DIAMOND_TYPE.value).value,
            _as_flag(item.get("is_active"), True),
            *prices.values(),
            now,
            now,
        ),
    )
    conn.commit()


def upsert_option(conn: sqlite3.Connection, option: dict[str, Any], commit: bool = True) -> None:
    now = utc_now_iso()
    prices = {column: option.get(column) for column in OPTION_PRICE_COLUMNS}
    columns = [
        "jewelry_item_id",
        "setting_id",
        "option_id",
        "option_name",
        "filename_slug",
        "affects_image_variant",
        "is_active",
        *prices,
        "created_at",
        "updated_at",
    ]
    key_columns = ("jewelry_item_id", "setting_id", "option_id", "created_at")
    updates = ", ".join(
        f"{column} = excluded.{column}" for column in columns if column not in key_columns
    )
    conn.execute(
        f"""
        INSERT INTO customization_options ({", ".join(columns)})
        VALUES ({", ".join("?" for _ in columns)})
        ON CONFLICT(jewelry_item_id, setting_id, option_id) DO UPDATE SET {updates}
        """,
        (
            option["jewelry_item_id"],
            option["setting_id"],
            option["option_id"],
            option.get("option_name") or option["option_id"],
            option.get("filename_slug"),
            _as_flag(option.get("affects_image_variant"), False),
            _as_flag(option.get("is_active"), True),
            *prices.values(),
            now,
            now,
        ),
    )
    if commit:
        conn.commit()


def list_items(conn: sqlite3.Connection, product_type: ProductType | None = None) -> list[sqlite3.Row]:
    if product_type is None:
        return conn.execute("SELECT * FROM jewelry_items ORDER BY type, name").fetchall()
    return conn.execute(
        "SELECT * FROM jewelry_items WHERE type = ? ORDER BY name",
        (product_type.value,),
    ).fetchall()


def get_item_row(conn: sqlite3.Connection, item_id: str) -> sqlite3.Row:
    row = conn.execute("SELECT * FROM jewelry_items WHERE id = ?", (item_id,)).fetchone()
    if row is None:
        raise CatalogueRecordNotFoundError("jewelry_items", item_id)
    return row


def list_option_rows(conn: sqlite3.Connection, item_id: str, active_only: bool = True) -> list[sqlite3.Row]:
    query = "SELECT * FROM customization_options WHERE jewelry_item_id = ?"
    if active_only:
        query += " AND is_active = 1"
    return conn.execute(f"{query} ORDER BY setting_id, option_id", (item_id,)).fetchall()


def get_option_row(conn: sqlite3.Connection, item_id: str, setting_id: str, option_id: str) -> sqlite3.Row:
    row = conn.execute(
        """
        SELECT * FROM customization_options
        WHERE jewelry_item_id = ? AND setting_id = ? AND option_id = ?
        """,
        (item_id, setting_id, option_id),
    ).fetchone()
    if row is None:
        raise CatalogueRecordNotFoundError("customization_options", f"{item_id}/{setting_id}/{option_id}")
    return row


def load_item(conn: sqlite3.Connection, item_id: str, family: str = "") -> PricedEntity:
    return entity_from_record(dict(get_item_row(conn, item_id)), EntityKind.ITEM, family)


def load_option_catalog(conn: sqlite3.Connection, item_id: str) -> OptionCatalog:
    """Active options of an item keyed by (setting_id, option_id), in the item's pricing mode."""
    mode = PricingMode(get_item_row(conn, item_id)["pricing_type"])
    catalog: dict[tuple[str, str], PricedEntity] = {}
    for row in list_option_rows(conn, item_id):
        record = dict(row)
        record["id"] = row["option_id"]
        catalog[(row["setting_id"], row["option_id"])] = entity_from_record(
            record, EntityKind.OPTION, mode=mode
        )
    return catalog


def load_filename_mappings(conn: sqlite3.Connection, product_type: ProductType) -> dict[str, str]:
    rows = conn.execute(
        """
        SELECT o.option_id, o.filename_slug
        FROM customization_options o
        JOIN jewelry_items j ON j.id = o.jewelry_item_id
        WHERE j.type = ? AND j.is_active = 1
          AND o.is_active = 1 AND o.affects_image_variant = 1
          AND o.filename_slug IS NOT NULL AND o.filename_slug != ''
        """,
        (product_type.value,),
    ).fetchall()
    return {row["option_id"]: row["filename_slug"] for row in rows}


def _check_axis(entity_id: str, mode: PricingMode, variant: PriceVariant) -> None:
    if variant is PriceVariant.DEFAULT:
        return
    if variant not in mode.variants:
        logger.warning("Rejected %s price on %s: item is priced by %s", variant.value, entity_id, mode.value)
        other = [variant.value]
        active = [v.value for v in mode.variants if v is not PriceVariant.DEFAULT]
        if mode is PricingMode.DIAMOND_TYPE:
            raise MixedPricingModeError(entity_id, active, other)
        raise MixedPricingModeError(entity_id, other, active)


def _validate_price(value: float | None) -> float | None:
    if value is None:
        return None
    price = float(value)
    if price < 0:
        raise ValueError("Prices cannot be negative.")
    return price


def set_item_price(
    conn: sqlite3.Connection,
    item_id: str,
    variant: PriceVariant,
    market: Market | None,
    value: float | None,
    family: str = "",
) -> str:
    """
    Write a single item price slot. None clears the slot.

    Returns:
        The column that was written
    """
    field_name = price_field_name(EntityKind.ITEM, variant, market, family)
    parse_price_field(EntityKind.ITEM, field_name)
    row = get_item_row(conn, item_id)
    _check_axis(item_id, PricingMode(row["pricing_type"]), variant)

    conn.execute(
        f"UPDATE jewelry_items SET {field_name} = ?, updated_at = ? WHERE id = ?",
        (_validate_price(value), utc_now_iso(), item_id),
    )
    conn.commit()
    logger.info("Set %s.%s = %s", item_id, field_name, value)
    return field_name


def set_option_price(
    conn: sqlite3.Connection,
    item_id: str,
    setting_id: str,
    option_id: str,
    variant: PriceVariant,
    market: Market | None,
    value: float | None,
) -> str:
    field_name = price_field_name(EntityKind.OPTION, variant, market)
    parse_price_field(EntityKind.OPTION, field_name)
    get_option_row(conn, item_id, setting_id, option_id)
    _check_axis(option_id, PricingMode(get_item_row(conn, item_id)["pricing_type"]), variant)

    conn.execute(
        f"""
        UPDATE customization_options
        SET {field_name} = ?, updated_at = ?
        WHERE jewelry_item_id = ? AND setting_id = ? AND option_id = ?
        """,
        (_validate_price(value), utc_now_iso(), item_id, setting_id, option_id),
    )
    conn.commit()
    logger.info("Set %s/%s/%s.%s = %s", item_id, setting_id, option_id, field_name, value)
    return field_name


def _axis_columns(kind: EntityKind, variants: frozenset[PriceVariant]) -> list[str]:
    columns = []
    for column in all_price_columns(kind):
        _, variant, _ = parse_price_field(kind, column)
        if variant in variants:
            columns.append(column)
    return columns


def set_pricing_mode(conn: sqlite3.Connection, item_id: str, mode: PricingMode) -> None:
    """
    Switch an item between diamond-type and metal-type pricing.

    Raises:
        MixedPricingModeError: If the item or its options still hold prices on the other axis
    """
    get_item_row(conn, item_id)
    other = METAL_VARIANTS if mode is PricingMode.DIAMOND_TYPE else DIAMOND_VARIANTS

    item_columns = _axis_columns(EntityKind.ITEM, other)
    option_columns = _axis_columns(EntityKind.OPTION, other)
    item_set = conn.execute(
        f"SELECT 1 FROM jewelry_items WHERE id = ? AND ({' OR '.join(f'{c} IS NOT NULL' for c in item_columns)})",
        (item_id,),
    ).fetchone()
    option_set = conn.execute(
        f"""
        SELECT 1 FROM customization_options
        WHERE jewelry_item_id = ? AND ({' OR '.join(f'{c} IS NOT NULL' for c in option_columns)})
        """,
        (item_id,),
    ).fetchone()
    if item_set is not None or option_set is not None:
        leftover = item_columns + option_columns
        logger.warning("Rejected switch of %s to %s: prices remain on the other axis", item_id, mode.value)
        if mode is PricingMode.DIAMOND_TYPE:
            raise MixedPricingModeError(item_id, [], leftover)
        raise MixedPricingModeError(item_id, leftover, [])

    conn.execute(
        "UPDATE jewelry_items SET pricing_type = ?, updated_at = ? WHERE id = ?",
        (mode.value, utc_now_iso(), item_id),
    )
    conn.commit()


def import_price_sheet(conn: sqlite3.Connection, df: Any) -> int:
    """Bulk upsert option prices from a DataFrame, all rows or none; blank cells clear the slot."""
    import pandas as pd

    missing = [column for column in PRICE_SHEET_KEY_COLUMNS if column not in df.columns]
    if missing:
        raise ValueError(f"Missing required columns: {', '.join(missing)}")

    unknown = [
        column
        for column in df.columns
        if column not in PRICE_SHEET_KEY_COLUMNS
        and column not in OPTION_PRICE_COLUMNS
        and column not in ("filename_slug", "affects_image_variant", "is_active")
    ]
    if unknown:
        raise ValueError(f"Unknown columns: {', '.join(unknown)}")

    modes: dict[str, PricingMode] = {}
    rows: list[dict[str, Any]] = []
    for _, row in df.iterrows():
        item_id = str(row["jewelry_item_id"]).strip()
        if item_id not in modes:
            modes[item_id] = PricingMode(get_item_row(conn, item_id)["pricing_type"])

        option: dict[str, Any] = {
            "jewelry_item_id": item_id,
            "setting_id": str(row["setting_id"]).strip(),
            "option_id": str(row["option_id"]).strip(),
            "option_name": str(row["option_name"]).strip(),
        }
        try:
            existing = dict(get_option_row(conn, item_id, option["setting_id"], option["option_id"]))
        except CatalogueRecordNotFoundError:
            existing = {}

        # Columns missing from the sheet keep their stored values
        for column in ("filename_slug", "affects_image_variant", "is_active"):
            if column in df.columns and not pd.isna(row[column]):
                option[column] = row[column]
            elif column in existing:
                option[column] = existing[column]
        for column in OPTION_PRICE_COLUMNS:
            if column in df.columns:
                option[column] = None if pd.isna(row[column]) else _validate_price(row[column])
            else:
                option[column] = existing.get(column)

        # Rejects rows that price both axes, then rows on the wrong axis
        entity = entity_from_record({**option, "id": option["option_id"]}, EntityKind.OPTION)
        for variant, _ in entity.overrides:
            _check_axis(option["option_id"], modes[item_id], variant)
        rows.append(option)

    # Nothing is written until every row has validated
    try:
        for option in rows:
            upsert_option(conn, option, commit=False)
    except sqlite3.Error:
        conn.rollback()
        raise
    conn.commit()
    logger.info("Imported %d option price rows", len(rows))
    return len(rows)


def export_price_sheet(conn: sqlite3.Connection, item_id: str | None = None) -> Any:
    import pandas as pd

    columns = [*PRICE_SHEET_KEY_COLUMNS, "filename_slug", "affects_image_variant", "is_active", *OPTION_PRICE_COLUMNS]
    query = f"SELECT {', '.join(columns)} FROM customization_options"
    params: tuple[Any, ...] = ()
    if item_id is not None:
        query += " WHERE jewelry_item_id = ?"
        params = (item_id,)
    rows = conn.execute(f"{query} ORDER BY jewelry_item_id, setting_id, option_id", params).fetchall()
    return pd.DataFrame([dict(row) for row in rows], columns=columns)
