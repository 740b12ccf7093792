import logging
import re
from functools import lru_cache
from pathlib import Path
from typing import Any, Optional
from urllib.parse import quote, unquote

import pandas as pd

from jove.models import ProductType
from jove.providers.base import AssetProbe

logger = logging.getLogger(__name__)

DEFAULT_WHITELIST_PATH = Path(__file__).resolve().parent / "data" / "variant_whitelist.csv"
WHITELIST_COLUMNS = ["product_type", "chain", "stone", "metal"]

# (product type, chain slug or None, stone slug, metal slug)
WhitelistKey = tuple[ProductType, Optional[str], str, str]

_URL_KEY_PATTERN = re.compile(r"customization-item/[^/]+/([^/]+)\.[a-zA-Z0-9]+$")


def whitelist_from_df(df: Any) -> frozenset[WhitelistKey]:
    missing = [column for column in WHITELIST_COLUMNS if column not in df.columns]
    if missing:
        raise ValueError(f"Missing required columns: {', '.join(missing)}")

    keys: set[WhitelistKey] = set()
    for _, row in df.iterrows():
        chain = "" if pd.isna(row["chain"]) else str(row["chain"]).strip()
        keys.add(
            (
                ProductType.from_string(str(row["product_type"])),
                chain or None,
                str(row["stone"]).strip(),
                str(row["metal"]).strip(),
            )
        )
    return frozenset(keys)


@lru_cache(maxsize=8)
def load_whitelist(path: Optional[Path] = None) -> frozenset[WhitelistKey]:
    """Photographed combinations, read once per path and shared read-only."""
    target = path or DEFAULT_WHITELIST_PATH
    df = pd.read_csv(target, dtype=str, keep_default_na=False)
    keys = whitelist_from_df(df)
    logger.info("Loaded %d photographed variant combinations from %s", len(keys), target)
    return keys


def public_url(path: str, base_url: str) -> str:
    return f"{base_url.rstrip('/')}/{quote(path.lstrip('/'))}"


def combination_key_from_url(url: str) -> Optional[str]:
    match = _URL_KEY_PATTERN.search(url)
    return unquote(match.group(1)) if match else None


def _swap_extension(url: str, extension: str) -> str:
    return url.rsplit(".", 1)[0] + extension


def email_safe_url(url: Optional[str]) -> Optional[str]:
    """Email clients such as Outlook cannot show WebP; PNG copies sit beside each WebP."""
    if not url:
        return None
    if url.lower().endswith(".webp"):
        return _swap_extension(url, ".png")
    return url


def best_email_image_url(url: Optional[str], probe: AssetProbe) -> Optional[str]:
    """
    Out-of-band lookup of the most email-compatible copy of an image that exists.

    Tries PNG, then JPG, then the original WebP.
    """
    if not url:
        return None

    lower = url.lower()
    if lower.endswith((".png", ".jpg", ".jpeg")):
        return url if probe.exists(url) else None
    if not lower.endswith(".webp"):
        return url

    for candidate in (_swap_extension(url, ".png"), _swap_extension(url, ".jpg"), url):
        if probe.exists(candidate):
            return candidate
    return None
