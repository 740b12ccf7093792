import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

from jove.markets import Market, parse_market

BASE_DIR = Path(__file__).resolve().parents[1]


@dataclass(frozen=True)
class Settings:
    db_path: Path
    storage_public_url: str
    default_market: Market
    whitelist_path: Path | None
    log_level: str
    asset_probe_timeout: float


def _get_float(key: str, default: float) -> float:
    try:
        return float(os.getenv(key, default))
    except (TypeError, ValueError):
        return default


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Settings from the environment. The entry point loads .env beforehand.

    Invalid values fall back to defaults; an invalid default market degrades to lb.
    """
    db_path = os.getenv("JOVE_DB_PATH", "").strip()
    whitelist_path = os.getenv("JOVE_WHITELIST_PATH", "").strip()
    return Settings(
        db_path=Path(db_path) if db_path else BASE_DIR / "data" / "catalogue.db",
        storage_public_url=os.getenv("JOVE_STORAGE_PUBLIC_URL", "/customization-item").strip(),
        default_market=parse_market(os.getenv("JOVE_DEFAULT_MARKET", "")),
        whitelist_path=Path(whitelist_path) if whitelist_path else None,
        log_level=os.getenv("JOVE_LOG_LEVEL", "INFO").strip().upper() or "INFO",
        asset_probe_timeout=_get_float("JOVE_ASSET_PROBE_TIMEOUT", 5.0),
    )
