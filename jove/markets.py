import logging
from enum import Enum

from jove.exceptions import UnknownMarketError

logger = logging.getLogger(__name__)

MARKET_COOKIE_NAME = "market"
MARKET_COOKIE_MAX_AGE = 60 * 60 * 24 * 365


class Market(str, Enum):
    """Sales region. Drives display currency and, for AU, stored price columns."""

    LB = "lb"
    AU = "au"
    EU = "eu"
    AE = "ae"
    SA = "sa"
    QA = "qa"
    INTL = "intl"

    @classmethod
    def from_string(cls, value: str) -> "Market":
        """
        Strict parse for trusted internal callers.

        Raises:
            UnknownMarketError: If value is not a market code
        """
        if not isinstance(value, str):
            raise UnknownMarketError(value)
        normalized = value.strip().lower()
        for market in cls:
            if market.value == normalized:
                return market
        raise UnknownMarketError(value)


DEFAULT_MARKET = Market.LB

MARKET_INFO: dict[Market, dict[str, object]] = {
    Market.LB: {
        "name": "Lebanon",
        "currency": "USD",
        "flag": "🇱🇧",
        "domain": "maisonjove.com",
        "payment_methods": ("cash_on_delivery", "stripe"),
    },
    Market.AU: {
        "name": "Australia",
        "currency": "AUD",
        "flag": "🇦🇺",
        "domain": "maisonjove.com.au",
        "payment_methods": ("stripe",),
    },
    Market.EU: {
        "name": "Europe",
        "currency": "EUR",
        "flag": "🇪🇺",
        "domain": "maisonjove.com.au",
        "payment_methods": ("stripe",),
    },
    Market.AE: {
        "name": "UAE",
        "currency": "AED",
        "flag": "🇦🇪",
        "domain": "maisonjove.com.au",
        "payment_methods": ("stripe",),
    },
    Market.SA: {
        "name": "Saudi Arabia",
        "currency": "SAR",
        "flag": "🇸🇦",
        "domain": "maisonjove.com.au",
        "payment_methods": ("stripe",),
    },
    Market.QA: {
        "name": "Qatar",
        "currency": "QAR",
        "flag": "🇶🇦",
        "domain": "maisonjove.com.au",
        "payment_methods": ("stripe",),
    },
    Market.INTL: {
        "name": "International",
        "currency": "USD",
        "flag": "🌍",
        "domain": "maisonjove.com.au",
        "payment_methods": ("stripe",),
    },
}

EU_COUNTRIES = frozenset(
    {
        "AT", "BE", "BG", "HR", "CY", "CZ", "DK", "EE", "FI", "FR",
        "DE", "GR", "HU", "IE", "IT", "LV", "LT", "LU", "MT", "NL",
        "PL", "PT", "RO", "SK", "SI", "ES", "SE",
        # Non-EU countries that are shown EUR prices
        "GB", "CH", "NO", "IS",
    }
)

COUNTRY_MARKETS: dict[str, Market] = {
    "LB": Market.LB,
    "AU": Market.AU,
    "AE": Market.AE,
    "SA": Market.SA,
    "QA": Market.QA,
}

DOMAIN_MARKETS: dict[str, Market] = {
    "maisonjove.com": Market.LB,
    # Geo detection refines this to a specific market
    "maisonjove.com.au": Market.INTL,
}


def parse_market(value: object, default: Market = DEFAULT_MARKET) -> Market:
    """Lenient parse for external signals (cookies, headers, env). Never raises."""
    if isinstance(value, Market):
        return value
    if not value:
        return default
    try:
        return Market.from_string(value)  # type: ignore[arg-type]
    except UnknownMarketError:
        logger.debug("Ignoring invalid market signal %r, using %s", value, default.value)
        return default


def market_info(market: Market) -> dict[str, object]:
    return MARKET_INFO[market]


def allows_cash_on_delivery(market: Market) -> bool:
    return "cash_on_delivery" in MARKET_INFO[market]["payment_methods"]  # type: ignore[operator]


def market_for_country(country_code: str | None) -> Market:
    if not country_code:
        return Market.INTL
    code = country_code.strip().upper()
    if code in COUNTRY_MARKETS:
        return COUNTRY_MARKETS[code]
    if code in EU_COUNTRIES:
        return Market.EU
    return Market.INTL


def market_for_host(hostname: str | None) -> Market:
    if not hostname:
        return DEFAULT_MARKET
    host = hostname.strip().lower().split(":", 1)[0]
    if host.startswith("www."):
        host = host[4:]
    return DOMAIN_MARKETS.get(host, DEFAULT_MARKET)


def market_from_cookie_header(header: str | None, default: Market = DEFAULT_MARKET) -> Market:
    """
    Market from a raw Cookie header.

    Entries are read one by one, so malformed neighbours (JSON or
    space-containing values) cannot hide the market cookie.
    """
    if not header:
        return default
    for part in header.split(";"):
        name, sep, value = part.strip().partition("=")
        if sep and name.strip() == MARKET_COOKIE_NAME:
            return parse_market(value.strip().strip('"'), default)
    return default


def market_cookie(market: Market) -> str:
    return f"{MARKET_COOKIE_NAME}={market.value}; path=/; max-age={MARKET_COOKIE_MAX_AGE}; samesite=lax"
