import math
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum

from jove.exceptions import UnknownCurrencyError
from jove.markets import Market, parse_market


class Currency(str, Enum):
    USD = "USD"
    AUD = "AUD"
    EUR = "EUR"
    AED = "AED"
    SAR = "SAR"
    QAR = "QAR"

    @classmethod
    def from_string(cls, value: str) -> "Currency":
        if not isinstance(value, str):
            raise UnknownCurrencyError(value)
        normalized = value.strip().upper()
        for currency in cls:
            if currency.value == normalized:
                return currency
        raise UnknownCurrencyError(value)


@dataclass(frozen=True)
class CurrencyInfo:
    symbol: str
    name: str
    position: str  # "before" | "after"
    rate: float  # units of this currency per 1 USD


# Static snapshot; update by hand, there is no live feed.
CURRENCIES: dict[Currency, CurrencyInfo] = {
    Currency.USD: CurrencyInfo(symbol="$", name="US Dollar", position="before", rate=1.0),
    Currency.AUD: CurrencyInfo(symbol="A$", name="Australian Dollar", position="before", rate=1.44),
    Currency.EUR: CurrencyInfo(symbol="€", name="Euro", position="before", rate=0.92),
    Currency.AED: CurrencyInfo(symbol="AED", name="UAE Dirham", position="after", rate=3.67),
    Currency.SAR: CurrencyInfo(symbol="SAR", name="Saudi Riyal", position="after", rate=3.75),
    Currency.QAR: CurrencyInfo(symbol="QAR", name="Qatari Riyal", position="after", rate=3.64),
}

MARKET_CURRENCIES: dict[Market, Currency] = {
    Market.LB: Currency.USD,
    Market.AU: Currency.AUD,
    Market.EU: Currency.EUR,
    Market.AE: Currency.AED,
    Market.SA: Currency.SAR,
    Market.QA: Currency.QAR,
    Market.INTL: Currency.USD,
}

# Markets whose prices are stored in their own columns, in their own currency.
STORED_PRICE_MARKETS = frozenset({Market.AU})


def currency_for_market(market: Market | str | None) -> Currency:
    return MARKET_CURRENCIES[parse_market(market)]


def stored_currency(market: Market) -> Currency:
    """Currency of the price column the resolver reads for this market."""
    if market in STORED_PRICE_MARKETS:
        return MARKET_CURRENCIES[market]
    return Currency.USD


def convert_from_usd(amount_usd: float, currency: Currency) -> float:
    return amount_usd * CURRENCIES[currency].rate


def convert_to_usd(amount: float, currency: Currency) -> float:
    return amount / CURRENCIES[currency].rate


def round_money(value: float) -> Decimal:
    """
    Half-up rounding to cents.

    Raises:
        ValueError: If value is infinite or NaN
    """
    if not math.isfinite(value):
        raise ValueError(f"Cannot round non-finite amount {value!r}")
    return Decimal(str(value)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def format_price(amount: float, currency: Currency, convert: bool = True) -> str:
    """
    Format an amount for display, e.g. "$1,250.00", "A$144.00", "367.00 AED".

    Args:
        amount: Amount in USD when convert is set, else in currency
        currency: Display currency
        convert: Apply the static USD exchange rate first
    """
    info = CURRENCIES[currency]
    value = convert_from_usd(amount, currency) if convert else amount
    # Non-finite amounts print as "inf" or "nan"
    number = f"{round_money(value):,.2f}" if math.isfinite(value) else f"{value:,.2f}"
    if info.position == "after":
        return f"{number} {info.symbol}"
    if number.startswith("-"):
        return f"-{info.symbol}{number[1:]}"
    return f"{info.symbol}{number}"


def format_market_price(amount: float, market: Market) -> str:
    """Format a resolved stored price for a market, converting only USD-stored amounts."""
    display = MARKET_CURRENCIES[market]
    return format_price(amount, display, convert=stored_currency(market) != display)
