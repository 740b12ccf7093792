"""
Exception hierarchy for the pricing and variant core.

PricingError (base)
├── UnknownMarketError
├── UnknownCurrencyError
├── UnknownProductTypeError
├── MixedPricingModeError
├── UnknownPriceFieldError
└── CatalogueRecordNotFoundError

Only parse boundaries and the admin write side raise these. Missing variant
prices and unphotographed combinations are expected data gaps and are handled
by fallback, never by an exception.
"""


class PricingError(Exception):
    """
    Base exception for all pricing errors.

    Attributes:
        message: Human-readable error message
        details: Optional dict with additional context (ids, field names)
    """

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        return self.message

    def __repr__(self) -> str:
        if self.details:
            details_str = ', '.join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.__class__.__name__}('{self.message}', {details_str})"
        return f"{self.__class__.__name__}('{self.message}')"


class UnknownMarketError(PricingError, ValueError):
    def __init__(self, value: object):
        super().__init__(f"Unknown market: {value!r}", {"value": value})


class UnknownCurrencyError(PricingError, ValueError):
    def __init__(self, value: object):
        super().__init__(f"Unknown currency: {value!r}", {"value": value})


class UnknownProductTypeError(PricingError, ValueError):
    def __init__(self, value: object):
        super().__init__(f"Unknown product type: {value!r}", {"value": value})


class MixedPricingModeError(PricingError):
    """A record prices both the diamond axis and the metal axis."""

    def __init__(self, entity_id: object, diamond_fields: list[str], metal_fields: list[str]):
        super().__init__(
            f"Entity {entity_id!r} mixes diamond-type and metal-type prices",
            {
                "entity_id": entity_id,
                "diamond_fields": ",".join(diamond_fields),
                "metal_fields": ",".join(metal_fields),
            },
        )


class UnknownPriceFieldError(PricingError, ValueError):
    def __init__(self, field_name: str, kind: str):
        super().__init__(
            f"{field_name!r} is not a price field of a {kind}",
            {"field_name": field_name, "kind": kind},
        )


class CatalogueRecordNotFoundError(PricingError, LookupError):
    def __init__(self, table: str, record_id: object):
        super().__init__(
            f"No {table} record with id {record_id!r}",
            {"table": table, "record_id": record_id},
        )
