"""
Variant image resolution.

Maps a product type and a customer's option selection to the storage path of
the photo taken for that exact combination. Only combinations listed in the
whitelist have photos; everything else resolves to the product's preview image.
Resolution is a pure lookup: no network, no filesystem, no exceptions.
"""

import logging
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import Callable, Mapping, Optional

from jove.assets import WhitelistKey, load_whitelist
from jove.config import get_settings
from jove.exceptions import UnknownProductTypeError
from jove.models import ProductType, VariantImage

logger = logging.getLogger(__name__)

DIAMOND = "diamond"

STONE_ALIASES = {
    "rubyy": "ruby",
    "black_onyx_emerald": "black_onyx",
}
TWO_WORD_STONES = frozenset({"blue_sapphire", "pink_sapphire", "yellow_sapphire", "black_onyx"})
ONE_WORD_STONES = frozenset({"ruby", "emerald", "diamond", "sapphire"})

FALLBACK_PATHS: dict[ProductType, str] = {
    ProductType.RING: "rings/ring-preview.webp",
    ProductType.NECKLACE: "necklaces/necklace-preview.webp",
    ProductType.BRACELET: "bracelets/bracelet-preview.webp",
}
PLACEHOLDER_PATH = "placeholder.webp"


@dataclass(frozen=True)
class SlugTable:
    """Option-id to filename-slug tables for one product type."""

    metals: Mapping[str, str]
    stones: Mapping[str, str]
    chains: Optional[Mapping[str, str]] = None
    # Stone slugs that differ for a given chain slug
    chain_stones: Mapping[str, Mapping[str, str]] = field(default_factory=dict)

    @property
    def has_chain(self) -> bool:
        return self.chains is not None


SLUG_TABLES: dict[ProductType, SlugTable] = {
    ProductType.RING: SlugTable(
        metals={"white_gold": "white gold", "yellow_gold": "yellow gold"},
        stones={
            "blue_sapphire": "blue sapphire",
            "pink_sapphire": "pink sapphire",
            "yellow_sapphire": "yellow sapphire",
            "emerald": "emerald",
            "ruby": "ruby",
        },
    ),
    ProductType.NECKLACE: SlugTable(
        metals={"white_gold": "whitegold", "yellow_gold": "yellowgold"},
        stones={
            "blue_sapphire": "bluesapphire",
            "pink_sapphire": "pinksapphire",
            "yellow_sapphire": "yellowsapphire",
            "emerald": "emerald",
            "ruby": "ruby",
        },
        chains={
            "black_leather": "black-leather",
            "white_gold_chain": "white-gold",
            "yellow_gold_chain": "yellow-gold",
            "yellow_gold_chain_real": "yellow-gold",
        },
    ),
    ProductType.BRACELET: SlugTable(
        metals={"white_gold": "whitegold", "yellow_gold": "yellowgold"},
        stones={
            "blue_sapphire": "blue-sapphire",
            "pink_sapphire": "pink-sapphire",
            "yellow_sapphire": "yellow-sapphire",
            "emerald": "emerald",
            "ruby": "ruby",
            "black_onyx": "blackonyx",
        },
        chains={
            "black_leather": "black-leather",
            "gold_cord": "gold-cord",
            "white_gold_chain": "whitegold-chain",
        },
        chain_stones={
            "whitegold-chain": {
                "blue_sapphire": "bluesapphire",
                "pink_sapphire": "pinksapphire",
                "yellow_sapphire": "yellowsapphire",
                "emerald": "emerald",
                "ruby": "ruby",
            },
        },
    ),
}


def _ring_filename(chain: Optional[str], stone: str, metal: str) -> str:
    return f"Ring {stone} {metal}.webp"


def _necklace_filename(chain: Optional[str], stone: str, metal: str) -> str:
    return f"necklace-{chain}-{stone}-{metal}.webp"


def _bracelet_filename(chain: Optional[str], stone: str, metal: str) -> str:
    return f"bracelet-{chain}-{stone}-{metal}.webp"


FILENAME_BUILDERS: dict[ProductType, Callable[[Optional[str], str, str], str]] = {
    ProductType.RING: _ring_filename,
    ProductType.NECKLACE: _necklace_filename,
    ProductType.BRACELET: _bracelet_filename,
}


def _normalize(option_id: object) -> str:
    return str(option_id).strip().lower().replace("-", "_").replace(" ", "_")


def canonical_stone(option_id: str) -> str:
    """
    Reduce a stone option id to its stone name.

    Catalogue ids are often contextual ("bracelet_second_blue_sapphire") or
    carry legacy typos ("rubyy").
    """
    stone = _normalize(option_id)
    stone = STONE_ALIASES.get(stone, stone)
    if stone in TWO_WORD_STONES or stone in ONE_WORD_STONES:
        return stone

    parts = stone.split("_")
    if len(parts) >= 2 and "_".join(parts[-2:]) in TWO_WORD_STONES:
        return "_".join(parts[-2:])
    last = STONE_ALIASES.get(parts[-1], parts[-1])
    if last in ONE_WORD_STONES:
        return last
    return stone


def variant_stone(selection: Mapping[str, str]) -> Optional[str]:
    """
    The stone that decides which photo to show.

    Diamond is always present; a non-diamond first stone wins, otherwise the
    second stone is used.
    """
    first = selection.get("first_stone")
    if first:
        stone = canonical_stone(str(first))
        if stone != DIAMOND:
            return stone
    second = selection.get("second_stone")
    if second:
        return canonical_stone(str(second))
    return None


def combination_key(key: WhitelistKey) -> str:
    _, chain, stone, metal = key
    return "-".join(part for part in (chain, stone, metal) if part)


class VariantImageResolver:
    """
    Resolves selections against a whitelist of photographed combinations.

    `mappings` holds per-option filename slugs from the catalogue; a mapped
    slug takes precedence over the built-in tables.
    """

    def __init__(
        self,
        whitelist: frozenset[WhitelistKey],
        mappings: Optional[Mapping[str, str]] = None,
        slug_tables: Optional[Mapping[ProductType, SlugTable]] = None,
    ):
        self.whitelist = whitelist
        self.mappings = dict(mappings or {})
        self.slug_tables = slug_tables or SLUG_TABLES

    def with_mappings(self, mappings: Mapping[str, str]) -> "VariantImageResolver":
        return VariantImageResolver(self.whitelist, {**self.mappings, **mappings}, self.slug_tables)

    def _slug(self, option_id: str, canonical: str, table: Mapping[str, str]) -> Optional[str]:
        return self.mappings.get(option_id) or table.get(canonical)

    def build_key(self, product_type: ProductType, selection: Mapping[str, str]) -> Optional[WhitelistKey]:
        """Whitelist key for the selection, or None when a required choice is missing or unmapped."""
        table = self.slug_tables[product_type]

        metal_id = selection.get("metal")
        if not metal_id:
            return None
        metal_slug = self._slug(str(metal_id), _normalize(metal_id), table.metals)

        chain_slug = None
        if table.has_chain:
            chain_id = selection.get("chain_type")
            if not chain_id:
                return None
            chain_slug = self._slug(str(chain_id), _normalize(chain_id), table.chains or {})
            if chain_slug is None:
                return None

        stone = variant_stone(selection)
        if stone is None:
            return None
        stone_ids = [selection.get("first_stone"), selection.get("second_stone")]
        stone_id = next(
            (str(s) for s in stone_ids if s and canonical_stone(str(s)) == stone),
            stone,
        )
        stones = table.chain_stones.get(chain_slug or "", table.stones)
        stone_slug = self._slug(stone_id, stone, stones)

        if metal_slug is None or stone_slug is None:
            return None
        return (product_type, chain_slug, stone_slug, metal_slug)

    def resolve(self, product_type: ProductType | str, selection: Mapping[str, str]) -> VariantImage:
        """Photo for the exact combination, or the product's preview image. Never raises."""
        try:
            product = (
                product_type
                if isinstance(product_type, ProductType)
                else ProductType.from_string(product_type)
            )
        except UnknownProductTypeError:
            logger.debug("No variant photos for product type %r", product_type)
            return VariantImage(product_type=None, path=PLACEHOLDER_PATH, combination_key=None, found=False)

        fallback = VariantImage(
            product_type=product,
            path=FALLBACK_PATHS[product],
            combination_key=None,
            found=False,
        )

        key = self.build_key(product, selection)
        if key is None:
            logger.debug("Incomplete %s selection %s, using preview image", product.value, dict(selection))
            return fallback
        if key not in self.whitelist:
            logger.debug("No photo for %s combination %s", product.value, combination_key(key))
            return fallback

        _, chain_slug, stone_slug, metal_slug = key
        filename = FILENAME_BUILDERS[product](chain_slug, stone_slug, metal_slug)
        return VariantImage(
            product_type=product,
            path=f"{product.folder}/{filename}",
            combination_key=combination_key(key),
            found=True,
        )


@lru_cache(maxsize=8)
def default_resolver(whitelist_path: Optional[Path] = None) -> VariantImageResolver:
    return VariantImageResolver(load_whitelist(whitelist_path))


def resolve_variant_image(
    product_type: ProductType | str,
    selection: Mapping[str, str],
    mappings: Optional[Mapping[str, str]] = None,
) -> VariantImage:
    resolver = default_resolver(get_settings().whitelist_path)
    if mappings:
        resolver = resolver.with_mappings(mappings)
    return resolver.resolve(product_type, selection)
