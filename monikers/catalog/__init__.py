"""
Catalog Module - Where decks come from.

The machine treats the card list as opaque. This module loads the word
catalog, filters it by category and turns entries or typed lines into
cards before they are submitted with SET_CARDS.
"""

from .loader import (
    CardCatalog,
    CatalogEntry,
    ALL_CATEGORIES,
    DEFAULT_CATALOG_PATH,
    to_cards,
    parse_card_lines,
)

__all__ = [
    "CardCatalog",
    "CatalogEntry",
    "ALL_CATEGORIES",
    "DEFAULT_CATALOG_PATH",
    "to_cards",
    "parse_card_lines",
]
