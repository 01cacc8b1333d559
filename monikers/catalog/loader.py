"""
Card Catalog - Loads the word list players draw their deck from.

The catalog file is a JSON list of entries:

    {"word": "Ada Lovelace", "description": "First computer programmer",
     "category": ["Classic"], "score": 2}

`score` is optional and becomes the card's weight.
A missing or broken file falls back to the classic five-card deck.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional
import json
import logging
import random
import uuid

from pydantic import BaseModel, Field, ValidationError

from ..engine_core.state import Card

logger = logging.getLogger(__name__)

DEFAULT_CATALOG_PATH = Path(__file__).resolve().parent.parent / "data" / "cards.json"
ALL_CATEGORIES = "All"


class CatalogEntry(BaseModel):
    """One word in the catalog."""
    word: str = Field(..., min_length=1)
    description: Optional[str] = None
    category: list[str] = Field(default_factory=list)
    score: Optional[int] = Field(None, ge=1)


FALLBACK_ENTRIES = [
    CatalogEntry(word="Ada Lovelace", description="First computer programmer", category=["Classic"]),
    CatalogEntry(word="Mount Everest", description="Highest mountain in the world", category=["Classic"]),
    CatalogEntry(word="The Matrix", description="1999 sci-fi film", category=["Classic"]),
    CatalogEntry(word="Mona Lisa", description="Famous painting by Leonardo da Vinci", category=["Classic"]),
    CatalogEntry(word="Rubik's Cube", description="3D combination puzzle", category=["Classic"]),
]


@dataclass
class CardCatalog:
    """
    The list of available words.

    Usage:
        catalog = CardCatalog.load("cards.json")
        entries = catalog.random_entries(20)
        actor.send(SetCards(cards=tuple(to_cards(entries))))
    """
    entries: list[CatalogEntry] = field(default_factory=list)

    @classmethod
    def load(cls, path: str | Path) -> CardCatalog:
        """Load a catalog file, falling back to the classic deck on failure."""
        try:
            with open(path, "r", encoding="utf-8") as f:
                raw = json.load(f)
            entries = [CatalogEntry.model_validate(item) for item in raw]
        except (OSError, json.JSONDecodeError, ValidationError, TypeError) as e:
            logger.warning("Failed to load card catalog %s: %s", path, e)
            return cls.fallback()

        logger.info("Loaded %d cards from %s", len(entries), path)
        return cls(entries=entries)

    @classmethod
    def default(cls) -> CardCatalog:
        """The catalog shipped with the package."""
        return cls.load(DEFAULT_CATALOG_PATH)

    @classmethod
    def fallback(cls) -> CardCatalog:
        return cls(entries=list(FALLBACK_ENTRIES))

    def __len__(self) -> int:
        return len(self.entries)

    def categories(self) -> list[str]:
        """Distinct categories in first-seen order."""
        seen: list[str] = []
        for entry in self.entries:
            for name in entry.category:
                if name not in seen:
                    seen.append(name)
        return seen

    def by_category(self, category: str) -> list[CatalogEntry]:
        if category == ALL_CATEGORIES:
            return list(self.entries)
        return [e for e in self.entries if category in e.category]

    def random_entries(
        self,
        count: int = 20,
        rng: random.Random | None = None,
        category: str = ALL_CATEGORIES,
    ) -> list[CatalogEntry]:
        """Pick up to `count` distinct entries at random."""
        pool = self.by_category(category)
        rng = rng or random.Random()
        return rng.sample(pool, min(max(count, 0), len(pool)))

    def describe(self, word: str) -> str | None:
        """Description for a word, if the catalog has one."""
        for entry in self.entries:
            if entry.word == word:
                return entry.description
        return None


def to_cards(entries: list[CatalogEntry]) -> list[Card]:
    """Turn catalog entries into cards with fresh ids."""
    return [
        Card(
            id=str(uuid.uuid4()),
            text=entry.word,
            weight=entry.score or 1,
            description=entry.description,
        )
        for entry in entries
    ]


def parse_card_lines(text: str, catalog: CardCatalog | None = None) -> list[Card]:
    """
    One card per non-blank line.

    When a catalog is given, descriptions are looked up by word.
    """
    cards = []
    for line in text.splitlines():
        word = line.strip()
        if not word:
            continue
        cards.append(Card(
            id=str(uuid.uuid4()),
            text=word,
            description=catalog.describe(word) if catalog else None,
        ))
    return cards
