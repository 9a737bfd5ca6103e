"""Commodity definitions and market profiles."""
from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Mapping


class RarityTier(Enum):
    """How scarce a commodity is across the galaxy."""
    COMMON = "common"
    UNCOMMON = "uncommon"
    RARE = "rare"
    EXOTIC = "exotic"


class LegalityTier(Enum):
    """Legal status of a commodity."""
    LEGAL = "legal"
    RESTRICTED = "restricted"  # Permits required, mild markup
    ILLEGAL = "illegal"  # Contraband, heavy markup where tolerance is low

    @property
    def is_controlled(self) -> bool:
        return self is not LegalityTier.LEGAL


@dataclass(frozen=True)
class Commodity:
    """Immutable commodity definition loaded from the catalog."""
    id: str
    category: str
    base_price: float
    rarity: RarityTier = RarityTier.COMMON
    legality: LegalityTier = LegalityTier.LEGAL
    name: str = ""
    tags: frozenset[str] = field(default_factory=frozenset)

    @property
    def display_name(self) -> str:
        return self.name or self.id.replace("_", " ").title()


@dataclass(frozen=True)
class EconomicProfile:
    """Per-station economic profile.

    category_modifiers scales prices per category. production and consumption
    give the supply and demand units added per tick for each category.
    """
    id: str
    category_modifiers: Mapping[str, float] = field(default_factory=dict)
    production: Mapping[str, float] = field(default_factory=dict)
    consumption: Mapping[str, float] = field(default_factory=dict)

    def __post_init__(self) -> None:
        for name in ("category_modifiers", "production", "consumption"):
            object.__setattr__(self, name, MappingProxyType(dict(getattr(self, name))))

    def category_modifier(self, category: str) -> float:
        """Price multiplier for a category (1.0 if not listed)."""
        return self.category_modifiers.get(category, 1.0)

    def production_rate(self, category: str) -> float:
        return self.production.get(category, 0.0)

    def consumption_rate(self, category: str) -> float:
        return self.consumption.get(category, 0.0)


@dataclass(frozen=True)
class FactionMarketProfile:
    """Per-faction pricing bias, consumed read-only."""
    faction_id: str
    buy_price_factor: float = 1.0
    sell_price_factor: float = 1.0
    tax_rate: float = 0.0
    illegal_tolerance: float = 0.0  # 0 = zero tolerance, 1 = anything goes
    supply_bias: float = 1.0
    demand_bias: float = 1.0
    services: frozenset[str] = field(default_factory=frozenset)

    def price_factor(self, is_buy: bool) -> float:
        return self.buy_price_factor if is_buy else self.sell_price_factor


# Neutral defaults used when a profile id is missing
NEUTRAL_ECONOMIC_PROFILE = EconomicProfile(id="neutral")


def neutral_faction_profile(faction_id: str) -> FactionMarketProfile:
    """Neutral faction profile: unit factors, no tax, zero illegal tolerance."""
    return FactionMarketProfile(faction_id=faction_id)
