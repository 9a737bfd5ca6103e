"""Random economic events - shortages, gluts and windfalls."""
from __future__ import annotations
import logging
import random
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from ..core.events import EventBus, MarketEventApplied

if TYPE_CHECKING:
    from ..core.registries import CommodityCatalog, EventCatalog
    from .commodities import EconomicProfile
    from .market import MarketLocation

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EventEffect:
    """One supply/demand perturbation. Targets a single commodity or a whole category."""
    commodity_id: str | None = None
    category: str | None = None
    supply_delta: float = 0.0
    demand_delta: float = 0.0

    def __post_init__(self) -> None:
        if (self.commodity_id is None) == (self.category is None):
            raise ValueError("An event effect targets exactly one of commodity_id or category")

    @property
    def scope(self) -> str:
        return self.commodity_id or f"category:{self.category}"


@dataclass(frozen=True)
class RandomEventDefinition:
    """A weighted event that can hit markets with matching economic profiles."""
    id: str
    weight: float = 1.0
    applicable_profiles: frozenset[str] = field(default_factory=frozenset)  # Empty = all
    effects: tuple[EventEffect, ...] = ()
    title: str = ""
    description: str = ""

    def __post_init__(self) -> None:
        if self.weight < 0:
            raise ValueError(f"Event {self.id} has a negative weight")

    def applies_to(self, profile_id: str) -> bool:
        return not self.applicable_profiles or profile_id in self.applicable_profiles


@dataclass
class AppliedEvent:
    """Outcome of applying an event to one market."""
    event_id: str
    station_id: str
    # commodity id -> (supply delta, demand delta) as requested
    deltas: dict[str, tuple[float, float]] = field(default_factory=dict)
    skipped_effects: int = 0


class EventEngine:
    """Selects and applies random economic events."""

    def __init__(
        self,
        catalog: CommodityCatalog,
        events: EventCatalog,
        event_bus: EventBus | None = None,
    ) -> None:
        self.catalog = catalog
        self.events = events
        self.event_bus = event_bus

    def roll_and_apply(
        self,
        market: MarketLocation,
        econ_profile: EconomicProfile,
        rng: random.Random,
    ) -> AppliedEvent | None:
        """Pick one applicable event by weight and apply it. None if nothing applies."""
        definition = self.select(econ_profile.id, rng)
        if definition is None:
            return None
        return self.apply(market, definition)

    def select(self, profile_id: str, rng: random.Random) -> RandomEventDefinition | None:
        """Weighted pick among applicable definitions, walked in definition order."""
        candidates = [d for d in self.events.applicable_to(profile_id) if d.weight > 0]
        if not candidates:
            return None

        total = sum(d.weight for d in candidates)
        roll = rng.uniform(0.0, total)
        cumulative = 0.0
        for definition in candidates:
            cumulative += definition.weight
            if roll < cumulative:
                return definition
        # roll == total lands on the last candidate
        return candidates[-1]

    def apply(self, market: MarketLocation, definition: RandomEventDefinition) -> AppliedEvent:
        """Apply every effect of an event to a market together.

        Targets are resolved first; an effect with no stocked target is
        skipped with a warning and the others still apply.
        """
        applied = AppliedEvent(event_id=definition.id, station_id=market.station_id)

        with market.lock:
            resolved: list[tuple[str, EventEffect]] = []
            for effect in definition.effects:
                targets = self._resolve_targets(market, effect)
                if not targets:
                    logger.warning(
                        "Event %s: no stocked target for %s at %s, skipping effect",
                        definition.id, effect.scope, market.station_id)
                    applied.skipped_effects += 1
                    continue
                resolved.extend((commodity_id, effect) for commodity_id in targets)

            for commodity_id, effect in resolved:
                if effect.supply_delta:
                    market.apply_supply_event(commodity_id, effect.supply_delta)
                if effect.demand_delta:
                    market.apply_demand_event(commodity_id, effect.demand_delta)
                supply, demand = applied.deltas.get(commodity_id, (0.0, 0.0))
                applied.deltas[commodity_id] = (
                    supply + effect.supply_delta, demand + effect.demand_delta)

        logger.debug("Event %s applied at %s: %s",
                     definition.id, market.station_id, applied.deltas)
        if self.event_bus is not None:
            self.event_bus.publish(MarketEventApplied(
                event_id=definition.id,
                station_id=market.station_id,
                title=definition.title,
                deltas=dict(applied.deltas),
            ))
        return applied

    def _resolve_targets(self, market: MarketLocation, effect: EventEffect) -> list[str]:
        if effect.commodity_id is not None:
            if not self.catalog.exists(effect.commodity_id):
                return []
            return [effect.commodity_id] if market.stocks(effect.commodity_id) else []
        return [
            commodity_id for commodity_id in self.catalog.get_by_category(effect.category)
            if market.stocks(commodity_id)
        ]
