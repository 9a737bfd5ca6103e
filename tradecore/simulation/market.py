"""Per-station market state."""
from __future__ import annotations
import copy
import logging
import math
import random
import threading
from collections import deque
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from ..config import PRICE_HISTORY_CAPACITY, SimulationConfig
from ..errors import CommodityNotFound, ConfigurationError, InvalidCommodity
from .commodities import Commodity, FactionMarketProfile

if TYPE_CHECKING:
    from ..core.registries import CommodityCatalog, EconomicProfileRegistry

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StationDescriptor:
    """What the station generator hands over when a station comes into being."""
    station_id: str
    faction_id: str
    econ_profile_id: str
    stock: tuple[str, ...] = ()


def baseline_levels(
    commodity: Commodity,
    faction_profile: FactionMarketProfile,
    config: SimulationConfig,
) -> tuple[float, float]:
    """Equilibrium (supply, demand) for a commodity under a faction's biases."""
    base = config.baseline_for(commodity.category)
    return (
        config.clamp_level(base * faction_profile.supply_bias),
        config.clamp_level(base * faction_profile.demand_bias),
    )


def _restored_number(value: Any, name: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
        raise ConfigurationError(f"Saved {name} must be a finite number, got {value!r}")
    return float(value)


@dataclass
class MarketEntry:
    """Supply, demand and price state of one commodity at one market."""
    commodity_id: str
    supply_level: float
    demand_level: float
    current_price: float
    price_history: deque[float] = field(
        default_factory=lambda: deque(maxlen=PRICE_HISTORY_CAPACITY))

    def to_dict(self) -> dict[str, Any]:
        return {
            "commodity_id": self.commodity_id,
            "supply_level": self.supply_level,
            "demand_level": self.demand_level,
            "current_price": self.current_price,
            "price_history": list(self.price_history),
        }

    @classmethod
    def from_dict(
        cls,
        data: dict[str, Any],
        config: SimulationConfig | None = None,
    ) -> MarketEntry:
        """Restore an entry, rejecting values that break the level and price bounds."""
        config = config or SimulationConfig()
        try:
            commodity_id = data["commodity_id"]
            supply = _restored_number(data["supply_level"], "supply_level")
            demand = _restored_number(data["demand_level"], "demand_level")
            price = _restored_number(data["current_price"], "current_price")
            history = [_restored_number(p, "price_history")
                       for p in data.get("price_history", [])]
        except KeyError as e:
            raise ConfigurationError(f"Market entry is missing {e}") from e

        for name, level in (("supply_level", supply), ("demand_level", demand)):
            if not 0.0 <= level <= config.max_level:
                raise ConfigurationError(
                    f"{commodity_id}.{name} {level} is outside [0, {config.max_level}]")
        if price <= 0 or any(p <= 0 for p in history):
            raise ConfigurationError(f"{commodity_id} has a non-positive price")

        return cls(
            commodity_id=commodity_id,
            supply_level=supply,
            demand_level=demand,
            current_price=price,
            price_history=deque(history, maxlen=config.price_history_capacity),
        )


@dataclass
class MarketLocation:
    """Mutable market state of one station.

    Only the simulation scheduler (ticks) and the market registry (trades)
    mutate a location; both hold `lock` while doing so.
    """
    station_id: str
    faction_id: str
    econ_profile_id: str
    entries: dict[str, MarketEntry] = field(default_factory=dict)
    config: SimulationConfig = field(
        default_factory=SimulationConfig, compare=False, repr=False)
    # Stock ids the catalog did not know at creation time
    rejected_stock: tuple[str, ...] = field(default=(), compare=False)
    lock: threading.RLock = field(
        default_factory=threading.RLock, compare=False, repr=False)

    @classmethod
    def create(
        cls,
        descriptor: StationDescriptor,
        catalog: CommodityCatalog,
        profiles: EconomicProfileRegistry,
        config: SimulationConfig,
        seed: int | str = 0,
    ) -> MarketLocation:
        """Build a market for a freshly generated station.

        One entry per stocked commodity, seeded deterministically from the
        station seed plus the owning faction's biases. Stock ids missing
        from the catalog are skipped with a warning; the rest proceed.
        """
        location = cls(
            station_id=descriptor.station_id,
            faction_id=descriptor.faction_id,
            econ_profile_id=descriptor.econ_profile_id,
            config=config,
        )
        econ_profile = profiles.get_econ_profile(descriptor.econ_profile_id)
        faction_profile = profiles.get_faction_profile(descriptor.faction_id)

        rejected = []
        for commodity_id in descriptor.stock:
            if commodity_id in location.entries:
                continue
            try:
                commodity = catalog.get(commodity_id)
            except CommodityNotFound:
                logger.warning(
                    "Station %s stocks unknown commodity %r, skipping",
                    descriptor.station_id, commodity_id)
                rejected.append(commodity_id)
                continue
            location._add(commodity, econ_profile.category_modifier(commodity.category),
                          faction_profile, seed)

        location.rejected_stock = tuple(rejected)
        return location

    def add_entry(
        self,
        commodity_id: str,
        catalog: CommodityCatalog,
        profiles: EconomicProfileRegistry,
        seed: int | str = 0,
    ) -> MarketEntry:
        """Start stocking a commodity. Raises InvalidCommodity if not in the catalog."""
        if not catalog.exists(commodity_id):
            raise InvalidCommodity(commodity_id)
        if commodity_id in self.entries:
            return self.entries[commodity_id]

        commodity = catalog.get(commodity_id)
        econ_profile = profiles.get_econ_profile(self.econ_profile_id)
        return self._add(
            commodity,
            econ_profile.category_modifier(commodity.category),
            profiles.get_faction_profile(self.faction_id),
            seed,
        )

    def _add(
        self,
        commodity: Commodity,
        category_modifier: float,
        faction_profile: FactionMarketProfile,
        seed: int | str,
    ) -> MarketEntry:
        supply, demand = baseline_levels(commodity, faction_profile, self.config)
        # Seed per commodity so stock order does not change the outcome
        rng = random.Random(f"{seed}:{self.station_id}:{commodity.id}")
        jitter = self.config.initial_jitter
        supply *= 1.0 + rng.uniform(-jitter, jitter)
        demand *= 1.0 + rng.uniform(-jitter, jitter)

        entry = MarketEntry(
            commodity_id=commodity.id,
            supply_level=self.config.clamp_level(supply),
            demand_level=self.config.clamp_level(demand),
            current_price=max(self.config.min_price, commodity.base_price * category_modifier),
            price_history=deque(maxlen=self.config.price_history_capacity),
        )
        self.entries[commodity.id] = entry
        return entry

    def get_entry(self, commodity_id: str) -> MarketEntry | None:
        return self.entries.get(commodity_id)

    def stocks(self, commodity_id: str) -> bool:
        return commodity_id in self.entries

    def apply_supply_event(self, commodity_id: str, delta: float) -> bool:
        """Shift supply by delta, clamped. Returns False if not stocked."""
        entry = self._entry_or_warn(commodity_id, "supply")
        if entry is None:
            return False
        entry.supply_level = self.config.clamp_level(entry.supply_level + delta)
        return True

    def apply_demand_event(self, commodity_id: str, delta: float) -> bool:
        """Shift demand by delta, clamped. Returns False if not stocked."""
        entry = self._entry_or_warn(commodity_id, "demand")
        if entry is None:
            return False
        entry.demand_level = self.config.clamp_level(entry.demand_level + delta)
        return True

    def _entry_or_warn(self, commodity_id: str, gauge: str) -> MarketEntry | None:
        entry = self.entries.get(commodity_id)
        if entry is None:
            logger.warning(
                "Ignoring %s event for %r: not stocked at %s",
                gauge, commodity_id, self.station_id)
        return entry

    def record_price(self, commodity_id: str, price: float) -> None:
        """Set the quoted price and push it onto the bounded history."""
        entry = self.entries[commodity_id]
        price = max(self.config.min_price, price)
        entry.current_price = price
        entry.price_history.append(price)

    def to_dict(self) -> dict[str, Any]:
        """Serializable persistence shape."""
        return {
            "station_id": self.station_id,
            "faction_id": self.faction_id,
            "econ_profile_id": self.econ_profile_id,
            "entries": [entry.to_dict() for entry in self.entries.values()],
        }

    @classmethod
    def from_dict(
        cls,
        data: dict[str, Any],
        config: SimulationConfig | None = None,
    ) -> MarketLocation:
        """Restore a market saved with to_dict. Malformed data raises ConfigurationError."""
        config = config or SimulationConfig()
        entries = [MarketEntry.from_dict(raw, config) for raw in data.get("entries", [])]
        try:
            return cls(
                station_id=data["station_id"],
                faction_id=data["faction_id"],
                econ_profile_id=data["econ_profile_id"],
                entries={entry.commodity_id: entry for entry in entries},
                config=config,
            )
        except KeyError as e:
            raise ConfigurationError(f"Saved market is missing {e}") from e

    def snapshot(self) -> dict[str, Any]:
        """Read-only deep copy for UI consumers."""
        with self.lock:
            return copy.deepcopy(self.to_dict())
