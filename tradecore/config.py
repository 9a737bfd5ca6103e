"""Simulation constants and configuration."""
from __future__ import annotations
import json
from dataclasses import dataclass, field, fields
from pathlib import Path
from types import MappingProxyType
from typing import Any, Mapping

from .errors import ConfigurationError

# Path to shipped game data
DATA_DIR = Path(__file__).parent / "data"

# Simulation cadence
TICK_INTERVAL_HOURS = 0.25  # Game hours per simulation tick
PRICE_RECOMPUTE_INTERVAL = 4  # Recompute quoted prices every Nth tick
EVENT_CHANCE_PER_TICK = 0.02  # Per market, per tick
DECAY_RATE = 0.05  # Fraction of the gap to equilibrium closed each tick

# Supply/demand gauges
MAX_LEVEL = 1000.0
DEFAULT_BASELINE = 100.0
INITIAL_JITTER = 0.15  # +/- fraction applied to seeded baselines
TRADE_IMPACT = 1.0  # Level shift per traded unit

# Price pipeline
MIN_PRICE = 0.01
MIN_RATIO = 0.5
MAX_RATIO = 2.0
BULK_BUY_RATE = 0.05
BULK_SELL_RATE = 0.08
BULK_FLOOR = 0.5
VARIANCE_BAND = (0.95, 1.05)
PRICE_HISTORY_CAPACITY = 32
PRICE_CHANGE_NOTIFY_THRESHOLD = 0.05  # Relative move that fires PriceChanged

RARITY_MULTIPLIERS: dict[str, float] = {
    "common": 1.0,
    "uncommon": 1.25,
    "rare": 1.6,
    "exotic": 2.5,
}

# Base markup before faction tolerance is applied
LEGALITY_MARKUPS: dict[str, float] = {
    "legal": 0.0,
    "restricted": 0.25,
    "illegal": 1.0,
}

# Big jumps
BIG_JUMP_THRESHOLD_HOURS = 24.0

@dataclass(frozen=True)
class SimulationConfig:
    """Runtime simulation configuration. Immutable after startup."""
    tick_interval_hours: float = TICK_INTERVAL_HOURS
    price_recompute_interval: int = PRICE_RECOMPUTE_INTERVAL
    event_chance_per_tick: float = EVENT_CHANCE_PER_TICK
    decay_rate: float = DECAY_RATE
    max_level: float = MAX_LEVEL
    default_baseline: float = DEFAULT_BASELINE
    category_baselines: Mapping[str, float] = field(default_factory=dict)
    initial_jitter: float = INITIAL_JITTER
    trade_impact: float = TRADE_IMPACT
    min_price: float = MIN_PRICE
    min_ratio: float = MIN_RATIO
    max_ratio: float = MAX_RATIO
    bulk_buy_rate: float = BULK_BUY_RATE
    bulk_sell_rate: float = BULK_SELL_RATE
    bulk_floor: float = BULK_FLOOR
    variance_band: tuple[float, float] = VARIANCE_BAND
    price_history_capacity: int = PRICE_HISTORY_CAPACITY
    price_change_notify_threshold: float = PRICE_CHANGE_NOTIFY_THRESHOLD
    rarity_multipliers: Mapping[str, float] = field(default_factory=lambda: dict(RARITY_MULTIPLIERS))
    legality_markups: Mapping[str, float] = field(default_factory=lambda: dict(LEGALITY_MARKUPS))
    big_jump_threshold_hours: float = BIG_JUMP_THRESHOLD_HOURS

    def __post_init__(self) -> None:
        # Mapping settings are exposed as read-only views
        for name in ("category_baselines", "rarity_multipliers", "legality_markups"):
            object.__setattr__(self, name, MappingProxyType(dict(getattr(self, name))))
        self.validate()

    def validate(self) -> None:
        """Raise ConfigurationError if any value is out of range."""
        if self.tick_interval_hours <= 0:
            raise ConfigurationError("tick_interval_hours must be positive")
        if self.price_recompute_interval < 1:
            raise ConfigurationError("price_recompute_interval must be at least 1")
        if not 0.0 <= self.event_chance_per_tick <= 1.0:
            raise ConfigurationError("event_chance_per_tick must be within [0, 1]")
        if not 0.0 <= self.decay_rate <= 1.0:
            raise ConfigurationError("decay_rate must be within [0, 1]")
        if self.max_level <= 0:
            raise ConfigurationError("max_level must be positive")
        if self.min_price <= 0:
            raise ConfigurationError("min_price must be strictly positive")
        if not 0 < self.min_ratio <= self.max_ratio:
            raise ConfigurationError("ratio bounds must satisfy 0 < min_ratio <= max_ratio")
        if not 0 < self.bulk_floor <= 1.0:
            raise ConfigurationError("bulk_floor must be within (0, 1]")
        low, high = self.variance_band
        if not 0 < low <= high:
            raise ConfigurationError("variance_band must satisfy 0 < low <= high")
        if self.price_history_capacity < 1:
            raise ConfigurationError("price_history_capacity must be at least 1")
        if any(m <= 0 for m in self.rarity_multipliers.values()):
            raise ConfigurationError("rarity multipliers must be positive")
        if any(m < 0 for m in self.legality_markups.values()):
            raise ConfigurationError("legality markups cannot be negative")

    def baseline_for(self, category: str) -> float:
        """Equilibrium level for a commodity category."""
        return self.category_baselines.get(category, self.default_baseline)

    def clamp_level(self, value: float) -> float:
        """Clamp a supply/demand level to [0, max_level]."""
        return max(0.0, min(self.max_level, value))

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SimulationConfig:
        """Build a config from a plain mapping, rejecting unknown keys."""
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ConfigurationError(f"Unknown simulation settings: {sorted(unknown)}")

        values = dict(data)
        if "variance_band" in values:
            band = values["variance_band"]
            if not isinstance(band, (list, tuple)) or len(band) != 2:
                raise ConfigurationError("variance_band must be a [low, high] pair")
            values["variance_band"] = (float(band[0]), float(band[1]))
        try:
            return cls(**values)
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"Invalid simulation settings: {e}") from e

def load_simulation_config(path: Path | str | None = None) -> SimulationConfig:
    """Load simulation settings from JSON. Defaults to the shipped file."""
    json_path = Path(path) if path else DATA_DIR / "simulation.json"
    try:
        with open(json_path, "r") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigurationError(f"Cannot read simulation settings {json_path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigurationError(f"{json_path} must contain a JSON object")
    return SimulationConfig.from_dict(data)
