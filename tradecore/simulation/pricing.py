"""Market price calculations.

Every price in the economy comes out of PriceEngine.price(): quotes, trade
execution and the scheduler's periodic recompute all call the same
pipeline. The engine is pure; writing the result into price history is the
caller's job.

Stages, in order, each multiplying the running price:

    1. catalog base price
    2. economic profile category modifier
    3. faction buy or sell factor
    4. demand/supply ratio, clamped
    5. rarity multiplier
    6. legality markup, scaled down by faction tolerance
    7. bulk curve, 1 - rate * ln(quantity), floor-clamped
    8. random variance from the supplied RNG (exactly one draw)
    9. tax surcharge on buys
"""
from __future__ import annotations
import math
import random
from dataclasses import dataclass
from typing import TYPE_CHECKING

from ..config import SimulationConfig
from .commodities import Commodity, EconomicProfile, FactionMarketProfile

if TYPE_CHECKING:
    from ..core.registries import CommodityCatalog
    from .market import MarketEntry

RATIO_EPSILON = 1e-6


@dataclass(frozen=True)
class PriceQuote:
    """A price computed for one prospective trade. Never persisted."""
    commodity_id: str
    unit_price: float
    total_price: float
    quantity: int
    is_buy: bool
    station_id: str = ""
    # Variance factor drawn for this quote; replayed when the trade executes
    variance: float = 1.0


class PriceEngine:
    """Stateless pricing pipeline."""

    def __init__(self, catalog: CommodityCatalog, config: SimulationConfig) -> None:
        self.catalog = catalog
        self.config = config

    def price(
        self,
        commodity_id: str,
        market_entry: MarketEntry,
        econ_profile: EconomicProfile,
        faction_profile: FactionMarketProfile,
        is_buy: bool,
        quantity: int,
        rng: random.Random,
        apply_tax: bool = True,
        variance: float | None = None,
    ) -> tuple[float, float]:
        """Compute (unit_price, total_price) for a trade of `quantity` units.

        Pass `variance` to reuse an earlier variance factor instead of drawing
        a new one from `rng`.
        """
        stages = self._run(commodity_id, market_entry, econ_profile, faction_profile,
                           is_buy, quantity, rng, apply_tax, variance)
        unit_price = max(self.config.min_price, stages[-1][1])
        return unit_price, unit_price * quantity

    def quote(
        self,
        commodity_id: str,
        market_entry: MarketEntry,
        econ_profile: EconomicProfile,
        faction_profile: FactionMarketProfile,
        is_buy: bool,
        quantity: int,
        rng: random.Random,
        station_id: str = "",
        variance: float | None = None,
    ) -> PriceQuote:
        """Price a trade and wrap the result in a PriceQuote.

        The quote keeps its variance factor so the same price can be
        reproduced at execution time.
        """
        if variance is None:
            variance = self.draw_variance(rng)
        unit_price, total_price = self.price(
            commodity_id, market_entry, econ_profile, faction_profile,
            is_buy, quantity, rng, variance=variance)
        return PriceQuote(
            commodity_id=commodity_id,
            unit_price=unit_price,
            total_price=total_price,
            quantity=quantity,
            is_buy=is_buy,
            station_id=station_id,
            variance=variance,
        )

    def draw_variance(self, rng: random.Random) -> float:
        """One draw from the configured variance band."""
        low, high = self.config.variance_band
        return rng.uniform(low, high)

    def breakdown(
        self,
        commodity_id: str,
        market_entry: MarketEntry,
        econ_profile: EconomicProfile,
        faction_profile: FactionMarketProfile,
        is_buy: bool,
        quantity: int,
        rng: random.Random,
        apply_tax: bool = True,
    ) -> list[tuple[str, float]]:
        """Running price after each stage, for debugging and tooltips."""
        return self._run(commodity_id, market_entry, econ_profile, faction_profile,
                         is_buy, quantity, rng, apply_tax)

    def _run(
        self,
        commodity_id: str,
        market_entry: MarketEntry,
        econ_profile: EconomicProfile,
        faction_profile: FactionMarketProfile,
        is_buy: bool,
        quantity: int,
        rng: random.Random,
        apply_tax: bool,
        variance: float | None = None,
    ) -> list[tuple[str, float]]:
        if quantity < 1:
            raise ValueError(f"Quantity must be at least 1, got {quantity}")

        commodity = self.catalog.get(commodity_id)
        stages: list[tuple[str, float]] = []

        price = commodity.base_price
        stages.append(("base", price))

        price *= econ_profile.category_modifier(commodity.category)
        stages.append(("economy", price))

        price *= faction_profile.price_factor(is_buy)
        stages.append(("faction", price))

        price *= self.supply_demand_ratio(market_entry)
        stages.append(("supply_demand", price))

        price *= self.rarity_multiplier(commodity)
        stages.append(("rarity", price))

        price *= self.legality_multiplier(commodity, faction_profile)
        stages.append(("legality", price))

        price *= self.bulk_multiplier(quantity, is_buy)
        stages.append(("bulk", price))

        price *= variance if variance is not None else self.draw_variance(rng)
        stages.append(("variance", price))

        if is_buy and apply_tax:
            price *= 1.0 + faction_profile.tax_rate
        stages.append(("tax", price))

        return stages

    def supply_demand_ratio(self, market_entry: MarketEntry) -> float:
        """Demand over supply, clamped to the configured band."""
        ratio = market_entry.demand_level / max(market_entry.supply_level, RATIO_EPSILON)
        return max(self.config.min_ratio, min(self.config.max_ratio, ratio))

    def rarity_multiplier(self, commodity: Commodity) -> float:
        return self.config.rarity_multipliers.get(commodity.rarity.value, 1.0)

    def legality_multiplier(
        self,
        commodity: Commodity,
        faction_profile: FactionMarketProfile,
    ) -> float:
        """Markup for controlled goods; lower tolerance means a higher markup."""
        if not commodity.legality.is_controlled:
            return 1.0
        markup = self.config.legality_markups.get(commodity.legality.value, 0.0)
        tolerance = max(0.0, min(1.0, faction_profile.illegal_tolerance))
        return 1.0 + markup * (1.0 - tolerance)

    def bulk_multiplier(self, quantity: int, is_buy: bool) -> float:
        """Per-unit discount (buying) or markdown (selling) for large lots."""
        rate = self.config.bulk_buy_rate if is_buy else self.config.bulk_sell_rate
        return max(self.config.bulk_floor, 1.0 - rate * math.log(quantity))
