"""Tick-driven market simulation."""
from __future__ import annotations
import copy
import logging
import random
from typing import TYPE_CHECKING, Callable, Iterable

from ..config import SimulationConfig
from ..core.events import BigJump, EventBus, PriceChanged, SimTick
from .market import MarketEntry, MarketLocation, baseline_levels
from .pricing import PriceEngine

if TYPE_CHECKING:
    from ..core.registries import CommodityCatalog, EconomicProfileRegistry
    from .events import EventEngine

logger = logging.getLogger(__name__)

MarketSource = Callable[[], Iterable[MarketLocation]]


class SimulationScheduler:
    """Advances every market one tick at a time.

    Per tick and per market: production/consumption, decay toward the
    equilibrium baseline, price recompute (every Nth tick) and an event
    roll. Big jumps are replayed tick by tick, never collapsed into one
    scaled step, so event rolls and decay curvature match continuous play.
    """

    def __init__(
        self,
        markets: MarketSource,
        catalog: CommodityCatalog,
        profiles: EconomicProfileRegistry,
        price_engine: PriceEngine,
        event_engine: EventEngine,
        config: SimulationConfig,
        seed: int | None = None,
        event_bus: EventBus | None = None,
    ) -> None:
        self._markets = markets
        self.catalog = catalog
        self.profiles = profiles
        self.price_engine = price_engine
        self.event_engine = event_engine
        self.config = config
        self.rng = random.Random(seed)
        self.event_bus = event_bus
        self.tick_count = 0
        self._pending_hours = 0.0

    def attach(self, event_bus: EventBus) -> None:
        """Subscribe to clock pushes on an event bus."""
        event_bus.subscribe(SimTick, self._handle_sim_tick)
        event_bus.subscribe(BigJump, self._handle_big_jump)
        if self.event_bus is None:
            self.event_bus = event_bus

    def detach(self, event_bus: EventBus) -> None:
        event_bus.unsubscribe(SimTick, self._handle_sim_tick)
        event_bus.unsubscribe(BigJump, self._handle_big_jump)

    def _handle_sim_tick(self, event: SimTick) -> None:
        self.on_sim_tick(event.ticks_elapsed)

    def _handle_big_jump(self, event: BigJump) -> None:
        self.on_big_jump(event.hours)

    def on_sim_tick(self, ticks_elapsed: int = 1) -> None:
        """Run `ticks_elapsed` consecutive ticks."""
        for _ in range(max(0, ticks_elapsed)):
            self.on_tick(self.tick_count + 1)

    def on_big_jump(self, elapsed_hours: float) -> int:
        """Replay a time skip as whole ticks. Returns the number of ticks run.

        The fractional remainder is carried into the next jump so repeated
        short skips do not lose time.
        """
        if elapsed_hours <= 0:
            return 0
        self._pending_hours += elapsed_hours
        ticks = int(self._pending_hours / self.config.tick_interval_hours + 1e-9)
        self._pending_hours = max(
            0.0, self._pending_hours - ticks * self.config.tick_interval_hours)

        logger.info("Replaying %d ticks for a %.2fh jump", ticks, elapsed_hours)
        self.on_sim_tick(ticks)
        return ticks

    def on_tick(self, tick_id: int) -> None:
        """Process one tick for every market.

        A market that fails is rolled back to its state before the tick,
        logged and skipped; the other markets still advance.
        """
        self.tick_count = tick_id
        recompute = tick_id % self.config.price_recompute_interval == 0

        for market in list(self._markets()):
            with market.lock:
                saved = copy.deepcopy(market.entries)
                try:
                    self._process_market(market, recompute)
                except Exception:
                    self._restore(market, saved)
                    logger.exception("Tick %d failed for market %s, skipping",
                                     tick_id, market.station_id)

    @staticmethod
    def _restore(market: MarketLocation, saved: dict[str, MarketEntry]) -> None:
        """Put every entry back as it was, keeping the entry objects."""
        for commodity_id, entry in market.entries.items():
            before = saved[commodity_id]
            entry.supply_level = before.supply_level
            entry.demand_level = before.demand_level
            entry.current_price = before.current_price
            entry.price_history = before.price_history

    def _process_market(self, market: MarketLocation, recompute: bool) -> None:
        econ_profile = self.profiles.get_econ_profile(market.econ_profile_id)
        faction_profile = self.profiles.get_faction_profile(market.faction_id)

        # Compute every new level first; nothing is written until all succeed
        levels: dict[str, tuple[float, float]] = {}
        for commodity_id, entry in market.entries.items():
            commodity = self.catalog.get(commodity_id)

            # Production and consumption
            supply = entry.supply_level + econ_profile.production_rate(commodity.category)
            demand = entry.demand_level + econ_profile.consumption_rate(commodity.category)

            # Decay toward equilibrium
            base_supply, base_demand = baseline_levels(commodity, faction_profile, self.config)
            supply += (base_supply - supply) * self.config.decay_rate
            demand += (base_demand - demand) * self.config.decay_rate

            levels[commodity_id] = (self.config.clamp_level(supply),
                                    self.config.clamp_level(demand))

        for commodity_id, (supply, demand) in levels.items():
            entry = market.entries[commodity_id]
            entry.supply_level = supply
            entry.demand_level = demand

        if recompute:
            self.recompute_prices(market)

        if self.rng.random() < self.config.event_chance_per_tick:
            self.event_engine.roll_and_apply(market, econ_profile, self.rng)

    def recompute_prices(self, market: MarketLocation) -> None:
        """Refresh every quoted price at a market and append to history.

        Quoted prices are the pre-tax buy price of a single unit.
        """
        econ_profile = self.profiles.get_econ_profile(market.econ_profile_id)
        faction_profile = self.profiles.get_faction_profile(market.faction_id)

        with market.lock:
            for commodity_id, entry in market.entries.items():
                old_price = entry.current_price
                unit_price, _ = self.price_engine.price(
                    commodity_id, entry, econ_profile, faction_profile,
                    is_buy=True, quantity=1, rng=self.rng, apply_tax=False)
                market.record_price(commodity_id, unit_price)

                if self.event_bus is None:
                    continue
                change = abs(unit_price - old_price) / max(old_price, self.config.min_price)
                if change > self.config.price_change_notify_threshold:
                    self.event_bus.publish(PriceChanged(
                        station_id=market.station_id,
                        commodity_id=commodity_id,
                        old_price=old_price,
                        new_price=unit_price,
                    ))
