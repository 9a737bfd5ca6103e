"""Market registry - owns every station market and exposes pricing and trading."""
from __future__ import annotations
import logging
import math
import random
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Iterator
from uuid import UUID

from ..config import SimulationConfig
from ..core.events import EventBus, MarketCreated, TradeCompleted
from ..core.transactions import Ledger, TradeLedger
from ..errors import (
    CommodityNotStocked, DuplicateStation, InsufficientResources, MarketNotFound, StaleQuote,
)
from .events import AppliedEvent, EventEngine
from .market import MarketEntry, MarketLocation, StationDescriptor
from .pricing import PriceEngine, PriceQuote
from .scheduler import SimulationScheduler

if TYPE_CHECKING:
    from ..core.registries import CommodityCatalog, EconomicProfileRegistry, EventCatalog

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TradeReceipt:
    """Proof of an executed trade, carrying the exact quote that was charged."""
    agent_id: str
    station_id: str
    quote: PriceQuote
    transaction_id: UUID
    supply_after: float
    demand_after: float


class MarketRegistry:
    """Owns all MarketLocation instances.

    External callers (UI, trade logic, station generation) hold station ids
    only; every read and write goes through this class. Quotes and trades
    share one PriceEngine so a quote and the trade it precedes can never
    drift apart.
    """

    def __init__(
        self,
        catalog: CommodityCatalog,
        profiles: EconomicProfileRegistry,
        events: EventCatalog,
        config: SimulationConfig | None = None,
        ledger: Ledger | None = None,
        event_bus: EventBus | None = None,
        seed: int | None = None,
    ) -> None:
        self.catalog = catalog
        self.profiles = profiles
        self.config = config or SimulationConfig()
        self.ledger = ledger if ledger is not None else TradeLedger()
        self.event_bus = event_bus or EventBus()
        self.rng = random.Random(seed)
        self.price_engine = PriceEngine(catalog, self.config)
        self.event_engine = EventEngine(catalog, events, self.event_bus)
        self._markets: dict[str, MarketLocation] = {}

    def create_scheduler(self, seed: int | None = None) -> SimulationScheduler:
        """Build a scheduler that advances this registry's markets."""
        return SimulationScheduler(
            markets=self.markets,
            catalog=self.catalog,
            profiles=self.profiles,
            price_engine=self.price_engine,
            event_engine=self.event_engine,
            config=self.config,
            seed=seed,
            event_bus=self.event_bus,
        )

    # Market lifecycle

    def create_market_location(
        self,
        descriptor: StationDescriptor,
        seed: int | str = 0,
    ) -> MarketLocation:
        """Create and register the market of a newly generated station."""
        if descriptor.station_id in self._markets:
            raise DuplicateStation(descriptor.station_id)

        market = MarketLocation.create(descriptor, self.catalog, self.profiles, self.config, seed)
        self._markets[market.station_id] = market

        logger.debug("Market created at %s with %d commodities",
                     market.station_id, len(market.entries))
        self.event_bus.publish(MarketCreated(
            station_id=market.station_id,
            faction_id=market.faction_id,
            econ_profile_id=market.econ_profile_id,
            commodity_ids=tuple(market.entries),
        ))
        return market

    def remove_market_location(self, station_id: str) -> None:
        """Drop a market when its station goes away."""
        if self._markets.pop(station_id, None) is None:
            raise MarketNotFound(station_id)

    def get_market(self, station_id: str) -> MarketLocation:
        try:
            return self._markets[station_id]
        except KeyError:
            raise MarketNotFound(station_id) from None

    def markets(self) -> Iterator[MarketLocation]:
        return iter(list(self._markets.values()))

    def __contains__(self, station_id: object) -> bool:
        return station_id in self._markets

    def __len__(self) -> int:
        return len(self._markets)

    # Pricing and trading

    def calculate_price(
        self,
        commodity_id: str,
        station_id: str,
        is_buy: bool,
        quantity: int = 1,
        rng: random.Random | None = None,
    ) -> PriceQuote:
        """Quote a prospective trade.

        Raises MarketNotFound or CommodityNotStocked. Pass `rng` to make the
        variance draw reproducible; otherwise the registry's own RNG is used.
        """
        market = self.get_market(station_id)
        with market.lock:
            return self._quote(market, commodity_id, is_buy, quantity, rng or self.rng)

    def execute_trade(
        self,
        agent_id: str,
        station_id: str,
        commodity_id: str,
        quantity: int,
        is_buy: bool,
        quote: PriceQuote | None = None,
    ) -> TradeReceipt:
        """Execute a trade, all or nothing.

        Pass the quote from calculate_price to be charged exactly that
        price. It is re-priced with its own variance factor first and
        StaleQuote is raised if it was issued for a different trade or the
        market has moved since. Without a quote a fresh one is drawn.

        The ledger settles funds and cargo first; market levels only move
        once settlement succeeded. Buying drains supply and adds demand
        pressure, selling does the inverse.
        """
        market = self.get_market(station_id)

        with market.lock:
            if quote is None:
                quote = self._quote(market, commodity_id, is_buy, quantity, self.rng)
            else:
                self._check_quote(market, quote, commodity_id, quantity, is_buy)
            transaction = self.ledger.settle_trade(
                agent_id, commodity_id, quantity, quote.total_price, is_buy,
                reason=f"{'Buy' if is_buy else 'Sell'} {quantity} {commodity_id} at {station_id}",
            )
            if not transaction.success:
                raise InsufficientResources(transaction.error_message)

            shift = quantity * self.config.trade_impact
            if is_buy:
                market.apply_supply_event(commodity_id, -shift)
                market.apply_demand_event(commodity_id, shift)
            else:
                market.apply_supply_event(commodity_id, shift)
                market.apply_demand_event(commodity_id, -shift)
            entry = market.entries[commodity_id]

            receipt = TradeReceipt(
                agent_id=agent_id,
                station_id=station_id,
                quote=quote,
                transaction_id=transaction.id,
                supply_after=entry.supply_level,
                demand_after=entry.demand_level,
            )

        logger.debug("Trade %s: %s %d %s at %s for %.2f", transaction.id, agent_id,
                     quantity, commodity_id, station_id, quote.total_price)
        self.event_bus.publish(TradeCompleted(
            agent_id=agent_id,
            station_id=station_id,
            commodity_id=commodity_id,
            quantity=quantity,
            is_buy=is_buy,
            total_price=quote.total_price,
        ))
        return receipt

    def _quote(
        self,
        market: MarketLocation,
        commodity_id: str,
        is_buy: bool,
        quantity: int,
        rng: random.Random,
        variance: float | None = None,
    ) -> PriceQuote:
        entry = self._stocked_entry(market, commodity_id)
        return self.price_engine.quote(
            commodity_id,
            entry,
            self.profiles.get_econ_profile(market.econ_profile_id),
            self.profiles.get_faction_profile(market.faction_id),
            is_buy,
            quantity,
            rng,
            station_id=market.station_id,
            variance=variance,
        )

    def _check_quote(
        self,
        market: MarketLocation,
        quote: PriceQuote,
        commodity_id: str,
        quantity: int,
        is_buy: bool,
    ) -> None:
        issued_for = (quote.station_id, quote.commodity_id, quote.quantity, quote.is_buy)
        if issued_for != (market.station_id, commodity_id, quantity, is_buy):
            raise StaleQuote(market.station_id, commodity_id, "issued for a different trade")

        current = self._quote(market, commodity_id, is_buy, quantity, self.rng,
                              variance=quote.variance)
        if not math.isclose(current.total_price, quote.total_price, rel_tol=1e-9):
            raise StaleQuote(
                market.station_id, commodity_id,
                f"now {current.total_price:.2f}, quoted {quote.total_price:.2f}")

    @staticmethod
    def _stocked_entry(market: MarketLocation, commodity_id: str) -> MarketEntry:
        entry = market.get_entry(commodity_id)
        if entry is None:
            raise CommodityNotStocked(market.station_id, commodity_id)
        return entry

    # Debug and test hooks

    def apply_supply_event(self, station_id: str, commodity_id: str, delta: float) -> bool:
        market = self.get_market(station_id)
        with market.lock:
            return market.apply_supply_event(commodity_id, delta)

    def apply_demand_event(self, station_id: str, commodity_id: str, delta: float) -> bool:
        market = self.get_market(station_id)
        with market.lock:
            return market.apply_demand_event(commodity_id, delta)

    def force_event(self, event_id: str, station_id: str) -> AppliedEvent:
        """Apply a named event to a market, ignoring its profile filter."""
        market = self.get_market(station_id)
        definition = self.event_engine.events.get(event_id)
        return self.event_engine.apply(market, definition)

    # Read-only views and persistence

    def get_market_snapshot(self, station_id: str) -> dict[str, Any]:
        """Deep copy of a market's state, safe to hand to the UI."""
        return self.get_market(station_id).snapshot()

    def to_dict(self) -> list[dict[str, Any]]:
        """Persistence shape of every market, in registration order."""
        result = []
        for market in self.markets():
            with market.lock:
                result.append(market.to_dict())
        return result

    def load_dict(self, data: list[dict[str, Any]]) -> None:
        """Replace all markets with previously serialized ones."""
        markets = [MarketLocation.from_dict(raw, self.config) for raw in data]
        seen: set[str] = set()
        for market in markets:
            if market.station_id in seen:
                raise DuplicateStation(market.station_id)
            seen.add(market.station_id)
            for commodity_id in market.entries:
                self.catalog.get(commodity_id)
        self._markets = {market.station_id: market for market in markets}
